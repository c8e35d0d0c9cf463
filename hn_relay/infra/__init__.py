"""Infra layer utilities (SQLite storage)."""

from .storage import SQLiteManager
from .story_store import StoryStore

__all__ = ["SQLiteManager", "StoryStore"]
