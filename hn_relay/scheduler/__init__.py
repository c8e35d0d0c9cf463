"""Scheduling of the poll and cleanup triggers."""

from .apsched_adapter import APSchedulerAdapter

__all__ = ["APSchedulerAdapter"]
