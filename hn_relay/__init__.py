"""HN Relay: keep a Telegram channel in step with the Hacker News front page."""

__version__ = "0.1.0"
