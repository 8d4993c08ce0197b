"""Data models for timetracker."""

from .session import Attribute, Mark, Session, Tag
from .document import SessionDocument
from .config import TrackerConfig, WebConfig

__all__ = [
    "Attribute",
    "Mark",
    "Session",
    "Tag",
    "SessionDocument",
    "TrackerConfig",
    "WebConfig",
]
