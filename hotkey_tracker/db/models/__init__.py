"""Database models"""

from hotkey_tracker.db.models.tracking import ClickEvent, KeyEvent, MonitoredSession

__all__ = [
    "MonitoredSession",
    "KeyEvent",
    "ClickEvent",
]
