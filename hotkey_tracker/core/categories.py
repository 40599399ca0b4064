"""Risk tiers for captured key and button labels."""

import string
from enum import Enum
from typing import FrozenSet, Optional


class KeyCategory(str, Enum):
    NORMAL = "Normal"
    MEDIUM = "Medium"
    SUSPICIOUS = "Suspicious"
    # Reserved for presence audit events, never returned by categorize()
    PRESENCE = "Presence"


class CategoryFilter(str, Enum):
    """Key-event selection offered by the read API"""

    ALL = "All"
    NORMAL = "Normal"
    MEDIUM = "Medium"
    SUSPICIOUS = "Suspicious"

    def to_category(self) -> Optional[KeyCategory]:
        if self is CategoryFilter.ALL:
            return None
        return KeyCategory(self.value)


NORMAL_KEYS: FrozenSet[str] = frozenset(
    list(string.ascii_uppercase)
    + list(string.digits)
    + ["MOUSE1", "MOUSE2", "LSHIFT", "ENTER", "BACKSPACE", "SPACE"]
)

MEDIUM_KEYS: FrozenSet[str] = frozenset(
    [f"KP_{digit}" for digit in string.digits]
    + ["KP_ENTER", "KP_DECIMAL", "KP_DIVIDE", "KP_MULTIPLY", "KP_MINUS", "KP_PLUS"]
    + ["LALT", "RALT"]
    + [f"F{number}" for number in range(1, 13)]
)

SUSPICIOUS_KEYS: FrozenSet[str] = frozenset(
    [
        "RSHIFT", "LCTRL", "RCTRL",
        "UP", "DOWN", "LEFT", "RIGHT",
        "PGUP", "PGDN", "INSERT", "DELETE", "HOME", "END",
        "MOUSE3", "MOUSE4", "MOUSE5", "MWHEELUP", "MWHEELDOWN",
        "TAB", "CAPSLOCK", "ESC", "PRINTSCREEN", "SCROLLLOCK", "PAUSE", "NUMLOCK",
    ]
)


def categorize(label: str) -> KeyCategory:
    """
    Classify a key label.

    Matching is case-insensitive. Labels outside the normal and medium sets,
    including unknown ones, are suspicious.
    """
    key = label.upper()
    if key in NORMAL_KEYS:
        return KeyCategory.NORMAL
    if key in MEDIUM_KEYS:
        return KeyCategory.MEDIUM
    return KeyCategory.SUSPICIOUS
