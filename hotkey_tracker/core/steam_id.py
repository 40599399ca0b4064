"""
SteamID conversion helpers.

Public identifiers use the textual ``STEAM_X:Y:Z`` form where ``Y`` is the
authentication server flag and ``Z`` the account number. Internally sessions
are keyed by the 64-bit community identifier derived from those two fields.

The conversion is purely syntactic: a well-formed SteamID proves nothing about
who sent it.
"""

import re
from hotkey_tracker.core.exceptions import InvalidIdentifier

STEAM_ID64_BASE = 76561197960265728
MAX_ACCOUNT_NUMBER = 2**31 - 1

_PREFIX = "STEAM_"
_UNIVERSE_RE = re.compile(r"^[0-9]$")
_NUMBER_RE = re.compile(r"^[0-9]+$")
_ID64_RE = re.compile(r"^7656119[0-9]{10}$")


def resolve(public_id: str) -> int:
    """
    Convert a ``STEAM_X:Y:Z`` identifier into its 64-bit form.

    Args:
        public_id: Textual SteamID as supplied by a user

    Returns:
        The canonical 64-bit identifier

    Raises:
        InvalidIdentifier: If the value is not a well-formed SteamID
    """
    if not isinstance(public_id, str):
        raise InvalidIdentifier(str(public_id))

    value = public_id.strip()
    if not value.startswith(_PREFIX):
        raise InvalidIdentifier(public_id)

    parts = value[len(_PREFIX):].split(":")
    if len(parts) != 3:
        raise InvalidIdentifier(public_id)

    universe, auth, account = parts
    if not _UNIVERSE_RE.match(universe):
        raise InvalidIdentifier(public_id)
    if auth not in ("0", "1"):
        raise InvalidIdentifier(public_id)
    if not _NUMBER_RE.match(account) or int(account) > MAX_ACCOUNT_NUMBER:
        raise InvalidIdentifier(public_id)

    return STEAM_ID64_BASE + 2 * int(account) + int(auth)


def to_public_id(internal_id: int, universe: int = 0) -> str:
    """Render a 64-bit identifier back into ``STEAM_X:Y:Z`` form."""
    offset = internal_id - STEAM_ID64_BASE
    if offset < 0 or offset // 2 > MAX_ACCOUNT_NUMBER:
        raise InvalidIdentifier(str(internal_id))
    return f"{_PREFIX}{universe}:{offset % 2}:{offset // 2}"


def is_internal_id(value: str) -> bool:
    """Check whether a string already holds a 64-bit community identifier."""
    return bool(_ID64_RE.match(value.strip()))
