"""Domain exceptions raised by the session and telemetry services.

Each exception carries the HTTP status the API layer answers with, so a single
exception handler can translate any of them.
"""

from typing import Optional


class TrackerError(Exception):
    """Base class for all tracker errors."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidIdentifier(TrackerError):
    """Raised when a public account identifier cannot be resolved"""

    status_code = 400
    default_message = "Invalid SteamID"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid SteamID: {value!r}")


class DuplicateSession(TrackerError):
    """Raised by the store when a session already exists for an identifier"""

    status_code = 409
    default_message = "Session already exists"

    def __init__(self, internal_id: int):
        self.internal_id = internal_id
        super().__init__(f"Session already exists for {internal_id}")


class CapacityExceeded(TrackerError):
    """Raised when the global session ceiling is reached"""

    status_code = 409
    default_message = "Maximum number of sessions reached"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum number of sessions reached ({limit})")


class SessionNotFound(TrackerError):
    status_code = 404
    default_message = "Session not found"


class QuotaExceeded(TrackerError):
    """Raised when a per-session event ceiling is reached; the event is dropped"""

    status_code = 429
    default_message = "Quota exceeded"

    def __init__(self, kind: str, limit: int):
        self.kind = kind
        self.limit = limit
        super().__init__(f"Maximum number of {kind} reached ({limit})")


class StoreFailure(TrackerError):
    status_code = 500
    default_message = "Internal error"


class CollaboratorFailure(TrackerError):
    """Raised by the announcement channel; never surfaced to API callers"""

    status_code = 502
    default_message = "Announcement channel error"
