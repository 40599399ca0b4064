"""Token-scoped read access and CSV export of session telemetry."""

import csv
import io
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from hotkey_tracker.core.categories import CategoryFilter
from hotkey_tracker.core.exceptions import SessionNotFound
from hotkey_tracker.core.schemas.session import (
    ClickEventRecord,
    KeyEventRecord,
    PresenceState,
    SessionData,
    SessionInfo,
)
from hotkey_tracker.services.session_store import SessionStore

DEFAULT_DISPLAY_TIMEZONE = "Europe/Moscow"
DISPLAY_FORMAT = "%d.%m.%Y, %H:%M:%S"
MISSING_TIME = "N/A"

KEY_EVENT_COLUMNS = ["Time", "Key", "Category"]
CLICK_EVENT_COLUMNS = ["Time", "X", "Y", "W", "H"]


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def format_display_time(value: Optional[datetime], tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Render a timestamp the way operators read it, e.g. ``17.10.2026, 14:05:09``."""
    if value is None:
        return MISSING_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_zone(tz_name)).strftime(DISPLAY_FORMAT)


def _write_csv(header: List[str], rows: Iterable[List[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def key_events_to_csv(events: Iterable[KeyEventRecord], tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    return _write_csv(
        KEY_EVENT_COLUMNS,
        ([format_display_time(e.time, tz_name), e.label, e.category] for e in events),
    )


def click_events_to_csv(events: Iterable[ClickEventRecord], tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    return _write_csv(
        CLICK_EVENT_COLUMNS,
        ([format_display_time(e.time, tz_name), e.x, e.y, e.w, e.h] for e in events),
    )


class ReadGateway:
    """Read path for token holders.

    Possession of the access token is the only check: whoever has it can read
    the session's presence and telemetry.
    """

    def __init__(self, store: SessionStore, display_timezone: str = DEFAULT_DISPLAY_TIMEZONE):
        self.store = store
        self.display_timezone = display_timezone

    def _session_for(self, token: str) -> SessionInfo:
        session = self.store.get_by_token(token)
        if session is None:
            raise SessionNotFound("Invalid token")
        return session

    def get_by_token(self, token: str, category: CategoryFilter = CategoryFilter.ALL) -> SessionData:
        """
        Collect presence and telemetry for the session behind a token.

        Key and click events are ordered newest first. Filtering by one of the
        risk tiers drops presence audit entries; ``All`` keeps them.

        Raises:
            SessionNotFound: If no session carries the token
        """
        session = self._session_for(token)
        return SessionData(
            presence=PresenceState(
                online=session.online,
                last_online_at=session.last_online_at,
                last_offline_at=session.last_offline_at,
            ),
            key_events=self.store.list_key_events(session.internal_id, CategoryFilter(category).to_category()),
            click_events=self.store.list_click_events(session.internal_id),
        )

    def export_key_events_csv(self, token: str, category: CategoryFilter = CategoryFilter.ALL) -> str:
        session = self._session_for(token)
        events = self.store.list_key_events(session.internal_id, CategoryFilter(category).to_category())
        return key_events_to_csv(events, self.display_timezone)

    def export_click_events_csv(self, token: str) -> str:
        session = self._session_for(token)
        return click_events_to_csv(self.store.list_click_events(session.internal_id), self.display_timezone)
