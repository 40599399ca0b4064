"""Recording of key, click and presence telemetry against live sessions.

Callers are expected to have passed the shared-secret check at the transport
layer.
"""

import logging

from starlette.concurrency import run_in_threadpool

from hotkey_tracker.core.categories import categorize
from hotkey_tracker.core.schemas.session import PresenceKind
from hotkey_tracker.services.lifecycle import SessionLifecycleManager
from hotkey_tracker.services.session_store import SessionStore

logger = logging.getLogger(__name__)

PRESENCE_LABELS = {
    PresenceKind.ENTERED: "Player entered",
    PresenceKind.EXITED: "Player exited",
}


class TelemetryIngestionService:
    def __init__(
        self,
        store: SessionStore,
        lifecycle: SessionLifecycleManager,
        max_logs_per_session: int = 1000,
        max_clicks_per_session: int = 50,
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.max_logs_per_session = max_logs_per_session
        self.max_clicks_per_session = max_clicks_per_session

    def record_key_event(self, internal_id: int, label: str) -> None:
        """
        Categorize and store a key press.

        Raises:
            SessionNotFound: If no session exists for internal_id
            QuotaExceeded: If the session already holds the maximum number of key events
        """
        category = categorize(label)
        self.store.append_key_event(
            internal_id, label, category, quota=self.max_logs_per_session
        )
        logger.debug(f"Recorded key for {internal_id}: {label} ({category.value})")

    def record_click_event(self, internal_id: int, x: float, y: float, w: int, h: int) -> None:
        """
        Store a click with its viewport size.

        Raises:
            SessionNotFound: If no session exists for internal_id
            QuotaExceeded: If the session already holds the maximum number of clicks
        """
        self.store.append_click_event(
            internal_id, x, y, w, h, quota=self.max_clicks_per_session
        )
        logger.debug(f"Recorded click for {internal_id}: x={x} y={y} w={w} h={h}")

    async def record_presence_event(self, internal_id: int, kind: PresenceKind) -> None:
        """
        Apply an entered/exited transition.

        The timestamp of the other direction is written back unchanged. An audit
        entry is appended to the key timeline regardless of the key quota, then
        the announcement is refreshed on a best-effort basis.

        Raises:
            SessionNotFound: If no session exists for internal_id
        """
        kind = PresenceKind(kind)
        await run_in_threadpool(
            self.store.apply_presence,
            internal_id,
            kind is PresenceKind.ENTERED,
            PRESENCE_LABELS[kind],
        )

        logger.info(f"Recorded presence event for {internal_id}: {kind.value}")
        await self.lifecycle.refresh_announcement(internal_id)
