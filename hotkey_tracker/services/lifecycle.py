"""Creation, termination and listing of monitoring sessions."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from starlette.concurrency import run_in_threadpool

from hotkey_tracker.core import steam_id
from hotkey_tracker.core.exceptions import CollaboratorFailure, DuplicateSession
from hotkey_tracker.core.schemas.session import (
    SessionInfo,
    SessionSummary,
    StartOutcome,
    StartResult,
)
from hotkey_tracker.services.announcer import Announcer
from hotkey_tracker.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def generate_access_token() -> str:
    """Random 128-bit token (UUID4)."""
    return str(uuid.uuid4())


class SessionLifecycleManager:
    def __init__(self, store: SessionStore, announcer: Announcer, max_sessions: int = 100):
        self.store = store
        self.announcer = announcer
        self.max_sessions = max_sessions

    async def start_session(self, public_id: str) -> StartResult:
        """
        Start monitoring the account behind a public SteamID.

        An existing session is returned unchanged. A new session is announced
        and the announcement reference stored on it; announcement failures are
        logged and do not undo the session.

        Raises:
            InvalidIdentifier: If public_id is malformed
            CapacityExceeded: If the session ceiling is reached
        """
        internal_id = steam_id.resolve(public_id)
        public_id = public_id.strip()

        existing = await run_in_threadpool(self.store.get_by_internal_id, internal_id)
        if existing is not None:
            return StartResult(outcome=StartOutcome.ALREADY_EXISTS, session=existing)

        try:
            session = await run_in_threadpool(
                self.store.create_session,
                internal_id=internal_id,
                public_id=public_id,
                token=generate_access_token(),
                started_at=datetime.now(timezone.utc),
                max_sessions=self.max_sessions,
            )
        except DuplicateSession:
            # Lost a race with a concurrent start for the same account
            existing = await run_in_threadpool(self.store.get_by_internal_id, internal_id)
            if existing is None:
                raise
            return StartResult(outcome=StartOutcome.ALREADY_EXISTS, session=existing)

        logger.info(f"Created session for {internal_id}")
        session = await self._publish(session)
        return StartResult(outcome=StartOutcome.CREATED, session=session)

    async def _publish(self, session: SessionInfo) -> SessionInfo:
        try:
            ref = await self.announcer.publish(session)
        except CollaboratorFailure as e:
            logger.error(f"Failed to announce session {session.internal_id}: {e}")
            return session
        if ref is None:
            return session
        await run_in_threadpool(self.store.set_announcement_ref, session.internal_id, ref)
        return session.model_copy(update={"announcement_ref": ref})

    async def stop_session(self, public_id: str) -> bool:
        """
        Stop monitoring an account and delete everything recorded for it.

        Accepts the textual SteamID or the 64-bit identifier that
        /active-sessions reports.

        Returns:
            False if no session exists for the identifier

        Raises:
            InvalidIdentifier: If public_id is malformed
        """
        if steam_id.is_internal_id(public_id):
            public_id = steam_id.to_public_id(int(public_id))
        internal_id = steam_id.resolve(public_id)
        session = await run_in_threadpool(self.store.get_by_internal_id, internal_id)
        if session is None:
            return False

        if session.announcement_ref:
            try:
                await self.announcer.retract(session.announcement_ref)
            except CollaboratorFailure as e:
                logger.error(f"Failed to retract announcement for {internal_id}: {e}")

        return await run_in_threadpool(self.store.delete_session, internal_id)

    def list_sessions(self) -> List[SessionSummary]:
        return self.store.list_session_summaries()

    async def refresh_announcement(self, internal_id: int) -> None:
        """Re-render the announcement of a session. Never raises on channel errors."""
        session = await run_in_threadpool(self.store.get_by_internal_id, internal_id)
        if session is None or not session.announcement_ref:
            return
        try:
            await self.announcer.update(session.announcement_ref, session)
        except CollaboratorFailure as e:
            logger.error(f"Failed to update announcement for {internal_id}: {e}")
