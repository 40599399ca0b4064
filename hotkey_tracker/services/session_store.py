"""Persistent storage for monitoring sessions and their telemetry.

All writes go through one process-wide re-entrant lock and a single
transaction, so count-then-insert quota checks and cascading deletes are
atomic with respect to concurrent callers. Reads use their own short-lived
sessions and never take the lock.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Iterator, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hotkey_tracker.core.categories import KeyCategory
from hotkey_tracker.core.exceptions import (
    CapacityExceeded,
    DuplicateSession,
    QuotaExceeded,
    SessionNotFound,
    StoreFailure,
)
from hotkey_tracker.core.schemas.session import (
    ClickEventRecord,
    KeyEventRecord,
    SessionInfo,
    SessionSummary,
)
from hotkey_tracker.db.models.tracking import ClickEvent, KeyEvent, MonitoredSession

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current UTC time as the naive value stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SessionStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        self._write_lock = RLock()

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._write_lock:
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Database write failed: {e}", extra={"error_type": type(e).__name__})
                raise StoreFailure("Database write failed") from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    @contextmanager
    def _reader(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            logger.error(f"Database read failed: {e}", extra={"error_type": type(e).__name__})
            raise StoreFailure("Database read failed") from e
        finally:
            db.close()

    @staticmethod
    def _find(db: Session, internal_id: int) -> Optional[MonitoredSession]:
        return db.scalar(
            select(MonitoredSession).where(MonitoredSession.internal_id == internal_id)
        )

    def _require(self, db: Session, internal_id: int) -> MonitoredSession:
        row = self._find(db, internal_id)
        if row is None:
            raise SessionNotFound(f"Session not found for {internal_id}")
        return row

    # Sessions

    def create_session(
        self,
        internal_id: int,
        public_id: str,
        token: str,
        started_at: datetime,
        max_sessions: Optional[int] = None,
    ) -> SessionInfo:
        """
        Insert a new session.

        Args:
            internal_id: Canonical account identifier
            public_id: Identifier as supplied by the operator
            token: Access token granting read access
            started_at: Session start time
            max_sessions: When given, refuse the insert once this many sessions exist

        Raises:
            DuplicateSession: If a session already exists for internal_id
            CapacityExceeded: If max_sessions is reached
        """
        with self._transaction() as db:
            if self._find(db, internal_id) is not None:
                raise DuplicateSession(internal_id)
            if max_sessions is not None:
                count = db.scalar(select(func.count(MonitoredSession.id))) or 0
                if count >= max_sessions:
                    raise CapacityExceeded(max_sessions)

            row = MonitoredSession(
                internal_id=internal_id,
                public_id=public_id,
                access_token=token,
                started_at=_to_naive_utc(started_at),
                online=False,
            )
            db.add(row)
            try:
                db.flush()
            except IntegrityError as e:
                raise DuplicateSession(internal_id) from e
            return SessionInfo.model_validate(row)

    def get_by_internal_id(self, internal_id: int) -> Optional[SessionInfo]:
        with self._reader() as db:
            row = self._find(db, internal_id)
            return SessionInfo.model_validate(row) if row else None

    def get_by_token(self, token: str) -> Optional[SessionInfo]:
        with self._reader() as db:
            row = db.scalar(
                select(MonitoredSession).where(MonitoredSession.access_token == token)
            )
            return SessionInfo.model_validate(row) if row else None

    def list_session_summaries(self) -> List[SessionSummary]:
        with self._reader() as db:
            rows = db.scalars(
                select(MonitoredSession).order_by(MonitoredSession.started_at, MonitoredSession.id)
            ).all()
            return [SessionSummary.model_validate(row) for row in rows]

    def list_internal_ids(self) -> List[int]:
        with self._reader() as db:
            return list(
                db.scalars(select(MonitoredSession.internal_id).order_by(MonitoredSession.id)).all()
            )

    def count_sessions(self) -> int:
        with self._reader() as db:
            return db.scalar(select(func.count(MonitoredSession.id))) or 0

    def update_presence(
        self,
        internal_id: int,
        online: bool,
        last_online_at: Optional[datetime],
        last_offline_at: Optional[datetime],
    ) -> None:
        """Replace all three presence fields in one write."""
        with self._transaction() as db:
            result = db.execute(
                update(MonitoredSession)
                .where(MonitoredSession.internal_id == internal_id)
                .values(
                    online=online,
                    last_online_at=_to_naive_utc(last_online_at),
                    last_offline_at=_to_naive_utc(last_offline_at),
                )
            )
            if result.rowcount == 0:
                raise SessionNotFound(f"Session not found for {internal_id}")

    def apply_presence(
        self,
        internal_id: int,
        online: bool,
        label: str,
        time: Optional[datetime] = None,
    ) -> SessionInfo:
        """
        Flip the online flag and append the matching audit entry atomically.

        Only the timestamp of the new direction is replaced; the other one is
        written back unchanged. The audit entry is exempt from the key quota.

        Raises:
            SessionNotFound: If the session does not exist
        """
        moment = _to_naive_utc(time) or utcnow()
        with self._transaction() as db:
            row = self._require(db, internal_id)
            db.execute(
                update(MonitoredSession)
                .where(MonitoredSession.id == row.id)
                .values(
                    online=online,
                    last_online_at=moment if online else row.last_online_at,
                    last_offline_at=row.last_offline_at if online else moment,
                )
            )
            db.add(
                KeyEvent(
                    session_id=row.id,
                    time=moment,
                    label=label,
                    category=KeyCategory.PRESENCE.value,
                )
            )
            db.flush()
            db.refresh(row)
            return SessionInfo.model_validate(row)

    def set_announcement_ref(self, internal_id: int, ref: Optional[str]) -> None:
        with self._transaction() as db:
            row = self._require(db, internal_id)
            row.announcement_ref = ref

    def delete_session(self, internal_id: int) -> bool:
        """Delete a session and every event it owns. Returns False if absent."""
        with self._transaction() as db:
            row = self._find(db, internal_id)
            if row is None:
                return False
            db.execute(delete(KeyEvent).where(KeyEvent.session_id == row.id))
            db.execute(delete(ClickEvent).where(ClickEvent.session_id == row.id))
            db.delete(row)
        logger.info(f"Deleted session for {internal_id}")
        return True

    def purge_older_than(self, window: timedelta, now: Optional[datetime] = None) -> int:
        """Delete sessions started before now - window. Returns the number purged."""
        cutoff = _to_naive_utc(now) if now else utcnow()
        cutoff = cutoff - window
        with self._transaction() as db:
            ids = db.scalars(
                select(MonitoredSession.id).where(MonitoredSession.started_at < cutoff)
            ).all()
            if ids:
                db.execute(delete(KeyEvent).where(KeyEvent.session_id.in_(ids)))
                db.execute(delete(ClickEvent).where(ClickEvent.session_id.in_(ids)))
                db.execute(delete(MonitoredSession).where(MonitoredSession.id.in_(ids)))
        return len(ids)

    # Events

    def count_key_events(self, internal_id: int) -> int:
        """Count quota-bearing key events; presence audit entries are excluded."""
        with self._reader() as db:
            return self._count_key_events(db, internal_id)

    @staticmethod
    def _count_key_events(db: Session, internal_id: int) -> int:
        return db.scalar(
            select(func.count(KeyEvent.id))
            .join(MonitoredSession, KeyEvent.session_id == MonitoredSession.id)
            .where(
                MonitoredSession.internal_id == internal_id,
                KeyEvent.category != KeyCategory.PRESENCE.value,
            )
        ) or 0

    def count_click_events(self, internal_id: int) -> int:
        with self._reader() as db:
            return self._count_click_events(db, internal_id)

    @staticmethod
    def _count_click_events(db: Session, internal_id: int) -> int:
        return db.scalar(
            select(func.count(ClickEvent.id))
            .join(MonitoredSession, ClickEvent.session_id == MonitoredSession.id)
            .where(MonitoredSession.internal_id == internal_id)
        ) or 0

    def append_key_event(
        self,
        internal_id: int,
        label: str,
        category: KeyCategory,
        time: Optional[datetime] = None,
        quota: Optional[int] = None,
    ) -> KeyEventRecord:
        """
        Append a key event.

        The timestamp defaults to the moment of the append. With quota set, the
        count check and the insert happen in the same locked transaction.

        Raises:
            SessionNotFound: If the session does not exist
            QuotaExceeded: If quota key events are already stored
        """
        with self._transaction() as db:
            row = self._require(db, internal_id)
            if quota is not None and self._count_key_events(db, internal_id) >= quota:
                raise QuotaExceeded("key events", quota)
            event = KeyEvent(
                session_id=row.id,
                time=_to_naive_utc(time) or utcnow(),
                label=label,
                category=KeyCategory(category).value,
            )
            db.add(event)
            db.flush()
            return KeyEventRecord.model_validate(event)

    def append_click_event(
        self,
        internal_id: int,
        x: float,
        y: float,
        w: int,
        h: int,
        time: Optional[datetime] = None,
        quota: Optional[int] = None,
    ) -> ClickEventRecord:
        """Append a click event; same locking and quota rules as key events."""
        with self._transaction() as db:
            row = self._require(db, internal_id)
            if quota is not None and self._count_click_events(db, internal_id) >= quota:
                raise QuotaExceeded("clicks", quota)
            event = ClickEvent(
                session_id=row.id,
                time=_to_naive_utc(time) or utcnow(),
                x=x,
                y=y,
                w=w,
                h=h,
            )
            db.add(event)
            db.flush()
            return ClickEventRecord.model_validate(event)

    def list_key_events(
        self, internal_id: int, category: Optional[KeyCategory] = None
    ) -> List[KeyEventRecord]:
        """Key events of a session, newest first."""
        with self._reader() as db:
            query = (
                select(KeyEvent)
                .join(MonitoredSession, KeyEvent.session_id == MonitoredSession.id)
                .where(MonitoredSession.internal_id == internal_id)
            )
            if category is not None:
                query = query.where(KeyEvent.category == KeyCategory(category).value)
            rows = db.scalars(query.order_by(KeyEvent.time.desc(), KeyEvent.id.desc())).all()
            return [KeyEventRecord.model_validate(row) for row in rows]

    def list_click_events(self, internal_id: int) -> List[ClickEventRecord]:
        """Click events of a session, newest first."""
        with self._reader() as db:
            rows = db.scalars(
                select(ClickEvent)
                .join(MonitoredSession, ClickEvent.session_id == MonitoredSession.id)
                .where(MonitoredSession.internal_id == internal_id)
                .order_by(ClickEvent.time.desc(), ClickEvent.id.desc())
            ).all()
            return [ClickEventRecord.model_validate(row) for row in rows]
