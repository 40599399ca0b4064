from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotkey_tracker.db.base import Base

MAX_LABEL_LENGTH = 50


class MonitoredSession(Base):
    """Monitoring session for one game account"""

    internal_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, index=True, nullable=False
    )
    public_id: Mapped[str] = mapped_column(String, nullable=False)
    access_token: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    started_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_online_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_offline_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    announcement_ref: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Relationships
    key_events: Mapped[List["KeyEvent"]] = relationship(
        "KeyEvent",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    click_events: Mapped[List["ClickEvent"]] = relationship(
        "ClickEvent",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<MonitoredSession(id={self.id}, internal_id={self.internal_id}, "
            f"online={self.online})>"
        )


class KeyEvent(Base):
    """Captured key or button press, or a presence audit entry"""

    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("monitoredsession.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    label: Mapped[str] = mapped_column(String(MAX_LABEL_LENGTH), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)

    session: Mapped["MonitoredSession"] = relationship(
        "MonitoredSession", back_populates="key_events"
    )

    def __repr__(self) -> str:
        return f"<KeyEvent(id={self.id}, label='{self.label}', category='{self.category}')>"


class ClickEvent(Base):
    """Mouse click position relative to the client viewport"""

    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("monitoredsession.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    w: Mapped[int] = mapped_column(Integer, nullable=False)
    h: Mapped[int] = mapped_column(Integer, nullable=False)

    session: Mapped["MonitoredSession"] = relationship(
        "MonitoredSession", back_populates="click_events"
    )

    def __repr__(self) -> str:
        return f"<ClickEvent(id={self.id}, x={self.x}, y={self.y})>"
