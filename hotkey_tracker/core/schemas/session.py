"""Session and telemetry schema definitions."""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hotkey_tracker.db.models.tracking import MAX_LABEL_LENGTH


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SessionInfo(CamelModel):
    """Snapshot of a monitoring session"""

    internal_id: int
    public_id: str
    access_token: str
    started_at: datetime
    online: bool = False
    last_online_at: Optional[datetime] = None
    last_offline_at: Optional[datetime] = None
    announcement_ref: Optional[str] = None

    normalize_utc = field_validator(
        "started_at", "last_online_at", "last_offline_at", mode="after"
    )(_as_utc)


class SessionSummary(CamelModel):
    public_id: str
    access_token: str
    online: bool


class PresenceState(CamelModel):
    online: bool
    last_online_at: Optional[datetime] = None
    last_offline_at: Optional[datetime] = None

    normalize_utc = field_validator("last_online_at", "last_offline_at", mode="after")(_as_utc)


class KeyEventRecord(CamelModel):
    time: datetime
    label: str
    category: str

    normalize_utc = field_validator("time", mode="after")(_as_utc)


class ClickEventRecord(CamelModel):
    time: datetime
    x: float
    y: float
    w: int
    h: int

    normalize_utc = field_validator("time", mode="after")(_as_utc)


class SessionData(CamelModel):
    """Everything a token holder may read about a session"""

    presence: PresenceState
    key_events: List[KeyEventRecord] = Field(default_factory=list)
    click_events: List[ClickEventRecord] = Field(default_factory=list)


class StartOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class StartResult(BaseModel):
    """Tagged result of a start request"""

    outcome: StartOutcome
    session: SessionInfo

    @property
    def created(self) -> bool:
        return self.outcome is StartOutcome.CREATED


class PresenceKind(str, Enum):
    ENTERED = "entered"
    EXITED = "exited"


# Request bodies

MAX_ACCOUNT_ID = 2**63 - 1
MAX_VIEWPORT = 2**31 - 1


class KeyEventIn(CamelModel):
    account_id: int = Field(..., gt=0, le=MAX_ACCOUNT_ID, description="64-bit account identifier")
    label: str = Field(..., min_length=1, max_length=MAX_LABEL_LENGTH)


class PresenceEventIn(CamelModel):
    account_id: int = Field(..., gt=0, le=MAX_ACCOUNT_ID, description="64-bit account identifier")
    kind: PresenceKind


class ClickEventIn(CamelModel):
    account_id: int = Field(..., gt=0, le=MAX_ACCOUNT_ID, description="64-bit account identifier")
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)
    w: int = Field(..., ge=0, le=MAX_VIEWPORT)
    h: int = Field(..., ge=0, le=MAX_VIEWPORT)


class StartSessionIn(CamelModel):
    public_id: str = Field(..., min_length=1, max_length=64, description="SteamID, e.g. STEAM_0:1:12345")


class SessionView(CamelModel):
    """Administrative listing entry"""

    public_id: str
    online: bool
    view_url: str


class StartSessionOut(CamelModel):
    created: bool
    public_id: str
    internal_id: str
    view_url: str
