"""
Telemetry ingestion endpoints.

Game-server plugins post key presses, clicks and presence transitions here.
Every endpoint requires the shared API secret and is rate limited per IP.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from hotkey_tracker.api.dependencies import get_ingestion, get_store, require_api_secret
from hotkey_tracker.core.config import settings
from hotkey_tracker.core.limiter import limiter
from hotkey_tracker.core.schemas.session import ClickEventIn, KeyEventIn, PresenceEventIn
from hotkey_tracker.services.ingestion import TelemetryIngestionService
from hotkey_tracker.services.session_store import SessionStore

router = APIRouter(tags=["Ingestion"])


@router.post(
    "/log-keys",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_secret)],
)
@limiter.limit(settings.rate_limit_ingest_endpoints)
def log_key(
    request: Request,
    payload: KeyEventIn,
    ingestion: TelemetryIngestionService = Depends(get_ingestion),
) -> Response:
    """
    Record a key press.

    Returns 404 for an unknown account and 429 once the session's key quota
    is used up; the event is dropped in that case.
    """
    ingestion.record_key_event(payload.account_id, payload.label)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/log-event",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_secret)],
)
@limiter.limit(settings.rate_limit_ingest_endpoints)
async def log_presence(
    request: Request,
    payload: PresenceEventIn,
    ingestion: TelemetryIngestionService = Depends(get_ingestion),
) -> Response:
    """Record that the player entered or left the server."""
    await ingestion.record_presence_event(payload.account_id, payload.kind)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/log-click",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_secret)],
)
@limiter.limit(settings.rate_limit_ingest_endpoints)
def log_click(
    request: Request,
    payload: ClickEventIn,
    ingestion: TelemetryIngestionService = Depends(get_ingestion),
) -> Response:
    """Record a click position together with the viewport size."""
    ingestion.record_click_event(payload.account_id, payload.x, payload.y, payload.w, payload.h)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/active-sessions", response_model=List[str])
@limiter.limit(settings.rate_limit_read_endpoints)
def active_sessions(request: Request, store: SessionStore = Depends(get_store)) -> List[str]:
    """
    List the 64-bit identifiers of all monitored accounts.

    Plugins poll this to decide which players to report on. Identifiers are
    returned as strings because they exceed the safe integer range of JSON
    consumers.
    """
    return [str(internal_id) for internal_id in store.list_internal_ids()]
