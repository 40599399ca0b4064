"""
Token-gated read endpoints.

The access token in the path is the only credential: anyone holding it can
read the session's presence and telemetry.
"""

from fastapi import APIRouter, Depends, Query, Request, Response

from hotkey_tracker.api.dependencies import get_gateway
from hotkey_tracker.core.categories import CategoryFilter
from hotkey_tracker.core.config import settings
from hotkey_tracker.core.limiter import limiter
from hotkey_tracker.core.schemas.session import SessionData
from hotkey_tracker.services.export import ReadGateway

router = APIRouter(prefix="/data", tags=["Data"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{token}", response_model=SessionData)
@limiter.limit(settings.rate_limit_read_endpoints)
def get_session_data(
    request: Request,
    token: str,
    category: CategoryFilter = Query(CategoryFilter.ALL, description="Key event category filter"),
    gateway: ReadGateway = Depends(get_gateway),
) -> SessionData:
    """
    Get presence, key events and click events of a session, newest first.

    Returns 404 when the token does not belong to a live session.
    """
    return gateway.get_by_token(token, category)


@router.get("/{token}/keys.csv")
@limiter.limit(settings.rate_limit_read_endpoints)
def export_key_events(
    request: Request,
    token: str,
    category: CategoryFilter = Query(CategoryFilter.ALL, description="Key event category filter"),
    gateway: ReadGateway = Depends(get_gateway),
) -> Response:
    """Download key events as CSV with timestamps in the display timezone."""
    return _csv_response(gateway.export_key_events_csv(token, category), "keys.csv")


@router.get("/{token}/clicks.csv")
@limiter.limit(settings.rate_limit_read_endpoints)
def export_click_events(
    request: Request,
    token: str,
    gateway: ReadGateway = Depends(get_gateway),
) -> Response:
    """Download click events as CSV with timestamps in the display timezone."""
    return _csv_response(gateway.export_click_events_csv(token), "clicks.csv")
