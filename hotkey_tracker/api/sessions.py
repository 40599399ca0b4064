"""
Session administration endpoints.

These are the programmatic counterpart of the operator chat commands: start,
stop and list monitoring sessions by public SteamID.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from hotkey_tracker.api.dependencies import get_lifecycle, get_settings, require_api_secret
from hotkey_tracker.core.config import Settings, settings
from hotkey_tracker.core.exceptions import SessionNotFound
from hotkey_tracker.core.limiter import limiter
from hotkey_tracker.core.schemas.session import SessionView, StartSessionIn, StartSessionOut
from hotkey_tracker.services.lifecycle import SessionLifecycleManager

router = APIRouter(
    prefix="/api/sessions",
    tags=["Sessions"],
    dependencies=[Depends(require_api_secret)],
)


@router.post("", response_model=StartSessionOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_admin_endpoints)
async def start_session(
    request: Request,
    response: Response,
    payload: StartSessionIn,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    app_settings: Settings = Depends(get_settings),
) -> StartSessionOut:
    """
    Start monitoring a SteamID.

    Answers 201 for a new session and 200 when one already exists; both carry
    the view link. 400 for a malformed SteamID, 409 when the session ceiling
    is reached.
    """
    result = await lifecycle.start_session(payload.public_id)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return StartSessionOut(
        created=result.created,
        public_id=result.session.public_id,
        internal_id=str(result.session.internal_id),
        view_url=app_settings.view_url(result.session.access_token),
    )


@router.delete("/{public_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.rate_limit_admin_endpoints)
async def stop_session(
    request: Request,
    public_id: str,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
) -> Response:
    """Stop a session and delete its telemetry."""
    if not await lifecycle.stop_session(public_id):
        raise SessionNotFound(f"No session for {public_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=List[SessionView])
@limiter.limit(settings.rate_limit_admin_endpoints)
def list_sessions(
    request: Request,
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
    app_settings: Settings = Depends(get_settings),
) -> List[SessionView]:
    """List all sessions with their online flag and view link."""
    return [
        SessionView(
            public_id=summary.public_id,
            online=summary.online,
            view_url=app_settings.view_url(summary.access_token),
        )
        for summary in lifecycle.list_sessions()
    ]
