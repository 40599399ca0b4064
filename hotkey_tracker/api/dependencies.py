"""FastAPI dependencies resolving the services created at startup."""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from hotkey_tracker.core.config import Settings
from hotkey_tracker.services.export import ReadGateway
from hotkey_tracker.services.ingestion import TelemetryIngestionService
from hotkey_tracker.services.lifecycle import SessionLifecycleManager
from hotkey_tracker.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> SessionStore:
    return request.app.state.store


def get_lifecycle(request: Request) -> SessionLifecycleManager:
    return request.app.state.lifecycle


def get_ingestion(request: Request) -> TelemetryIngestionService:
    return request.app.state.ingestion


def get_gateway(request: Request) -> ReadGateway:
    return request.app.state.gateway


def require_api_secret(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> None:
    """Reject requests that do not present ``Bearer <API_SECRET>``."""
    expected = f"Bearer {get_settings(request).api_secret}"
    if authorization is None or not hmac.compare_digest(
        authorization.encode("utf-8"), expected.encode("utf-8")
    ):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Unauthorized request to {request.url.path} from {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
