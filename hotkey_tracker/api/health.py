"""Health check endpoints."""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status

from hotkey_tracker.api.dependencies import get_settings, get_store
from hotkey_tracker.core.config import Settings
from hotkey_tracker.core.exceptions import StoreFailure
from hotkey_tracker.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


def _check_storage_health(app_settings: Settings) -> Dict[str, Any]:
    """
    Check the health of the rate limiting storage backend.

    Returns dict with storage health status and details.
    """
    if not app_settings.redis_url:
        return {
            "type": "memory",
            "healthy": True,
            "message": "In-memory storage active",
        }

    try:
        import redis

        client = redis.from_url(app_settings.redis_url, socket_timeout=2)
        client.ping()
        return {
            "type": "redis",
            "healthy": True,
            "message": "Redis connection successful",
        }
    except ImportError:
        return {
            "type": "redis",
            "healthy": False,
            "message": "Redis client not installed",
        }
    except Exception as e:
        logger.warning("Redis health check failed: %s", str(e))
        return {
            "type": "redis",
            "healthy": False,
            "message": f"Redis connection failed: {str(e)}",
        }


@router.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/api/health")
def api_health_check(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Detailed health status: database, session usage, announcement channel
    and rate limiting.
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": app_settings.version,
        "environment": {
            "debug": app_settings.debug,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        },
        "services": {},
    }

    try:
        session_count = store.count_sessions()
        health_status["services"]["database"] = {
            "status": "healthy",
            "connected": True,
            "sessions": session_count,
            "max_sessions": app_settings.max_sessions,
        }
    except StoreFailure as e:
        logger.error(f"Database health check failed: {e}")
        health_status["services"]["database"] = {
            "status": "unhealthy",
            "connected": False,
        }
        health_status["status"] = "unhealthy"

    health_status["services"]["announcements"] = {
        "status": "enabled" if app_settings.discord_enabled else "disabled",
    }

    limiter = getattr(request.app.state, "limiter", None)
    rate_limit_enabled = limiter is not None and limiter.enabled
    storage_health = _check_storage_health(app_settings)
    rate_limit_status = "enabled" if rate_limit_enabled else "disabled"
    if rate_limit_enabled and not storage_health["healthy"]:
        rate_limit_status = "degraded"
        if health_status["status"] == "healthy":
            health_status["status"] = "degraded"

    health_status["services"]["rate_limiting"] = {
        "status": rate_limit_status,
        "storage": storage_health,
        "configuration": {
            "ingest_endpoints": app_settings.rate_limit_ingest_endpoints,
            "read_endpoints": app_settings.rate_limit_read_endpoints,
            "admin_endpoints": app_settings.rate_limit_admin_endpoints,
        },
    }

    if health_status["status"] == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return health_status
