"""Announcement channel mirroring session state for operators.

Sessions are published as Discord channel messages with an embed, edited when
presence changes and deleted when the session stops. Every call is
best-effort: failures surface as CollaboratorFailure and callers log them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from hotkey_tracker.core.config import Settings
from hotkey_tracker.core.exceptions import CollaboratorFailure
from hotkey_tracker.core.schemas.session import SessionInfo
from hotkey_tracker.services.export import format_display_time

logger = logging.getLogger(__name__)


class Announcer(ABC):
    """Interface of the announcement channel."""

    @abstractmethod
    async def publish(self, session: SessionInfo) -> Optional[str]:
        """Publish a session and return a reference to the announcement."""

    @abstractmethod
    async def update(self, ref: str, session: SessionInfo) -> None:
        """Refresh a previously published announcement."""

    @abstractmethod
    async def retract(self, ref: str) -> None:
        """Remove a previously published announcement."""

    async def close(self) -> None:
        """Release network resources. Called on app shutdown."""


class NullAnnouncer(Announcer):
    """Used when no announcement channel is configured."""

    async def publish(self, session: SessionInfo) -> Optional[str]:
        return None

    async def update(self, ref: str, session: SessionInfo) -> None:
        return None

    async def retract(self, ref: str) -> None:
        return None


class DiscordAnnouncer(Announcer):
    """Announcement channel backed by the Discord REST API"""

    EMBED_COLOR = 0x5865F2

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.channel_id = channel_id
        self.settings = settings
        self.api_url = settings.discord_api_url.rstrip("/")

        # Shared HTTP client, reuses TCP connections across requests
        self._http = http_client or httpx.AsyncClient(timeout=settings.announcement_timeout)
        self._headers = {"Authorization": f"Bot {bot_token}"}

    async def close(self) -> None:
        await self._http.aclose()

    @property
    def _messages_url(self) -> str:
        return f"{self.api_url}/channels/{self.channel_id}/messages"

    def build_embed(self, session: SessionInfo) -> Dict[str, Any]:
        """Render a session as a Discord embed"""
        tz = self.settings.display_timezone
        view_url = self.settings.view_url(session.access_token)
        fields = [
            {"name": "SteamID", "value": session.public_id, "inline": True},
            {"name": "Link", "value": f"[View]({view_url})", "inline": True},
            {"name": "Started", "value": format_display_time(session.started_at, tz), "inline": True},
            {"name": "Player online?", "value": "Yes" if session.online else "No", "inline": True},
            {"name": "Last online", "value": format_display_time(session.last_online_at, tz), "inline": True},
            {"name": "Last offline", "value": format_display_time(session.last_offline_at, tz), "inline": True},
        ]
        return {
            "title": f"Session for {session.public_id}",
            "color": self.EMBED_COLOR,
            "fields": fields,
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            raise CollaboratorFailure(f"Discord {method} timed out") from e
        except httpx.HTTPError as e:
            raise CollaboratorFailure(f"Discord {method} failed: {type(e).__name__}") from e

        if response.is_error:
            raise CollaboratorFailure(
                f"Discord {method} returned {response.status_code}"
            )
        return response

    async def publish(self, session: SessionInfo) -> Optional[str]:
        response = await self._request(
            "POST", self._messages_url, json={"embeds": [self.build_embed(session)]}
        )
        try:
            body = response.json()
        except ValueError as e:
            raise CollaboratorFailure("Discord returned a non-JSON body") from e

        message_id = body.get("id") if isinstance(body, dict) else None
        if not message_id:
            raise CollaboratorFailure("Discord did not return a message id")
        logger.debug(f"Published announcement {message_id} for {session.internal_id}")
        return str(message_id)

    async def update(self, ref: str, session: SessionInfo) -> None:
        await self._request(
            "PATCH",
            f"{self._messages_url}/{ref}",
            json={"embeds": [self.build_embed(session)]},
        )

    async def retract(self, ref: str) -> None:
        await self._request("DELETE", f"{self._messages_url}/{ref}")


def create_announcer(settings: Settings) -> Announcer:
    """Pick the announcement channel from configuration."""
    if settings.discord_enabled:
        logger.info("Discord announcements enabled")
        return DiscordAnnouncer(
            settings.discord_token or "",
            settings.discord_channel_id or "",
            settings,
        )
    logger.info("Discord announcements disabled: DISCORD_TOKEN or DISCORD_CHANNEL_ID not set")
    return NullAnnouncer()
