"""
Unit tests for session start/stop and announcement handling
"""

from datetime import datetime, timezone

import httpx
import pytest

from hotkey_tracker.core.config import Settings
from hotkey_tracker.core.exceptions import (
    CapacityExceeded,
    CollaboratorFailure,
    InvalidIdentifier,
)
from hotkey_tracker.core.schemas.session import StartOutcome
from hotkey_tracker.services.announcer import DiscordAnnouncer
from hotkey_tracker.services.lifecycle import SessionLifecycleManager, generate_access_token
from tests.utils.factories import EventLoopCallRecorder, RecordingAnnouncer, SteamIdFactory

pytestmark = pytest.mark.unit

PUBLIC_ID = SteamIdFactory.public()
INTERNAL_ID = SteamIdFactory.internal()


class TestStartSession:

    async def test_creates_and_announces(self, lifecycle, store, announcer):
        result = await lifecycle.start_session(PUBLIC_ID)

        assert result.outcome is StartOutcome.CREATED
        assert result.created
        assert result.session.internal_id == INTERNAL_ID
        assert result.session.public_id == PUBLIC_ID
        assert result.session.online is False
        assert result.session.announcement_ref == "msg-1"

        assert len(announcer.published) == 1
        assert store.get_by_internal_id(INTERNAL_ID).announcement_ref == "msg-1"

    async def test_second_start_returns_existing(self, lifecycle, announcer):
        first = await lifecycle.start_session(PUBLIC_ID)
        second = await lifecycle.start_session(PUBLIC_ID)

        assert second.outcome is StartOutcome.ALREADY_EXISTS
        assert not second.created
        assert second.session.access_token == first.session.access_token
        assert len(announcer.published) == 1

    async def test_other_universe_maps_to_same_session(self, lifecycle):
        await lifecycle.start_session("STEAM_0:1:12345")
        result = await lifecycle.start_session("STEAM_1:1:12345")
        assert result.outcome is StartOutcome.ALREADY_EXISTS

    async def test_invalid_identifier(self, lifecycle, store, announcer):
        with pytest.raises(InvalidIdentifier):
            await lifecycle.start_session("not-a-steamid")
        assert store.count_sessions() == 0
        assert announcer.published == []

    async def test_capacity(self, store, announcer):
        manager = SessionLifecycleManager(store, announcer, max_sessions=2)
        await manager.start_session(SteamIdFactory.public(account=1))
        await manager.start_session(SteamIdFactory.public(account=2))

        with pytest.raises(CapacityExceeded):
            await manager.start_session(SteamIdFactory.public(account=3))
        assert store.count_sessions() == 2

    async def test_existing_session_allowed_at_capacity(self, store, announcer):
        manager = SessionLifecycleManager(store, announcer, max_sessions=1)
        await manager.start_session(PUBLIC_ID)
        result = await manager.start_session(PUBLIC_ID)
        assert result.outcome is StartOutcome.ALREADY_EXISTS

    async def test_tokens_are_unique(self, lifecycle):
        tokens = set()
        for account in range(5):
            result = await lifecycle.start_session(SteamIdFactory.public(account=account))
            tokens.add(result.session.access_token)
        assert len(tokens) == 5

    async def test_announcement_failure_keeps_session(self, store):
        failing = RecordingAnnouncer(fail_with=CollaboratorFailure("channel down"))
        manager = SessionLifecycleManager(store, failing)

        result = await manager.start_session(PUBLIC_ID)

        assert result.created
        assert result.session.announcement_ref is None
        assert store.get_by_internal_id(INTERNAL_ID) is not None

    async def test_garbled_announcement_reply_keeps_session(self, store):
        def gateway_page(request):
            return httpx.Response(200, text="<html>upstream error</html>")

        client = httpx.AsyncClient(transport=httpx.MockTransport(gateway_page))
        discord = DiscordAnnouncer("bot-token", "123", Settings(_env_file=None), http_client=client)
        manager = SessionLifecycleManager(store, discord)

        result = await manager.start_session(PUBLIC_ID)

        assert result.created
        assert result.session.announcement_ref is None
        assert store.get_by_internal_id(INTERNAL_ID).announcement_ref is None
        await discord.close()


class TestStopSession:

    async def test_stop_deletes_and_retracts(self, lifecycle, store, announcer):
        await lifecycle.start_session(PUBLIC_ID)

        assert await lifecycle.stop_session(PUBLIC_ID) is True
        assert store.get_by_internal_id(INTERNAL_ID) is None
        assert announcer.retracted == ["msg-1"]

    async def test_stop_by_internal_id(self, lifecycle, store):
        await lifecycle.start_session(PUBLIC_ID)

        assert await lifecycle.stop_session(str(INTERNAL_ID)) is True
        assert store.get_by_internal_id(INTERNAL_ID) is None

    async def test_stop_unknown(self, lifecycle, announcer):
        assert await lifecycle.stop_session(PUBLIC_ID) is False
        assert announcer.retracted == []

    async def test_stop_invalid_identifier(self, lifecycle):
        with pytest.raises(InvalidIdentifier):
            await lifecycle.stop_session("STEAM_0:7:1")

    async def test_retract_failure_still_deletes(self, store, announcer):
        manager = SessionLifecycleManager(store, announcer)
        await manager.start_session(PUBLIC_ID)
        announcer.fail_with = CollaboratorFailure("channel down")

        assert await manager.stop_session(PUBLIC_ID) is True
        assert store.get_by_internal_id(INTERNAL_ID) is None

    async def test_restart_after_stop_issues_new_token(self, lifecycle):
        first = await lifecycle.start_session(PUBLIC_ID)
        await lifecycle.stop_session(PUBLIC_ID)
        second = await lifecycle.start_session(PUBLIC_ID)

        assert second.created
        assert second.session.access_token != first.session.access_token


class TestListAndRefresh:

    async def test_list_sessions(self, lifecycle):
        await lifecycle.start_session(SteamIdFactory.public(account=1))
        await lifecycle.start_session(SteamIdFactory.public(account=2))

        summaries = lifecycle.list_sessions()
        assert [s.public_id for s in summaries] == [
            SteamIdFactory.public(account=1),
            SteamIdFactory.public(account=2),
        ]

    async def test_refresh_updates_announcement(self, lifecycle, announcer):
        await lifecycle.start_session(PUBLIC_ID)
        await lifecycle.refresh_announcement(INTERNAL_ID)

        assert len(announcer.updated) == 1
        ref, session = announcer.updated[0]
        assert ref == "msg-1"
        assert session.internal_id == INTERNAL_ID

    async def test_refresh_without_ref_is_noop(self, store):
        announcer = RecordingAnnouncer()
        manager = SessionLifecycleManager(store, announcer)
        store.create_session(INTERNAL_ID, PUBLIC_ID, "token", started_at=datetime.now(timezone.utc))

        await manager.refresh_announcement(INTERNAL_ID)
        await manager.refresh_announcement(1)
        assert announcer.updated == []

    async def test_refresh_failure_is_swallowed(self, lifecycle, announcer):
        await lifecycle.start_session(PUBLIC_ID)
        announcer.fail_with = CollaboratorFailure("channel down")
        await lifecycle.refresh_announcement(INTERNAL_ID)


class TestStoreCallsLeaveEventLoop:

    async def test_start_refresh_and_stop(self, lifecycle, store, monkeypatch):
        recorder = EventLoopCallRecorder(monkeypatch, store).watch(
            "get_by_internal_id", "create_session", "set_announcement_ref", "delete_session"
        )

        await lifecycle.start_session(PUBLIC_ID)
        await lifecycle.refresh_announcement(INTERNAL_ID)
        await lifecycle.stop_session(PUBLIC_ID)

        assert set(recorder.names) == {
            "get_by_internal_id", "create_session", "set_announcement_ref", "delete_session"
        }
        assert recorder.blocking == []


def test_generate_access_token_format():
    token = generate_access_token()
    assert len(token) == 36
    assert token.count("-") == 4
