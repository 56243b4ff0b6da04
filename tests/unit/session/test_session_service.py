"""Tests for SessionService principal resolution."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from ledgerdesk.core.modules.session import service as session_service
from ledgerdesk.core.modules.session.models import SESSION_TTL, Session
from ledgerdesk.core.modules.session.service import SessionService
from ledgerdesk.errors import AuthenticationError
from ledgerdesk.utils import now

pytestmark = pytest.mark.anyio


class StubUsers:
    def __init__(self, users):
        self.users = {user.id: user for user in users}

    async def find_user(self, user_id):
        return self.users.get(user_id)


@pytest.fixture
def sessions(database, staff_user):
    service = SessionService(database)
    service.set_core(SimpleNamespace(services=SimpleNamespace(user=StubUsers([staff_user]))))
    return service


async def test_token_resolves_to_user(sessions, staff_user):
    token = await sessions.create_session(staff_user.id)
    assert await sessions.find_principal(token) == staff_user.id
    assert await sessions.get_authenticated_user(token) == staff_user


async def test_missing_or_unknown_token(sessions):
    assert await sessions.find_principal(None) is None
    assert await sessions.find_principal("") is None
    assert await sessions.find_principal("unknown") is None
    assert not await sessions.is_auth_token_valid("unknown")


async def test_profile_is_read_fresh_after_caching_the_principal(sessions, staff_user):
    token = await sessions.create_session(staff_user.id)
    await sessions.get_authenticated_user(token)
    sessions.core.services.user.users[staff_user.id] = staff_user.model_copy(update={"display_name": "Renamed"})
    assert (await sessions.get_authenticated_user(token)).display_name == "Renamed"


async def test_deleted_profile_is_unauthenticated(sessions, staff_user):
    token = await sessions.create_session(staff_user.id)
    sessions.core.services.user.users.clear()
    with pytest.raises(AuthenticationError):
        await sessions.get_authenticated_user(token)


async def test_invalidate_user_sessions(sessions, staff_user, database):
    first = await sessions.create_session(staff_user.id)
    second = await sessions.create_session(staff_user.id)
    await sessions.find_principal(first)
    await sessions.invalidate_user_sessions(staff_user.id)
    assert await sessions.find_principal(first) is None
    assert await sessions.find_principal(second) is None
    assert database.get_collection("sessions").documents == {}


class TestExpiry:
    async def test_expired_cached_session_is_unauthenticated(self, sessions, staff_user, monkeypatch):
        token = await sessions.create_session(staff_user.id)
        assert await sessions.find_principal(token) == staff_user.id

        later = now() + SESSION_TTL + timedelta(seconds=1)
        monkeypatch.setattr(session_service, "now", lambda: later)
        assert await sessions.find_principal(token) is None
        with pytest.raises(AuthenticationError):
            await sessions.get_authenticated_user(token)

    async def test_session_within_ttl_is_valid(self, sessions, staff_user, monkeypatch):
        token = await sessions.create_session(staff_user.id)
        later = now() + SESSION_TTL - timedelta(minutes=1)
        monkeypatch.setattr(session_service, "now", lambda: later)
        assert await sessions.find_principal(token) == staff_user.id

    async def test_expired_sessions_are_evicted_from_the_cache(self, sessions, staff_user, database, monkeypatch):
        old_token = await sessions.create_session(staff_user.id)
        await sessions.find_principal(old_token)

        later = now() + SESSION_TTL + timedelta(seconds=1)
        monkeypatch.setattr(session_service, "now", lambda: later)
        fresh = Session(user_id=staff_user.id, auth_token="fresh-token", created_at=later)
        await database.get_collection("sessions").insert_one(fresh.to_mongo())

        assert await sessions.find_principal("fresh-token") == staff_user.id
        assert list(sessions._sessions) == ["fresh-token"]
