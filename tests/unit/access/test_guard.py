"""Tests for the access guard."""

import asyncio
from uuid import UUID

import pytest

from ledgerdesk.core.modules.access.guard import GuardContext, is_public_path, normalize_path, resolve_decision
from ledgerdesk.core.modules.access.models import DenialReason, GuardStatus
from ledgerdesk.core.modules.user.models import User, UserType

pytestmark = pytest.mark.anyio


class FakeIdentity:
    """Principal resolver and profile store with call tracking."""

    def __init__(self, principal: UUID | None = None, profiles: list[User] | None = None) -> None:
        self.principal = principal
        self.profiles = {user.id: user for user in profiles or []}
        self.principal_calls = 0
        self.lookup_calls: list[UUID] = []
        self.lookup_error: Exception | None = None
        self.lookup_gate: asyncio.Event | None = None

    async def resolve_principal(self) -> UUID | None:
        self.principal_calls += 1
        return self.principal

    async def lookup_profile(self, user_id: UUID) -> User | None:
        self.lookup_calls.append(user_id)
        if self.lookup_gate is not None:
            await self.lookup_gate.wait()
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.profiles.get(user_id)

    async def decide(self, path: str, timeout: float = 1.0):
        return await resolve_decision(path, self.resolve_principal, self.lookup_profile, timeout)

    def context(self, timeout: float = 1.0) -> GuardContext:
        return GuardContext(self.resolve_principal, self.lookup_profile, timeout)


class TestPublicPaths:
    """Tests for the public allow-list."""

    @pytest.mark.parametrize("path", ["/login", "/register", "/forgot", "/password"])
    def test_allow_list(self, path):
        assert is_public_path(path)

    def test_trailing_slash_and_query_are_ignored(self):
        assert normalize_path("/login/") == "/login"
        assert normalize_path("/register?next=/invoice") == "/register"
        assert normalize_path("/") == "/"

    @pytest.mark.parametrize("path", ["/", "/invoice/list", "/login/extra", "/loginx", "/users"])
    def test_other_paths_are_protected(self, path):
        assert not is_public_path(path)

    async def test_public_path_skips_identity_resolution(self):
        identity = FakeIdentity(principal=None)
        decision = await identity.decide("/login")
        assert decision.status == GuardStatus.AUTHORIZED
        assert decision.public is True
        assert identity.principal_calls == 0
        assert identity.lookup_calls == []


class TestResolveDecision:
    """Tests for resolve_decision on protected paths."""

    async def test_admin_is_authorized(self, admin_user):
        identity = FakeIdentity(admin_user.id, [admin_user])
        decision = await identity.decide("/invoice/list")
        assert decision.status == GuardStatus.AUTHORIZED
        assert decision.user_id == admin_user.id
        assert decision.usertype == UserType.ADMIN
        assert decision.reason is None

    async def test_staff_is_authorized(self, staff_user):
        identity = FakeIdentity(staff_user.id, [staff_user])
        assert (await identity.decide("/")).status == GuardStatus.AUTHORIZED

    async def test_customer_is_denied(self, customer_user):
        identity = FakeIdentity(customer_user.id, [customer_user])
        decision = await identity.decide("/")
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.ROLE_NOT_ALLOWED
        assert decision.usertype == UserType.CUSTOMER

    @pytest.mark.parametrize("usertype", [UserType.VIP, UserType.WHOLESALE, UserType.DEVELOPER])
    async def test_other_roles_are_denied(self, usertype, customer_user):
        user = customer_user.model_copy(update={"usertype": usertype})
        identity = FakeIdentity(user.id, [user])
        decision = await identity.decide("/")
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.ROLE_NOT_ALLOWED

    async def test_no_principal_is_denied_without_profile_lookup(self):
        identity = FakeIdentity(principal=None)
        decision = await identity.decide("/customer/manage")
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.UNAUTHENTICATED
        assert identity.lookup_calls == []

    async def test_missing_profile_is_denied(self, admin_user):
        identity = FakeIdentity(admin_user.id, [])
        decision = await identity.decide("/")
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.PROFILE_NOT_FOUND
        assert decision.user_id == admin_user.id

    async def test_lookup_error_fails_closed(self, admin_user):
        identity = FakeIdentity(admin_user.id, [admin_user])
        identity.lookup_error = ConnectionError("network down")
        decision = await identity.decide("/")
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.LOOKUP_FAILED

    async def test_slow_lookup_times_out_to_denied(self, admin_user):
        identity = FakeIdentity(admin_user.id, [admin_user])
        identity.lookup_gate = asyncio.Event()  # Never set
        decision = await identity.decide("/", timeout=0.01)
        assert decision.status == GuardStatus.DENIED
        assert decision.reason == DenialReason.LOOKUP_TIMEOUT

    async def test_every_evaluation_reads_the_profile(self, staff_user):
        identity = FakeIdentity(staff_user.id, [staff_user])
        await identity.decide("/")
        await identity.decide("/")
        assert identity.lookup_calls == [staff_user.id, staff_user.id]


class TestGuardContext:
    """Tests for per-client navigation state."""

    async def test_protected_navigation_starts_unresolved(self, admin_user):
        identity = FakeIdentity(admin_user.id, [admin_user])
        context = identity.context()
        context.navigate("/invoice/list")
        assert context.status == GuardStatus.UNRESOLVED
        assert (await context.wait()).status == GuardStatus.AUTHORIZED
        context.close()

    async def test_public_navigation_is_authorized_synchronously(self):
        context = FakeIdentity(principal=None).context()
        context.navigate("/forgot")
        assert context.status == GuardStatus.AUTHORIZED
        assert (await context.wait()).path == "/forgot"

    async def test_last_navigation_wins(self, customer_user):
        identity = FakeIdentity(customer_user.id, [customer_user])
        identity.lookup_gate = asyncio.Event()
        context = identity.context()

        context.navigate("/staff/manage")
        await asyncio.sleep(0.01)  # Lookup for the first navigation is now in flight
        assert identity.lookup_calls == [customer_user.id]

        context.navigate("/login")
        identity.lookup_gate.set()
        decision = await context.wait()
        await asyncio.sleep(0.01)

        assert decision.status == GuardStatus.AUTHORIZED
        assert context.decision.path == "/login"
        assert context.status == GuardStatus.AUTHORIZED

    async def test_identity_change_discards_stale_result(self, customer_user, admin_user):
        identity = FakeIdentity(customer_user.id, [customer_user, admin_user])
        identity.lookup_gate = asyncio.Event()
        context = identity.context()

        context.navigate("/")
        await asyncio.sleep(0.01)
        identity.lookup_gate = None  # New lookups answer immediately
        identity.principal = admin_user.id
        context.identity_changed()
        decision = await context.wait()

        assert decision.status == GuardStatus.AUTHORIZED
        assert decision.user_id == admin_user.id

    async def test_close_cancels_pending_lookup(self, admin_user):
        identity = FakeIdentity(admin_user.id, [admin_user])
        identity.lookup_gate = asyncio.Event()
        async with identity.context() as context:
            context.navigate("/")
            await asyncio.sleep(0.01)
        identity.lookup_gate.set()
        await asyncio.sleep(0.01)
        assert context.status == GuardStatus.UNRESOLVED

    async def test_identity_change_before_navigation_does_nothing(self):
        identity = FakeIdentity(principal=None)
        context = identity.context()
        context.identity_changed()
        assert context.status == GuardStatus.UNRESOLVED
        assert identity.principal_calls == 0

    async def test_identity_change_reevaluates_the_current_path(self, customer_user, admin_user):
        identity = FakeIdentity(customer_user.id, [customer_user, admin_user])
        context = identity.context()
        context.navigate("/invoice/list")
        assert (await context.wait()).status == GuardStatus.DENIED

        identity.principal = admin_user.id
        context.identity_changed()
        decision = await context.wait()
        assert decision.status == GuardStatus.AUTHORIZED
        assert decision.path == "/invoice/list"
        assert identity.lookup_calls == [customer_user.id, admin_user.id]
