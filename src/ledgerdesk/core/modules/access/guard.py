"""Role-gated access guard.

Every navigation is evaluated from scratch: public paths are authorized synchronously,
everything else needs a principal whose profile has an allowed usertype. Any failure
while resolving (no session, no profile, database error, timeout) denies access.
"""

import asyncio
from collections.abc import Awaitable, Callable
from uuid import UUID

import structlog

from ledgerdesk.core.modules.access.models import DenialReason, GuardDecision, GuardStatus
from ledgerdesk.core.modules.user.models import User, UserType

logger = structlog.get_logger(__name__)

PUBLIC_PATHS = frozenset({"/login", "/register", "/forgot", "/password"})
AUTHORIZED_USERTYPES = frozenset({UserType.ADMIN, UserType.STAFF})

PrincipalResolver = Callable[[], Awaitable[UUID | None]]
ProfileLookup = Callable[[UUID], Awaitable[User | None]]


def normalize_path(path: str) -> str:
    """Drop query string and trailing slash so '/login/' and '/login?next=/' match '/login'."""
    path = path.split("?", 1)[0].split("#", 1)[0]
    return path.rstrip("/") or "/"


def is_public_path(path: str) -> bool:
    return normalize_path(path) in PUBLIC_PATHS


async def resolve_decision(
    path: str, resolve_principal: PrincipalResolver, lookup_profile: ProfileLookup, timeout: float
) -> GuardDecision:
    """Evaluate the guard once for a path.

    The principal and profile lookups share one timeout; on expiry the result is DENIED.
    """
    if is_public_path(path):
        return GuardDecision(status=GuardStatus.AUTHORIZED, path=path, public=True)

    user_id: UUID | None = None
    try:
        async with asyncio.timeout(timeout):
            user_id = await resolve_principal()
            if user_id is None:
                return GuardDecision.denied(path, DenialReason.UNAUTHENTICATED)
            profile = await lookup_profile(user_id)
    except TimeoutError:
        logger.warning("guard_lookup_timeout", path=path, user_id=str(user_id) if user_id else None, timeout=timeout)
        return GuardDecision.denied(path, DenialReason.LOOKUP_TIMEOUT, user_id=user_id)
    except Exception:
        logger.exception("guard_lookup_failed", path=path, user_id=str(user_id) if user_id else None)
        return GuardDecision.denied(path, DenialReason.LOOKUP_FAILED, user_id=user_id)

    if profile is None:
        return GuardDecision.denied(path, DenialReason.PROFILE_NOT_FOUND, user_id=user_id)
    if profile.usertype not in AUTHORIZED_USERTYPES:
        return GuardDecision.denied(path, DenialReason.ROLE_NOT_ALLOWED, user_id=user_id, usertype=profile.usertype)
    return GuardDecision(status=GuardStatus.AUTHORIZED, path=path, user_id=user_id, usertype=profile.usertype)


class GuardContext:
    """Authorization state for one client's navigation.

    navigate() and identity_changed() restart evaluation from UNRESOLVED. A lookup still
    in flight is cancelled when a newer navigation arrives or the context is closed,
    and its result is discarded, so the last navigation always wins.
    """

    def __init__(self, resolve_principal: PrincipalResolver, lookup_profile: ProfileLookup, timeout: float) -> None:
        self._resolve_principal = resolve_principal
        self._lookup_profile = lookup_profile
        self._timeout = timeout
        self._path: str | None = None
        self._decision = GuardDecision.unresolved("")
        self._task: asyncio.Task[GuardDecision] | None = None
        self._generation = 0

    @property
    def decision(self) -> GuardDecision:
        return self._decision

    @property
    def status(self) -> GuardStatus:
        return self._decision.status

    def navigate(self, path: str) -> None:
        """Start evaluating a new navigation target. Must be called from a running event loop."""
        self._path = path
        self._evaluate(path)

    def identity_changed(self) -> None:
        """Re-evaluate the current path after the principal changed (login, logout)."""
        if self._path is not None:
            self._evaluate(self._path)

    async def wait(self) -> GuardDecision:
        """Wait until the latest navigation is resolved and return its decision."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._decision

    def close(self) -> None:
        """Detach: cancel any pending lookup; later results are never applied."""
        self._generation += 1
        self._cancel_pending()

    async def __aenter__(self) -> "GuardContext":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def _evaluate(self, path: str) -> None:
        self._cancel_pending()
        self._generation += 1

        if is_public_path(path):
            self._decision = GuardDecision(status=GuardStatus.AUTHORIZED, path=path, public=True)
            return

        self._decision = GuardDecision.unresolved(path)
        self._task = asyncio.create_task(self._resolve(path, self._generation))

    async def _resolve(self, path: str, generation: int) -> GuardDecision:
        decision = await resolve_decision(path, self._resolve_principal, self._lookup_profile, self._timeout)
        if generation == self._generation:
            self._decision = decision
        else:
            logger.debug("guard_stale_decision_dropped", path=path)
        return decision

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
