from functools import partial
from uuid import UUID

import structlog

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.access.guard import GuardContext
from ledgerdesk.core.modules.access.models import DenialReason, GuardDecision
from ledgerdesk.core.modules.session.models import AuthToken
from ledgerdesk.core.modules.user.models import User, UserType
from ledgerdesk.errors import AccessDeniedError, AuthenticationError

logger = structlog.get_logger(__name__)

# Path evaluated for API operations that belong to the protected back-office shell
PROTECTED_PATH = "/"


class AccessService(Service):
    def create_context(self, auth_token: AuthToken | None) -> GuardContext:
        """Create a navigation context bound to the principal behind the token."""
        return GuardContext(
            resolve_principal=partial(self.core.services.session.find_principal, auth_token),
            lookup_profile=self.core.services.user.find_user,
            timeout=self.core.config.guard_timeout_seconds,
        )

    async def evaluate(self, auth_token: AuthToken | None, path: str) -> GuardDecision:
        """Evaluate the guard for a single navigation."""
        async with self.create_context(auth_token) as context:
            context.navigate(path)
            decision = await context.wait()
        if not decision.is_authorized:
            logger.info("access_denied", path=path, reason=decision.reason, user_id=str(decision.user_id))
        return decision

    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_staff(self, auth_token: AuthToken | None) -> UUID:
        """Ensure the principal may use the back office (admin or staff) and return its uid."""
        decision = await self.evaluate(auth_token, PROTECTED_PATH)
        if decision.is_authorized and decision.user_id is not None:
            return decision.user_id
        if decision.reason == DenialReason.UNAUTHENTICATED:
            raise AuthenticationError
        raise AccessDeniedError("Permission denied")

    async def ensure_admin(self, auth_token: AuthToken) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = await self.core.services.session.get_authenticated_user(auth_token)
        if user.usertype != UserType.ADMIN:
            raise AccessDeniedError("Admin privileges required")
        return user
