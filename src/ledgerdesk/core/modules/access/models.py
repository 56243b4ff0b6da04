"""Access guard decisions."""

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from ledgerdesk.core.modules.user.models import UserType


class GuardStatus(StrEnum):
    UNRESOLVED = "unresolved"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class DenialReason(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    PROFILE_NOT_FOUND = "profile_not_found"
    ROLE_NOT_ALLOWED = "role_not_allowed"
    LOOKUP_FAILED = "lookup_failed"
    LOOKUP_TIMEOUT = "lookup_timeout"


class GuardDecision(BaseModel):
    """Outcome of evaluating the guard for one navigation."""

    status: GuardStatus = Field(..., description="Authorization status")
    path: str = Field(..., description="Navigation target that was evaluated")
    public: bool = Field(False, description="Whether the path is on the public allow-list")
    user_id: UUID | None = Field(None, description="Resolved principal, if any")
    usertype: UserType | None = Field(None, description="Role from the profile, if it was read")
    reason: DenialReason | None = Field(None, description="Why access was denied")

    @classmethod
    def unresolved(cls, path: str) -> "GuardDecision":
        return cls(status=GuardStatus.UNRESOLVED, path=path)

    @classmethod
    def denied(
        cls, path: str, reason: DenialReason, user_id: UUID | None = None, usertype: UserType | None = None
    ) -> "GuardDecision":
        return cls(status=GuardStatus.DENIED, path=path, reason=reason, user_id=user_id, usertype=usertype)

    @property
    def is_authorized(self) -> bool:
        return self.status == GuardStatus.AUTHORIZED
