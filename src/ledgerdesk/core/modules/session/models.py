"""Login sessions mapping auth tokens to principals."""

from datetime import datetime, timedelta
from typing import NewType
from uuid import UUID

from pydantic import Field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.utils import now

AuthToken = NewType("AuthToken", str)

SESSION_TTL_SECONDS = 30 * 24 * 60 * 60
SESSION_TTL = timedelta(seconds=SESSION_TTL_SECONDS)


class Session(MongoModel):
    """Authenticated principal behind an auth token.

    Indexed on auth_token (unique), user_id, and created_at (TTL).
    """

    user_id: UUID  # Principal uid, also the key of the user profile
    auth_token: str
    created_at: datetime = Field(default_factory=now)

    def is_expired(self, at: datetime) -> bool:
        """Whether the session is past its TTL."""
        return at - self.created_at >= SESSION_TTL
