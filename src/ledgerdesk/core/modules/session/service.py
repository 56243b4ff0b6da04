import secrets
from datetime import datetime
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.session.models import SESSION_TTL_SECONDS, AuthToken, Session
from ledgerdesk.core.modules.user.models import User
from ledgerdesk.errors import AuthenticationError
from ledgerdesk.utils import now


class SessionService(Service):
    """Service for managing user sessions."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        # Only token -> session is cached; profiles are always read fresh
        self._sessions: dict[AuthToken, Session] = {}

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        # TTL index for automatic session cleanup (30 days expiry)
        await self._collection.create_index([("created_at", 1)], expireAfterSeconds=SESSION_TTL_SECONDS)

    async def create_session(self, user_id: UUID) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token)
        await self._collection.insert_one(new_session.to_mongo())
        return auth_token

    async def find_principal(self, auth_token: AuthToken | None) -> UUID | None:
        """Resolve the uid behind a token, or None if there is no valid session."""
        if not auth_token:
            return None
        current_time = now()
        session = self._sessions.get(auth_token)
        if session is None:
            doc = await self._collection.find_one({"auth_token": auth_token})
            if doc is None:
                return None
            session = Session.from_mongo(doc)
            self._evict_expired(current_time)
            self._sessions[auth_token] = session

        if session.is_expired(current_time):
            self._sessions.pop(auth_token, None)
            return None
        return session.user_id

    def _evict_expired(self, current_time: datetime) -> None:
        self._sessions = {token: s for token, s in self._sessions.items() if not s.is_expired(current_time)}

    async def get_authenticated_user(self, auth_token: AuthToken) -> User:
        user_id = await self.find_principal(auth_token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired session")

        user = await self.core.services.user.find_user(user_id)
        if user is None:
            raise AuthenticationError("Invalid or expired session")
        return user

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except AuthenticationError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the database."""
        self._sessions.pop(auth_token, None)
        await self._collection.delete_one({"auth_token": auth_token})

    async def invalidate_user_sessions(self, user_id: UUID) -> None:
        """Remove all sessions of a user (used when the user is deleted)."""
        self._sessions = {token: s for token, s in self._sessions.items() if s.user_id != user_id}
        await self._collection.delete_many({"user_id": user_id})
