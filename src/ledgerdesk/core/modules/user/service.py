from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.user.models import User, UserType
from ledgerdesk.core.modules.user.validators import normalize_email, validate_password
from ledgerdesk.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class UserService(Service):
    """Manages user profiles. Reads always hit the database so role changes apply immediately."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def find_user(self, user_id: UUID) -> User | None:
        """Get user profile by ID, or None if there is no profile."""
        doc = await self._collection.find_one({"_id": user_id})
        if doc is None:
            return None
        return User.from_mongo(doc)

    async def get_user(self, user_id: UUID) -> User:
        """Get user profile by ID."""
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def find_user_by_email(self, email: str) -> User | None:
        doc = await self._collection.find_one({"email": email.strip().lower()})
        if doc is None:
            return None
        return User.from_mongo(doc)

    async def get_user_by_email(self, email: str) -> User:
        """Get user profile by email."""
        user = await self.find_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User '{email}' not found")
        return user

    async def get_all_users(self) -> list[User]:
        """Get all users ordered by registration date."""
        return await User.list_cursor(self._collection.find().sort("created_at", 1))

    async def create_user(
        self, email: str, password: str, display_name: str = "", usertype: UserType = UserType.CUSTOMER
    ) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        if await self.find_user_by_email(email) is not None:
            raise ValidationError(f"User '{email}' already exists")

        validate_password(password)
        user = User(email=email, display_name=display_name.strip(), password_hash=hash_password(password), usertype=usertype)
        await self._collection.insert_one(user.to_mongo())
        logger.info("user_created", user_id=str(user.id), usertype=user.usertype)
        return user

    async def verify_password(self, email: str, password: str) -> User | None:
        """Return the user if the password matches, None otherwise."""
        user = await self.find_user_by_email(email)
        if user is None or not check_password(password, user.password_hash):
            return None
        return user

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = await self.get_user(user_id)
        if not check_password(old_password, user.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self._collection.update_one({"_id": user_id}, {"$set": {"password_hash": hash_password(new_password)}})

    async def set_usertype(self, user_id: UUID, usertype: UserType) -> User:
        """Change the role of a user."""
        result = await self._collection.update_one({"_id": user_id}, {"$set": {"usertype": usertype}})
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")
        logger.info("usertype_changed", user_id=str(user_id), usertype=usertype)
        return await self.get_user(user_id)

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user from the system."""
        result = await self._collection.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")

    async def ensure_admin_user_exists(self) -> None:
        """Create the bootstrap admin account if not exists."""
        email = self.core.config.admin_email
        if await self.find_user_by_email(email) is None:
            await self.create_user(email, self.core.config.admin_password, "Administrator", UserType.ADMIN)

    async def on_start(self) -> None:
        """Initialize indexes and admin user."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started")
