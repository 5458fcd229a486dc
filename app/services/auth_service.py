"""
Authentication service
Login, credential checks, password changes and first-run user seeding.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import status

from app.config import Settings
from app.core.errors import AppError
from app.core.security import (
    Role,
    SessionPrincipal,
    create_session_token,
    dummy_verify_password,
    generate_csrf_token,
    get_password_hash,
    verify_password,
)
from app.models.user import new_user_document, seed_technicians
from app.services.user_storage import MongoUserStorage
from app.utils.helpers import utcnow
from app.utils.validators import MIN_PASSWORD_LENGTH, validate_password_length

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, storage: MongoUserStorage):
        self.storage = storage

    @staticmethod
    def _password_matches(user: Optional[Dict[str, Any]], password: str) -> bool:
        if user is None:
            dummy_verify_password()
            return False
        return verify_password(password, user.get("password"))

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and issue a session.

        Returns the principal, the signed session token and the CSRF token.
        Unknown user and wrong password are indistinguishable to the caller.
        """
        user = await self.storage.find_by_username(username)
        if not self._password_matches(user, password):
            logger.warning(f"Failed login attempt for '{username}'")
            raise AppError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

        csrf_token = generate_csrf_token()
        principal = SessionPrincipal(
            username=user["username"],
            role=user["role"],
            display_name=user.get("displayName") or user["username"],
            csrf_token=csrf_token,
        )
        token = create_session_token(
            username=principal.username,
            role=principal.role,
            display_name=principal.display_name,
            csrf_token=csrf_token,
        )

        logger.info(f"User {principal.username} logged in")
        return {"principal": principal, "token": token, "csrf_token": csrf_token}

    async def list_users(self) -> List[Dict[str, Any]]:
        return await self.storage.list_users()

    async def verify_credentials(
        self,
        username: Optional[str],
        password: Optional[str],
        required_role: Optional[str] = None,
    ) -> bool:
        """Check a credential pair without creating a session."""
        if not username or not password:
            return False
        user = await self.storage.find_by_username(username)
        if not self._password_matches(user, password):
            return False
        if required_role and user.get("role") != required_role:
            return False
        return True

    async def update_password(
        self,
        principal: SessionPrincipal,
        username: str,
        new_password: str,
        override_username: Optional[str] = None,
        override_password: Optional[str] = None,
    ) -> str:
        if not validate_password_length(new_password):
            raise AppError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if not principal.is_admin:
            authorized = await self.verify_credentials(
                override_username, override_password, required_role=Role.ADMIN.value
            )
            if not authorized:
                logger.warning(
                    f"Password change for '{username}' by {principal.username} refused: no admin override"
                )
                raise AppError("Admin authorization required", status.HTTP_403_FORBIDDEN)

        user = await self.storage.find_by_username(username)
        if user is None:
            raise AppError("User not found", status.HTTP_404_NOT_FOUND)

        await self.storage.update_password(user["username"], get_password_hash(new_password), utcnow())
        logger.info(f"Password updated for {user['username']} by {principal.username}")
        return user["username"]

    async def seed_users(self, settings: Settings) -> int:
        """Create the predefined technicians when the users collection is empty."""
        if await self.storage.count() > 0:
            return 0

        now = utcnow()
        documents = [
            new_user_document(
                username=tech["username"],
                password_hash=get_password_hash(tech["password"]),
                display_name=tech["displayName"],
                role=tech["role"],
                now=now,
            )
            for tech in seed_technicians(settings)
        ]
        inserted = await self.storage.insert_many(documents)
        logger.info(f"Seeded {inserted} technician accounts")
        return inserted
