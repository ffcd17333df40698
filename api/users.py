"""
Account service: registration and login over the user collection.
"""

import re
from typing import Optional

import structlog

from api.errors import Conflict, InvalidCredentials, ValidationFailed
from api.models import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from api.security import CredentialService
from storage.models import EntityKind, UserRecord
from storage.record_store import RecordStore

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


class UserService:
    """Registers users and logs them in."""

    def __init__(self, store: RecordStore, credentials: CredentialService):
        self.store = store
        self.credentials = credentials

    def _auth_response(self, message: str, user: UserRecord) -> AuthResponse:
        token = self.credentials.create_access_token(user.id, user.email)
        return AuthResponse(
            message=message,
            token=token,
            user=UserResponse.model_validate(user.to_public()),
        )

    async def register(self, payload: Optional[RegisterRequest]) -> AuthResponse:
        """
        Create a user and issue a token for it.

        Args:
            payload: Registration body; None is treated as empty

        Returns:
            AuthResponse with the new user and its token

        Raises:
            ValidationFailed: If a field is missing, the password is too short or the email is malformed
            Conflict: If the email is already registered
        """
        payload = payload or RegisterRequest()
        email, password = payload.email, payload.password

        if not email or not password:
            raise ValidationFailed("Email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if not EMAIL_PATTERN.match(email):
            raise ValidationFailed("Please provide a valid email address")

        users = await self.store.load(EntityKind.USERS)

        if any(user.get("email") == email for user in users):
            raise Conflict("User with this email already exists")

        digest = await self.credentials.hash_password(password)
        user = UserRecord(
            email=email,
            name=payload.name or email.split("@")[0],
            password=digest,
        )

        users.append(user.to_record())
        await self.store.save(EntityKind.USERS, users)

        logger.info("User registered", user_id=user.id)
        return self._auth_response("User registered successfully", user)

    async def login(self, payload: Optional[LoginRequest]) -> AuthResponse:
        """
        Check credentials and issue a token.

        Raises:
            ValidationFailed: If email or password is missing
            InvalidCredentials: If the email is unknown or the password is wrong
        """
        payload = payload or LoginRequest()
        email, password = payload.email, payload.password

        if not email or not password:
            raise ValidationFailed("Email and password are required")

        users = await self.store.load(EntityKind.USERS)
        record = next((user for user in users if user.get("email") == email), None)

        # Unknown email and wrong password share one message
        if record is None:
            raise InvalidCredentials("Invalid email or password")

        user = UserRecord.model_validate(record)
        if not await self.credentials.verify_password(password, user.password):
            logger.info("Login failed", user_id=user.id)
            raise InvalidCredentials("Invalid email or password")

        logger.info("User logged in", user_id=user.id)
        return self._auth_response("Login successful", user)
