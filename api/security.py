"""
Credential helpers: password hashing and bearer token issuance/verification.

Passwords are hashed with bcrypt (cost factor 12 unless configured otherwise).
Tokens are HS256 JSON Web Tokens carrying the user's identifier and email,
valid for 24 hours from issuance.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict

import bcrypt
import structlog
from jose import ExpiredSignatureError, JWTError, jwt

logger = structlog.get_logger(__name__)

# bcrypt ignores everything past this many bytes
BCRYPT_MAX_PASSWORD_BYTES = 72


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidTokenError(TokenError):
    """The token is malformed, badly signed or lacks the identity claims."""


class TokenExpiredError(TokenError):
    """The token's signature is valid but its expiry has passed."""


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims carried by a verified bearer token."""
    user_id: str
    email: str


def _password_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


class CredentialService:
    """Hashes passwords and issues/verifies bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=24),
        bcrypt_rounds: int = 12,
    ):
        """
        Initialize the credential service.

        Args:
            secret_key: Server-wide signing secret
            algorithm: JWT signing algorithm
            token_ttl: Lifetime of issued tokens
            bcrypt_rounds: bcrypt cost factor
        """
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.token_ttl = token_ttl
        self.bcrypt_rounds = bcrypt_rounds

    def _hash_sync(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(plaintext), salt).decode("ascii")

    @staticmethod
    def _verify_sync(plaintext: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(plaintext), digest.encode("utf-8"))
        except ValueError:
            # Not a bcrypt digest
            return False

    async def hash_password(self, plaintext: str) -> str:
        """Hash a password with a fresh salt."""
        return await asyncio.to_thread(self._hash_sync, plaintext)

    async def verify_password(self, plaintext: str, digest: str) -> bool:
        """Check a password against a stored digest."""
        return await asyncio.to_thread(self._verify_sync, plaintext, digest)

    def create_access_token(self, user_id: str, email: str) -> str:
        """
        Issue a signed token for a user.

        Args:
            user_id: Identifier of the user
            email: Email of the user

        Returns:
            Encoded JWT string
        """
        issued_at = int(time.time())
        claims: Dict[str, Any] = {
            "userId": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + int(self.token_ttl.total_seconds()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> TokenIdentity:
        """
        Verify a token's signature and expiry.

        Args:
            token: Encoded JWT string

        Returns:
            TokenIdentity from the token's claims

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed, badly signed or incomplete
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError(str(e)) from e
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            raise InvalidTokenError("token is missing identity claims")

        return TokenIdentity(user_id=user_id, email=email)
