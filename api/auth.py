"""
Authentication and rate limiting for the FastAPI API.
"""

import time
from typing import Dict, List, Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.errors import AuthenticationRequired, TokenRejected
from api.security import CredentialService, TokenExpiredError, TokenIdentity, TokenError

logger = structlog.get_logger(__name__)

# Security scheme; missing credentials are reported by get_current_user itself
security = HTTPBearer(auto_error=False)


def get_credential_service(request: Request) -> CredentialService:
    """Dependency for the application's credential service."""
    return request.app.state.credential_service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    credential_service: CredentialService = Depends(get_credential_service),
) -> TokenIdentity:
    """
    Verify the bearer token of a request.

    Args:
        credentials: Parsed ``Authorization: Bearer <token>`` header, if any
        credential_service: Service used to verify the token

    Returns:
        Identity carried by the token

    Raises:
        AuthenticationRequired: If no bearer token was presented
        TokenRejected: If the token is invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired("Access token is required")

    try:
        return credential_service.decode_access_token(credentials.credentials)
    except TokenError as e:
        reason = "token_expired" if isinstance(e, TokenExpiredError) else "token_invalid"
        logger.warning("Bearer token rejected", reason=reason, error=str(e))
        raise TokenRejected("Invalid or expired token")


def get_client_ip(request: Request) -> str:
    """Address the rate limiter keys requests by."""
    if request.client:
        return request.client.host
    return "unknown"


class RateLimiter:
    """Sliding-window request counter per client."""

    def __init__(self, max_requests: int, window_seconds: float):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Requests allowed per client within one window
            window_seconds: Length of the window in seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, List[float]] = {}

    def _prune(self, client_id: str, now: float) -> List[float]:
        recent = [
            req_time for req_time in self._requests.get(client_id, [])
            if now - req_time < self.window_seconds
        ]
        if recent:
            self._requests[client_id] = recent
        else:
            # Idle clients are forgotten
            self._requests.pop(client_id, None)
        return recent

    def check_rate_limit(self, client_id: str) -> bool:
        """
        Record a request and check it against the limit.

        Args:
            client_id: Client to check

        Returns:
            True if within limit, False if exceeded
        """
        now = time.time()
        recent = self._prune(client_id, now)

        if len(recent) < self.max_requests:
            recent.append(now)
            self._requests[client_id] = recent
            return True

        return False

    def get_rate_limit_info(self, client_id: str) -> Dict:
        """
        Get rate limit information for a client.

        Returns:
            Dictionary with rate limit information
        """
        now = time.time()
        recent = self._prune(client_id, now)

        reset_time = (recent[0] if recent else now) + self.window_seconds

        return {
            "requests_used": len(recent),
            "requests_remaining": max(0, self.max_requests - len(recent)),
            "rate_limit": self.max_requests,
            "reset_time": reset_time,
        }

    def get_rate_limit_headers(self, client_id: str) -> Dict[str, str]:
        """Get rate limit headers for a response."""
        rate_info = self.get_rate_limit_info(client_id)
        return {
            "X-RateLimit-Limit": str(rate_info['rate_limit']),
            "X-RateLimit-Remaining": str(rate_info['requests_remaining']),
            "X-RateLimit-Reset": str(int(rate_info['reset_time']))
        }
