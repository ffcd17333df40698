"""
API configuration settings.
"""

from typing import List

from pydantic_settings import BaseSettings

# Used when JWT_SECRET is not set. Deployments must override it.
INSECURE_DEFAULT_SECRET = "your-super-secret-jwt-key-change-in-production"


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Bookstore API"
    api_version: str = "1.0.0"
    api_description: str = "User registration and owner-scoped management of a book catalog"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000

    # Security Settings
    jwt_secret: str = INSECURE_DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24
    bcrypt_rounds: int = 12

    # CORS Settings
    cors_origin: str = "http://localhost:3000"  # Comma-separated list of allowed origins

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100  # requests per window per client IP

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    def get_cors_origins(self) -> List[str]:
        """Split the configured origins into a list."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    def uses_default_secret(self) -> bool:
        return self.jwt_secret == INSECURE_DEFAULT_SECRET


# Global config instance
config = APIConfig()
