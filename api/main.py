"""
FastAPI main application for the Bookstore API.
"""

import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware

from api.auth import RateLimiter, get_client_ip, get_credential_service, get_current_user
from api.books import DEFAULT_LIMIT, DEFAULT_PAGE, BookService
from api.config import APIConfig, config as api_config
from api.errors import error_response, setup_exception_handlers
from api.models import (
    AuthResponse, BookDeletedResponse, BookDetailResponse, BookListResponse,
    BookMutationResponse, BookPayload, BookSearchResponse, HealthResponse,
    LoginRequest, RegisterRequest,
)
from api.security import CredentialService, TokenIdentity
from api.users import UserService
from storage.models import utc_now_iso
from storage.record_store import JSONFileRecordStore, RecordStore
from utilities.config import AppConfig, config as app_config
from utilities.logger import setup_logging

# Module logger
logger = structlog.get_logger(__name__)

RATE_LIMIT_EXEMPT_PATHS = {"/api/health"}

# Sent on every response
SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


# Dependencies

def get_record_store(request: Request) -> RecordStore:
    """Dependency for the application's record store."""
    return request.app.state.record_store


def get_user_service(
    store: RecordStore = Depends(get_record_store),
    credentials: CredentialService = Depends(get_credential_service),
) -> UserService:
    return UserService(store, credentials)


def get_book_service(store: RecordStore = Depends(get_record_store)) -> BookService:
    return BookService(store)


# Auth endpoints (no authentication required)
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: Optional[RegisterRequest] = Body(None),
    service: UserService = Depends(get_user_service),
):
    """
    Register a new user and return a bearer token.

    - **email**: Valid email address, unique across users
    - **password**: At least 6 characters
    - **name**: Optional display name (defaults to the part of the email before @)
    """
    return await service.register(payload)


@auth_router.post("/login", response_model=AuthResponse)
async def login(
    payload: Optional[LoginRequest] = Body(None),
    service: UserService = Depends(get_user_service),
):
    """Exchange email and password for a bearer token."""
    return await service.login(payload)


# Books endpoints (bearer token required)
books_router = APIRouter(
    prefix="/api/books",
    tags=["Books"],
    dependencies=[Depends(get_current_user)],
)


@books_router.get("", response_model=BookListResponse)
async def get_books(
    genre: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    service: BookService = Depends(get_book_service),
):
    """
    Get books with filtering, searching, and pagination.

    - **genre**: Filter by genre (case-insensitive substring)
    - **search**: Search title, author and genre (case-insensitive substring)
    - **page**: Page number (starts from 1)
    - **limit**: Books per page
    """
    return await service.list_books(genre=genre, search=search, page=page, limit=limit)


@books_router.get("/search", response_model=BookSearchResponse)
async def search_books(
    genre: Optional[str] = None,
    service: BookService = Depends(get_book_service),
):
    """Get all books whose genre contains **genre** (required)."""
    return await service.search_by_genre(genre)


@books_router.get("/{book_id}", response_model=BookDetailResponse)
async def get_book(
    book_id: str,
    service: BookService = Depends(get_book_service),
):
    """Get a single book by ID."""
    return await service.get_book(book_id)


@books_router.post("", response_model=BookMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: Optional[BookPayload] = Body(None),
    caller: TokenIdentity = Depends(get_current_user),
    service: BookService = Depends(get_book_service),
):
    """Add a book owned by the authenticated user."""
    return await service.create_book(payload, caller)


@books_router.put("/{book_id}", response_model=BookMutationResponse)
async def update_book(
    book_id: str,
    payload: Optional[BookPayload] = Body(None),
    caller: TokenIdentity = Depends(get_current_user),
    service: BookService = Depends(get_book_service),
):
    """Update any of title, author, genre and publishedYear of an owned book."""
    return await service.update_book(book_id, payload, caller)


@books_router.delete("/{book_id}", response_model=BookDeletedResponse)
async def delete_book(
    book_id: str,
    caller: TokenIdentity = Depends(get_current_user),
    service: BookService = Depends(get_book_service),
):
    """Delete an owned book."""
    return await service.delete_book(book_id, caller)


# Health check endpoint (no authentication required)
health_router = APIRouter(tags=["Health"])


@health_router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="OK",
        message="Bookstore API is running",
        timestamp=utc_now_iso(),
    )


def setup_middleware(app: FastAPI, api_settings: APIConfig, app_settings: AppConfig) -> None:
    """Install rate limiting, request logging, security headers and CORS (outermost last)."""

    if api_settings.rate_limit_enabled:
        limiter = RateLimiter(
            max_requests=api_settings.rate_limit_max_requests,
            window_seconds=api_settings.rate_limit_window_ms / 1000,
        )
        app.state.rate_limiter = limiter

        @app.middleware("http")
        async def rate_limit_requests(request: Request, call_next):
            if request.url.path in RATE_LIMIT_EXEMPT_PATHS:
                return await call_next(request)

            client_ip = get_client_ip(request)
            if not limiter.check_rate_limit(client_ip):
                logger.warning("Rate limit exceeded", client_ip=client_ip, path=request.url.path)
                return error_response(
                    status.HTTP_429_TOO_MANY_REQUESTS,
                    "Too many requests from this IP, please try again later.",
                    headers=limiter.get_rate_limit_headers(client_ip),
                )

            response = await call_next(request)
            response.headers.update(limiter.get_rate_limit_headers(client_ip))
            return response

    if not app_settings.is_test():
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            structlog.contextvars.clear_contextvars()
            structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
            started = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "Request handled",
                client_ip=get_client_ip(request),
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app(
    api_settings: Optional[APIConfig] = None,
    app_settings: Optional[AppConfig] = None,
    record_store: Optional[RecordStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        api_settings: API settings. If None, the global API config is used.
        app_settings: Storage/logging settings. If None, the global config is used.
        record_store: Store for the collections. If None, a JSON file store in the data directory.

    Returns:
        Configured FastAPI application.
    """
    api_settings = api_settings or api_config
    app_settings = app_settings or app_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(
            log_level=app_settings.log_level,
            log_format=app_settings.log_format,
            log_file=app_settings.get_log_file_path(),
            debug=app_settings.is_development(),
        )
        logger.info("Starting Bookstore API", environment=app_settings.environment)
        if api_settings.uses_default_secret():
            logger.warning("JWT_SECRET is not set; tokens are signed with the built-in default secret")

        yield

        logger.info("Shutting down Bookstore API")

    app = FastAPI(
        title=api_settings.api_title,
        description=api_settings.api_description,
        version=api_settings.api_version,
        lifespan=lifespan,
    )

    app.state.record_store = record_store or JSONFileRecordStore(app_settings.get_data_dir_path())
    app.state.credential_service = CredentialService(
        secret_key=api_settings.jwt_secret,
        algorithm=api_settings.jwt_algorithm,
        token_ttl=timedelta(hours=api_settings.access_token_expire_hours),
        bcrypt_rounds=api_settings.bcrypt_rounds,
    )

    setup_exception_handlers(app, development=app_settings.is_development())
    setup_middleware(app, api_settings, app_settings)

    app.include_router(auth_router)
    app.include_router(books_router)
    app.include_router(health_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level="info"
    )
