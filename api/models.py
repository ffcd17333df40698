"""
API models and schemas for the FastAPI application.

Request bodies are deliberately permissive (every field optional) so the
services can report missing fields with their own messages. Response models
serialize with camelCase aliases.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests

class RegisterRequest(BaseModel):
    """Body of POST /api/auth/register."""
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Plaintext password, at least 6 characters")
    name: Optional[str] = Field(None, description="Display name, defaults to the email local-part")


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login."""
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Plaintext password")


class BookPayload(CamelModel):
    """Body of POST and PUT /api/books."""
    title: Optional[str] = Field(None, description="Book title")
    author: Optional[str] = Field(None, description="Book author")
    genre: Optional[str] = Field(None, description="Book genre")
    # Validated by BookService
    published_year: Optional[Any] = Field(None, description="Year of publication")


# Responses

class UserResponse(CamelModel):
    """Public view of a user."""
    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")
    created_at: str = Field(..., description="Creation timestamp")


class AuthResponse(BaseModel):
    """Response model for register and login."""
    message: str
    token: str = Field(..., description="Bearer token valid for 24 hours")
    user: UserResponse


class BookResponse(CamelModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    genre: str = Field(..., description="Book genre")
    published_year: int = Field(..., description="Year of publication")
    user_id: str = Field(..., description="Identifier of the owning user")


class PaginationInfo(CamelModel):
    """Pagination block of a book listing."""
    current_page: int = Field(..., description="Current page number")
    total_pages: int = Field(..., description="Total number of pages")
    total_books: int = Field(..., description="Number of books matching the filters")
    has_next_page: bool = Field(..., description="Whether there is a next page")
    has_prev_page: bool = Field(..., description="Whether there is a previous page")


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[BookResponse] = Field(..., description="Books on the requested page")
    pagination: PaginationInfo


class BookSearchResponse(CamelModel):
    """Response model for the genre search."""
    books: List[BookResponse]
    count: int = Field(..., description="Number of matching books")
    search_term: str = Field(..., description="Genre that was searched for")


class BookDetailResponse(BaseModel):
    book: BookResponse


class BookMutationResponse(BaseModel):
    message: str
    book: BookResponse


class BookDeletedResponse(CamelModel):
    message: str
    deleted_book: BookResponse = Field(..., description="State of the book before deletion")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Human-readable status")
    timestamp: str = Field(..., description="Current timestamp")
