"""
Pydantic models for the stored user and book records.
Field aliases are the camelCase names used on disk and on the wire.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Enum for the persisted entity collections."""
    USERS = "users"
    BOOKS = "books"


def _new_id() -> str:
    return str(uuid4())


def utc_now_iso() -> str:
    """ISO-8601 timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class UserRecord(BaseModel):
    """
    Stored user model.

    The ``password`` field holds the bcrypt digest; it is persisted but never
    included in client-facing payloads (see ``to_public``).
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id, description="Unique user identifier")
    email: str = Field(..., description="Unique email address")
    name: str = Field(..., description="Display name")
    password: str = Field(..., description="bcrypt password digest")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt", description="Creation timestamp")

    def to_record(self) -> Dict[str, Any]:
        """Serialize for the record store."""
        return self.model_dump(by_alias=True)

    def to_public(self) -> Dict[str, Any]:
        """Serialize for API responses, without the password digest."""
        return self.model_dump(by_alias=True, exclude={"password"})


class BookRecord(BaseModel):
    """
    Stored book model.

    Unknown keys found in a stored record are kept and written back by
    ``to_record``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default_factory=_new_id, description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    genre: str = Field(..., description="Book genre")
    published_year: int = Field(..., alias="publishedYear", description="Year of publication")
    user_id: str = Field(..., alias="userId", description="Identifier of the owning user")

    def to_record(self) -> Dict[str, Any]:
        """Serialize for the record store and API responses."""
        return self.model_dump(by_alias=True)

    def matches_genre(self, genre: str) -> bool:
        """Case-insensitive substring match on the genre."""
        return genre.lower() in self.genre.lower()

    def matches_search(self, term: str) -> bool:
        """Case-insensitive substring match on title, author or genre."""
        term = term.lower()
        return (
            term in self.title.lower()
            or term in self.author.lower()
            or term in self.genre.lower()
        )
