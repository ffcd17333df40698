"""
Book service layer: listing, searching and owner-scoped mutation of the
book collection.

Every operation loads the whole collection from the record store, works on it
in memory and, for mutations, saves the whole collection back. Stored records
that do not parse as books are logged and left out of reads; mutations write
them back unchanged.
"""

import math
from datetime import datetime
from typing import Any, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from api.errors import NotFound, NotOwner, ValidationFailed
from api.models import (
    BookDeletedResponse, BookDetailResponse, BookListResponse, BookMutationResponse,
    BookPayload, BookResponse, BookSearchResponse, PaginationInfo,
)
from api.security import TokenIdentity
from storage.models import BookRecord, EntityKind
from storage.record_store import Record, RecordStore

logger = structlog.get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def validate_published_year(value: Any) -> int:
    """
    Check that a year is an integer between 0 and the current year.

    Raises:
        ValidationFailed: If the value is not such a year
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailed("Published year must be a valid year")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationFailed("Published year must be a valid year")
    year = int(value)
    if year < 0 or year > datetime.now().year:
        raise ValidationFailed("Published year must be a valid year")
    return year


def paginate(items: List[Any], page: int, limit: int) -> Tuple[List[Any], PaginationInfo]:
    """
    Slice one page out of a list.

    Args:
        items: Full (already filtered) sequence
        page: 1-based page number
        limit: Page size

    Returns:
        The page's items and the pagination block
    """
    start = (page - 1) * limit
    total = len(items)
    total_pages = math.ceil(total / limit)

    return items[start:start + limit], PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        total_books=total,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def _parse(record: Any) -> Optional[BookRecord]:
    try:
        return BookRecord.model_validate(record)
    except ValidationError as e:
        book_id = record.get("id") if isinstance(record, dict) else None
        logger.warning("Skipping invalid book record", book_id=book_id, errors=e.error_count())
        return None


def _response(book: BookRecord) -> BookResponse:
    return BookResponse.model_validate(book.to_record())


class BookService:
    """Book collection operations for an authenticated caller."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def _load(self) -> List[Record]:
        return await self.store.load(EntityKind.BOOKS)

    async def _save(self, records: List[Record]) -> None:
        await self.store.save(EntityKind.BOOKS, records)

    async def _load_books(self) -> List[BookRecord]:
        return [book for book in map(_parse, await self._load()) if book is not None]

    @staticmethod
    def _find(records: List[Record], book_id: str) -> Tuple[int, BookRecord]:
        """
        Locate a stored book by ID.

        Returns:
            Position of the record in the collection and the parsed book

        Raises:
            NotFound: If no usable book has this ID
        """
        for index, record in enumerate(records):
            if isinstance(record, dict) and record.get("id") == book_id:
                book = _parse(record)
                if book is not None:
                    return index, book
        raise NotFound("Book not found")

    async def list_books(
        self,
        genre: Optional[str] = None,
        search: Optional[str] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> BookListResponse:
        """
        Get books with filtering, searching and pagination.

        Args:
            genre: Case-insensitive substring of the genre
            search: Case-insensitive substring of title, author or genre
            page: 1-based page number
            limit: Books per page

        Returns:
            BookListResponse for the requested page of the filtered books
        """
        books = await self._load_books()

        if genre:
            books = [book for book in books if book.matches_genre(genre)]
        if search:
            books = [book for book in books if book.matches_search(search)]

        page_books, pagination = paginate(books, page, limit)
        return BookListResponse(
            books=[_response(book) for book in page_books],
            pagination=pagination,
        )

    async def search_by_genre(self, genre: Optional[str]) -> BookSearchResponse:
        """
        Get every book whose genre contains the given text.

        Raises:
            ValidationFailed: If no genre was given
        """
        if not genre:
            raise ValidationFailed("Genre parameter is required")

        books = [book for book in await self._load_books() if book.matches_genre(genre)]
        return BookSearchResponse(
            books=[_response(book) for book in books],
            count=len(books),
            search_term=genre,
        )

    async def get_book(self, book_id: str) -> BookDetailResponse:
        """
        Get a single book by ID.

        Raises:
            NotFound: If no book has this ID
        """
        _, book = self._find(await self._load(), book_id)
        return BookDetailResponse(book=_response(book))

    async def create_book(self, payload: Optional[BookPayload], caller: TokenIdentity) -> BookMutationResponse:
        """
        Add a book owned by the caller.

        Raises:
            ValidationFailed: If a field is missing or the year is out of range
        """
        payload = payload or BookPayload()
        # Year 0 is a present value here; only null, absent or "" count as missing
        year_missing = payload.published_year is None or payload.published_year == ""
        if not payload.title or not payload.author or not payload.genre or year_missing:
            raise ValidationFailed("Title, author, genre, and publishedYear are required")

        year = validate_published_year(payload.published_year)

        records = await self._load()
        book = BookRecord(
            title=payload.title.strip(),
            author=payload.author.strip(),
            genre=payload.genre.strip(),
            published_year=year,
            user_id=caller.user_id,
        )
        records.append(book.to_record())
        await self._save(records)

        logger.info("Book created", book_id=book.id, user_id=caller.user_id)
        return BookMutationResponse(message="Book added successfully", book=_response(book))

    async def update_book(
        self,
        book_id: str,
        payload: Optional[BookPayload],
        caller: TokenIdentity,
    ) -> BookMutationResponse:
        """
        Overwrite the supplied fields of a book the caller owns.

        Empty or absent fields keep their previous value, so a field cannot be
        cleared through an update.

        Raises:
            NotFound: If no book has this ID
            NotOwner: If the caller did not create the book
            ValidationFailed: If a supplied year is out of range
        """
        payload = payload or BookPayload()
        records = await self._load()
        index, book = self._find(records, book_id)

        if book.user_id != caller.user_id:
            raise NotOwner("You can only update books that you added")

        year = book.published_year
        if payload.published_year:
            year = validate_published_year(payload.published_year)

        updated = book.model_copy(update={
            "title": payload.title.strip() if payload.title else book.title,
            "author": payload.author.strip() if payload.author else book.author,
            "genre": payload.genre.strip() if payload.genre else book.genre,
            "published_year": year,
        })
        records[index] = updated.to_record()
        await self._save(records)

        logger.info("Book updated", book_id=book_id, user_id=caller.user_id)
        return BookMutationResponse(message="Book updated successfully", book=_response(updated))

    async def delete_book(self, book_id: str, caller: TokenIdentity) -> BookDeletedResponse:
        """
        Remove a book the caller owns.

        Returns:
            BookDeletedResponse carrying the book as it was before deletion

        Raises:
            NotFound: If no book has this ID
            NotOwner: If the caller did not create the book
        """
        records = await self._load()
        index, book = self._find(records, book_id)

        if book.user_id != caller.user_id:
            raise NotOwner("You can only delete books that you added")

        del records[index]
        await self._save(records)

        logger.info("Book deleted", book_id=book_id, user_id=caller.user_id)
        return BookDeletedResponse(message="Book deleted successfully", deleted_book=_response(book))
