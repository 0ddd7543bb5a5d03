"""
Book entity manager.

Owns book validation, CRUD against the ``books`` collection and the
``available`` flag, which is always derived from ``copies`` on the server
side so that it can never disagree with the count it was computed from.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from library.errors import DuplicateKeyError, InvalidIdentifierError, NotFoundError
from library.models import Book, BookCreate, BookQueryParams, BookUpdate, is_valid_object_id, parse_payload

logger = structlog.get_logger(__name__)

# Aggregation-pipeline update stage: available = copies > 0
AVAILABILITY_STAGE = {"$set": {"available": {"$gt": ["$copies", 0]}}}


def to_object_id(book_id: Any) -> ObjectId:
    """
    Convert a client-supplied identifier to an ObjectId.

    Raises:
        InvalidIdentifierError: If the identifier is malformed
    """
    if not is_valid_object_id(book_id):
        raise InvalidIdentifierError("Invalid ObjectId")
    return ObjectId(book_id)


class BookService:
    """CRUD and copy bookkeeping for books."""

    def __init__(self, books: AsyncIOMotorCollection):
        self.books = books

    async def create(self, fields: Any) -> Book:
        """
        Validate and insert a new book.

        Raises:
            SchemaValidationError: If a field is missing or invalid
            DuplicateKeyError: If the ISBN already exists
        """
        book = parse_payload(BookCreate, fields)
        document = book.to_document(datetime.now(timezone.utc))
        try:
            result = await self.books.insert_one(document)
        except MongoDuplicateKeyError:
            logger.warning("Duplicate ISBN rejected", isbn=book.isbn)
            raise DuplicateKeyError("ISBN already exists")

        document["_id"] = result.inserted_id
        logger.info("Book created", book_id=str(result.inserted_id), isbn=book.isbn, copies=book.copies)
        return Book.model_validate(document)

    async def get(self, book_id: Any) -> Book:
        """
        Fetch a single book.

        Raises:
            InvalidIdentifierError: If book_id is malformed
            NotFoundError: If no such book exists
        """
        object_id = to_object_id(book_id)
        document = await self.books.find_one({"_id": object_id})
        if document is None:
            raise NotFoundError("Book with the given ID does not exist")
        return Book.model_validate(document)

    async def find(self, book_id: ObjectId) -> Optional[Book]:
        """Fetch a book by an already-validated identity, or None."""
        document = await self.books.find_one({"_id": book_id})
        return Book.model_validate(document) if document else None

    async def list_books(
        self,
        filter_genre: Optional[str] = None,
        sort_by: Optional[str] = "createdAt",
        sort: Optional[str] = "asc",
        limit: Any = 10,
    ) -> List[Book]:
        """
        List books with optional genre filter, sort and limit.

        Args:
            filter_genre: Genre to filter on; unknown values are ignored
            sort_by: Field to sort on
            sort: ``desc`` for descending, anything else ascending
            limit: Maximum number of books returned

        Raises:
            SchemaValidationError: If limit is not a non-negative integer
        """
        params = BookQueryParams.from_raw(filter_genre, sort_by, sort, limit)

        filter_query = {}
        if params.genre is not None:
            filter_query["genre"] = params.genre.value

        cursor = self.books.find(filter_query).sort([(params.sort_by, params.direction)]).limit(params.limit)
        documents = await cursor.to_list(length=params.limit or None)

        logger.debug("Listed books", genre=filter_query.get("genre"), count=len(documents))
        return [Book.model_validate(document) for document in documents]

    async def update(self, book_id: Any, fields: Any) -> Book:
        """
        Apply a partial update.

        Availability is recomputed when ``copies`` is part of the update.

        Raises:
            InvalidIdentifierError: If book_id is malformed
            SchemaValidationError: If a supplied field is invalid
            DuplicateKeyError: If the new ISBN belongs to another book
            NotFoundError: If no such book exists
        """
        object_id = to_object_id(book_id)
        changes = parse_payload(BookUpdate, fields).to_changes()
        changes["updatedAt"] = datetime.now(timezone.utc)

        try:
            document = await self.books.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError:
            logger.warning("Duplicate ISBN rejected on update", book_id=str(object_id), isbn=changes.get("isbn"))
            raise DuplicateKeyError("ISBN already exists")

        if document is None:
            raise NotFoundError("Book with the given ID does not exist")

        book = Book.model_validate(document)
        if "copies" in changes:
            book = await self.recompute_availability(object_id) or book

        logger.info("Book updated", book_id=book.id, fields=sorted(changes))
        return book

    async def delete(self, book_id: Any) -> None:
        """
        Delete a book. Borrow records referencing it are left in place.

        Raises:
            InvalidIdentifierError: If book_id is malformed
            NotFoundError: If no such book exists
        """
        object_id = to_object_id(book_id)
        result = await self.books.delete_one({"_id": object_id})
        if result.deleted_count == 0:
            raise NotFoundError("Book with the given ID does not exist")
        logger.info("Book deleted", book_id=str(object_id))

    async def recompute_availability(self, book_id: ObjectId) -> Optional[Book]:
        """Persist ``available = copies > 0``; returns the refreshed book or None."""
        document = await self.books.find_one_and_update(
            {"_id": book_id},
            [AVAILABILITY_STAGE],
            return_document=ReturnDocument.AFTER,
        )
        return Book.model_validate(document) if document else None

    async def reserve_copies(self, book_id: ObjectId, quantity: int) -> Optional[Book]:
        """
        Atomically take ``quantity`` copies off the shelf.

        The decrement only applies while ``copies >= quantity``, and the
        availability flag is recomputed in the same update.

        Returns:
            The updated book, or None if the book is gone or short of copies
        """
        document = await self.books.find_one_and_update(
            {"_id": book_id, "copies": {"$gte": quantity}},
            [
                {"$set": {"copies": {"$subtract": ["$copies", quantity]}, "updatedAt": "$$NOW"}},
                AVAILABILITY_STAGE,
            ],
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            logger.warning("Copy reservation did not match", book_id=str(book_id), quantity=quantity)
            return None

        logger.info("Copies reserved", book_id=str(book_id), quantity=quantity, copies=document["copies"])
        return Book.model_validate(document)

    async def release_copies(self, book_id: ObjectId, quantity: int) -> Optional[Book]:
        """Put ``quantity`` copies back on the shelf."""
        document = await self.books.find_one_and_update(
            {"_id": book_id},
            [
                {"$set": {"copies": {"$add": ["$copies", quantity]}, "updatedAt": "$$NOW"}},
                AVAILABILITY_STAGE,
            ],
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Copies released", book_id=str(book_id), quantity=quantity, found=document is not None)
        return Book.model_validate(document) if document else None

