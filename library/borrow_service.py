"""
Borrow entity manager.

A borrow is committed by first taking the copies off the book with a
single conditional update and only then writing the borrow record, so
concurrent borrows can never drive ``copies`` below zero. If the record
cannot be written the copies are put back.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from library.book_service import BookService, to_object_id
from library.errors import InsufficientCopiesError, MissingFieldsError, NotFoundError, SchemaValidationError
from library.models import Borrow, BorrowCreate, BorrowSummary, parse_payload

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("book", "quantity", "dueDate")


def summary_pipeline(books_collection: str = "books") -> List[Dict[str, Any]]:
    """Group borrows per book, join title and isbn, largest total first."""
    return [
        {"$group": {"_id": "$book", "totalQuantity": {"$sum": "$quantity"}}},
        {
            "$lookup": {
                "from": books_collection,
                "localField": "_id",
                "foreignField": "_id",
                "as": "bookDetails",
            }
        },
        # Inner join: borrows of deleted books drop out here
        {"$unwind": "$bookDetails"},
        {
            "$project": {
                "_id": 0,
                "book": {"title": "$bookDetails.title", "isbn": "$bookDetails.isbn"},
                "totalQuantity": 1,
            }
        },
        {"$sort": {"totalQuantity": -1}},
    ]


class BorrowService:
    """Creates borrow records and summarises them per book."""

    def __init__(
        self,
        borrows: AsyncIOMotorCollection,
        book_service: BookService,
        books_collection: str = "books",
    ):
        self.borrows = borrows
        self.book_service = book_service
        self.books_collection = books_collection

    async def create(self, fields: Any) -> Borrow:
        """
        Borrow copies of a book.

        Args:
            fields: Raw payload with ``book``, ``quantity`` and ``dueDate``

        Returns:
            The persisted borrow record

        Raises:
            MissingFieldsError: If any of the three fields is absent or empty
            InvalidIdentifierError: If ``book`` is not a valid identifier
            SchemaValidationError: If quantity or dueDate are invalid
            NotFoundError: If the book does not exist
            InsufficientCopiesError: If the book has fewer copies than requested
        """
        if not isinstance(fields, dict):
            raise SchemaValidationError({"body": "Request body must be a JSON object"})
        if not all(fields.get(name) for name in REQUIRED_FIELDS):
            raise MissingFieldsError("Book ID, quantity, and due date are required")

        book_id = to_object_id(fields["book"])
        request = parse_payload(BorrowCreate, fields)

        book = await self.book_service.find(book_id)
        if book is None:
            raise NotFoundError("Book with the given ID does not exist")
        if book.copies < request.quantity:
            raise InsufficientCopiesError(book.copies, request.quantity)

        reserved = await self.book_service.reserve_copies(book_id, request.quantity)
        if reserved is None:
            # Lost a race with another borrow or a delete since the read above
            current = await self.book_service.find(book_id)
            if current is None:
                raise NotFoundError("Book with the given ID does not exist")
            raise InsufficientCopiesError(current.copies, request.quantity)

        document = request.to_document(datetime.now(timezone.utc))
        try:
            result = await self.borrows.insert_one(document)
        except PyMongoError as e:
            logger.error("Failed to persist borrow, releasing copies",
                         book_id=str(book_id), quantity=request.quantity, error=str(e))
            await self.book_service.release_copies(book_id, request.quantity)
            raise

        document["_id"] = result.inserted_id
        logger.info("Book borrowed",
                    borrow_id=str(result.inserted_id),
                    book_id=str(book_id),
                    quantity=request.quantity,
                    copies_left=reserved.copies)
        return Borrow.model_validate(document)

    async def summarize(self) -> List[BorrowSummary]:
        """
        Total borrowed quantity per book, largest first.

        Borrows whose book has since been deleted are left out.
        """
        cursor = self.borrows.aggregate(summary_pipeline(self.books_collection))
        rows = await cursor.to_list(length=None)
        logger.debug("Borrow summary computed", books=len(rows))
        return [BorrowSummary.model_validate(row) for row in rows]
