"""
FastAPI dependencies wiring the entity managers to the shared MongoDB manager.
"""

from typing import Optional

from fastapi import Depends

from library.book_service import BookService
from library.borrow_service import BorrowService
from library.database import MongoDBManager
from utilities.config import config

# Global database manager, created on first use
db_manager: Optional[MongoDBManager] = None


def get_db_manager() -> MongoDBManager:
    """Return the process-wide MongoDB manager."""
    global db_manager
    if db_manager is None:
        db_manager = MongoDBManager.from_config(config)
    return db_manager


async def get_database(manager: MongoDBManager = Depends(get_db_manager)) -> MongoDBManager:
    """
    Connected MongoDB manager for the current request.

    Outside production the connection is made at startup and this is a
    no-op; in production the first request pays for the connection.
    """
    await manager.ensure_connected()
    return manager


async def get_book_service(manager: MongoDBManager = Depends(get_database)) -> BookService:
    return BookService(manager.books)


async def get_borrow_service(
    manager: MongoDBManager = Depends(get_database),
    book_service: BookService = Depends(get_book_service),
) -> BorrowService:
    return BorrowService(manager.borrows, book_service, manager.books_collection_name)
