"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from library.book_service import BookService
from library.borrow_service import BorrowService


CREATED_AT = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_book_document(**overrides):
    """Build a books-collection document as MongoDB would return it."""
    document = {
        "_id": ObjectId(),
        "title": "A Brief History of Time",
        "author": "Stephen Hawking",
        "genre": "SCIENCE",
        "isbn": "9780553380163",
        "description": "From the Big Bang to black holes.",
        "copies": 5,
        "available": True,
        "createdAt": CREATED_AT,
        "updatedAt": CREATED_AT,
    }
    document.update(overrides)
    return document


def make_cursor(documents):
    """Motor-like cursor: chainable sort/limit, awaitable to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=documents)
    return cursor


@pytest.fixture
def book_factory():
    """Factory for book documents."""
    return make_book_document


@pytest.fixture
def cursor_factory():
    return make_cursor


@pytest.fixture
def book_document():
    return make_book_document()


@pytest.fixture
def sample_book_payload():
    """Valid create-book request body."""
    return {
        "title": "The Hobbit",
        "author": "J. R. R. Tolkien",
        "genre": "FANTASY",
        "isbn": "9780547928227",
        "description": "There and back again.",
        "copies": 3,
    }


@pytest.fixture
def mock_books_collection():
    """Mock motor collection for books."""
    collection = AsyncMock()
    collection.find = MagicMock(return_value=make_cursor([]))
    return collection


@pytest.fixture
def mock_borrows_collection():
    """Mock motor collection for borrows."""
    collection = AsyncMock()
    collection.aggregate = MagicMock(return_value=make_cursor([]))
    return collection


@pytest.fixture
def book_service(mock_books_collection):
    return BookService(mock_books_collection)


@pytest.fixture
def borrow_service(mock_borrows_collection, book_service):
    return BorrowService(mock_borrows_collection, book_service)
