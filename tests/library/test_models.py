"""
Unit tests for the library models.
Tests payload validation, storage documents and serialization.
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from library.errors import SchemaValidationError
from library.models import (
    Book, BookCreate, BookQueryParams, BookUpdate, BorrowCreate, BorrowSummary,
    Genre, MAX_INT64, SortOrder, is_valid_object_id, parse_payload
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestGenre:
    """Test cases for Genre parsing."""

    def test_known_genre(self):
        assert Genre.parse("SCIENCE") == Genre.SCIENCE

    def test_unknown_genre_is_none(self):
        assert Genre.parse("POETRY") is None
        assert Genre.parse(None) is None
        assert Genre.parse("science") is None


class TestBookCreate:
    """Test cases for BookCreate."""

    def test_valid_payload(self, sample_book_payload):
        book = parse_payload(BookCreate, sample_book_payload)

        assert book.title == "The Hobbit"
        assert book.genre == Genre.FANTASY
        assert book.copies == 3

    def test_document_derives_availability(self, sample_book_payload):
        in_stock = parse_payload(BookCreate, sample_book_payload).to_document(NOW)
        sample_book_payload["copies"] = 0
        out_of_stock = parse_payload(BookCreate, sample_book_payload).to_document(NOW)

        assert in_stock["available"] is True
        assert out_of_stock["available"] is False
        assert in_stock["createdAt"] == NOW
        assert in_stock["updatedAt"] == NOW

    def test_client_availability_ignored(self, sample_book_payload):
        sample_book_payload.update(copies=0, available=True)

        document = parse_payload(BookCreate, sample_book_payload).to_document(NOW)

        assert document["available"] is False

    def test_missing_required_fields(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, {"title": "Only a title"})

        errors = exc_info.value.errors
        assert set(errors) == {"author", "genre", "isbn", "copies"}
        assert errors["isbn"] == "Isbn is required"

    def test_invalid_genre(self, sample_book_payload):
        sample_book_payload["genre"] = "POETRY"

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, sample_book_payload)

        assert "genre" in exc_info.value.errors

    def test_negative_copies(self, sample_book_payload):
        sample_book_payload["copies"] = -1

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, sample_book_payload)

        assert "copies" in exc_info.value.errors

    @pytest.mark.parametrize("copies", [True, False])
    def test_boolean_copies_rejected(self, sample_book_payload, copies):
        sample_book_payload["copies"] = copies

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, sample_book_payload)

        assert "copies" in exc_info.value.errors

    def test_copies_beyond_int64(self, sample_book_payload):
        sample_book_payload["copies"] = 2**63

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, sample_book_payload)

        assert "copies" in exc_info.value.errors

    def test_largest_int64_copies_accepted(self, sample_book_payload):
        sample_book_payload["copies"] = MAX_INT64

        assert parse_payload(BookCreate, sample_book_payload).copies == MAX_INT64

    def test_non_object_payload(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookCreate, ["not", "an", "object"])

        assert "body" in exc_info.value.errors


class TestBookUpdate:
    """Test cases for partial updates."""

    def test_only_sent_fields_are_changed(self):
        update = parse_payload(BookUpdate, {"copies": 0, "description": None})

        assert update.to_changes() == {"copies": 0, "description": None}

    def test_cannot_clear_required_field(self):
        with pytest.raises(SchemaValidationError):
            parse_payload(BookUpdate, {"title": None})

    def test_same_rules_as_create(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookUpdate, {"genre": "POETRY", "copies": -5})

        assert {"genre", "copies"} <= set(exc_info.value.errors)

    @pytest.mark.parametrize("copies", [True, 2**63])
    def test_copies_must_be_storable_integer(self, copies):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BookUpdate, {"copies": copies})

        assert "copies" in exc_info.value.errors


class TestBook:
    """Test cases for stored books."""

    def test_from_document(self, book_document):
        book = Book.model_validate(book_document)

        assert book.id == str(book_document["_id"])
        assert book.genre == Genre.SCIENCE
        assert book.created_at == book_document["createdAt"]

    def test_response_uses_wire_names(self, book_document):
        response = Book.model_validate(book_document).to_response()

        assert response["_id"] == str(book_document["_id"])
        assert response["genre"] == "SCIENCE"
        assert "createdAt" in response
        assert "created_at" not in response


class TestBorrowCreate:
    """Test cases for BorrowCreate."""

    def test_valid_borrow(self):
        book_id = str(ObjectId())

        borrow = parse_payload(BorrowCreate, {"book": book_id, "quantity": 2, "dueDate": "2025-07-18"})
        document = borrow.to_document(NOW)

        assert borrow.due_date.year == 2025
        assert document["book"] == ObjectId(book_id)
        assert document["quantity"] == 2
        assert document["dueDate"] == borrow.due_date

    def test_quantity_must_be_positive(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BorrowCreate, {"book": str(ObjectId()), "quantity": -1, "dueDate": "2025-07-18"})

        assert "quantity" in exc_info.value.errors

    @pytest.mark.parametrize("quantity", [True, 2**63])
    def test_quantity_must_be_storable_integer(self, quantity):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BorrowCreate, {"book": str(ObjectId()), "quantity": quantity, "dueDate": "2025-07-18"})

        assert "quantity" in exc_info.value.errors

    def test_invalid_due_date(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_payload(BorrowCreate, {"book": str(ObjectId()), "quantity": 1, "dueDate": "next week"})

        assert "dueDate" in exc_info.value.errors


class TestBorrowSummary:

    def test_response_shape(self):
        summary = BorrowSummary.model_validate(
            {"book": {"title": "Dune", "isbn": "9780441172719"}, "totalQuantity": 5}
        )

        assert summary.to_response() == {
            "book": {"title": "Dune", "isbn": "9780441172719"},
            "totalQuantity": 5,
        }


class TestBookQueryParams:
    """Test cases for listing parameters."""

    def test_defaults(self):
        params = BookQueryParams.from_raw()

        assert params.genre is None
        assert params.sort_by == "createdAt"
        assert params.sort_order == SortOrder.ASC
        assert params.direction == 1
        assert params.limit == 10

    def test_unknown_genre_ignored(self):
        assert BookQueryParams.from_raw(filter_genre="POETRY").genre is None

    def test_descending(self):
        params = BookQueryParams.from_raw(sort_by="title", sort="desc", limit="5")

        assert params.direction == -1
        assert params.sort_by == "title"
        assert params.limit == 5

    def test_anything_but_desc_is_ascending(self):
        assert BookQueryParams.from_raw(sort="DESC").direction == 1

    def test_operator_sort_field_falls_back(self):
        assert BookQueryParams.from_raw(sort_by="$where").sort_by == "createdAt"

    def test_invalid_limit(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            BookQueryParams.from_raw(limit="ten")

        assert "limit" in exc_info.value.errors

    def test_limit_beyond_int64(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            BookQueryParams.from_raw(limit=str(2**63))

        assert "limit" in exc_info.value.errors


def test_is_valid_object_id():
    assert is_valid_object_id(str(ObjectId()))
    assert is_valid_object_id(ObjectId())
    assert not is_valid_object_id("not-an-id")
    assert not is_valid_object_id(12345)
    assert not is_valid_object_id(None)
