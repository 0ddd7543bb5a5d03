"""
Pydantic models for book and borrow validation and serialization.

Untrusted request payloads are parsed into the ``*Create`` / ``*Update``
models; documents read back from MongoDB are parsed into ``Book`` and
``Borrow``. Field names are snake_case in Python and camelCase in storage
and on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from library.errors import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Largest integer BSON can store
MAX_INT64 = 2**63 - 1


class Genre(str, Enum):
    """Fixed set of book genres."""
    FICTION = "FICTION"
    NON_FICTION = "NON_FICTION"
    SCIENCE = "SCIENCE"
    HISTORY = "HISTORY"
    BIOGRAPHY = "BIOGRAPHY"
    FANTASY = "FANTASY"

    @classmethod
    def parse(cls, value: Any) -> Optional["Genre"]:
        """Return the matching genre, or None for anything unrecognised."""
        try:
            return cls(value)
        except ValueError:
            return None


class SortOrder(str, Enum):
    """Sort order options."""
    ASC = "asc"
    DESC = "desc"


class LibraryModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _stringify_object_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise coerce to 1/0
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer")
    return value


def is_valid_object_id(value: Any) -> bool:
    """Check whether ``value`` is a well-formed MongoDB identity."""
    return isinstance(value, (str, ObjectId)) and ObjectId.is_valid(value)


def collect_errors(exc: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic ValidationError into ``{field: message}``."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        if error["type"] == "missing":
            errors[field] = f"{field[:1].upper()}{field[1:]} is required"
        else:
            errors[field] = error["msg"]
    return errors


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """
    Parse an untrusted payload into ``model``.

    Raises:
        SchemaValidationError: If the payload is not an object or fails validation
    """
    if not isinstance(payload, dict):
        raise SchemaValidationError({"body": "Request body must be a JSON object"})
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise SchemaValidationError(collect_errors(e))


class BookCreate(LibraryModel):
    """Validated fields for a new book."""
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Book author")
    genre: Genre = Field(..., description="Book genre")
    isbn: str = Field(..., min_length=1, description="Unique ISBN")
    description: Optional[str] = Field(None, description="Free-text description")
    copies: int = Field(..., ge=0, le=MAX_INT64, description="Copies on the shelf")

    @field_validator("copies", mode="before")
    @classmethod
    def copies_not_bool(cls, v):
        return _reject_bool(v)

    def to_document(self, now: datetime) -> Dict[str, Any]:
        """Build the MongoDB document, deriving ``available`` from ``copies``."""
        document = self.model_dump(by_alias=True, mode="json")
        document["available"] = self.copies > 0
        document["createdAt"] = now
        document["updatedAt"] = now
        return document


class BookUpdate(LibraryModel):
    """Partial update; unset fields are left untouched."""
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    genre: Optional[Genre] = None
    isbn: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    copies: Optional[int] = Field(None, ge=0, le=MAX_INT64)

    @field_validator("copies", mode="before")
    @classmethod
    def copies_not_bool(cls, v):
        return _reject_bool(v)

    @model_validator(mode="after")
    def reject_null_required(self):
        """Required fields may be omitted but not cleared."""
        cleared = [
            name for name in ("title", "author", "genre", "isbn", "copies")
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Cannot clear required field(s): {', '.join(cleared)}")
        return self

    def to_changes(self) -> Dict[str, Any]:
        """Fields explicitly sent by the client, keyed by storage name."""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


class Book(LibraryModel):
    """Book as stored in MongoDB."""
    id: str = Field(..., alias="_id", description="Unique book identifier")
    title: str
    author: str
    genre: Genre
    isbn: str
    description: Optional[str] = None
    copies: int
    available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return _stringify_object_id(v)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class BorrowCreate(LibraryModel):
    """Validated fields for a new borrow."""
    book: str = Field(..., description="Referenced book identifier")
    quantity: int = Field(..., ge=1, le=MAX_INT64, description="Copies borrowed")
    due_date: datetime = Field(..., description="Return deadline")

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_not_bool(cls, v):
        return _reject_bool(v)

    @field_validator("book")
    @classmethod
    def validate_book_id(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Book must be a valid identifier")
        return v

    def to_document(self, now: datetime) -> Dict[str, Any]:
        return {
            "book": ObjectId(self.book),
            "quantity": self.quantity,
            "dueDate": self.due_date,
            "createdAt": now,
            "updatedAt": now,
        }


class Borrow(LibraryModel):
    """Borrow record as stored in MongoDB."""
    id: str = Field(..., alias="_id")
    book: str
    quantity: int
    due_date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "book", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return _stringify_object_id(v)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class BookBrief(LibraryModel):
    """Identifying fields of a book joined into the summary."""
    title: str
    isbn: str


class BorrowSummary(LibraryModel):
    """Total borrowed quantity for one book."""
    book: BookBrief
    total_quantity: int

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class BookQueryParams(BaseModel):
    """Query parameters for book listing."""
    genre: Optional[Genre] = Field(None, description="Filter by genre")
    sort_by: str = Field("createdAt", description="Sort field")
    sort_order: SortOrder = Field(SortOrder.ASC, description="Sort order")
    limit: int = Field(10, ge=0, le=MAX_INT64, description="Maximum number of books")

    @classmethod
    def from_raw(
        cls,
        filter_genre: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort: Optional[str] = None,
        limit: Any = 10,
    ) -> "BookQueryParams":
        """
        Build query parameters from raw query-string values.

        An unknown genre disables the filter and anything other than
        ``desc`` sorts ascending; only ``limit`` can fail.

        Raises:
            SchemaValidationError: If limit is not a non-negative integer
        """
        if not sort_by or sort_by.startswith("$"):
            sort_by = "createdAt"
        try:
            return cls(
                genre=Genre.parse(filter_genre),
                sort_by=sort_by,
                sort_order=SortOrder.DESC if sort == "desc" else SortOrder.ASC,
                limit=10 if limit is None else limit,
            )
        except ValidationError as e:
            raise SchemaValidationError(collect_errors(e))

    @property
    def direction(self) -> int:
        return -1 if self.sort_order == SortOrder.DESC else 1
