"""
Book CRUD endpoints.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from api.dependencies import get_book_service
from api.models import APIResponse, respond
from library.book_service import BookService

router = APIRouter(prefix="/books", tags=["Books"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse)
async def create_book(
    payload: Any = Body(None),
    service: BookService = Depends(get_book_service),
):
    """
    Create a book.

    - **title**, **author**, **genre**, **isbn**, **copies** are required
    - **genre**: FICTION, NON_FICTION, SCIENCE, HISTORY, BIOGRAPHY or FANTASY
    - **available** is derived from **copies** and cannot be set
    """
    book = await service.create(payload)
    return respond("Book created successfully", book.to_response(), status.HTTP_201_CREATED)


@router.get("", response_model=APIResponse)
async def list_books(
    filter: Optional[str] = Query(None, description="Genre to filter on"),
    sort_by: Optional[str] = Query("createdAt", alias="sortBy", description="Sort field"),
    sort: Optional[str] = Query("asc", description="asc or desc"),
    limit: Optional[str] = Query(None, description="Maximum number of books (default 10)"),
    service: BookService = Depends(get_book_service),
):
    """
    List books with optional genre filter, sorting and limit.

    An unrecognised genre is ignored rather than rejected.
    """
    books = await service.list_books(filter_genre=filter, sort_by=sort_by, sort=sort, limit=limit)
    return respond("Books retrieved successfully", [book.to_response() for book in books])


@router.get("/{book_id}", response_model=APIResponse)
async def get_book(book_id: str, service: BookService = Depends(get_book_service)):
    book = await service.get(book_id)
    return respond("Book retrieved successfully", book.to_response())


@router.put("/{book_id}", response_model=APIResponse)
async def update_book(
    book_id: str,
    payload: Any = Body(None),
    service: BookService = Depends(get_book_service),
):
    """Partially update a book; availability follows any change to **copies**."""
    book = await service.update(book_id, payload if payload is not None else {})
    return respond("Book updated successfully", book.to_response())


@router.delete("/{book_id}", response_model=APIResponse)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    await service.delete(book_id)
    return respond("Book deleted successfully", None)
