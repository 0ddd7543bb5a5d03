"""
Borrow endpoints.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from api.dependencies import get_borrow_service
from api.models import APIResponse, respond
from library.borrow_service import BorrowService

router = APIRouter(prefix="/borrow", tags=["Borrow"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse)
async def borrow_book(
    payload: Any = Body(None),
    service: BorrowService = Depends(get_borrow_service),
):
    """
    Borrow copies of a book.

    - **book**: Book identifier
    - **quantity**: Number of copies (at least 1, at most the copies on the shelf)
    - **dueDate**: Return deadline (ISO date)
    """
    borrow = await service.create(payload if payload is not None else {})
    return respond("Book borrowed successfully", borrow.to_response(), status.HTTP_201_CREATED)


@router.get("", response_model=APIResponse)
async def borrowed_books_summary(service: BorrowService = Depends(get_borrow_service)):
    """Total borrowed quantity per book, largest first."""
    summary = await service.summarize()
    return respond(
        "Borrowed books summary retrieved successfully",
        [row.to_response() for row in summary],
    )
