"""
Response envelope models for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIResponse(BaseModel):
    """Success envelope shared by every endpoint."""
    success: bool = Field(True, description="Whether the request succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Any = Field(None, description="Response payload")


class ErrorResponse(BaseModel):
    """Error envelope."""
    success: bool = Field(False, description="Always false for errors")
    message: str = Field(..., description="Error message")
    error: Dict[str, Any] = Field(..., description="Error kind and detail")


class HealthStatus(BaseModel):
    """Liveness and storage connection status."""
    status: str = Field(..., description="OK or ERROR")
    db_connection: str = Field(..., description="Connected, Not Connected or Failed")
    version: str = Field(..., description="API version")
    time: datetime = Field(..., description="Current timestamp")
    books_count: Optional[int] = Field(None, description="Documents in the books collection")
    borrows_count: Optional[int] = Field(None, description="Documents in the borrows collection")
    error: Optional[str] = Field(None, description="Connection error, if any")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def respond(message: str, data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Wrap a payload in the success envelope."""
    return JSONResponse(
        status_code=status_code,
        content=APIResponse(message=message, data=data).model_dump(mode="json"),
    )
