"""Common schemas used across the API."""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


def error_response(status_code: int, code: str, message: str, detail: dict[str, Any] | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def product_not_found(upc: str) -> JSONResponse:
    return error_response(404, "PRODUCT_NOT_FOUND", f"Product {upc} not found", {"upc": upc})
