from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from .models import ApiResponse, Page

INTERNAL_ERROR = "Internal server error"


def envelope(status_code: int = status.HTTP_200_OK, **fields: Any) -> JSONResponse:
    """Render an ApiResponse, omitting top-level keys that were not set."""
    body = ApiResponse(**fields).model_dump(mode="json")
    return JSONResponse(
        status_code=status_code,
        content={key: value for key, value in body.items() if value is not None},
    )


def ok(data: Any = None, message: str | None = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return envelope(status_code, success=True, data=data, message=message)


def paged(page: Page) -> JSONResponse:
    return envelope(success=True, data=page.data, pagination=page.pagination)


def fail(status_code: int, error: str, details: Any = None) -> JSONResponse:
    return envelope(status_code, success=False, error=error, details=details)


def internal_error() -> JSONResponse:
    return fail(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
