import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

_DIGITS = re.compile(r"\d+", re.ASCII)

# Largest value the INTEGER columns and LIMIT/OFFSET bindings accept.
INT32_MAX = 2_147_483_647


def _digits(value: Any, message: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(message)
    if isinstance(value, str) and not _DIGITS.fullmatch(value):
        raise ValueError(message)
    return value


class Book(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    isbn: str | None = None
    published_year: int | None = None
    publisher: str | None = None
    language: str | None = None
    created_at: datetime
    updated_at: datetime


class BookFields(BaseModel):
    """Field constraints shared by every write schema."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    isbn: str | None = Field(default=None, min_length=10, max_length=20)
    published_year: StrictInt | None = Field(default=None, ge=1000)
    publisher: str | None = Field(default=None, max_length=255)
    language: str | None = Field(default=None, max_length=50)

    @field_validator("title", "author")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        # Only reached for values actually sent; omitted fields keep the default.
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("published_year")
    @classmethod
    def _not_in_future(cls, value: int | None) -> int | None:
        if value is not None and value > date.today().year:
            raise ValueError("Year cannot be in future")
        return value


class CreateBook(BookFields):
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    language: str | None = Field(default="English", max_length=50)

    @field_validator("isbn", "published_year", "publisher", "language")
    @classmethod
    def _omit_instead_of_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null; omit it instead")
        return value


class UpdateBook(BookFields):
    pass


class PatchBook(BookFields):
    pass


class IdParam(BaseModel):
    id: int = Field(le=INT32_MAX)

    @field_validator("id", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _digits(value, "ID must be a number")


class PaginationQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: int = Field(default=1, le=INT32_MAX)
    limit: int = Field(default=10, le=INT32_MAX)

    @field_validator("page", "limit", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _digits(value, "Must be a number")


class SearchQuery(PaginationQuery):
    q: str = Field(min_length=1)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class Page(BaseModel):
    data: list[Book]
    pagination: Pagination


class ApiResponse(BaseModel):
    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    details: Any = None
    pagination: Pagination | None = None
