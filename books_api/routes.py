import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from .db import get_session
from .errors import IsbnConflict, NoFieldsToUpdate
from .models import CreateBook, IdParam, PaginationQuery, PatchBook, SearchQuery, UpdateBook
from .responses import fail, ok, paged
from .service import BookService
from .validation import validate

logger = logging.getLogger(__name__)

BOOK_NOT_FOUND = "Book not found"
ISBN_EXISTS = "ISBN already exists"
INVALID_ID = "Invalid book ID"
VALIDATION_FAILED = "Validation failed"
BAD_PAGINATION = "Page and limit must be positive numbers"


def get_book_service(session=Depends(get_session)) -> BookService:
    return BookService(session)


def _parse_id(book_id: str):
    outcome = validate(IdParam, {"id": book_id})
    if not outcome.ok:
        return None, fail(status.HTTP_400_BAD_REQUEST, INVALID_ID, outcome.details())
    return outcome.value.id, None


def _isbn_taken(service: BookService, isbn: str | None, exclude_id: int | None = None) -> bool:
    return isbn is not None and service.isbn_exists(isbn, exclude_id)


def build_router(prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["books"])

    @router.get("/search/all")
    def search_books(request: Request, service: BookService = Depends(get_book_service)) -> JSONResponse:
        outcome = validate(SearchQuery, dict(request.query_params))
        if not outcome.ok:
            return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, outcome.details())
        query = outcome.value
        if query.page < 1 or query.limit < 1:
            return fail(status.HTTP_400_BAD_REQUEST, BAD_PAGINATION)
        return paged(service.search(query.q, query.page, query.limit))

    @router.get("")
    @router.get("/", include_in_schema=False)
    def list_books(request: Request, service: BookService = Depends(get_book_service)) -> JSONResponse:
        outcome = validate(PaginationQuery, dict(request.query_params))
        if not outcome.ok:
            return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, outcome.details())
        query = outcome.value
        if query.page < 1 or query.limit < 1:
            return fail(status.HTTP_400_BAD_REQUEST, BAD_PAGINATION)
        return paged(service.find_all(query.page, query.limit))

    @router.get("/{book_id}")
    def get_book(book_id: str, service: BookService = Depends(get_book_service)) -> JSONResponse:
        parsed_id, error = _parse_id(book_id)
        if error is not None:
            return error
        book = service.find_by_id(parsed_id)
        if book is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        return ok(book)

    @router.post("")
    @router.post("/", include_in_schema=False)
    def create_book(
        payload: Any = Body(default=None), service: BookService = Depends(get_book_service)
    ) -> JSONResponse:
        outcome = validate(CreateBook, payload)
        if not outcome.ok:
            return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, outcome.details())
        data = outcome.value
        if _isbn_taken(service, data.isbn):
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        try:
            book = service.create(data)
        except IsbnConflict:
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        logger.info("book.created", extra={"book_id": book.id})
        return ok(book, "Book created successfully", status.HTTP_201_CREATED)

    @router.put("/{book_id}")
    def update_book(
        book_id: str, payload: Any = Body(default=None), service: BookService = Depends(get_book_service)
    ) -> JSONResponse:
        parsed_id, error = _parse_id(book_id)
        if error is not None:
            return error
        outcome = validate(UpdateBook, payload)
        if not outcome.ok:
            return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, outcome.details())
        if service.find_by_id(parsed_id) is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        data = outcome.value
        if _isbn_taken(service, data.isbn, parsed_id):
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        try:
            book = service.update(parsed_id, data)
        except IsbnConflict:
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        if book is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        return ok(book, "Book updated successfully")

    @router.patch("/{book_id}")
    def patch_book(
        book_id: str, payload: Any = Body(default=None), service: BookService = Depends(get_book_service)
    ) -> JSONResponse:
        parsed_id, error = _parse_id(book_id)
        if error is not None:
            return error
        outcome = validate(PatchBook, payload)
        if not outcome.ok:
            return fail(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED, outcome.details())
        if service.find_by_id(parsed_id) is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        data = outcome.value
        if _isbn_taken(service, data.isbn, parsed_id):
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        try:
            book = service.partial_update(parsed_id, data)
        except NoFieldsToUpdate as exc:
            return fail(status.HTTP_400_BAD_REQUEST, exc.message)
        except IsbnConflict:
            return fail(status.HTTP_400_BAD_REQUEST, ISBN_EXISTS)
        if book is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        return ok(book, "Book updated successfully")

    @router.delete("/{book_id}")
    def delete_book(book_id: str, service: BookService = Depends(get_book_service)) -> JSONResponse:
        parsed_id, error = _parse_id(book_id)
        if error is not None:
            return error
        book = service.delete(parsed_id)
        if book is None:
            return fail(status.HTTP_404_NOT_FOUND, BOOK_NOT_FOUND)
        logger.info("book.deleted", extra={"book_id": parsed_id})
        return ok(book, "Book deleted successfully")

    return router
