class BooksError(Exception):
    """Base class for domain failures surfaced to API callers."""

    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class IsbnConflict(BooksError):
    message = "ISBN already exists"


class NoFieldsToUpdate(BooksError):
    message = "No fields to update"
