import logging
import math
from contextlib import contextmanager

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .entities import BookRecord
from .errors import IsbnConflict, NoFieldsToUpdate
from .models import Book, CreateBook, Page, Pagination, PatchBook, UpdateBook

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "author")


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BookService:
    def __init__(self, session: Session):
        self.session = session

    def find_all(self, page: int = 1, limit: int = 10) -> Page:
        return self._paginate(None, page, limit)

    def find_by_id(self, book_id: int) -> Book | None:
        record = self.session.get(BookRecord, book_id, populate_existing=True)
        if record is None:
            return None
        return self._to_schema(record)

    def create(self, payload: CreateBook) -> Book:
        record = BookRecord(**payload.model_dump())
        with self._isbn_guard(payload.isbn):
            self.session.add(record)
            self.session.commit()
        return self.find_by_id(record.id)

    def update(self, book_id: int, payload: UpdateBook) -> Book | None:
        values = payload.model_dump()
        # Full replace, except NOT NULL columns which keep their value when omitted.
        for name in REQUIRED_FIELDS:
            if values[name] is None:
                values.pop(name)
        return self._apply(book_id, values, payload.isbn)

    def partial_update(self, book_id: int, updates: PatchBook) -> Book | None:
        values = updates.model_dump(exclude_unset=True)
        if not values:
            raise NoFieldsToUpdate()
        return self._apply(book_id, values, values.get("isbn"))

    def delete(self, book_id: int) -> Book | None:
        table = BookRecord.__table__
        if self.session.get_bind().dialect.delete_returning:
            row = (
                self.session.execute(delete(table).where(table.c.id == book_id).returning(*table.c))
                .mappings()
                .first()
            )
            self.session.commit()
            return Book.model_validate(dict(row)) if row is not None else None

        book = self.find_by_id(book_id)
        if book is None:
            return None
        self.session.execute(delete(table).where(table.c.id == book_id))
        self.session.commit()
        return book

    def search(self, term: str, page: int = 1, limit: int = 10) -> Page:
        pattern = f"%{escape_like(term)}%"
        criteria = or_(
            BookRecord.title.ilike(pattern, escape="\\"),
            BookRecord.author.ilike(pattern, escape="\\"),
        )
        return self._paginate(criteria, page, limit)

    def isbn_exists(self, isbn: str, exclude_id: int | None = None) -> bool:
        stmt = select(BookRecord.id).where(BookRecord.isbn == isbn)
        if exclude_id is not None:
            stmt = stmt.where(BookRecord.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def _paginate(self, criteria, page: int, limit: int) -> Page:
        stmt = select(BookRecord)
        count_stmt = select(func.count()).select_from(BookRecord)
        if criteria is not None:
            stmt = stmt.where(criteria)
            count_stmt = count_stmt.where(criteria)
        stmt = (
            stmt.order_by(BookRecord.created_at.desc(), BookRecord.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        records = self.session.execute(stmt).scalars().all()
        total = self.session.execute(count_stmt).scalar_one()
        return Page(
            data=[self._to_schema(record) for record in records],
            pagination=Pagination(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit)),
        )

    def _apply(self, book_id: int, values: dict, isbn: str | None) -> Book | None:
        with self._isbn_guard(isbn, exclude_id=book_id):
            result = self.session.execute(
                update(BookRecord)
                .where(BookRecord.id == book_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.session.rollback()
                return None
            self.session.commit()
        return self.find_by_id(book_id)

    @contextmanager
    def _isbn_guard(self, isbn: str | None, exclude_id: int | None = None):
        """Translate a unique violation on isbn into IsbnConflict."""
        try:
            yield
        except IntegrityError:
            self.session.rollback()
            if isbn is not None and self.isbn_exists(isbn, exclude_id):
                logger.info("book.isbn_conflict", extra={"isbn": isbn})
                raise IsbnConflict() from None
            raise

    @staticmethod
    def _to_schema(record: BookRecord) -> Book:
        return Book.model_validate(record, from_attributes=True)
