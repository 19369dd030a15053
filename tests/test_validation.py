from datetime import date

from hypothesis import given, strategies as st

from books_api.models import CreateBook, IdParam, PaginationQuery, PatchBook, SearchQuery, UpdateBook
from books_api.validation import validate


@given(st.integers(max_value=999))
def test_create_book_rejects_ancient_years(year):
    outcome = validate(CreateBook, {"title": "t", "author": "a", "published_year": year})
    assert not outcome.ok
    assert outcome.errors[0].field == "published_year"


@given(st.integers(min_value=date.today().year + 1))
def test_create_book_rejects_future_years(year):
    outcome = validate(CreateBook, {"title": "t", "author": "a", "published_year": year})
    assert not outcome.ok
    assert outcome.errors[0].message == "Year cannot be in future"


@given(st.integers(min_value=1000, max_value=date.today().year))
def test_create_book_accepts_years_in_range(year):
    outcome = validate(CreateBook, {"title": "t", "author": "a", "published_year": year})
    assert outcome.ok
    assert outcome.value.published_year == year


@given(st.text(min_size=1).filter(lambda s: not (s.isascii() and s.isdigit())))
def test_id_param_rejects_non_digits(raw):
    outcome = validate(IdParam, {"id": raw})
    assert not outcome.ok
    assert outcome.errors[0].message == "ID must be a number"


@given(st.integers(min_value=0, max_value=2_147_483_647))
def test_id_param_converts_digit_strings(value):
    outcome = validate(IdParam, {"id": str(value)})
    assert outcome.value.id == value


def test_create_book_defaults_language():
    outcome = validate(CreateBook, {"title": "Dune", "author": "Herbert"})
    assert outcome.value.language == "English"
    assert outcome.value.isbn is None


def test_create_book_enforces_length():
    outcome = validate(CreateBook, {"title": "t" * 256, "author": "a"})
    assert [error.field for error in outcome.errors] == ["title"]


def test_create_book_checks_isbn_bounds():
    assert not validate(CreateBook, {"title": "t", "author": "a", "isbn": "123456789"}).ok
    assert not validate(CreateBook, {"title": "t", "author": "a", "isbn": "1" * 21}).ok
    assert validate(CreateBook, {"title": "t", "author": "a", "isbn": "1234567890"}).ok


def test_update_book_has_no_defaults():
    outcome = validate(UpdateBook, {})
    assert outcome.ok
    assert outcome.value.model_dump() == {
        "title": None,
        "author": None,
        "isbn": None,
        "published_year": None,
        "publisher": None,
        "language": None,
    }


def test_patch_book_tracks_supplied_fields():
    outcome = validate(PatchBook, {"author": "Frank Herbert", "publisher": None})
    assert outcome.value.model_dump(exclude_unset=True) == {"author": "Frank Herbert", "publisher": None}


def test_required_fields_cannot_be_nulled():
    outcome = validate(UpdateBook, {"author": None})
    assert not outcome.ok
    assert outcome.details() == [{"field": "author", "message": "Field cannot be null", "code": "value_error"}]


def test_pagination_defaults():
    outcome = validate(PaginationQuery, {})
    assert (outcome.value.page, outcome.value.limit) == (1, 10)


def test_pagination_rejects_signed_numbers():
    outcome = validate(PaginationQuery, {"page": "-1"})
    assert not outcome.ok


def test_search_requires_term():
    outcome = validate(SearchQuery, {"page": "2"})
    assert [error.field for error in outcome.errors] == ["q"]


def test_non_object_payload_is_rejected():
    outcome = validate(CreateBook, ["not", "an", "object"])
    assert not outcome.ok
    assert outcome.errors[0].code == "model_type"


def test_create_book_rejects_explicit_null_for_optional_fields():
    outcome = validate(CreateBook, {"title": "t", "author": "a", "language": None})
    assert outcome.details() == [
        {"field": "language", "message": "Field cannot be null; omit it instead", "code": "value_error"}
    ]


def test_pagination_is_capped():
    outcome = validate(PaginationQuery, {"page": "2147483648"})
    assert [error.field for error in outcome.errors] == ["page"]
    assert validate(PaginationQuery, {"limit": "2147483647"}).ok
