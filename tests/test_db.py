import pytest
from fastapi.testclient import TestClient
from sqlalchemy import inspect

from books_api.app import create_app
from books_api.config import Settings
from books_api.db import Database


def test_init_creates_table_idempotently(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'init.db'}")
    try:
        database.init()
        database.init()
        inspector = inspect(database.engine)
        assert "books" in inspector.get_table_names()
        columns = {column["name"] for column in inspector.get_columns("books")}
        assert columns == {
            "id",
            "title",
            "author",
            "isbn",
            "published_year",
            "publisher",
            "language",
            "created_at",
            "updated_at",
        }
    finally:
        database.dispose()


def test_startup_initializes_database(tmp_path):
    settings = Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'startup.db'}")
    app = create_app(settings)
    with TestClient(app) as client:
        resp = client.post("/api/books", json={"title": "Dune", "author": "Herbert"})
        assert resp.status_code == 201


def test_startup_failure_propagates(tmp_path):
    settings = Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
    app = create_app(settings)
    with pytest.raises(Exception):
        with TestClient(app):
            pass


def test_custom_prefix(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'prefix.db'}",
        api_prefix="/library",
    )
    with TestClient(create_app(settings)) as client:
        assert client.get("/library").status_code == 200
        assert client.get("/api/books").status_code == 404
