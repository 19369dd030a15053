import httpx
import pytest

from books_api.app import create_app
from books_api.config import Settings
from books_api.db import Database
from books_api.service import BookService


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def settings(tmp_path):
    return Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'books.db'}")


@pytest.fixture()
def database(settings):
    database = Database(settings.sqlalchemy_url)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture()
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def service(db_session):
    return BookService(db_session)


@pytest.fixture()
def app(settings, database):
    app = create_app(settings, database)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
