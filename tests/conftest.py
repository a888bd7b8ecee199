from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from cinesocial.database import Backend
from cinesocial.main import app
from cinesocial.models.user import Account, Profile
from cinesocial.models.movie import Movie
from cinesocial.utils.cache import clear_all_cache
from cinesocial.utils.security import create_access_token, hash_password

PUBLISHABLE_KEY = "test-publishable-key"
PASSWORD = "Password123"


@pytest.fixture
def backend():
    """In-memory backend shared by the test session and the app."""
    test_backend = Backend(
        "sqlite://",
        PUBLISHABLE_KEY,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    test_backend.drop_all()
    test_backend.create_all()
    try:
        yield test_backend
    finally:
        test_backend.dispose()


@pytest.fixture
def db_session(backend):
    """Provide a clean database session for each test."""
    session = backend.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(backend):
    """FastAPI test client wired to the test backend."""
    app.state.backend = backend
    with TestClient(app) as test_client:
        yield test_client
    app.state.backend = None


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_all_cache()
    yield
    clear_all_cache()


def create_user(session, username="alice", email=None, password=PASSWORD):
    account = Account(email=email or f"{username}@example.com", password_hash=hash_password(password))
    account.profile = Profile(username=username, display_name=username.title())
    session.add(account)
    session.commit()
    session.refresh(account)
    return account.profile


def create_movie(session, imdb_id="tt0133093", title="The Matrix", year="1999"):
    movie = Movie(imdb_id=imdb_id, title=title, year=year, poster_url=f"https://img.example/{imdb_id}.jpg")
    session.add(movie)
    session.commit()
    session.refresh(movie)
    return movie


def stamp_in_order(session, model, ids, column="created_at"):
    """Give rows one-minute-apart timestamps, oldest first"""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, row_id in enumerate(ids):
        session.query(model).filter(model.id == row_id).update(
            {column: start + timedelta(minutes=offset)}, synchronize_session=False
        )
    session.commit()


def api_headers(profile=None):
    headers = {"apikey": PUBLISHABLE_KEY}
    if profile is not None:
        token = create_access_token({"sub": profile.username, "user_id": profile.id})
        headers["Authorization"] = f"Bearer {token}"
    return headers


@pytest.fixture
def alice(db_session):
    return create_user(db_session, "alice")


@pytest.fixture
def bob(db_session):
    return create_user(db_session, "bob")


@pytest.fixture
def movie(db_session):
    return create_movie(db_session)
