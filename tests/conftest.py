"""Shared fixtures: in-memory database, recording Graph client, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com, Ops@Example.com")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from backoffice.api.dependencies import get_graph_client
from backoffice.database import build_engine, get_session, init_db
from backoffice.main import app
from backoffice.models.account_models import MetaBusinessAccount, User
from tests.fakes import FakeGraphClient

ADMIN_ID = "00000000-0000-0000-0000-00000000a001"
ADMIN_EMAIL = "admin@example.com"
TARGET_USER_ID = "00000000-0000-0000-0000-00000000b002"
ACCESS_TOKEN = "EAAB-test-token"

ADMIN_HEADERS = {
    "X-Backoffice-User-Id": ADMIN_ID,
    "X-Backoffice-User-Email": ADMIN_EMAIL,
}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def seeded(session):
    """An admin and a user with a connected Meta account."""
    session.add(User(id=ADMIN_ID, email=ADMIN_EMAIL))
    session.add(User(id=TARGET_USER_ID, email="customer@example.com"))
    session.add(
        MetaBusinessAccount(
            user_id=TARGET_USER_ID,
            facebook_user_id="fb-1001",
            name="Customer",
            access_token=ACCESS_TOKEN,
        )
    )
    session.commit()
    return session


@pytest.fixture
def graph():
    return FakeGraphClient()


@pytest.fixture
def api(seeded, graph):
    app.dependency_overrides[get_session] = lambda: seeded
    app.dependency_overrides[get_graph_client] = lambda: graph
    yield TestClient(app)
    app.dependency_overrides.clear()
