import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from slice_auth.auth_service.accounts import AccountManager
from slice_auth.auth_service.config import Settings
from slice_auth.auth_service.db import Base, create_db_engine, create_session_factory, init_db
from slice_auth.auth_service.events import EventPublisher
from slice_auth.auth_service.main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class RecordingPublisher(EventPublisher):
    """Publisher that keeps delivered events in memory."""

    def __init__(self, engine, fail=False):
        super().__init__(engine)
        self.fail = fail
        self.published = []

    def publish(self, channel, payload):
        if self.fail:
            raise RuntimeError("notification bus unavailable")
        self.published.append((channel, payload))


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "PASSWORD_HASH_ROUNDS": 10000,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    session: Session = session_factory()
    yield session
    session.close()


@pytest.fixture
def publisher(engine):
    return RecordingPublisher(engine)


@pytest.fixture
def accounts(settings, session_factory, publisher):
    return AccountManager.from_settings(settings, session_factory, publisher)


@pytest.fixture
def app(settings, engine, publisher):
    app = create_app(settings, engine=engine)
    app.state.accounts = AccountManager.from_settings(settings, app.state.session_factory, publisher)
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, email="a@x.com", password="password123"):
    return client.post("/signup", json={"email": email, "password": password})


def login(client, email="a@x.com", password="password123"):
    return client.post("/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
