"""Tests for database initialization."""
import os
import tempfile

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from slice_auth.auth_service.db import (
    check_db_connection,
    create_db_engine,
    create_session_factory,
    drop_table,
    init_db,
)
from slice_auth.auth_service.models import User

from .conftest import make_settings


@pytest.fixture
def file_engine():
    with tempfile.NamedTemporaryFile(delete=False, suffix=".db") as tmp:
        tmp_db_path = tmp.name
    engine = create_db_engine(make_settings(DATABASE_URL=f"sqlite:///{tmp_db_path}"))
    try:
        yield engine
    finally:
        engine.dispose()
        if os.path.exists(tmp_db_path):
            os.unlink(tmp_db_path)


def test_init_db_creates_users_table(file_engine):
    init_db(file_engine)

    inspector = inspect(file_engine)
    assert "users" in inspector.get_table_names(), "users table should be created"

    columns = {col["name"]: col for col in inspector.get_columns("users")}
    for col_name in ["id", "email", "hashed_password", "created_at"]:
        assert col_name in columns, f"Column {col_name} should exist in users table"

    assert columns["id"]["type"].__class__.__name__ in ["VARCHAR", "STRING"], "id should be a string (UUID)"
    assert columns["email"]["nullable"] is False
    assert columns["hashed_password"]["nullable"] is False


def test_init_db_creates_unique_email_index(file_engine):
    init_db(file_engine)

    indexes = inspect(file_engine).get_indexes("users")
    email_idx = next((idx for idx in indexes if idx["column_names"] == ["email"]), None)
    assert email_idx is not None, "email should be indexed"
    assert email_idx["unique"], "email index should be unique"


def test_init_db_creates_outbox_table(file_engine):
    init_db(file_engine)

    inspector = inspect(file_engine)
    assert "outbox_events" in inspector.get_table_names()
    columns = {col["name"]: col for col in inspector.get_columns("outbox_events")}
    for col_name in ["id", "channel", "payload", "created_at", "published_at", "claimed_at", "attempts", "last_error"]:
        assert col_name in columns, f"Column {col_name} should exist in outbox_events table"
    assert columns["published_at"]["nullable"] is True
    assert columns["claimed_at"]["nullable"] is True

    index_names = [idx["name"] for idx in inspector.get_indexes("outbox_events")]
    assert "ix_outbox_events_published_at_created_at" in index_names


def test_init_db_is_idempotent(file_engine):
    init_db(file_engine)
    init_db(file_engine)
    assert "users" in inspect(file_engine).get_table_names()


def test_unique_email_enforced_by_store(file_engine):
    init_db(file_engine)
    session = create_session_factory(file_engine)()
    try:
        session.add(User(email="a@x.com", hashed_password="x"))
        session.commit()
        session.add(User(email="a@x.com", hashed_password="y"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()
    finally:
        session.close()


def test_drop_table(file_engine):
    init_db(file_engine)
    drop_table(file_engine, "outbox_events")
    tables = inspect(file_engine).get_table_names()
    assert "outbox_events" not in tables
    assert "users" in tables

    # Dropping a missing table is not an error
    drop_table(file_engine, "outbox_events")


def test_check_db_connection(file_engine):
    assert check_db_connection(file_engine) is True


def test_check_db_connection_failure():
    engine = create_db_engine(make_settings(DATABASE_URL="sqlite:////nonexistent-dir/sub/app.db"))
    try:
        assert check_db_connection(engine) is False
    finally:
        engine.dispose()
