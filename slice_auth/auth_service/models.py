from sqlalchemy import Column, Integer, String, DateTime, Text, Index, JSON
from datetime import datetime, timezone
from .db import Base
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class OutboxEvent(Base):
    """
    Lifecycle notification waiting to be delivered to the notification bus.

    Rows are written in the same transaction as the user change they
    describe; published_at stays NULL until delivery succeeds.
    """
    __tablename__ = "outbox_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    channel = Column(String(63), nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    published_at = Column(DateTime, nullable=True)
    # Set while a dispatcher is delivering the row
    claimed_at = Column(DateTime, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_outbox_events_published_at_created_at", "published_at", "created_at"),
    )
