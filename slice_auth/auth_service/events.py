"""
User lifecycle notifications.

Events are first written to the outbox_events table inside the transaction
that changes the user, then delivered to the notification bus. Delivery
failures are logged and leave the row pending for the next dispatch; they
never undo or fail the committed user change.
"""
import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, or_, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .models import OutboxEvent, utcnow

logger = logging.getLogger(__name__)

USER_REGISTERED = "auth_user_registered"
USER_DELETED = "auth_user_deleted"

ALLOWED_CHANNELS = {USER_REGISTERED, USER_DELETED}

# How long an in-flight claim blocks other dispatchers
CLAIM_LEASE = timedelta(minutes=5)


def event_timestamp(now: Optional[datetime] = None) -> str:
    """ISO 8601 UTC with millisecond precision, e.g. 2024-01-15T10:30:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def record_event(db: Session, channel: str, payload: dict) -> OutboxEvent:
    """
    Add an event to the outbox. The caller owns the transaction.

    Raises:
        ValueError: If channel is not a known lifecycle channel
    """
    if channel not in ALLOWED_CHANNELS:
        raise ValueError(
            f"Invalid channel '{channel}'. Must be one of: {', '.join(sorted(ALLOWED_CHANNELS))}"
        )
    event = OutboxEvent(channel=channel, payload={**payload, "timestamp": event_timestamp()})
    db.add(event)
    return event


def record_user_registered(db: Session, user_id: str, email: str) -> OutboxEvent:
    return record_event(db, USER_REGISTERED, {"id": user_id, "email": email})


def record_user_deleted(db: Session, user_id: str) -> OutboxEvent:
    return record_event(db, USER_DELETED, {"id": user_id})


class EventPublisher:
    """
    Delivers one event to the notification bus.

    On PostgreSQL this is NOTIFY via pg_notify; listeners subscribe with
    LISTEN <channel>. Other backends have no bus, so the event is only logged.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @property
    def uses_notify(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    def publish(self, channel: str, payload: dict) -> None:
        start = time.perf_counter()
        payload_json = json.dumps(payload, separators=(",", ":"))
        if self.uses_notify:
            with self.engine.begin() as conn:
                conn.execute(
                    text("SELECT pg_notify(:channel, :payload)"),
                    {"channel": channel, "payload": payload_json},
                )
        logger.info(
            "Event published channel=%s payload=%s duration_ms=%.1f",
            channel, payload_json, (time.perf_counter() - start) * 1000,
        )


def _pending_filter(cutoff: datetime):
    return and_(
        OutboxEvent.published_at.is_(None),
        or_(OutboxEvent.claimed_at.is_(None), OutboxEvent.claimed_at < cutoff),
    )


def claim_event(db: Session, event_id: str, now: datetime) -> bool:
    """
    Mark one pending event as in flight. Commits the claim.

    Returns:
        False if another dispatcher already holds or delivered the event
    """
    claimed = (
        db.query(OutboxEvent)
        .filter(OutboxEvent.id == event_id, _pending_filter(now - CLAIM_LEASE))
        .update(
            {OutboxEvent.claimed_at: now, OutboxEvent.attempts: OutboxEvent.attempts + 1},
            synchronize_session=False,
        )
    )
    db.commit()
    return claimed == 1


def dispatch_pending(session_factory: sessionmaker, publisher: EventPublisher, limit: int = 100) -> int:
    """
    Deliver pending outbox events, oldest first.

    Each event is claimed before it is published, so concurrent dispatchers
    never deliver the same row twice. A claim left behind by a crashed
    dispatcher expires after CLAIM_LEASE.

    Returns:
        Number of events delivered during this call
    """
    delivered = 0
    db = session_factory()
    try:
        candidates = (
            db.query(OutboxEvent.id)
            .filter(_pending_filter(utcnow() - CLAIM_LEASE))
            .order_by(OutboxEvent.created_at.asc())
            .limit(limit)
            .all()
        )
        for (event_id,) in candidates:
            if not claim_event(db, event_id, utcnow()):
                continue
            event = db.get(OutboxEvent, event_id, populate_existing=True)
            try:
                publisher.publish(event.channel, event.payload)
            except Exception as e:
                event.claimed_at = None
                event.last_error = str(e)
                logger.error(
                    "Failed to publish event channel=%s event_id=%s attempts=%s error=%s",
                    event.channel, event.id, event.attempts, e,
                )
            else:
                event.published_at = utcnow()
                event.last_error = None
                delivered += 1
            db.commit()
    except SQLAlchemyError as e:
        # Dispatch is best effort, pending rows are picked up next time
        logger.error("Outbox dispatch failed: %s", e)
        db.rollback()
    finally:
        db.close()
    return delivered
