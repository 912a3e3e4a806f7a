"""
Account Manager: signup, login, logout, whoami and account deletion.

Holds only immutable collaborators; every call works on the session it is
given, so one instance is shared by all requests.
"""
import logging
import time
from typing import Optional

from passlib.context import CryptContext
from passlib.exc import PasswordSizeError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .auth import build_password_context, dummy_verify, hash_password, verify_password
from .config import Settings
from .errors import Conflict, InternalError, InvalidCredentials, NotFound, ValidationError
from .events import EventPublisher, dispatch_pending, record_user_deleted, record_user_registered
from .models import User
from .tokens import TokenService

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class AccountManager:
    def __init__(
        self,
        tokens: TokenService,
        session_factory: sessionmaker,
        publisher: EventPublisher,
        password_context: Optional[CryptContext] = None,
    ):
        self.tokens = tokens
        self.session_factory = session_factory
        self.publisher = publisher
        self.password_context = password_context or build_password_context()

    @classmethod
    def from_settings(cls, settings: Settings, session_factory: sessionmaker, publisher: EventPublisher) -> "AccountManager":
        return cls(
            tokens=TokenService.from_settings(settings),
            session_factory=session_factory,
            publisher=publisher,
            password_context=build_password_context(settings.PASSWORD_HASH_ROUNDS),
        )

    def register(self, db: Session, email: str, password: str) -> dict:
        """
        Create a user and queue the auth_user_registered event.

        Raises:
            Conflict: If the email is already taken
            ValidationError: If the password is too long to hash
            InternalError: If the store fails
        """
        start = time.perf_counter()
        logger.info("Signup attempt email=%s", email)

        try:
            hashed_password = hash_password(password, self.password_context)
        except PasswordSizeError as e:
            logger.warning("Signup failed: password too long email=%s", email)
            raise ValidationError("Password exceeds maximum allowed size") from e

        try:
            if db.query(User.id).filter(User.email == email).first():
                logger.warning("Signup failed: email already exists email=%s", email)
                raise Conflict()

            user = User(email=email, hashed_password=hashed_password)
            db.add(user)
            db.flush()
            record_user_registered(db, user.id, user.email)
            db.commit()
        except IntegrityError as e:
            # A concurrent signup won the unique index on email
            db.rollback()
            logger.warning("Signup failed: email already exists email=%s error=%s", email, e.orig)
            raise Conflict() from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Signup failed email=%s error=%s duration_ms=%.1f", email, e, _elapsed_ms(start))
            raise InternalError("Signup failed", details=str(e)) from e

        self.dispatch_events()
        logger.info("User signed up successfully user_id=%s email=%s duration_ms=%.1f", user.id, email, _elapsed_ms(start))
        return {"id": user.id, "email": user.email}

    def login(self, db: Session, email: str, password: str) -> dict:
        """
        Check credentials and issue a bearer token.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        start = time.perf_counter()
        logger.info("Login attempt email=%s", email)

        try:
            user = db.query(User).filter(User.email == email).first()
        except SQLAlchemyError as e:
            logger.error("Login failed email=%s error=%s duration_ms=%.1f", email, e, _elapsed_ms(start))
            raise InternalError("Login failed", details=str(e)) from e

        if user is None:
            dummy_verify(self.password_context)
            logger.warning("Login failed: user not found email=%s", email)
            raise InvalidCredentials()
        if not verify_password(password, user.hashed_password, self.password_context):
            logger.warning("Login failed: password mismatch email=%s", email)
            raise InvalidCredentials()

        token = self.tokens.issue(user.id, user.email)
        logger.info("User logged in successfully user_id=%s email=%s duration_ms=%.1f", user.id, email, _elapsed_ms(start))
        return {"accessToken": token, "expiresIn": self.tokens.expires_in}

    def logout(self, claim: dict) -> None:
        # Tokens are stateless; the client drops its copy
        logger.info("User logged out user_id=%s", claim["userId"])

    def whoami(self, claim: dict) -> dict:
        logger.info("Get current user user_id=%s", claim["userId"])
        return {"userId": claim["userId"], "email": claim["email"]}

    def delete_account(self, db: Session, claim: dict) -> None:
        """
        Delete the caller's user row and queue the auth_user_deleted event.

        Raises:
            NotFound: If no row matched (already deleted or never existed)
            InternalError: If the store fails
        """
        start = time.perf_counter()
        user_id = claim["userId"]
        logger.info("Delete account attempt user_id=%s", user_id)

        try:
            deleted = db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            if not deleted:
                db.rollback()
                logger.warning("Delete account failed: user not found or already deleted user_id=%s", user_id)
                raise NotFound()
            record_user_deleted(db, user_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Delete account failed user_id=%s error=%s duration_ms=%.1f", user_id, e, _elapsed_ms(start))
            raise InternalError("Failed to delete account", details=str(e)) from e

        self.dispatch_events()
        logger.info("User account deleted successfully user_id=%s duration_ms=%.1f", user_id, _elapsed_ms(start))

    def dispatch_events(self) -> int:
        return dispatch_pending(self.session_factory, self.publisher)
