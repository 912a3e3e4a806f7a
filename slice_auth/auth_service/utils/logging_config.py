"""
Logging setup for the auth service.
"""
import logging
import os
import sys

from ..config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Log to stdout, and to LOG_DIR/auth_service.log when LOG_DIR is set."""
    handlers = [logging.StreamHandler(sys.stdout)]

    # LOG_DIR is optional; an unwritable directory leaves stdout as the only handler
    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "auth_service.log")))
        except OSError as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # SQL echo is controlled by DB_LOGGING through the engine, keep the rest quiet
    for noisy in ("passlib", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
