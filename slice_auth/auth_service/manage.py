"""
Management commands for the auth service.

    python -m slice_auth.auth_service.manage init-db
    python -m slice_auth.auth_service.manage drop-table users
    python -m slice_auth.auth_service.manage dispatch-events
    python -m slice_auth.auth_service.manage serve
"""
import argparse
import logging
import sys
import time
from typing import List, Optional

from .config import Settings, load_settings
from .db import create_db_engine, create_session_factory, drop_table, init_db
from .events import EventPublisher, dispatch_pending
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="slice-auth", description="Auth service management commands")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables")

    drop = sub.add_parser("drop-table", help="Drop one table if it exists")
    drop.add_argument("table", help="Table name, e.g. users")

    sub.add_parser("dispatch-events", help="Deliver pending lifecycle events once")

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    return parser


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "slice_auth.auth_service.main:get_application",
            factory=True,
            host=settings.HOST,
            port=settings.PORT,
            reload=args.reload,
            log_level=settings.LOG_LEVEL.lower(),
        )
        return 0

    engine = create_db_engine(settings)
    start = time.perf_counter()
    try:
        if args.command == "init-db":
            init_db(engine)
        elif args.command == "drop-table":
            drop_table(engine, args.table)
        elif args.command == "dispatch-events":
            delivered = dispatch_pending(create_session_factory(engine), EventPublisher(engine))
            logger.info("Delivered %d pending events", delivered)
    finally:
        engine.dispose()
    logger.info("Command %s finished in %.2fs", args.command, time.perf_counter() - start)
    return 0


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or load_settings()
    configure_logging(settings)
    return run_command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
