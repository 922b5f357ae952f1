"""
Maintenance entry point for external schedulers.

Usage:
    python -m persister init-db
    python -m persister clear-detached
    python -m persister update-timestamps [--time EPOCH]
    python -m persister count [--offline]
"""

import argparse
import logging
import sys
import time

from persister.config import settings
from persister.database import init_db, session_scope
from persister.schemas.errors import SessionStoreError
from persister.services.sessions import UserSessionPersister

LOGGER = logging.getLogger("persister")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="persister", description="User session store maintenance")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the session tables")
    commands.add_parser("clear-detached", help="delete detached client and user sessions")

    timestamps = commands.add_parser("update-timestamps", help="reset every session timestamp")
    timestamps.add_argument("--time", type=int, default=None, help="epoch seconds, defaults to now")

    count = commands.add_parser("count", help="print the number of user sessions")
    count.add_argument("--offline", action="store_true")
    return parser


def run(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        init_db()
        return 0

    try:
        with session_scope() as session:
            persister = UserSessionPersister(session)
            if args.command == "clear-detached":
                persister.clear_detached_user_sessions()
            elif args.command == "update-timestamps":
                persister.update_all_timestamps(
                    args.time if args.time is not None else int(time.time())
                )
            elif args.command == "count":
                print(persister.get_user_sessions_count(args.offline))
    except SessionStoreError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    return 0


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    sys.exit(run())


if __name__ == "__main__":
    main()
