# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# COMMANDS:
# ---------
# 1. Check both connections:
#    python -m nosql_migrate.cli check
#
# 2. Migrate every table (or only some):
#    python -m nosql_migrate.cli sync
#    python -m nosql_migrate.cli sync --table users --table orders
#    python -m nosql_migrate.cli sync --continue-on-error
#
# 3. Drop the target database (asks first):
#    python -m nosql_migrate.cli drop
#
# Settings come from the environment / .env (see config.py).
# With TARGET_FORCE_DROP=true, sync asks to drop the target
# database before migrating.
#
# ==============================================

import argparse
import logging
import sys
from typing import List, Optional

from nosql_migrate.config import AppConfig, get_config
from nosql_migrate.errors import MigrationError
from nosql_migrate.migrator import Migrator
from nosql_migrate.source.mysql_reader import MySQLReader
from nosql_migrate.storage import open_store

logger = logging.getLogger("nosql_migrate")


def ask_yes_no(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def cmd_check(config: AppConfig, args) -> int:
    config.target.ensure_valid()
    with MySQLReader.from_config(config.source) as source:
        tables = source.table_names()
    with open_store(config.target) as store:
        connected = store.has_connection()
    print(f"Source: {len(tables)} tables in '{config.source.database}'")
    print(f"Target: {config.target.connection_string()}/{config.target.database} connected={connected}")
    return 0 if connected else 1


def cmd_sync(config: AppConfig, args) -> int:
    if config.target.force_drop:
        drop_target(config)

    continue_on_error = args.continue_on_error or config.continue_on_error
    with MySQLReader.from_config(config.source) as source, open_store(config.target) as store:
        tables = source.table_definitions(args.table or None)
        stats = Migrator(store, continue_on_error=continue_on_error).run(tables, source.rows)

    print(
        f"Tables created: {stats.tables_created}, already present: {stats.tables_skipped}\n"
        f"Rows inserted: {stats.rows_inserted}, updated: {stats.rows_updated}, errors: {len(stats.errors)}"
    )
    return 1 if stats.errors else 0


def drop_target(config: AppConfig) -> bool:
    # Ask before connecting: connecting to Cassandra creates a missing keyspace
    store = open_store(config.target)
    try:
        return store.ask_to_drop_database(ask_yes_no)
    finally:
        store.disconnect()


def cmd_drop(config: AppConfig, args) -> int:
    return 0 if drop_target(config) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nosql-migrate",
        description="Migrate a MySQL database into Cassandra or MongoDB.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log generated statements")
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="validate settings and open both connections")
    check.set_defaults(handler=cmd_check)

    sync = commands.add_parser("sync", help="create target tables and upsert all rows")
    sync.add_argument("--table", action="append", help="only migrate this table (repeatable)")
    sync.add_argument("--continue-on-error", action="store_true", help="record row failures and keep going")
    sync.set_defaults(handler=cmd_sync)

    drop = commands.add_parser("drop", help="drop the target database after confirmation")
    drop.set_defaults(handler=cmd_drop)
    return parser


def main(argv: Optional[List[str]] = None, config: Optional[AppConfig] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.handler(config or get_config(), args)
    except MigrationError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
