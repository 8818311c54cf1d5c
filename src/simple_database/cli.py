"""Command line entry point: ``simple-database ping|tables|query``."""

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

from simple_database.database import SimpleDatabase
from simple_database.exceptions import SimpleDatabaseError
from simple_database.models.config import DatabaseConfig
from simple_database.utils.serialization import convert_rows_to_json_safe, dumps


def _parse_param(value: str) -> tuple[str, str]:
    name, sep, param_value = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got {value!r}")
    return name, param_value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-database",
        description="Run queries against the database configured in DATABASE_URL",
    )
    parser.add_argument(
        "--env-file", default=None, help="Path to a .env file (default: ./.env)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Check that the write connection is alive")

    tables = subparsers.add_parser("tables", help="List tables")
    tables.add_argument("--prefix", default="", help="Table name prefix")
    tables.add_argument(
        "--exclude",
        action="store_true",
        help="List tables NOT starting with the prefix",
    )

    query = subparsers.add_parser("query", help="Run a query and print rows as JSON")
    query.add_argument("sql", help="SQL with :name placeholders")
    query.add_argument(
        "--param",
        "-p",
        action="append",
        type=_parse_param,
        default=[],
        metavar="NAME=VALUE",
        help="Placeholder value (repeatable)",
    )
    return parser


def run_command(db: SimpleDatabase, args: argparse.Namespace) -> Any:
    """Run one parsed command and return its JSON-serializable result."""
    if args.command == "ping":
        provider = db.provider
        alive = not provider.is_disconnected(provider.get_write_connection())
        return {"alive": alive}

    if args.command == "tables":
        if args.exclude:
            return db.list_tables_not_starting_with(args.prefix)
        return db.list_tables_starts_with(args.prefix)

    if args.command == "query":
        params = dict(args.param)
        statement = db.execute(args.sql, params)
        return {
            "query": db.resolve_query(args.sql, params),
            "row_count": statement.row_count(),
            "rows": convert_rows_to_json_safe(statement.fetch_all()),
        }

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the command line tool."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = DatabaseConfig.from_env(args.env_file)
        with SimpleDatabase.from_config(config) as db:
            result = run_command(db, args)
    except (SimpleDatabaseError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(dumps(result))
    if args.command == "ping" and not result["alive"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
