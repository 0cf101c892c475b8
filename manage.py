#!/usr/bin/env python3
"""
Stock ledger management CLI.

Usage:
    python manage.py migrate     Apply pending schema migrations
    python manage.py status      Show applied and pending migrations
    python manage.py verify      Check schema, foreign key and ledger integrity
    python manage.py serve       Run the API server
"""

import argparse
import asyncio
import sys
from pathlib import Path

from stockledger.config import configure_logging, get_settings
from stockledger.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


def cmd_migrate(args: argparse.Namespace) -> None:
    results = asyncio.run(
        initialize_database(args.db_path, create_backup_before=not args.no_backup)
    )
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "SUCCESS" if result.success else "FAILED"
        print(f"[{state}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    if any(not r.success for r in results):
        sys.exit(1)


def cmd_status(args: argparse.Namespace) -> None:
    status = asyncio.run(get_migration_status(args.db_path))
    print(f"Database exists: {status['exists']}")
    print(f"Current version: {status.get('current_version') or 'N/A'}")
    print(f"Applied migrations: {status.get('applied_migrations', [])}")
    print(f"Pending migrations: {status.get('pending_migrations', [])}")


def cmd_verify(args: argparse.Namespace) -> None:
    checks = asyncio.run(verify_schema_integrity(args.db_path))
    failed = False
    for check in checks:
        print(f"[{check['status']}] {check['check']}")
        if check["status"] != "PASS":
            failed = True
            for key, value in check.items():
                if key not in ("check", "status"):
                    print(f"       {key}: {value}")
    if failed:
        sys.exit(1)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stockledger.api.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stock ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    db_path_help = "Database path (default from settings)"

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db-path", type=Path, help=db_path_help)
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.add_argument("--db-path", type=Path, help=db_path_help)
    p_status.set_defaults(func=cmd_status)

    # verify
    p_verify = sub.add_parser("verify", help="Verify schema integrity")
    p_verify.add_argument("--db-path", type=Path, help=db_path_help)
    p_verify.set_defaults(func=cmd_verify)

    # serve
    p_serve = sub.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", help="Bind host (default from settings)")
    p_serve.add_argument("--port", type=int, help="Bind port (default from settings)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
