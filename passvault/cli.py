"""
passvault CLI — entry point for all operations.

Usage:
    passvault serve            # Start the API server
    passvault init-db          # Create record tables
    passvault gen-passphrase   # Print a random passphrase for PASSVAULT_PASSPHRASE
    passvault status           # Show configuration and record counts
    passvault version          # Show version
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

SCHEMA_PATH = Path(__file__).resolve().parent / "db" / "schema.sql"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="passvault",
        description="passvault — self-hosted credential vault with field-level encryption.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: PASSVAULT_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PASSVAULT_PORT)")

    # init-db
    init_parser = subparsers.add_parser("init-db", help="Create record tables")
    init_parser.add_argument("--dry-run", action="store_true", help="Print SQL without executing")

    subparsers.add_parser("gen-passphrase", help="Print a random encryption passphrase")
    subparsers.add_parser("status", help="Show configuration and record counts")
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version or args.command == "version":
        from passvault import __version__

        print(f"passvault {__version__}")
        return 0

    if args.command == "serve":
        return _cmd_serve(args)
    elif args.command == "init-db":
        return _cmd_init_db(args)
    elif args.command == "gen-passphrase":
        return _cmd_gen_passphrase()
    elif args.command == "status":
        return _cmd_status()
    else:
        parser.print_help()
        return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is required. Install with: pip install passvault")
        return 1

    from passvault.config import get_config

    cfg = get_config()
    problems = cfg.validate()
    if problems:
        for problem in problems:
            print(f"Error: {problem}")
        return 1

    host = args.host or cfg.host
    port = args.port or cfg.port
    print(f"Starting passvault on {host}:{port} ({cfg.storage} storage)...")
    uvicorn.run("passvault.api.server:create_app", factory=True, host=host, port=port)
    return 0


def _cmd_init_db(args: argparse.Namespace) -> int:
    sql = SCHEMA_PATH.read_text()
    if args.dry_run:
        print("-- Dry run: the following SQL would be executed --")
        print(sql)
        return 0

    import psycopg2

    from passvault.config import get_config
    from passvault.db.connection import get_connection
    from passvault.errors import VaultError

    cfg = get_config().db
    print(f"Connecting to {cfg.host}:{cfg.port}/{cfg.name}...")
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
    except (VaultError, psycopg2.Error) as e:
        print(f"Error: Schema creation failed: {e}")
        print("Check PASSVAULT_DB_* environment variables and ensure PostgreSQL is running.")
        return 1
    print("Record tables ready.")
    return 0


def _cmd_gen_passphrase() -> int:
    from passvault.vault.crypto import generate_passphrase

    print(generate_passphrase())
    return 0


def _cmd_status() -> int:
    from passvault import __version__
    from passvault.config import STORAGE_BACKENDS, get_config
    from passvault.errors import VaultError
    from passvault.records.models import KINDS
    from passvault.records.store import Store

    cfg = get_config()
    print(f"passvault v{__version__}")
    print()
    print(f"  Storage:     {cfg.storage}")
    if cfg.storage == "postgres":
        print(f"  PostgreSQL:  {cfg.db.host or 'localhost'}:{cfg.db.port}/{cfg.db.name}")
    print(f"  Passphrase:  {'set' if cfg.passphrase else 'NOT SET'}")
    print(f"  Decrypt failures: {cfg.decrypt_failures}")

    problems = cfg.validate()
    if problems:
        print()
        for problem in problems:
            print(f"  ! {problem}")
        if cfg.storage not in STORAGE_BACKENDS:
            return 1

    print()
    store = Store(cfg.storage)
    for name, kind in KINDS.items():
        try:
            count = store.repository(name).count()
            print(f"  {kind.table:<14} {count} record(s)")
        except VaultError as e:
            print(f"  {kind.table:<14} UNREACHABLE ({e})")
            break
    return 0
