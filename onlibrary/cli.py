"""Command line helpers: create tables, export and import a reader's library."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .context import ReaderContext
from .db.session import build_database_url
from .errors import LibraryError
from .library.transfer import TransferService
from .store.sql import SqlDocumentStore

logger = logging.getLogger("onlibrary.cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage Onlibrary data.")
    parser.add_argument("--database-url", default=None, help="Defaults to DATABASE_URL / .env")
    parser.add_argument("--log-level", default="INFO")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create all tables (development; use alembic in production).")

    export = commands.add_parser("export", help="Write a reader's books as CSV.")
    export.add_argument("--owner", required=True, help="Owner id or account email")
    export.add_argument("--output", type=Path, default=None, help="Defaults to stdout")

    importer = commands.add_parser("import", help="Add books from a CSV export.")
    importer.add_argument("--owner", required=True, help="Owner id or account email")
    importer.add_argument("path", type=Path)
    return parser.parse_args(argv)


def resolve_owner(store: SqlDocumentStore, owner: str) -> str:
    if "@" not in owner:
        return owner
    owner_id = store.owner_id_for_email(owner)
    if owner_id is None:
        raise LibraryError(f"No account with email {owner}")
    return owner_id


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    store = SqlDocumentStore.from_url(args.database_url or build_database_url())

    try:
        if args.command == "init-db":
            store.create_tables()
            logger.info("Tables created")
            return 0

        ctx = ReaderContext(owner_id=resolve_owner(store, args.owner))
        transfer = TransferService(store)
        if args.command == "export":
            csv_text = transfer.export_csv(ctx)
            if args.output is None:
                sys.stdout.write(csv_text)
            else:
                args.output.write_text(csv_text, encoding="utf-8")
                logger.info("Exported library of %s to %s", ctx.owner_id, args.output)
            return 0

        report = transfer.import_file(ctx, args.path)
        print(f"total: {report.total} success: {report.success} failed: {report.failed}")
        return 0 if report.failed == 0 else 1
    except LibraryError as e:
        logger.error("%s", e)
        return 2
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
