"""Check and upgrade a stored inventory document.

Usage:
    python scripts/migrate_store.py data/db.json
    python scripts/migrate_store.py data/db.json --write
    python scripts/migrate_store.py backup.json --capacity 500 --write
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from raffledesk.core.config import get_settings
from raffledesk.core.errors import StorageError
from raffledesk.core.logging import setup_logging
from raffledesk.repositories.document import find_inconsistencies, migrate_document
from raffledesk.repositories.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


def migrate(path: Path, default_capacity: int, write: bool) -> int:
    """Return a process exit code: 0 ok, 1 inconsistent, 2 unreadable."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        doc = migrate_document(raw, default_capacity)
    except (OSError, ValueError, TypeError) as exc:
        logger.error("Cannot load %s: %s", path, exc)
        return 2

    logger.info(
        "Loaded %s: %d tickets, %d purchases",
        path,
        doc.capacity,
        len(doc.purchases),
    )
    problems = find_inconsistencies(doc)
    for problem in problems:
        logger.warning("Inconsistency: %s", problem)
    if problems:
        logger.error("%d problem(s) found; not rewriting", len(problems))
        return 1

    if write:
        try:
            InventoryStore(path, default_capacity=default_capacity).write(doc)
        except StorageError as exc:
            logger.error("Rewrite failed: %s", exc)
            return 2
        logger.info("Rewrote %s in the current format", path)
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Check and upgrade an inventory document")
    parser.add_argument("path", nargs="?", default=settings.data_file, help="document to check")
    parser.add_argument(
        "--capacity",
        type=int,
        default=settings.default_capacity,
        help="capacity to assume when the document does not record one",
    )
    parser.add_argument("--write", action="store_true", help="rewrite the file when consistent")
    args = parser.parse_args(argv)

    setup_logging(level=settings.log_level, log_format=settings.log_format)
    return migrate(Path(args.path), args.capacity, args.write)


if __name__ == "__main__":
    sys.exit(main())
