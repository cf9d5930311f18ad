"""File-backed inventory store with serialized, atomic mutations.

Reads are lock-free: writes always land through ``os.replace`` of a fully
written temp file, so a reader sees either the old or the new document.
Every mutation goes through :meth:`InventoryStore.mutate`, which holds the
store's lock across read, check-and-update, and write.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from raffledesk.core.constants import CORRUPT_SUFFIX, DEFAULT_CAPACITY, SLOW_WRITE_THRESHOLD_MS
from raffledesk.core.errors import InvalidInputError, StorageError
from raffledesk.repositories.document import (
    InventoryDocument,
    default_document,
    find_inconsistencies,
    migrate_document,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# One lock per resolved file path, shared by every store opened on it
_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


class InventoryStore:
    """Durable home of the :class:`InventoryDocument`."""

    def __init__(self, path: str | Path, default_capacity: int = DEFAULT_CAPACITY) -> None:
        self.path = Path(path)
        self.default_capacity = default_capacity
        self._lock = _lock_for(self.path)

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _log_write(path: Path, elapsed_ms: float) -> None:
        """Log write timing; warn if above slow-write threshold."""
        if elapsed_ms > SLOW_WRITE_THRESHOLD_MS:
            logger.warning("SLOW WRITE (%.1fms): %s", elapsed_ms, path)
        else:
            logger.debug("Write (%.1fms): %s", elapsed_ms, path)

    def _load(self) -> InventoryDocument | None:
        """Return the stored document, or ``None`` if absent or unparseable."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError("Inventory could not be read") from exc
        try:
            return migrate_document(json.loads(text), self.default_capacity)
        except (ValueError, TypeError):
            return None

    def _reinitialize(self) -> InventoryDocument:
        """Write a default document, moving any unreadable file aside first."""
        if self.path.exists():
            stamp = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S")
            aside = self.path.with_name(f"{self.path.name}{CORRUPT_SUFFIX}-{stamp}")
            try:
                os.replace(self.path, aside)
            except OSError as exc:
                raise StorageError("Corrupt inventory could not be moved aside") from exc
            logger.warning("Inventory at %s was unreadable; moved to %s", self.path, aside)
        doc = default_document(self.default_capacity)
        self._write(doc)
        logger.warning(
            "Initialized inventory at %s with %d free tickets",
            self.path,
            self.default_capacity,
        )
        return doc

    def _write(self, doc: InventoryDocument) -> None:
        payload = json.dumps(doc.to_json_dict(), indent=2, ensure_ascii=False)
        start = time.perf_counter()
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            logger.error("Inventory write to %s failed: %s", self.path, exc)
            raise StorageError() from exc
        self._log_write(self.path, (time.perf_counter() - start) * 1000)

    # ── read ─────────────────────────────────────────────────────────

    def read(self) -> InventoryDocument:
        """Return the current document, recovering a default if needed."""
        doc = self._load()
        if doc is not None:
            return doc
        with self._lock:
            # Another writer may have recovered the file while we waited
            doc = self._load()
            if doc is not None:
                return doc
            return self._reinitialize()

    def is_writable(self) -> bool:
        """Whether the data directory accepts new files."""
        directory = self.path.parent
        return directory.is_dir() and os.access(directory, os.W_OK)

    # ── write ────────────────────────────────────────────────────────

    def write(self, doc: InventoryDocument) -> None:
        """Persist *doc* atomically. Raises ``StorageError`` on failure."""
        with self._lock:
            self._write(doc)

    def mutate(self, fn: Callable[[InventoryDocument], T]) -> T:
        """Run *fn* on the current document under the store lock and persist.

        *fn* edits the document in place and returns a result. If it raises,
        nothing is written and the exception propagates.
        """
        with self._lock:
            doc = self._load()
            if doc is None:
                doc = self._reinitialize()
            result = fn(doc)
            self._write(doc)
            return result

    def replace(self, raw: Any) -> InventoryDocument:
        """Import a full document, refusing anything inconsistent."""
        try:
            doc = migrate_document(raw, self.default_capacity)
        except (ValueError, TypeError) as exc:
            raise InvalidInputError(f"Invalid inventory document: {exc}") from exc
        problems = find_inconsistencies(doc)
        if problems:
            raise InvalidInputError("Inconsistent inventory document: " + "; ".join(problems))
        self.write(doc)
        logger.info(
            "Inventory replaced: %d tickets, %d purchases",
            doc.capacity,
            len(doc.purchases),
        )
        return doc
