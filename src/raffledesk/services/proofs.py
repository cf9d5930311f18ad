"""Proof-of-payment storage.

Uploaded files are written before the buy transaction starts. The core only
keeps the returned location string; if the reservation fails the caller
discards the file so no orphan proof outlives a failed purchase.
"""

from __future__ import annotations

import contextlib
import logging
import secrets
import time
from pathlib import Path
from typing import BinaryIO

from raffledesk.core.constants import PROOF_FILE_PREFIX
from raffledesk.core.errors import InvalidInputError, StorageError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class ProofStorage:
    """Stores uploaded proof files under a single directory."""

    def __init__(self, upload_dir: str | Path, url_prefix: str, max_bytes: int) -> None:
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    @staticmethod
    def _build_name(original_name: str | None) -> str:
        """``proof-<ms>-<random><ext>`` with the client's extension kept."""
        suffix = Path(original_name or "").suffix.lower()
        if not suffix[1:].isalnum() or len(suffix) > 10:
            suffix = ""
        return f"{PROOF_FILE_PREFIX}{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"

    def save(self, stream: BinaryIO, original_name: str | None) -> str:
        """Copy *stream* to disk and return its public location."""
        name = self._build_name(original_name)
        target = self.upload_dir / name
        written = 0
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as out:
                while chunk := stream.read(_CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        break
                    out.write(chunk)
        except OSError as exc:
            with contextlib.suppress(OSError):
                target.unlink()
            raise StorageError("Proof file could not be stored") from exc

        if written > self.max_bytes:
            target.unlink(missing_ok=True)
            raise InvalidInputError(f"Proof file exceeds {self.max_bytes} bytes")
        if written == 0:
            target.unlink(missing_ok=True)
            raise InvalidInputError("Proof file is empty")

        logger.debug("Stored proof %s (%d bytes)", name, written)
        return f"{self.url_prefix}/{name}"

    def discard(self, location: str | None) -> None:
        """Remove a previously saved proof, ignoring missing files."""
        if not location or not location.startswith(f"{self.url_prefix}/"):
            return
        name = location[len(self.url_prefix) + 1 :]
        if "/" in name or name.startswith("."):
            return
        try:
            (self.upload_dir / name).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not discard proof %s", location, exc_info=True)
