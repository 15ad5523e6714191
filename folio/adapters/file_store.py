"""File-backed LedgerStore adapter.

Persists the complete ledger snapshot as one JSON document. Every save rewrites the
whole file through a temporary sibling and `os.replace`, so a crash mid-write leaves
either the previous or the new snapshot on disk, never a torn one.

No locking: a single process is assumed to own the file; concurrent writers lose
updates (last writer wins).
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import orjson
from pydantic import ValidationError as PydanticValidationError

from folio.config.configs import StoreConfig
from folio.errors.errors import PersistenceError
from folio.types.types import LedgerSnapshot

logger = logging.getLogger(__name__)

_DUMP_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE


class FileLedgerStore:
    """Persist the ledger snapshot to `<data_dir>/<file_name>`."""

    def __init__(self, cfg: StoreConfig) -> None:
        self._cfg = cfg
        self._path = cfg.data_file

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LedgerSnapshot:
        """
        Read the snapshot, creating the directory and an empty snapshot file on first use.
        Raises PersistenceError on I/O failure or content that does not match the schema.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Cannot create data directory: {exc}",
                path=str(self._path.parent),
                component="store.file",
            ) from exc

        if not self._path.exists():
            snapshot = LedgerSnapshot()
            self.save(snapshot)
            logger.info(
                "ledger_initialized",
                extra={"event": "ledger_initialized", "path": str(self._path)},
            )
            return snapshot

        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise PersistenceError(
                f"Cannot read ledger file: {exc}", path=str(self._path), component="store.file"
            ) from exc

        try:
            snapshot = LedgerSnapshot.model_validate(orjson.loads(raw))
        except orjson.JSONDecodeError as exc:
            raise PersistenceError(
                f"Ledger file is not valid JSON: {exc}",
                path=str(self._path),
                component="store.file",
            ) from exc
        except PydanticValidationError as exc:
            raise PersistenceError(
                f"Ledger file does not match the expected schema: {exc.error_count()} error(s)",
                path=str(self._path),
                component="store.file",
                details={"errors": [e["msg"] for e in exc.errors()]},
            ) from exc

        logger.debug(
            "ledger_loaded",
            extra={
                "event": "ledger_loaded",
                "path": str(self._path),
                "portfolios": len(snapshot.portfolio),
            },
        )
        return snapshot

    def save(self, snapshot: LedgerSnapshot) -> None:
        """Serialize the whole snapshot and atomically replace the backing file."""
        try:
            payload = orjson.dumps(snapshot.model_dump(mode="json"), option=_DUMP_OPTIONS)
        except (TypeError, orjson.JSONEncodeError) as exc:
            raise PersistenceError(
                f"Cannot serialize ledger: {exc}", path=str(self._path), component="store.file"
            ) from exc

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(
                f"Cannot write ledger file: {exc}", path=str(self._path), component="store.file"
            ) from exc

        logger.debug(
            "ledger_saved",
            extra={"event": "ledger_saved", "path": str(self._path), "bytes": len(payload)},
        )
