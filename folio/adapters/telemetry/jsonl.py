"""JSON Lines Telemetry adapter.

Implements the Telemetry port as an append-only audit trail: one JSON object per
line, tagged with the session id and a UTC timestamp taken from the Clock.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import orjson

from folio.ports.clock import Clock
from folio.types.aliases import AuditRecord

logger = logging.getLogger(__name__)


class JsonlTelemetry:
    _REDACTION_TOKEN = "***REDACTED***"
    _DEFAULT_SECRET_KEYS = frozenset(
        {
            "api_key",
            "api_secret",
            "secret",
            "password",
            "token",
            "auth_token",
        }
    )

    def __init__(
        self,
        session_id: str,
        sink_path: Path,
        clock: Clock,
        secret_keys: Iterable[str] = _DEFAULT_SECRET_KEYS,
    ) -> None:
        self._session_id = str(session_id)
        self._sink_path = sink_path if isinstance(sink_path, Path) else Path(sink_path)
        self._clock = clock
        self._secret_keys = frozenset(secret_keys)

    @property
    def sink_path(self) -> Path:
        return self._sink_path

    def log(self, event: str, **fields: Any) -> None:
        if not event:
            raise ValueError("telemetry event name must be non-empty")

        sanitized_fields, redacted = self._sanitize_fields(fields)

        record: AuditRecord = {
            "event": event,
            "ts_utc": self._clock.now().isoformat(),
            "session_id": self._session_id,
            **sanitized_fields,
        }
        if redacted:
            record["redacted_fields"] = sorted(redacted)

        self._write_record(record)

    def _sanitize_fields(self, fields: Mapping[str, Any]) -> tuple[dict[str, Any], set[str]]:
        sanitized: dict[str, Any] = {}
        redacted: set[str] = set()
        for key, value in fields.items():
            if key in self._secret_keys:
                sanitized[key] = self._REDACTION_TOKEN
                redacted.add(key)
            else:
                sanitized[key] = value

        return sanitized, redacted

    def _write_record(self, record: Mapping[str, Any]) -> None:
        """
        Append one line to the sink. Audit records are written after the ledger change
        is already durable, so an unwritable sink is logged and never raised.
        """
        payload = orjson.dumps(record, default=str, option=orjson.OPT_SORT_KEYS)
        try:
            self._sink_path.parent.mkdir(parents=True, exist_ok=True)
            with self._sink_path.open("ab") as handle:
                handle.write(payload + b"\n")
        except OSError as exc:
            logger.warning(
                "audit_write_failed",
                extra={
                    "event": "audit_write_failed",
                    "path": str(self._sink_path),
                    "audit_event": record.get("event"),
                    "error": type(exc).__name__,
                },
            )


class NullTelemetry:
    """Telemetry sink used when the audit trail is disabled."""

    def log(self, event: str, **fields: Any) -> None:
        return None
