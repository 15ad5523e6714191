"""Telemetry Port Interface.

Contract: Log structured audit events, one per successful ledger mutation.
"""
from __future__ import annotations
from typing import Protocol, Any

class Telemetry(Protocol):
    def log(self, event: str, **fields: Any) -> None: ...
