"""Clock Port Interface.

Contract: Provides the current UTC timestamp. The ledger derives "today" from it
when a transaction is recorded without an explicit date.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return current UTC time (datetime, tz-aware)."""
        ...
