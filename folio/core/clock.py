"""
now() provides the canonical notion of time for the ledger. It is used by
 - Ledger, to stamp transactions recorded without an explicit date
 - JsonlTelemetry, to timestamp audit records
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass


class SystemClock:
    """Clock adapter that returns the current UTC time."""

    def now(self) -> dt.datetime:
        """Return the current UTC timestamp."""
        return dt.datetime.now(dt.timezone.utc)


@dataclass
class FixedClock:
    """Clock pinned to a given instant; naive values are taken as UTC."""

    instant: dt.datetime

    def __post_init__(self) -> None:
        if self.instant.tzinfo is None:
            self.instant = self.instant.replace(tzinfo=dt.timezone.utc)

    def now(self) -> dt.datetime:
        return self.instant


def today(clock) -> dt.date:
    """Calendar date of `clock.now()` in UTC."""
    return clock.now().astimezone(dt.timezone.utc).date()
