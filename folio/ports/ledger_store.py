"""LedgerStore Port Interface.

Contract: Load & persist the whole ledger snapshot (portfolios, assets, transactions).
Every call to `save` rewrites the complete snapshot; there is no append mode.
"""

from __future__ import annotations

from typing import Protocol

from folio.types.types import LedgerSnapshot


class LedgerStore(Protocol):
    def load(self) -> LedgerSnapshot: ...
    def save(self, snapshot: LedgerSnapshot) -> None: ...
