import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from folio.adapters.file_store import FileLedgerStore
from folio.config.configs import StoreConfig
from folio.core.clock import FixedClock
from folio.core.ledger import Ledger
from folio.errors.errors import ExternalProviderError, PersistenceError, TickerNotFoundError
from folio.types.types import LedgerSnapshot, Quote, SearchResult

FIXED_NOW = dt.datetime(2024, 3, 15, 12, 30, tzinfo=dt.timezone.utc)


def make_quote(symbol: str, close: float, open: Optional[float] = None) -> Quote:
    return Quote(
        symbol=symbol,
        close=close,
        open=close if open is None else open,
        currency="USD",
        instrument_type="EQUITY",
    )


@dataclass
class StubQuoteProvider:
    """In-memory QuoteProvider: known tickers are the keys of `quotes`."""

    quotes: dict[str, Quote] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    results: list[SearchResult] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)
    exists_calls: list[str] = field(default_factory=list)
    closed: bool = False

    def exists(self, ticker: str) -> bool:
        self.exists_calls.append(ticker)
        if ticker in self.failing:
            raise ExternalProviderError("provider down", ticker=ticker)
        return ticker in self.quotes

    def last_quote(self, ticker: str) -> Quote:
        self.calls.append(ticker)
        if ticker in self.failing:
            raise ExternalProviderError("provider down", ticker=ticker)
        if ticker not in self.quotes:
            raise TickerNotFoundError(ticker)
        return self.quotes[ticker]

    def search(self, query: str) -> list[SearchResult]:
        return [r for r in self.results if query.lower() in r.symbol.lower()]

    def close(self) -> None:
        self.closed = True


@dataclass
class StubTelemetry:
    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def log(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [e for e, _ in self.events]


@dataclass
class MemoryStore:
    """LedgerStore keeping the last saved snapshot; `fail_saves` makes `save` raise."""

    snapshot: LedgerSnapshot = field(default_factory=LedgerSnapshot)
    fail_saves: bool = False
    saves: int = 0

    def load(self) -> LedgerSnapshot:
        return self.snapshot.model_copy(deep=True)

    def save(self, snapshot: LedgerSnapshot) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full", path="memory")
        self.saves += 1
        self.snapshot = snapshot.model_copy(deep=True)


@pytest.fixture
def provider() -> StubQuoteProvider:
    return StubQuoteProvider(
        quotes={
            "AAPL": make_quote("AAPL", 110.0, open=100.0),
            "MSFT": make_quote("MSFT", 50.0),
        }
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
def telemetry() -> StubTelemetry:
    return StubTelemetry()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileLedgerStore:
    return FileLedgerStore(StoreConfig(data_dir=tmp_path / "data"))


@pytest.fixture
def ledger_factory(provider, clock, telemetry) -> Callable[..., Ledger]:
    """Build a Ledger over the given store with the shared stubs."""

    def _build(store, **kwargs: Any) -> Ledger:
        return Ledger(store, provider, clock, telemetry=telemetry, **kwargs)

    return _build


@pytest.fixture
def ledger(ledger_factory, memory_store) -> Ledger:
    return ledger_factory(memory_store)
