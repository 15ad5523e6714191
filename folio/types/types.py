"""
define canonical types
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from folio.types.aliases import PortfolioName, Ticker

# -------- Persisted ledger model --------


class CostConstraint(BaseModel):
    """
    Alerting thresholds for an asset. Any subset may be set; nothing enforces them.
    `per` is the target percentage.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)
    per: Optional[float] = Field(default=None, ge=0)


class Transaction(BaseModel):
    """One recorded buy: quantity at a per-unit cost basis on a calendar date."""

    model_config = ConfigDict(extra="forbid", frozen=True)
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)
    date: dt.date


class AssetRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")
    cost: Optional[CostConstraint] = None
    op: list[Transaction] = Field(default_factory=list)  # append-only, insertion order

    @property
    def quantity(self) -> int:
        return sum(t.quantity for t in self.op)


class Portfolio(BaseModel):
    model_config = ConfigDict(extra="forbid")
    asset: dict[Ticker, AssetRecord] = Field(default_factory=dict)

    def tickers(self) -> list[Ticker]:
        return sorted(self.asset)

    def traded_tickers(self) -> list[Ticker]:
        """Tickers with at least one transaction, sorted."""
        return [t for t in self.tickers() if self.asset[t].op]


class LedgerSnapshot(BaseModel):
    """Everything the ledger persists: portfolio name -> Portfolio."""

    model_config = ConfigDict(extra="forbid")
    portfolio: dict[PortfolioName, Portfolio] = Field(default_factory=dict)

    def names(self) -> list[PortfolioName]:
        return sorted(self.portfolio)


# -------- Quote provider payloads --------


@dataclass(frozen=True, slots=True)
class Quote:
    symbol: Ticker
    close: float
    open: float
    currency: str
    instrument_type: str


@dataclass(frozen=True, slots=True)
class SearchResult:
    display_type: str  # e.g. "Equity", "ETF"
    symbol: Ticker
    exchange: str
    description: str


# -------- Valuation results --------


@dataclass(frozen=True, slots=True)
class AssetValuation:
    ticker: Ticker
    quantity: int
    invested: float
    gain: float
    percentage: float
    quote: Quote


@dataclass(frozen=True, slots=True)
class PortfolioValuation:
    portfolio: PortfolioName
    gain: float
    invested: float
    percentage: float
    assets: tuple[AssetValuation, ...] = field(default_factory=tuple)
