"""
Gain/loss of assets and portfolios against live quotes.

Pure functions over ledger state; the only side effect is one quote lookup per
traded ticker in `portfolio_gain` (no caching across assets or calls).

Definitions (all transactions count, regardless of age):
    gain       = sum(quantity_i * (close - price_i))
    invested   = sum(quantity_i * price_i)
    percentage = gain / invested * 100, or 0.0 when nothing is invested
"""

from __future__ import annotations

import logging
import math

from folio.errors.errors import EmptyPortfolioError, ExternalProviderError, FolioError
from folio.ports.quote_provider import QuoteProvider
from folio.types.aliases import PortfolioName
from folio.types.types import AssetRecord, AssetValuation, Portfolio, PortfolioValuation, Quote

logger = logging.getLogger(__name__)


def asset_gain(record: AssetRecord, quote: Quote) -> tuple[float, float]:
    """
    Return (gain, invested) of `record` valued at `quote.close`.
    fsum keeps the totals independent of transaction order.
    """
    gain = math.fsum(t.quantity * (quote.close - t.price) for t in record.op)
    invested = math.fsum(t.quantity * t.price for t in record.op)
    return gain, invested


def percentage(gain: float, invested: float) -> float:
    if invested == 0:
        return 0.0
    return gain / invested * 100


def day_gain(quote: Quote) -> tuple[float, float]:
    """Intraday (change, change %) from the session open to the last close."""
    change = quote.close - quote.open
    return change, percentage(change, quote.open)


def value_asset(ticker: str, record: AssetRecord, quote: Quote) -> AssetValuation:
    gain, invested = asset_gain(record, quote)
    return AssetValuation(
        ticker=ticker,
        quantity=record.quantity,
        invested=invested,
        gain=gain,
        percentage=percentage(gain, invested),
        quote=quote,
    )


def portfolio_gain(
    portfolio: Portfolio,
    provider: QuoteProvider,
    name: PortfolioName = "",
) -> PortfolioValuation:
    """
    Value every traded asset of `portfolio` and aggregate.

    Tickers are visited in sorted order; assets without transactions are ignored.

    Raises:
        EmptyPortfolioError: no asset has a transaction (valuation undefined, not 0/0)
        ExternalProviderError: a quote lookup failed; carries the ticker, nothing is skipped
    """
    tickers = portfolio.traded_tickers()
    if not tickers:
        raise EmptyPortfolioError(name, component="valuation")

    assets: list[AssetValuation] = []
    for ticker in tickers:
        try:
            quote = provider.last_quote(ticker)
        except ExternalProviderError:
            raise
        except FolioError as exc:
            raise ExternalProviderError(
                f"Valuation of {ticker!r} abandoned: {exc}",
                ticker=ticker,
                component="valuation",
                details={"portfolio": name},
            ) from exc
        assets.append(value_asset(ticker, portfolio.asset[ticker], quote))

    gain = math.fsum(a.gain for a in assets)
    invested = math.fsum(a.invested for a in assets)
    logger.debug(
        "portfolio_valued",
        extra={
            "event": "portfolio_valued",
            "portfolio": name,
            "assets": len(assets),
            "gain": gain,
            "invested": invested,
        },
    )
    return PortfolioValuation(
        portfolio=name,
        gain=gain,
        invested=invested,
        percentage=percentage(gain, invested),
        assets=tuple(assets),
    )
