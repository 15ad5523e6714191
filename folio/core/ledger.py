"""
Responsibilities:
- Own the in-memory ledger snapshot (portfolio -> ticker -> asset record)
- Apply mutations: create portfolios/asset records, set cost constraints, append transactions
- Persist the full snapshot through the LedgerStore before a mutation returns

Working:
- Every mutation runs under one lock and edits a deep copy of the snapshot (a draft)
- The draft is saved; only after `save` returns does it replace the live snapshot
- A failed save therefore leaves memory and disk on the pre-mutation state

Scope:
- Buy-only cost basis: every transaction adds quantity at a per-unit price.
  There is no sell/short direction and no correction or removal of past entries.
- Single process owns the store; creating a new ticker is check-then-act against
  the quote provider and is only safe under that assumption.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Optional, Union

from folio.adapters.telemetry.jsonl import NullTelemetry
from folio.core.clock import today
from folio.errors.errors import (
    AssetNotFoundError,
    PortfolioNotFoundError,
    TickerNotFoundError,
    ValidationError,
)
from folio.ports.clock import Clock
from folio.ports.ledger_store import LedgerStore
from folio.ports.quote_provider import QuoteProvider
from folio.ports.telemetry import Telemetry
from folio.types.aliases import DateFormat, PortfolioName, Ticker
from folio.types.types import (
    AssetRecord,
    CostConstraint,
    LedgerSnapshot,
    Portfolio,
    Transaction,
)
from folio.utils.utility import (
    parse_date,
    parse_non_negative,
    parse_optional_non_negative,
    parse_quantity,
)

logger = logging.getLogger(__name__)

Number = Union[str, int, float]


class Ledger:
    """
    Authoritative portfolio state plus the operations that change it.

    Usage:
        ledger = Ledger(FileLedgerStore(cfg.store), provider, SystemClock())
        ledger.set_cost_constraint("long-term", "AAPL", max="220")
        ledger.record_transaction("long-term", "AAPL", "10", "185.5", "02/01/2024")
    """

    def __init__(
        self,
        store: LedgerStore,
        provider: QuoteProvider,
        clock: Clock,
        telemetry: Optional[Telemetry] = None,
        date_format: DateFormat = "%d/%m/%Y",
    ) -> None:
        """
        Load the snapshot from `store`. A PersistenceError here is fatal for the caller:
        no valid state could be established.
        """
        self._store = store
        self._provider = provider
        self._clock = clock
        self._telemetry: Telemetry = telemetry or NullTelemetry()
        self._date_format = date_format
        self._lock = threading.Lock()
        self._snapshot: LedgerSnapshot = store.load()

    # --- Read API ---

    @property
    def date_format(self) -> DateFormat:
        return self._date_format

    def snapshot(self) -> LedgerSnapshot:
        """Deep copy of the current state; mutating it does not affect the ledger."""
        return self._snapshot.model_copy(deep=True)

    def portfolio_names(self) -> list[PortfolioName]:
        return self._snapshot.names()

    def portfolio(self, portfolio_id: PortfolioName) -> Portfolio:
        portfolio = self._snapshot.portfolio.get(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id, component="ledger")
        return portfolio.model_copy(deep=True)

    def asset(self, portfolio_id: PortfolioName, ticker: Ticker) -> AssetRecord:
        record = self.portfolio(portfolio_id).asset.get(ticker)
        if record is None:
            raise AssetNotFoundError(portfolio_id, ticker, component="ledger")
        return record

    # --- Mutations ---

    def create_portfolio(self, portfolio_id: PortfolioName) -> bool:
        """
        Create an empty portfolio. Returns False (and writes nothing) if it already exists.
        """
        _require_key(portfolio_id, "portfolio")
        with self._lock:
            if portfolio_id in self._snapshot.portfolio:
                return False
            draft = self._snapshot.model_copy(deep=True)
            draft.portfolio[portfolio_id] = Portfolio()
            self._commit(draft)

        logger.info(
            "portfolio_created",
            extra={"event": "portfolio_created", "portfolio": portfolio_id},
        )
        self._telemetry.log("portfolio_created", portfolio=portfolio_id)
        return True

    def set_cost_constraint(
        self,
        portfolio_id: PortfolioName,
        ticker: Ticker,
        min: Optional[Number] = None,
        max: Optional[Number] = None,
        per: Optional[Number] = None,
    ) -> AssetRecord:
        """
        Replace the cost constraint of `ticker` in `portfolio_id` (all three bounds at once).

        The portfolio is created if absent. A ticker new to the portfolio is first
        checked against the quote provider; TickerNotFoundError leaves the ledger untouched.

        Raises:
            ValidationError: a bound is not a non-negative number
            TickerNotFoundError: provider does not know a ticker that would be created
            ExternalProviderError: existence check failed
            PersistenceError: snapshot could not be saved (nothing changed)
        """
        _require_key(portfolio_id, "portfolio")
        _require_key(ticker, "ticker")
        constraint = CostConstraint(
            min=parse_optional_non_negative(min, "min"),
            max=parse_optional_non_negative(max, "max"),
            per=parse_optional_non_negative(per, "per"),
        )

        with self._lock:
            draft = self._snapshot.model_copy(deep=True)
            portfolio = draft.portfolio.get(portfolio_id)
            record = portfolio.asset.get(ticker) if portfolio is not None else None

            created = record is None
            if created:
                if not self._provider.exists(ticker):
                    raise TickerNotFoundError(ticker, component="ledger")
                if portfolio is None:
                    portfolio = draft.portfolio[portfolio_id] = Portfolio()
                record = portfolio.asset[ticker] = AssetRecord()

            record.cost = constraint
            self._commit(draft)
            result = record.model_copy(deep=True)

        if created:
            logger.info(
                "asset_created",
                extra={"event": "asset_created", "portfolio": portfolio_id, "ticker": ticker},
            )
        self._telemetry.log(
            "cost_constraint_set",
            portfolio=portfolio_id,
            ticker=ticker,
            created=created,
            min=constraint.min,
            max=constraint.max,
            per=constraint.per,
        )
        return result

    def record_transaction(
        self,
        portfolio_id: PortfolioName,
        ticker: Ticker,
        quantity: Union[str, int],
        price: Optional[Number] = None,
        date: Optional[Union[str, dt.date]] = None,
    ) -> Transaction:
        """
        Append a buy of `quantity` units at `price` on `date` to an existing asset record.

        `price` defaults to the provider's current close; `date` defaults to today (Clock).
        Past transactions are never modified.

        Raises:
            PortfolioNotFoundError / AssetNotFoundError: asset record does not exist yet
            ValidationError: quantity or price malformed
            DateFormatError: date does not match the configured format
            ExternalProviderError / TickerNotFoundError: price lookup failed
            PersistenceError: snapshot could not be saved (nothing appended)
        """
        with self._lock:
            portfolio = self._snapshot.portfolio.get(portfolio_id)
            if portfolio is None:
                raise PortfolioNotFoundError(portfolio_id, component="ledger")
            if ticker not in portfolio.asset:
                raise AssetNotFoundError(portfolio_id, ticker, component="ledger")

            qty = parse_quantity(quantity)
            when = parse_date(date, self._date_format) if date is not None else today(self._clock)
            if price is None:
                unit_price = self._provider.last_quote(ticker).close
            else:
                unit_price = parse_non_negative(price, "price")

            transaction = Transaction(quantity=qty, price=unit_price, date=when)
            draft = self._snapshot.model_copy(deep=True)
            draft.portfolio[portfolio_id].asset[ticker].op.append(transaction)
            self._commit(draft)

        logger.info(
            "transaction_recorded",
            extra={
                "event": "transaction_recorded",
                "portfolio": portfolio_id,
                "ticker": ticker,
                "quantity": qty,
                "price": unit_price,
            },
        )
        self._telemetry.log(
            "transaction_recorded",
            portfolio=portfolio_id,
            ticker=ticker,
            quantity=qty,
            price=unit_price,
            date=when.isoformat(),
        )
        return transaction

    # --- Internal ---

    def _commit(self, draft: LedgerSnapshot) -> None:
        """Save `draft`; install it as the live snapshot only if the save succeeded."""
        self._store.save(draft)
        self._snapshot = draft


def _require_key(value: str, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string", field=field, value=value)
