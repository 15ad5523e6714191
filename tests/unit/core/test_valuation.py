import datetime as dt
import itertools

import pytest

from folio.core.valuation import asset_gain, day_gain, percentage, portfolio_gain, value_asset
from folio.errors.errors import EmptyPortfolioError, ExternalProviderError
from folio.types.types import AssetRecord, Portfolio, Transaction
from tests.fixtures.fixtures import StubQuoteProvider, make_quote

D = dt.date(2024, 1, 2)


def _record(*pairs: tuple[int, float]) -> AssetRecord:
    return AssetRecord(op=[Transaction(quantity=q, price=p, date=D) for q, p in pairs])


def test_single_transaction_gain():
    gain, invested = asset_gain(_record((10, 100.0)), make_quote("AAPL", 110.0))
    assert gain == pytest.approx(100.0)
    assert invested == pytest.approx(1000.0)
    assert percentage(gain, invested) == pytest.approx(10.0)


def test_zero_transactions():
    gain, invested = asset_gain(AssetRecord(), make_quote("AAPL", 110.0))
    assert (gain, invested) == (0.0, 0.0)
    assert percentage(gain, invested) == 0.0


def test_percentage_with_nothing_invested():
    # free shares: gain without cost basis
    assert percentage(50.0, 0.0) == 0.0


def test_gain_is_order_independent():
    pairs = [(3, 0.1), (7, 19.99), (1, 1e6), (12, 0.3), (5, 333.33)]
    quote = make_quote("AAPL", 101.7)
    expected = asset_gain(_record(*pairs), quote)
    for perm in itertools.permutations(pairs):
        assert asset_gain(_record(*perm), quote) == expected


def test_loss_is_negative():
    v = value_asset("AAPL", _record((2, 50.0), (2, 70.0)), make_quote("AAPL", 40.0))
    assert v.quantity == 4
    assert v.invested == pytest.approx(240.0)
    assert v.gain == pytest.approx(-80.0)
    assert v.percentage == pytest.approx(-100 / 3)


def test_day_gain():
    change, pct = day_gain(make_quote("AAPL", 110.0, open=100.0))
    assert change == pytest.approx(10.0)
    assert pct == pytest.approx(10.0)
    assert day_gain(make_quote("X", 5.0, open=0.0)) == (5.0, 0.0)


class TestPortfolioGain:
    def _portfolio(self) -> Portfolio:
        return Portfolio(
            asset={
                "MSFT": _record((10, 40.0)),
                "AAPL": _record((10, 100.0), (5, 120.0)),
                "IDLE": AssetRecord(),
            }
        )

    def test_aggregates_traded_assets(self, provider) -> None:
        v = portfolio_gain(self._portfolio(), provider, name="growth")
        assert v.portfolio == "growth"
        assert [a.ticker for a in v.assets] == ["AAPL", "MSFT"]
        # AAPL: 10*(110-100) + 5*(110-120) = 50 on 1600; MSFT: 10*(50-40) = 100 on 400
        assert v.gain == pytest.approx(150.0)
        assert v.invested == pytest.approx(2000.0)
        assert v.percentage == pytest.approx(7.5)

    def test_one_lookup_per_traded_ticker(self, provider) -> None:
        portfolio_gain(self._portfolio(), provider)
        portfolio_gain(self._portfolio(), provider)
        assert provider.calls == ["AAPL", "MSFT", "AAPL", "MSFT"]

    def test_empty_portfolio(self, provider) -> None:
        with pytest.raises(EmptyPortfolioError):
            portfolio_gain(Portfolio(), provider, name="growth")
        with pytest.raises(EmptyPortfolioError):
            portfolio_gain(Portfolio(asset={"AAPL": AssetRecord()}), provider)
        assert provider.calls == []

    def test_zero_gain_is_not_empty(self) -> None:
        provider = StubQuoteProvider(quotes={"AAPL": make_quote("AAPL", 100.0)})
        v = portfolio_gain(Portfolio(asset={"AAPL": _record((1, 100.0))}), provider)
        assert v.gain == 0.0
        assert v.percentage == 0.0

    def test_provider_failure_is_surfaced(self, provider) -> None:
        provider.failing.add("MSFT")
        with pytest.raises(ExternalProviderError) as exc_info:
            portfolio_gain(self._portfolio(), provider)
        assert exc_info.value.ticker == "MSFT"

    def test_unknown_ticker_becomes_provider_error(self, provider) -> None:
        del provider.quotes["MSFT"]
        with pytest.raises(ExternalProviderError) as exc_info:
            portfolio_gain(self._portfolio(), provider, name="growth")
        assert exc_info.value.ticker == "MSFT"
        assert exc_info.value.details["portfolio"] == "growth"
