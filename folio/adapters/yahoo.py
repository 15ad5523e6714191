"""Yahoo Finance QuoteProvider adapter.

Two public endpoints are used:
- chart  (<chart_url>/<symbol>?range=1d&interval=1d): last quote and instrument metadata
- search (<search_url>?q=<query>): free-text instrument lookup

Retries 429/5xx and transport errors with a short bounded backoff; everything else
is surfaced immediately. No caching: every call hits the network.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional
from urllib.parse import quote

import requests

from folio.config.configs import QuoteConfig
from folio.errors.errors import ExternalProviderError, TickerNotFoundError
from folio.types.types import Quote, SearchResult

logger = logging.getLogger(__name__)


class YahooQuoteProvider:
    def __init__(
        self,
        cfg: QuoteConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cfg = cfg
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = cfg.user_agent
        self._sleep = sleep

    def close(self) -> None:
        self._session.close()

    # --- QuoteProvider API ---

    def exists(self, ticker: str) -> bool:
        try:
            self.last_quote(ticker)
        except TickerNotFoundError:
            return False
        return True

    def last_quote(self, ticker: str) -> Quote:
        url = f"{self._cfg.chart_url}/{quote(ticker, safe='')}"
        status, payload = self._get_json(url, params={"range": "1d", "interval": "1d"}, ticker=ticker)

        chart = (payload or {}).get("chart") or {}
        results = chart.get("result") or []
        if status == 404:
            raise TickerNotFoundError(ticker, component="quote.yahoo")
        if status != 200:
            raise ExternalProviderError(
                f"Unexpected response for {ticker!r}",
                ticker=ticker,
                status_code=status,
                component="quote.yahoo",
            )
        if not results:
            raise TickerNotFoundError(ticker, component="quote.yahoo")

        result = results[0] or {}
        meta = result.get("meta") or {}
        series = ((result.get("indicators") or {}).get("quote") or [{}])[0] or {}

        close = _last_number(series.get("close"))
        if close is None:
            close = _as_float(meta.get("regularMarketPrice"))
        if close is None:
            raise ExternalProviderError(
                f"No close price in response for {ticker!r}",
                ticker=ticker,
                status_code=status,
                component="quote.yahoo",
            )
        open_ = _last_number(series.get("open"))

        q = Quote(
            symbol=str(meta.get("symbol") or ticker),
            close=close,
            open=open_ if open_ is not None else close,
            currency=str(meta.get("currency") or ""),
            instrument_type=str(meta.get("instrumentType") or ""),
        )
        logger.debug(
            "quote_fetched",
            extra={"event": "quote_fetched", "ticker": ticker, "close": q.close},
        )
        return q

    def search(self, query: str) -> list[SearchResult]:
        status, payload = self._get_json(
            self._cfg.search_url,
            params={"q": query, "quotesCount": self._cfg.search_limit, "newsCount": 0},
        )
        if status != 200:
            raise ExternalProviderError(
                f"Search failed for {query!r}", status_code=status, component="quote.yahoo"
            )

        out: list[SearchResult] = []
        for item in (payload or {}).get("quotes") or []:
            symbol = item.get("symbol")
            if not symbol:
                continue
            out.append(
                SearchResult(
                    display_type=str(item.get("typeDisp") or item.get("quoteType") or ""),
                    symbol=str(symbol),
                    exchange=str(item.get("exchange") or ""),
                    description=str(item.get("longname") or item.get("shortname") or ""),
                )
            )
        return out

    # --- HTTP ---

    def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any],
        ticker: Optional[str] = None,
    ) -> tuple[int, Optional[dict[str, Any]]]:
        """
        GET `url` and decode the JSON body.

        Returns:
            (status_code, payload); payload is None when the body is not JSON.
            404 is returned to the caller, retryable statuses are retried up to cfg.retries.
        """
        attempts = max(1, self._cfg.retries)
        delay = 0.5
        last_status = 0

        for attempt in range(attempts):
            retryable = False
            try:
                response = self._session.get(url, params=params, timeout=self._cfg.timeout_s)
                last_status = response.status_code
                retryable = last_status == 429 or 500 <= last_status < 600
                if not retryable:
                    try:
                        body = response.json()
                    except ValueError:
                        body = None
                    return last_status, body if isinstance(body, dict) else None
            except requests.RequestException as ex:
                last_status = 0
                retryable = True
                logger.warning(
                    "quote_request_failed",
                    extra={
                        "event": "quote_request_failed",
                        "url": url,
                        "attempt": attempt + 1,
                        "error": type(ex).__name__,
                    },
                )

            if attempt == attempts - 1:
                break

            self._sleep(delay)
            delay = min(2.0, delay * 1.5)

        raise ExternalProviderError(
            f"Quote provider unavailable after {attempts} attempt(s)",
            ticker=ticker,
            status_code=last_status or None,
            component="quote.yahoo",
            details={"url": url},
        )


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _last_number(values: Any) -> Optional[float]:
    """Last non-null number of a series (Yahoo pads missing bars with null)."""
    if not isinstance(values, list):
        return None
    for value in reversed(values):
        number = _as_float(value)
        if number is not None:
            return number
    return None
