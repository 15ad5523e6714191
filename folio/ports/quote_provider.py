"""QuoteProvider Port Interface.

Contract: Resolve tickers against an external market-data source.
- exists: cheap existence check used before creating an asset record
- last_quote: latest quote; raises TickerNotFoundError for unknown tickers and
  ExternalProviderError when the source cannot be reached
- search: free-text lookup of instruments
- close: release connections; called once by the owner when done
"""

from __future__ import annotations

from typing import Protocol

from folio.types.types import Quote, SearchResult


class QuoteProvider(Protocol):
    def exists(self, ticker: str) -> bool: ...
    def last_quote(self, ticker: str) -> Quote: ...
    def search(self, query: str) -> list[SearchResult]: ...
    def close(self) -> None: ...
