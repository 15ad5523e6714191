"""
Exceptions for the portfolio ledger.

Exception hierarchy:
- FolioError (base)
  - ValidationError: malformed numeric input
    - DateFormatError: date does not match the configured format
  - PortfolioNotFoundError: referenced portfolio absent
  - AssetNotFoundError: referenced ticker absent from a portfolio
  - TickerNotFoundError: quote provider does not know the ticker
  - ExternalProviderError: quote provider call failed
  - EmptyPortfolioError: valuation requested for a portfolio without positions
  - PersistenceError: ledger file could not be read or written
  - ConfigurationError: invalid configuration
"""

from __future__ import annotations

from typing import Any, Optional


class FolioError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


# --- Input ---


class ValidationError(FolioError):
    """Raised when a numeric input cannot be parsed or is out of range."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)


class DateFormatError(ValidationError):
    """Raised when a date string does not match the expected day/month/year format."""

    def __init__(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        expected_format: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.expected_format = expected_format
        details = details or {}
        if expected_format:
            details["expected_format"] = expected_format
        super().__init__(message, field="date", value=value, component=component, details=details)


# --- Lookup ---


class PortfolioNotFoundError(FolioError):
    """Raised when a portfolio name is not present in the ledger."""

    def __init__(
        self,
        portfolio: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.portfolio = portfolio
        details = details or {}
        details["portfolio"] = portfolio
        super().__init__(f"Portfolio not found: {portfolio!r}", component=component, details=details)


class AssetNotFoundError(FolioError):
    """Raised when a ticker has no asset record inside a portfolio."""

    def __init__(
        self,
        portfolio: str,
        ticker: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.portfolio = portfolio
        self.ticker = ticker
        details = details or {}
        details["portfolio"] = portfolio
        details["ticker"] = ticker
        super().__init__(
            f"Asset {ticker!r} not found in portfolio {portfolio!r}",
            component=component,
            details=details,
        )


class TickerNotFoundError(FolioError):
    """Raised when the quote provider cannot resolve a ticker."""

    def __init__(
        self,
        ticker: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.ticker = ticker
        details = details or {}
        details["ticker"] = ticker
        super().__init__(f"Ticker not found: {ticker!r}", component=component, details=details)


# --- External ---


class ExternalProviderError(FolioError):
    """Raised when a quote provider call fails (network, rate limit, bad payload)."""

    def __init__(
        self,
        message: str,
        *,
        ticker: Optional[str] = None,
        status_code: Optional[int] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.ticker = ticker
        self.status_code = status_code
        details = details or {}
        if ticker:
            details["ticker"] = ticker
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, component=component, details=details)


# --- Valuation ---


class EmptyPortfolioError(FolioError):
    """
    Raised when a portfolio has no asset with at least one transaction.
    Distinct from a valuation that nets to zero gain.
    """

    def __init__(
        self,
        portfolio: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.portfolio = portfolio
        details = details or {}
        details["portfolio"] = portfolio
        super().__init__(f"Portfolio {portfolio!r} is empty", component=component, details=details)


# --- Storage ---


class PersistenceError(FolioError):
    """Raised when the ledger file cannot be read, parsed or written."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = path
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, component=component, details=details)


# --- Config ---


class ConfigurationError(FolioError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)
