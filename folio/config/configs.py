from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

"""
Here, we collect all the different configs
"""

APP_NAME = "folio"


def default_data_dir() -> Path:
    """User-scoped data directory: $XDG_DATA_HOME/folio, else ~/.local/share/folio."""
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_NAME


# --- Store Section ---


class StoreConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    data_dir: Path = Field(default_factory=default_data_dir, description="Ledger directory")
    file_name: str = Field(default=f"{APP_NAME}.json", min_length=1)

    @property
    def data_file(self) -> Path:
        return Path(self.data_dir).expanduser() / self.file_name


# --- Quote Section ---


class QuoteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    chart_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    search_url: str = "https://query2.finance.yahoo.com/v1/finance/search"
    timeout_s: float = Field(default=15.0, gt=0)
    retries: int = Field(default=3, ge=1)
    search_limit: int = Field(default=10, ge=1)
    user_agent: str = f"Mozilla/5.0 ({APP_NAME})"


# --- Observability Section ---


class AuditConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = False
    file_name: str = "events.log.jsonl"


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: LogLevel = "WARNING"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


# --- Aggregation ---


class FolioConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    store: StoreConfig = Field(default_factory=StoreConfig)
    quote: QuoteConfig = Field(default_factory=QuoteConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    date_format: str = Field(default="%d/%m/%Y", description="Transaction date input format")
