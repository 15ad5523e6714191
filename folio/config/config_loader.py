"""
Purpose:
    - Loads an optional TOML config file
    - Collects FOLIO_* environment overrides and --set KEY=VALUE overrides
    - Merges the layers (defaults < file < env < cli) and validates the result

Environment keys use a double underscore for nesting:
    FOLIO_STORE__DATA_DIR=/tmp/ledger  ->  {"store": {"data_dir": "/tmp/ledger"}}
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from folio.config.configs import FolioConfig
from folio.errors.errors import ConfigurationError
from folio.utils.utility import deep_merge, insert_path, validation_error_parser

logger = logging.getLogger(__name__)

ENV_PREFIX = "FOLIO_"


def collect_env_config(
    environ: Mapping[str, str], prefix: str = ENV_PREFIX
) -> Optional[dict[str, Any]]:
    """Build a nested mapping from prefixed environment variables; None if there are none."""
    tree: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(prefix):
            continue
        dotted = key[len(prefix) :].lower().replace("__", ".")
        try:
            insert_path(tree, dotted, value)
        except ValueError as exc:
            raise ConfigurationError(str(exc), field=key, component="config.env") from exc
    return tree or None


def parse_cli_overrides(pairs: list[str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    for item in pairs:
        key, sep, value = item.partition("=")
        if sep == "":
            raise ConfigurationError(
                f"--set requires KEY=VALUE format (got {item!r})", component="config.cli"
            )
        try:
            insert_path(overrides, key, value)
        except ValueError as exc:
            raise ConfigurationError(str(exc), field=key, component="config.cli") from exc
    return overrides


class ConfigLoader:
    """
    Config-loader; loading toml file and resolving override layers.
    """

    def __init__(self, base_dir: str = ".") -> None:
        self._base_dir = base_dir

    def load(self, file_name: str | Path) -> dict[str, Any]:
        path = Path(file_name).expanduser()
        if not path.is_absolute():
            path = Path(self._base_dir) / path

        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}", field="config")

        try:
            with path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(
                f"Config file is not valid TOML: {exc}", field="config", value=path
            ) from exc

    def resolve(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        file_cfg: Optional[Mapping[str, Any]] = None,
        env_cfg: Optional[Mapping[str, Any]] = None,
        cli_overrides: Optional[Mapping[str, Any]] = None,
    ) -> FolioConfig:
        """
        Resolves differing arguments according to hierarchy.
        Implements precedence merge (apply layers sequentially), later layers win.
        """
        resolved: Mapping[str, Any] = dict(defaults or {})
        for layer in (file_cfg, env_cfg, cli_overrides):
            if layer:
                resolved = deep_merge(resolved, layer)

        try:
            cfg = FolioConfig.model_validate(resolved)
        except PydanticValidationError as exc:
            errors = validation_error_parser(exc)
            first = errors[0] if errors else {"path": "", "message": str(exc)}
            raise ConfigurationError(
                f"Invalid configuration at '{first['path']}': {first['message']}",
                field=first["path"],
                component="config.schema",
                details={"errors": errors},
            ) from exc

        logger.debug(
            "config_resolved",
            extra={
                "event": "config_resolved",
                "data_file": str(cfg.store.data_file),
                "audit_enabled": cfg.audit.enabled,
            },
        )
        return cfg

    def load_config(
        self,
        file_name: str | Path | None = None,
        overrides: Optional[list[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> FolioConfig:
        """File (optional) + environment + KEY=VALUE overrides over built-in defaults."""
        file_cfg = self.load(file_name) if file_name else None
        env_cfg = collect_env_config(os.environ if environ is None else environ)
        cli_cfg = parse_cli_overrides(overrides) if overrides else None
        return self.resolve(file_cfg=file_cfg, env_cfg=env_cfg, cli_overrides=cli_cfg)
