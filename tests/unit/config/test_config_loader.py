"""
Unit tests for config loading and override layering.
"""

from pathlib import Path

import pytest

from folio.config.config_loader import ConfigLoader, collect_env_config, parse_cli_overrides
from folio.config.configs import FolioConfig, StoreConfig
from folio.errors.errors import ConfigurationError


class TestDefaults:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", "/srv/data")
        cfg = FolioConfig()
        assert cfg.store.data_file == Path("/srv/data/folio/folio.json")
        assert cfg.date_format == "%d/%m/%Y"
        assert cfg.audit.enabled is False
        assert cfg.logging.level == "WARNING"

    def test_home_fallback(self, monkeypatch, tmp_path) -> None:
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert StoreConfig().data_dir == tmp_path / ".local" / "share" / "folio"

    def test_extra_keys_forbidden(self) -> None:
        with pytest.raises(ValueError):
            FolioConfig.model_validate({"store": {"unknown": 1}})


class TestEnvAndCli:
    def test_collect_env_config(self) -> None:
        environ = {
            "FOLIO_STORE__DATA_DIR": "/tmp/ledger",
            "FOLIO_LOGGING__LEVEL": "debug",
            "PATH": "/usr/bin",
        }
        assert collect_env_config(environ) == {
            "store": {"data_dir": "/tmp/ledger"},
            "logging": {"level": "debug"},
        }

    def test_collect_env_config_empty(self) -> None:
        assert collect_env_config({"HOME": "/root"}) is None

    def test_parse_cli_overrides(self) -> None:
        assert parse_cli_overrides(["quote.retries=5", "date_format=%Y-%m-%d"]) == {
            "quote": {"retries": "5"},
            "date_format": "%Y-%m-%d",
        }

    @pytest.mark.parametrize("pairs", [["no_separator"], ["=value"], ["a=1", "a.b=2"]])
    def test_parse_cli_overrides_invalid(self, pairs) -> None:
        with pytest.raises(ConfigurationError):
            parse_cli_overrides(pairs)


class TestConfigLoader:
    def test_layer_precedence(self, tmp_path) -> None:
        config_file = tmp_path / "folio.toml"
        config_file.write_text(
            'date_format = "%Y-%m-%d"\n'
            "[store]\n"
            f'data_dir = "{tmp_path}"\n'
            'file_name = "from_file.json"\n'
            "[quote]\n"
            "retries = 7\n",
            encoding="utf-8",
        )
        cfg = ConfigLoader().load_config(
            config_file,
            overrides=["store.file_name=from_cli.json"],
            environ={"FOLIO_STORE__FILE_NAME": "from_env.json", "FOLIO_QUOTE__RETRIES": "2"},
        )
        assert cfg.store.data_file == tmp_path / "from_cli.json"
        assert cfg.quote.retries == 2
        assert cfg.date_format == "%Y-%m-%d"

    def test_relative_path_uses_base_dir(self, tmp_path) -> None:
        (tmp_path / "folio.toml").write_text("[audit]\nenabled = true\n", encoding="utf-8")
        cfg = ConfigLoader(base_dir=str(tmp_path)).load_config("folio.toml", environ={})
        assert cfg.audit.enabled is True

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader().load(tmp_path / "absent.toml")
        assert "not found" in str(exc_info.value)

    def test_invalid_toml(self, tmp_path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("[store\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigLoader().load(path)

    def test_schema_error_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader().load_config(overrides=["quote.retries=zero"], environ={})
        assert exc_info.value.field == "quote.retries"
        assert exc_info.value.details["errors"]

    def test_log_level_is_case_insensitive(self) -> None:
        cfg = ConfigLoader().load_config(environ={"FOLIO_LOGGING__LEVEL": "info"})
        assert cfg.logging.level == "INFO"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_config(environ={"FOLIO_LOGGING__LEVEL": "loud"})
