"""Tests for settings loading and service wiring."""

import logging
from pathlib import Path
from unittest.mock import call, patch

import pytest
from pytest import MonkeyPatch

from state_migrator.config import (
    MigratorConfig,
    create_migration_service,
    default_config_dir,
    load_config,
)
from state_migrator.exceptions import ConfigurationError
from state_migrator.token import JwtTokenService


def write_settings(config_dir: Path, text: str) -> None:
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "settings.conf").write_text(text, encoding="utf-8")


class TestLoadConfig:
    def test_missing_file_uses_defaults(
        self, tmp_path: Path, monkeypatch: MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        config = load_config(tmp_path / "nowhere")

        assert config.data_dir == Path.home() / ".local/share/state-migrator"
        assert config.document_file == "document.json"
        assert config.preferences_file == "preferences.json"
        assert config.keyring_service == "state-migrator"
        assert config.log_level == "INFO"
        assert config.console_log_level == "WARNING"

    def test_reads_storage_section(self, tmp_path: Path) -> None:
        write_settings(
            tmp_path,
            "[DEFAULT]\n"
            "log_level = debug\n"
            "console_log_level = ERROR\n"
            "\n"
            "[storage]\n"
            f"data_dir = {tmp_path / 'data'}\n"
            "document_file = doc.json\n"
            "keyring_service = my-client\n",
        )

        config = load_config(tmp_path)

        assert config.data_dir == tmp_path / "data"
        assert config.document_path == tmp_path / "data" / "doc.json"
        assert config.preferences_path == (
            tmp_path / "data" / "preferences.json"
        )
        assert config.keyring_service == "my-client"
        assert config.log_level == "DEBUG"
        assert config.console_log_level == "ERROR"

    def test_invalid_level_falls_back(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_settings(tmp_path, "[DEFAULT]\nlog_level = LOUD\n")

        with caplog.at_level(logging.WARNING, logger="state_migrator"):
            config = load_config(tmp_path)

        assert config.log_level == "INFO"
        assert "Invalid log_level 'LOUD'" in caplog.text

    def test_unparsable_file_raises(self, tmp_path: Path) -> None:
        write_settings(tmp_path, "this is not ini\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.target == str(tmp_path / "settings.conf")

    def test_config_dir_env_override(
        self, tmp_path: Path, monkeypatch: MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STATE_MIGRATOR_CONFIG_DIR", str(tmp_path))
        write_settings(tmp_path, "[storage]\nkeyring_service = env-service\n")

        assert default_config_dir() == tmp_path
        assert load_config().keyring_service == "env-service"


def test_create_migration_service_wires_backends(tmp_path: Path) -> None:
    config = MigratorConfig(data_dir=tmp_path, keyring_service="svc")

    with (
        patch("state_migrator.config.JsonFileStorage") as json_storage,
        patch("state_migrator.config.KeyringStorage") as keyring_storage,
    ):
        service = create_migration_service(config)

    assert json_storage.call_args_list == [
        call(tmp_path / "document.json"),
        call(tmp_path / "preferences.json"),
    ]
    keyring_storage.assert_called_once_with("svc")
    assert isinstance(service.context.token_service, JwtTokenService)
