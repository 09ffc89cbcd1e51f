from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adminconsole.config import (
    ConfigurationError,
    ConsoleConfig,
    load_config,
    load_console_config,
    resolve_config_path,
)


def test_load_config_reads_console_section(tmp_path: Path) -> None:
    config_path = tmp_path / "console.yaml"
    config_path.write_text(
        "console:\n"
        "  base_url: https://admin.example.com/\n"
        "  timeout: 5\n"
        "  token_file: session.json\n"
        "  session_secret: s3cret\n",
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.base_url == "https://admin.example.com"
    assert config.timeout == 5.0
    assert config.page_size == 30
    assert config.token_file == (tmp_path / "session.json").resolve()
    assert config.session_secret == "s3cret"


def test_defaults_use_fifteen_second_timeout() -> None:
    config = ConsoleConfig()

    assert config.timeout == 15.0
    assert config.page_size == 30


@pytest.mark.parametrize(
    "data",
    [
        {"base_url": "ftp://example.com"},
        {"timeout": 0},
        {"timeout": "soon"},
        {"page_size": -1},
        {"unexpected": True},
        {"verify": 3},
    ],
)
def test_invalid_settings_raise_configuration_error(data) -> None:
    with pytest.raises(ConfigurationError):
        ConsoleConfig.from_dict(data)


def test_environment_overrides_file_settings(tmp_path: Path) -> None:
    config = ConsoleConfig(base_url="https://file.example.com").with_environment(
        {
            "ADMIN_CONSOLE_BASE_URL": "https://env.example.com/",
            "ADMIN_CONSOLE_TIMEOUT": "20",
            "ADMIN_CONSOLE_TOKEN_FILE": str(tmp_path / "token.json"),
            "ADMIN_CONSOLE_SESSION_SECRET": "from-env",
        }
    )

    assert config.base_url == "https://env.example.com"
    assert config.timeout == 20.0
    assert config.token_file == (tmp_path / "token.json").resolve()
    assert config.session_secret == "from-env"


def test_missing_default_file_falls_back_to_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ADMIN_CONSOLE_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.delenv("ADMIN_CONSOLE_BASE_URL", raising=False)
    monkeypatch.delenv("ADMIN_CONSOLE_TIMEOUT", raising=False)

    config = load_console_config()

    assert config.base_url == ConsoleConfig().base_url


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_console_config(str(tmp_path / "absent.yaml"))


def test_malformed_yaml_is_a_configuration_error(tmp_path: Path) -> None:
    config_path = tmp_path / "console.yaml"
    config_path.write_text("console:\n  base_url: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Could not parse"):
        load_config(config_path)


def test_resolve_config_path_defaults_to_project_config_dir() -> None:
    assert resolve_config_path(None) == (ROOT / "config" / "console.yaml").resolve()


def test_credentials_prefer_environment_over_session_file(monkeypatch, tmp_path: Path) -> None:
    session_file = tmp_path / "session.json"
    session_file.write_text('{"adminToken": "file-token"}', encoding="utf-8")
    config = ConsoleConfig(token_file=session_file, token_env="TEST_ADMIN_TOKEN")

    monkeypatch.delenv("TEST_ADMIN_TOKEN", raising=False)
    assert config.credentials().get_token() == "file-token"

    monkeypatch.setenv("TEST_ADMIN_TOKEN", "env-token")
    assert config.credentials().get_token() == "env-token"
