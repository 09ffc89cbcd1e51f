"""Configuration management for the user administration console."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .client import DEFAULT_TIMEOUT
from .credentials import (
    DEFAULT_TOKEN_ENV,
    ChainedCredentials,
    CredentialProvider,
    EnvironmentCredentials,
    SessionFileCredentials,
)
from .models import PAGE_SIZE

CONFIG_ENV = "ADMIN_CONSOLE_CONFIG"
DEFAULT_BASE_URL = "http://localhost:5000"


class ConfigurationError(ValueError):
    """Raised when the console configuration is invalid."""


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    candidate = Path(str(raw)).expanduser()
    if candidate.is_absolute() or base_path is None:
        return candidate.resolve(strict=False)
    return (base_path / candidate).resolve(strict=False)


def _positive_float(value: object, field: str) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{field}' must be a number") from exc
    if number <= 0:
        raise ConfigurationError(f"'{field}' must be greater than zero")
    return number


def _positive_int(value: object, field: str) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{field}' must be an integer") from exc
    if number <= 0:
        raise ConfigurationError(f"'{field}' must be greater than zero")
    return number


@dataclass(frozen=True)
class ConsoleConfig:
    """Settings for reaching the admin API and serving the web console."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = PAGE_SIZE
    token_file: Optional[Path] = None
    token_env: str = DEFAULT_TOKEN_ENV
    session_secret: Optional[str] = None
    verify: str | bool | None = None

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ConsoleConfig":
        """Create a :class:`ConsoleConfig` from raw dictionary data."""
        unknown = set(data.keys()) - {
            "base_url",
            "timeout",
            "page_size",
            "token_file",
            "token_env",
            "session_secret",
            "verify",
        }
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        base_url = str(data.get("base_url") or DEFAULT_BASE_URL).strip()
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError("'base_url' must start with http:// or https://")

        token_file = data.get("token_file")
        verify = data.get("verify")
        if verify is not None and not isinstance(verify, (bool, str)):
            raise ConfigurationError("'verify' must be a boolean or a CA bundle path")

        return ConsoleConfig(
            base_url=base_url.rstrip("/"),
            timeout=_positive_float(data.get("timeout", DEFAULT_TIMEOUT), "timeout"),
            page_size=_positive_int(data.get("page_size", PAGE_SIZE), "page_size"),
            token_file=_resolve_path(token_file, base_path) if token_file else None,
            token_env=str(data.get("token_env") or DEFAULT_TOKEN_ENV),
            session_secret=str(data["session_secret"]) if data.get("session_secret") else None,
            verify=verify,
        )

    def with_environment(self, environ: Mapping[str, str] | None = None) -> "ConsoleConfig":
        """Apply ``ADMIN_CONSOLE_*`` environment overrides."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}

        base_url = env.get("ADMIN_CONSOLE_BASE_URL")
        if base_url:
            if not base_url.startswith(("http://", "https://")):
                raise ConfigurationError("ADMIN_CONSOLE_BASE_URL must start with http:// or https://")
            overrides["base_url"] = base_url.strip().rstrip("/")
        timeout = env.get("ADMIN_CONSOLE_TIMEOUT")
        if timeout:
            overrides["timeout"] = _positive_float(timeout, "ADMIN_CONSOLE_TIMEOUT")
        token_file = env.get("ADMIN_CONSOLE_TOKEN_FILE")
        if token_file:
            overrides["token_file"] = _resolve_path(token_file, None)
        secret = env.get("ADMIN_CONSOLE_SESSION_SECRET")
        if secret:
            overrides["session_secret"] = secret

        return replace(self, **overrides) if overrides else self

    def credentials(self) -> CredentialProvider:
        """Environment token first, then the session token file."""
        providers: list[CredentialProvider] = [EnvironmentCredentials(self.token_env)]
        if self.token_file is not None:
            providers.append(SessionFileCredentials(self.token_file))
        return ChainedCredentials(*providers)

    def describe(self) -> Dict[str, object]:
        return {
            "base_url": self.base_url,
            "timeout": self.timeout,
            "page_size": self.page_size,
            "token_file": str(self.token_file) if self.token_file else None,
            "token_env": self.token_env,
            "session_secret": "<set>" if self.session_secret else None,
            "verify": self.verify,
        }


def load_config(config_path: Path) -> ConsoleConfig:
    """Load console settings from a YAML file."""
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    section = raw.get("console", raw)
    if not isinstance(section, dict):
        raise ConfigurationError("The 'console' section must be a mapping")
    return ConsoleConfig.from_dict(section, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "console.yaml").resolve(strict=False)
    return candidate


def load_console_config(explicit_path: Optional[str] = None) -> ConsoleConfig:
    """Load the YAML file when present, then apply environment overrides."""
    path = resolve_config_path(explicit_path or os.getenv(CONFIG_ENV))
    if path.exists():
        config = load_config(path)
    elif explicit_path:
        raise ConfigurationError(f"Configuration file {path} does not exist")
    else:
        config = ConsoleConfig()
    return config.with_environment()


__all__ = [
    "CONFIG_ENV",
    "ConfigurationError",
    "ConsoleConfig",
    "DEFAULT_BASE_URL",
    "load_config",
    "load_console_config",
    "resolve_config_path",
]
