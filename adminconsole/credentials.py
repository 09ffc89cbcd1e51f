"""Operator credential providers for admin API requests."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger("adminconsole.credentials")

SESSION_TOKEN_KEY = "adminToken"
DEFAULT_TOKEN_ENV = "ADMIN_CONSOLE_TOKEN"


class CredentialProvider(Protocol):
    def get_token(self) -> Optional[str]:
        ...


def _clean(token: object) -> Optional[str]:
    if not isinstance(token, str):
        return None
    stripped = token.strip()
    return stripped or None


class StaticCredentials:
    """Always supply the same bearer token (or none)."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = _clean(token)

    def get_token(self) -> Optional[str]:
        return self._token


class EnvironmentCredentials:
    """Read the bearer token from an environment variable on every request."""

    def __init__(self, variable: str = DEFAULT_TOKEN_ENV) -> None:
        self.variable = variable

    def get_token(self) -> Optional[str]:
        return _clean(os.getenv(self.variable))


class SessionFileCredentials:
    """Read the ``adminToken`` entry of a JSON session file.

    The file is re-read for each request so that a token refreshed by another
    process is picked up without restarting the console.
    """

    def __init__(self, path: Path, *, key: str = SESSION_TOKEN_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def get_token(self) -> Optional[str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Unable to read session file %s: %s", self.path, exc)
            return None

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Session file %s does not contain valid JSON", self.path)
            return None
        if not isinstance(data, dict):
            return None
        return _clean(data.get(self.key))

    def store(self, token: str) -> None:
        """Persist ``token`` under the session key, keeping other entries."""

        data: dict = {}
        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except ValueError:
                loaded = {}
            if isinstance(loaded, dict):
                data = loaded
        data[self.key] = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.chmod(self.path, 0o600)


class ChainedCredentials:
    """Return the first token supplied by any of the wrapped providers."""

    def __init__(self, *providers: CredentialProvider) -> None:
        self._providers = providers

    def get_token(self) -> Optional[str]:
        for provider in self._providers:
            token = provider.get_token()
            if token:
                return token
        return None


__all__ = [
    "ChainedCredentials",
    "CredentialProvider",
    "DEFAULT_TOKEN_ENV",
    "EnvironmentCredentials",
    "SESSION_TOKEN_KEY",
    "SessionFileCredentials",
    "StaticCredentials",
]
