"""Single-slot, auto-expiring operator notifications."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

SUCCESS = "success"
ERROR = "error"

NOTIFICATION_TTL = timedelta(seconds=4)


@dataclass(frozen=True)
class Notification:
    message: str
    severity: str
    raised_at: datetime

    def expires_at(self, ttl: timedelta = NOTIFICATION_TTL) -> datetime:
        return self.raised_at + ttl

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "severity": self.severity,
            "raised_at": self.raised_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: object) -> Optional["Notification"]:
        if not isinstance(data, dict):
            return None
        try:
            raised_at = datetime.fromisoformat(str(data["raised_at"]))
            return cls(
                message=str(data["message"]),
                severity=str(data["severity"]),
                raised_at=raised_at,
            )
        except (KeyError, ValueError):
            return None


class Notifier:
    """Hold at most one notification; a newer one replaces the current one."""

    def __init__(
        self,
        *,
        ttl: timedelta = NOTIFICATION_TTL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._current: Optional[Notification] = None
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def notify(self, message: str, severity: str = SUCCESS) -> Notification:
        if severity not in (SUCCESS, ERROR):
            raise ValueError(f"Unknown notification severity '{severity}'")
        notification = Notification(message=message, severity=severity, raised_at=self._clock())
        with self._lock:
            self._current = notification
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(message, SUCCESS)

    def error(self, message: str) -> Notification:
        return self.notify(message, ERROR)

    def current(self) -> Optional[Notification]:
        now = self._clock()
        with self._lock:
            notification = self._current
            if notification is None:
                return None
            if notification.expires_at(self._ttl) <= now:
                self._current = None
                return None
            return notification

    def clear(self) -> None:
        with self._lock:
            self._current = None


__all__ = ["ERROR", "NOTIFICATION_TTL", "Notification", "Notifier", "SUCCESS"]
