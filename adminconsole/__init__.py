"""Core utilities for the user administration console."""

from __future__ import annotations

from typing import Any

from .client import AdminAPIClient, AdminAPIError
from .console import AdminUserConsole
from .eligibility import eligible_courses


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the web administration console."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "AdminAPIClient",
    "AdminAPIError",
    "AdminUserConsole",
    "create_app",
    "eligible_courses",
]
