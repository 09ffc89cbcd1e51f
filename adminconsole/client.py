"""HTTP client for the remote admin API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from .credentials import CredentialProvider, StaticCredentials
from .models import Course, NewUserDraft, RosterPage, SearchQuery
from .schemas import APIResponse, CourseListResponse, UserListResponse

logger = logging.getLogger("adminconsole.client")

DEFAULT_TIMEOUT = 15.0

USERS_PATH = "/api/admin/all-users-list"
COURSES_PATH = "/api/admin/all-courses-list"
CREATE_USER_PATH = "/api/admin/create-user"
ENROLL_USER_PATH = "/api/admin/enroll-user"
REMOVE_ENROLLMENT_PATH = "/api/admin/remove-enrollment"


class AdminAPIError(RuntimeError):
    """Raised when an admin API call fails.

    ``kind`` is ``"transport"`` when the service could not be reached (or
    timed out) and ``"server"`` when it answered with a failure.
    """

    def __init__(self, message: str, *, kind: str = "server", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code


@dataclass
class _ClientConfig:
    base_url: str
    timeout: float
    verify: str | bool | None


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Admin API base URL must not be empty")
    return cleaned.rstrip("/")


def _build_endpoint(base_url: str, path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    return f"{base_url}{path}"


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


class AdminAPIClient:
    """Issue admin requests on behalf of the operator."""

    def __init__(
        self,
        base_url: str,
        *,
        credentials: CredentialProvider | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: str | bool | None = None,
    ) -> None:
        self._config = _ClientConfig(
            base_url=_normalize_base_url(base_url),
            timeout=timeout,
            verify=verify,
        )
        self._credentials = credentials or StaticCredentials()

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def _headers(self) -> Dict[str, str]:
        token = self._credentials.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _send(
        self,
        method: str,
        path: str,
        default_error: str,
        *,
        params: Optional[Dict[str, object]] = None,
        payload: Optional[Dict[str, object]] = None,
    ) -> dict:
        url = _build_endpoint(self._config.base_url, path)
        kwargs: Dict[str, object] = {
            "headers": self._headers(),
            "timeout": self._config.timeout,
        }
        if self._config.verify is not None:
            kwargs["verify"] = self._config.verify

        try:
            if method == "GET":
                response = httpx.get(url, params=params, **kwargs)
            else:
                response = httpx.post(url, json=payload, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out after %ss", method, path, self._config.timeout)
            raise AdminAPIError(default_error, kind="transport") from exc
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise AdminAPIError(default_error, kind="transport") from exc

        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        if not response.is_success:
            message = _extract_error_message(parsed, default_error)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise AdminAPIError(message, status_code=response.status_code)

        if not isinstance(parsed, dict):
            logger.warning("%s %s returned an unexpected response payload", method, path)
            raise AdminAPIError(default_error, status_code=response.status_code)

        if parsed.get("success") is not True:
            message = _extract_error_message(parsed, default_error)
            logger.warning("%s %s reported failure: %s", method, path, message)
            raise AdminAPIError(message, status_code=response.status_code)

        return parsed

    def list_users(self, query: SearchQuery) -> RosterPage:
        default_error = "Failed to load users"
        data = self._send("GET", USERS_PATH, default_error, params=query.as_params())
        try:
            return UserListResponse.model_validate(data).to_domain()
        except ValidationError as exc:
            raise AdminAPIError(default_error) from exc

    def list_courses(self) -> List[Course]:
        default_error = "Failed to load courses"
        data = self._send("GET", COURSES_PATH, default_error)
        try:
            return CourseListResponse.model_validate(data).to_domain()
        except ValidationError as exc:
            raise AdminAPIError(default_error) from exc

    def create_user(self, draft: NewUserDraft) -> Optional[str]:
        data = self._send(
            "POST",
            CREATE_USER_PATH,
            "Failed to create user",
            payload=draft.to_payload(),
        )
        return APIResponse.model_validate(data).message

    def enroll_user(self, user_id: str, course_id: str, validity_months: int) -> Optional[str]:
        data = self._send(
            "POST",
            ENROLL_USER_PATH,
            "Failed to enroll user",
            payload={
                "userId": user_id,
                "courseId": course_id,
                "validityMonths": validity_months,
            },
        )
        return APIResponse.model_validate(data).message

    def remove_enrollment(self, user_id: str, course_id: str) -> Optional[str]:
        data = self._send(
            "POST",
            REMOVE_ENROLLMENT_PATH,
            "Failed to remove enrollment",
            payload={"userId": user_id, "courseId": course_id},
        )
        return APIResponse.model_validate(data).message


__all__ = ["AdminAPIClient", "AdminAPIError", "DEFAULT_TIMEOUT"]
