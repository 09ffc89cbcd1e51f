from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adminconsole.client import AdminAPIClient, AdminAPIError
from adminconsole.credentials import StaticCredentials
from adminconsole.models import Course, NewUserDraft, SearchQuery


USERS_PAYLOAD = {
    "success": True,
    "totalPages": 3,
    "users": [
        {
            "_id": "u1",
            "name": "Raj Kumar",
            "email": "raj@example.com",
            "phoneNumber": None,
            "selectedCategory": "CAT",
            "enrolledCourses": [
                {"courseId": {"_id": "c1", "name": "Quant", "price": 4999}, "status": "unlocked"},
                {"courseId": "c2", "status": "locked"},
            ],
            "createdAt": "2025-01-01T00:00:00Z",
        },
        {"_id": "u2", "name": "Rajesh"},
    ],
}


def _client(token: str | None = "admin-token") -> AdminAPIClient:
    return AdminAPIClient("https://api.example.com/", credentials=StaticCredentials(token))


def test_list_users_sends_search_page_and_limit(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update({"url": url, "params": params, "headers": headers, "timeout": timeout})
        return httpx.Response(200, json=USERS_PAYLOAD)

    monkeypatch.setattr(httpx, "get", fake_get)

    roster = _client().list_users(SearchQuery(term="raj", page=1))

    assert captured["url"] == "https://api.example.com/api/admin/all-users-list"
    assert captured["params"] == {"search": "raj", "page": 1, "limit": 30}
    assert captured["headers"] == {"Authorization": "Bearer admin-token"}
    assert captured["timeout"] == 15.0

    assert roster.total_pages == 3
    first, second = roster.users
    assert first.id == "u1"
    assert first.phone_number == ""
    assert first.enrollments[0].resolved_course == Course(id="c1", name="Quant", price=4999.0)
    assert first.enrollments[1].course_id == "c2"
    assert first.enrollments[1].is_active is False
    assert second.enrollments == ()


def test_requests_without_token_are_unauthenticated(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured["headers"] = headers
        return httpx.Response(200, json={"success": True, "courses": []})

    monkeypatch.setattr(httpx, "get", fake_get)

    assert _client(token=None).list_courses() == []
    assert captured["headers"] == {}


def test_list_courses_parses_catalog(monkeypatch):
    def fake_get(url, params=None, headers=None, timeout=None):
        assert url.endswith("/api/admin/all-courses-list")
        assert params is None
        return httpx.Response(
            200,
            json={"success": True, "courses": [{"_id": "c1", "name": "Quant", "price": ""}, {"_id": "c2", "name": "Verbal", "price": 1999}]},
        )

    monkeypatch.setattr(httpx, "get", fake_get)

    assert _client().list_courses() == [
        Course(id="c1", name="Quant", price=None),
        Course(id="c2", name="Verbal", price=1999.0),
    ]


def test_enroll_user_posts_expected_body(monkeypatch):
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):  # noqa: A002
        captured.update({"url": url, "json": json})
        return httpx.Response(200, json={"success": True, "message": "User enrolled in Quant"})

    monkeypatch.setattr(httpx, "post", fake_post)

    message = _client().enroll_user("u1", "c1", 6)

    assert captured["url"].endswith("/api/admin/enroll-user")
    assert captured["json"] == {"userId": "u1", "courseId": "c1", "validityMonths": 6}
    assert message == "User enrolled in Quant"


def test_create_user_and_remove_enrollment_payloads(monkeypatch):
    bodies = []

    def fake_post(url, json=None, headers=None, timeout=None):  # noqa: A002
        bodies.append((url.rsplit("/", 1)[-1], json))
        return httpx.Response(200, json={"success": True})

    monkeypatch.setattr(httpx, "post", fake_post)

    client = _client()
    assert client.create_user(NewUserDraft(name="A", phone_number="9999999999")) is None
    client.remove_enrollment("u1", "c1")

    assert bodies[0][0] == "create-user"
    assert bodies[0][1]["name"] == "A"
    assert bodies[0][1]["phoneNumber"] == "9999999999"
    assert bodies[1] == ("remove-enrollment", {"userId": "u1", "courseId": "c1"})


def test_server_message_is_preferred_on_http_error(monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):  # noqa: A002
        return httpx.Response(409, json={"success": False, "message": "User already exists"})

    monkeypatch.setattr(httpx, "post", fake_post)

    with pytest.raises(AdminAPIError) as excinfo:
        _client().create_user(NewUserDraft(name="A"))

    assert excinfo.value.message == "User already exists"
    assert excinfo.value.kind == "server"
    assert excinfo.value.status_code == 409


def test_success_false_is_a_failure_with_default_message(monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):  # noqa: A002
        return httpx.Response(200, json={"success": False})

    monkeypatch.setattr(httpx, "post", fake_post)

    with pytest.raises(AdminAPIError) as excinfo:
        _client().enroll_user("u1", "c1", 12)

    assert excinfo.value.message == "Failed to enroll user"


def test_non_json_response_is_a_failure(monkeypatch):
    def fake_get(url, params=None, headers=None, timeout=None):
        return httpx.Response(502, text="<html>Bad gateway</html>")

    monkeypatch.setattr(httpx, "get", fake_get)

    with pytest.raises(AdminAPIError) as excinfo:
        _client().list_users(SearchQuery())

    assert excinfo.value.message == "Failed to load users"
    assert excinfo.value.status_code == 502


def test_redirect_status_is_a_failure_even_with_success_body(monkeypatch):
    def fake_get(url, params=None, headers=None, timeout=None):
        return httpx.Response(302, json={"success": True, "users": [], "totalPages": 1})

    monkeypatch.setattr(httpx, "get", fake_get)

    with pytest.raises(AdminAPIError) as excinfo:
        _client().list_users(SearchQuery())

    assert excinfo.value.message == "Failed to load users"
    assert excinfo.value.status_code == 302


def test_transport_failures_and_timeouts_are_wrapped(monkeypatch):
    def failing_get(url, params=None, headers=None, timeout=None):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx, "get", failing_get)
    with pytest.raises(AdminAPIError) as excinfo:
        _client().list_courses()
    assert excinfo.value.kind == "transport"
    assert excinfo.value.message == "Failed to load courses"

    def slow_post(url, json=None, headers=None, timeout=None):  # noqa: A002
        raise httpx.ReadTimeout("timed out")

    monkeypatch.setattr(httpx, "post", slow_post)
    with pytest.raises(AdminAPIError) as excinfo:
        _client().remove_enrollment("u1", "c1")
    assert excinfo.value.kind == "transport"
    assert excinfo.value.message == "Failed to remove enrollment"


def test_verify_option_is_forwarded(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None, verify=None):
        captured["verify"] = verify
        return httpx.Response(200, json={"success": True, "courses": []})

    monkeypatch.setattr(httpx, "get", fake_get)

    AdminAPIClient("https://api.example.com", verify="/tmp/ca.pem").list_courses()
    assert captured["verify"] == "/tmp/ca.pem"


def test_empty_base_url_is_rejected():
    with pytest.raises(ValueError):
        AdminAPIClient("  ")
