from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adminconsole.client import AdminAPIError
from adminconsole.config import ConsoleConfig
import scripts.create_user as create_user_script


class FakeClient:
    created = []
    error = None

    def __init__(self, base_url, *, credentials=None, timeout=None, verify=None) -> None:
        self.base_url = base_url

    def create_user(self, draft):
        if FakeClient.error is not None:
            raise FakeClient.error
        FakeClient.created.append(draft)
        return "User created"


def _patch(monkeypatch) -> None:
    FakeClient.created = []
    FakeClient.error = None
    monkeypatch.setattr(create_user_script, "AdminAPIClient", FakeClient)
    monkeypatch.setattr(
        create_user_script,
        "load_console_config",
        lambda _path=None: ConsoleConfig(base_url="https://api.example.com"),
    )


def test_create_user_script_submits_draft(monkeypatch, capsys) -> None:
    _patch(monkeypatch)

    status = create_user_script.main(["Asha Verma", "--phone", "9999999999", "--category", "XAT"])

    assert status == 0
    assert FakeClient.created[0].phone_number == "9999999999"
    assert FakeClient.created[0].category == "XAT"
    assert "User created" in capsys.readouterr().out


def test_create_user_script_requires_a_contact(monkeypatch, capsys) -> None:
    _patch(monkeypatch)

    status = create_user_script.main(["Asha Verma"])

    assert status == 1
    assert FakeClient.created == []
    assert "--email or --phone" in capsys.readouterr().err


def test_create_user_script_reports_api_errors(monkeypatch, capsys) -> None:
    _patch(monkeypatch)
    FakeClient.error = AdminAPIError("User already exists")

    status = create_user_script.main(["Asha Verma", "--email", "asha@example.com"])

    assert status == 1
    assert "User already exists" in capsys.readouterr().err
