from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adminconsole.models import (
    Course,
    EnrollmentRecord,
    NewUserDraft,
    SearchQuery,
    User,
    parse_validity_months,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("6", 6),
        (1, 1),
        (60, 60),
        ("0", 12),
        ("61", 12),
        ("-3", 12),
        ("abc", 12),
        ("", 12),
        (None, 12),
    ],
)
def test_parse_validity_months_falls_back_to_default(raw, expected) -> None:
    assert parse_validity_months(raw) == expected


def test_course_label_includes_price_only_when_present() -> None:
    assert Course(id="c1", name="Quant", price=4999.0).label == "Quant (₹4999)"
    assert Course(id="c2", name="Verbal", price=None).label == "Verbal"
    assert Course(id="c3", name="Free Trial", price=0).label == "Free Trial"


def test_enrollment_record_resolves_inline_course() -> None:
    course = Course(id="c1", name="Quant")
    inline = EnrollmentRecord(course=course, status="unlocked")
    bare = EnrollmentRecord(course="c2", status="unlocked")

    assert inline.course_id == "c1"
    assert inline.resolved_course == course
    assert bare.course_id == "c2"
    assert bare.resolved_course is None
    assert EnrollmentRecord(course="", status="unlocked").is_active is False


def test_user_display_helpers() -> None:
    assert User(id="u1").display_name == "Unnamed"
    assert User(id="u1", email="a@example.com", phone_number="9999999999").contact == "a@example.com"
    assert User(id="u1", phone_number="9999999999").contact == "9999999999"


def test_new_user_draft_payload_uses_api_field_names() -> None:
    draft = NewUserDraft(name="  A ", phone_number="9999999999")

    assert draft.to_payload() == {
        "name": "A",
        "email": "",
        "phoneNumber": "9999999999",
        "gender": "",
        "city": "",
        "selectedCategory": "CAT",
        "selectedExam": "",
    }


def test_search_query_params() -> None:
    assert SearchQuery(term="raj", page=1).as_params() == {"search": "raj", "page": 1, "limit": 30}
