"""Domain models for the user administration console."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

PAGE_SIZE = 30
DEFAULT_VALIDITY_MONTHS = 12
MIN_VALIDITY_MONTHS = 1
MAX_VALIDITY_MONTHS = 60

ACTIVE_STATUS = "unlocked"
PLACEHOLDER = "—"


class Category(str, Enum):
    CAT = "CAT"
    XAT = "XAT"
    SNAP = "SNAP"
    OTHER = "Other"


class Gender(str, Enum):
    UNSPECIFIED = ""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


@dataclass(frozen=True)
class Course:
    """An enrollable course from the remote catalog."""

    id: str
    name: str
    price: Optional[float] = None

    @property
    def label(self) -> str:
        if self.price:
            price = int(self.price) if float(self.price).is_integer() else self.price
            return f"{self.name} (₹{price})"
        return self.name


@dataclass(frozen=True)
class EnrollmentRecord:
    """Association between a user and a course.

    ``course`` is either the bare course id or the course resolved inline by
    the backend.
    """

    course: Union[str, Course, None]
    status: str = ""

    @property
    def course_id(self) -> Optional[str]:
        if isinstance(self.course, Course):
            return self.course.id
        return self.course or None

    @property
    def resolved_course(self) -> Optional[Course]:
        return self.course if isinstance(self.course, Course) else None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS and self.course_id is not None


@dataclass(frozen=True)
class User:
    """Represents a user account owned by the remote admin API."""

    id: str
    name: str = ""
    email: str = ""
    phone_number: str = ""
    gender: str = ""
    city: str = ""
    category: str = ""
    target_exam: str = ""
    enrollments: Tuple[EnrollmentRecord, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed"

    @property
    def contact(self) -> str:
        return self.email or self.phone_number or ""


@dataclass(frozen=True)
class SearchQuery:
    term: str = ""
    page: int = 1
    limit: int = PAGE_SIZE

    def as_params(self) -> Dict[str, object]:
        return {"search": self.term, "page": self.page, "limit": self.limit}


@dataclass(frozen=True)
class RosterPage:
    users: Tuple[User, ...] = ()
    total_pages: int = 1


@dataclass
class NewUserDraft:
    """Unsaved form state for the create-user dialog."""

    name: str = ""
    email: str = ""
    phone_number: str = ""
    gender: str = Gender.UNSPECIFIED.value
    city: str = ""
    category: str = Category.CAT.value
    target_exam: str = ""

    def to_payload(self) -> Dict[str, str]:
        return {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "phoneNumber": self.phone_number.strip(),
            "gender": self.gender,
            "city": self.city.strip(),
            "selectedCategory": self.category,
            "selectedExam": self.target_exam.strip(),
        }


@dataclass
class EnrollDraft:
    """Unsaved form state for the enroll dialog of one selected user."""

    course_id: str = ""
    validity_months: int = DEFAULT_VALIDITY_MONTHS


def parse_validity_months(raw: object) -> int:
    """Return ``raw`` as a month count, or the default when it is unusable."""

    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_VALIDITY_MONTHS
    if value < MIN_VALIDITY_MONTHS or value > MAX_VALIDITY_MONTHS:
        return DEFAULT_VALIDITY_MONTHS
    return value


__all__ = [
    "ACTIVE_STATUS",
    "Category",
    "Course",
    "DEFAULT_VALIDITY_MONTHS",
    "EnrollDraft",
    "EnrollmentRecord",
    "Gender",
    "MAX_VALIDITY_MONTHS",
    "MIN_VALIDITY_MONTHS",
    "NewUserDraft",
    "PAGE_SIZE",
    "PLACEHOLDER",
    "RosterPage",
    "SearchQuery",
    "User",
    "parse_validity_months",
]
