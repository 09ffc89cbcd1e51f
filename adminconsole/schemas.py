"""pydantic models describing the admin API wire format."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Course, EnrollmentRecord, RosterPage, User


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _blank_if_none(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class CoursePayload(_WireModel):
    id: str = Field(alias="_id")
    name: str = ""
    price: Optional[float] = None

    @field_validator("id", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        return _blank_if_none(value)

    @field_validator("price", mode="before")
    @classmethod
    def _empty_price(cls, value: object) -> object:
        if value == "":
            return None
        return value

    def to_domain(self) -> Course:
        return Course(id=self.id, name=self.name, price=self.price)


class EnrollmentPayload(_WireModel):
    course_id: Union[CoursePayload, str, None] = Field(default=None, alias="courseId")
    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> object:
        return _blank_if_none(value)

    def to_domain(self) -> EnrollmentRecord:
        course = self.course_id
        if isinstance(course, CoursePayload):
            return EnrollmentRecord(course=course.to_domain(), status=self.status)
        return EnrollmentRecord(course=course or None, status=self.status)


class UserPayload(_WireModel):
    id: str = Field(alias="_id")
    name: str = ""
    email: str = ""
    phone_number: str = Field(default="", alias="phoneNumber")
    gender: str = ""
    city: str = ""
    category: str = Field(default="", alias="selectedCategory")
    target_exam: str = Field(default="", alias="selectedExam")
    enrolled_courses: List[EnrollmentPayload] = Field(default_factory=list, alias="enrolledCourses")

    @field_validator(
        "id",
        "name",
        "email",
        "phone_number",
        "gender",
        "city",
        "category",
        "target_exam",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        return _blank_if_none(value)

    @field_validator("enrolled_courses", mode="before")
    @classmethod
    def _default_enrollments(cls, value: object) -> object:
        return [] if value is None else value

    def to_domain(self) -> User:
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            phone_number=self.phone_number,
            gender=self.gender,
            city=self.city,
            category=self.category,
            target_exam=self.target_exam,
            enrollments=tuple(item.to_domain() for item in self.enrolled_courses),
        )


class APIResponse(_WireModel):
    success: bool = False
    message: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def _text_message(cls, value: object) -> object:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class UserListResponse(APIResponse):
    users: List[UserPayload] = Field(default_factory=list)
    total_pages: int = Field(default=1, alias="totalPages")

    @field_validator("users", mode="before")
    @classmethod
    def _default_users(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("total_pages", mode="before")
    @classmethod
    def _at_least_one_page(cls, value: object) -> object:
        try:
            pages = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1
        return max(pages, 1)

    def to_domain(self) -> RosterPage:
        return RosterPage(
            users=tuple(user.to_domain() for user in self.users),
            total_pages=self.total_pages,
        )


class CourseListResponse(APIResponse):
    courses: List[CoursePayload] = Field(default_factory=list)

    @field_validator("courses", mode="before")
    @classmethod
    def _default_courses(cls, value: object) -> object:
        return [] if value is None else value

    def to_domain(self) -> List[Course]:
        return [course.to_domain() for course in self.courses]


__all__ = [
    "APIResponse",
    "CourseListResponse",
    "CoursePayload",
    "EnrollmentPayload",
    "UserListResponse",
    "UserPayload",
]
