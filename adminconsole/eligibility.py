"""Enrollment eligibility helpers."""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from .models import Course, EnrollmentRecord, User


def active_enrollments(user: User) -> List[EnrollmentRecord]:
    """Return the user's ``unlocked`` enrollments that reference a course."""

    return [record for record in user.enrollments if record.is_active]


def enrolled_course_ids(user: User) -> Set[str]:
    return {record.course_id for record in active_enrollments(user) if record.course_id}


def eligible_courses(user: Optional[User], courses: Sequence[Course]) -> List[Course]:
    """Courses from ``courses`` that ``user`` is not actively enrolled in.

    Catalog order is preserved. Without a user the whole catalog is eligible.
    """

    if user is None:
        return list(courses)
    excluded = enrolled_course_ids(user)
    return [course for course in courses if course.id not in excluded]


__all__ = ["active_enrollments", "eligible_courses", "enrolled_course_ids"]
