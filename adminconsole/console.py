"""State machine behind the user administration console.

The console owns the operator-facing state (search term, current page, the
roster page, course catalog, dialog drafts and the notification slot) and
drives the admin API client. Both the interactive terminal console and the
web console are thin shells around :class:`AdminUserConsole`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

from .client import AdminAPIError
from .eligibility import active_enrollments, eligible_courses
from .models import (
    PAGE_SIZE,
    PLACEHOLDER,
    Category,
    Course,
    EnrollDraft,
    EnrollmentRecord,
    Gender,
    NewUserDraft,
    RosterPage,
    SearchQuery,
    User,
    parse_validity_months,
)
from .notifications import Notification, Notifier

logger = logging.getLogger("adminconsole.console")

ConfirmCallback = Callable[[str], bool]

MSG_USERS_FAILED = "Failed to load users"
MSG_COURSES_FAILED = "Failed to load courses"
MSG_CATALOG_UNAVAILABLE = "Course catalog is unavailable; reload courses and try again"
MSG_USER_CREATED = "User created successfully!"
MSG_SELECT_COURSE = "Please select a course"
MSG_ENROLLED = "User enrolled successfully"
MSG_ENROLLMENT_REMOVED = "Enrollment removed"
MSG_REMOVE_FAILED = "Failed to remove enrollment"


class AdminClient(Protocol):
    def list_users(self, query: SearchQuery) -> RosterPage:
        ...

    def list_courses(self) -> List[Course]:
        ...

    def create_user(self, draft: NewUserDraft) -> Optional[str]:
        ...

    def enroll_user(self, user_id: str, course_id: str, validity_months: int) -> Optional[str]:
        ...

    def remove_enrollment(self, user_id: str, course_id: str) -> Optional[str]:
        ...


class DraftValidationError(ValueError):
    """Raised when a draft cannot be submitted; nothing is sent."""


def validate_new_user(draft: NewUserDraft) -> None:
    if not draft.name.strip():
        raise DraftValidationError("Name is required")
    if draft.category not in {item.value for item in Category}:
        raise DraftValidationError(f"Unknown category '{draft.category}'")
    if draft.gender not in {item.value for item in Gender}:
        raise DraftValidationError(f"Unknown gender '{draft.gender}'")


def field_or_placeholder(value: Optional[str]) -> str:
    return value or PLACEHOLDER


@dataclass(frozen=True)
class EnrollmentBadge:
    """An active enrollment as shown in the roster."""

    course_id: str
    label: str
    confirm_name: str


def enrollment_badges(user: User) -> List[EnrollmentBadge]:
    badges: List[EnrollmentBadge] = []
    for record in active_enrollments(user):
        course = record.resolved_course
        badges.append(
            EnrollmentBadge(
                course_id=record.course_id or "",
                label=course.name if course else "Course",
                confirm_name=course.name if course else "this course",
            )
        )
    return badges


def _refuse(_prompt: str) -> bool:
    return False


class AdminUserConsole:
    """Roster, catalog and enrollment management for one operator session."""

    def __init__(
        self,
        client: AdminClient,
        *,
        notifier: Optional[Notifier] = None,
        confirm: Optional[ConfirmCallback] = None,
        page_size: int = PAGE_SIZE,
        reload_after_mutation: bool = True,
    ) -> None:
        self._client = client
        self.notifier = notifier or Notifier()
        self._confirm = confirm or _refuse
        self.page_size = page_size
        # The web console redirects to a fresh roster page instead.
        self.reload_after_mutation = reload_after_mutation

        self.search_term = ""
        self.page = 1
        self.total_pages = 1
        self.users: Tuple[User, ...] = ()
        self.loading = False
        # Set once a roster response has been applied.
        self.roster_loaded = False

        self.courses: List[Course] = []
        self.catalog_available = False

        self.busy = False
        self.create_dialog_open = False
        self.new_user = NewUserDraft()
        self.enroll_dialog_open = False
        self.selected_user: Optional[User] = None
        self.enroll_draft = EnrollDraft()

        self._lock = threading.Lock()
        self._roster_sequence = 0

    # Roster -----------------------------------------------------------------

    @property
    def query(self) -> SearchQuery:
        return SearchQuery(term=self.search_term, page=self.page, limit=self.page_size)

    @property
    def pagination_visible(self) -> bool:
        return self.total_pages > 1

    @property
    def page_label(self) -> str:
        return f"Page {self.page} of {self.total_pages}"

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def notification(self) -> Optional[Notification]:
        return self.notifier.current()

    def mount(self) -> None:
        """Load the first roster page and the course catalog."""

        self.load_roster()
        self.load_catalog()

    def load_roster(self) -> bool:
        """Fetch the roster for the current query.

        Returns ``True`` when the response was applied. Responses to a fetch
        that has since been superseded by a newer one are dropped.
        """

        with self._lock:
            self._roster_sequence += 1
            sequence = self._roster_sequence
            query = self.query
            self.loading = True

        try:
            roster = self._client.list_users(query)
        except AdminAPIError as exc:
            with self._lock:
                if sequence != self._roster_sequence:
                    return False
                self.loading = False
            logger.error("Failed to fetch users for %r page %s: %s", query.term, query.page, exc)
            self.notifier.error(MSG_USERS_FAILED)
            return False

        with self._lock:
            if sequence != self._roster_sequence:
                logger.debug("Discarding stale roster response #%s", sequence)
                return False
            self.users = roster.users
            self.total_pages = roster.total_pages
            self.loading = False
            self.roster_loaded = True
        return True

    def set_search_term(self, term: str) -> bool:
        self.search_term = term
        self.page = 1
        return self.load_roster()

    def apply_query(self, term: str, page: int) -> bool:
        """Show ``page`` of the results for ``term`` without resetting the page."""

        self.search_term = term
        self.page = max(int(page), 1)
        return self.load_roster()

    def go_to_page(self, page: int) -> bool:
        target = min(max(int(page), 1), self.total_pages)
        if target == self.page:
            return False
        self.page = target
        return self.load_roster()

    def next_page(self) -> bool:
        if not self.has_next_page:
            return False
        return self.go_to_page(self.page + 1)

    def previous_page(self) -> bool:
        if not self.has_previous_page:
            return False
        return self.go_to_page(self.page - 1)

    def _reload_after_mutation(self) -> None:
        if self.reload_after_mutation:
            self.load_roster()

    def find_user(self, user_id: str) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    # Catalog ----------------------------------------------------------------

    def load_catalog(self) -> bool:
        try:
            courses = self._client.list_courses()
        except AdminAPIError as exc:
            logger.error("Failed to fetch course catalog: %s", exc)
            self.catalog_available = False
            self.notifier.error(MSG_COURSES_FAILED)
            return False
        self.courses = list(courses)
        self.catalog_available = True
        return True

    # User creation ----------------------------------------------------------

    def open_create_dialog(self) -> None:
        self.create_dialog_open = True

    def close_create_dialog(self) -> None:
        self.create_dialog_open = False

    def submit_new_user(self) -> bool:
        if self.busy:
            return False
        try:
            validate_new_user(self.new_user)
        except DraftValidationError as exc:
            self.notifier.error(str(exc))
            return False

        self.busy = True
        try:
            self._client.create_user(self.new_user)
        except AdminAPIError as exc:
            self.notifier.error(exc.message)
            return False
        finally:
            self.busy = False

        logger.info("Created user %r", self.new_user.name.strip())
        self.notifier.success(MSG_USER_CREATED)
        self.create_dialog_open = False
        self.new_user = NewUserDraft()
        self._reload_after_mutation()
        return True

    # Enrollment -------------------------------------------------------------

    def open_enroll_dialog(self, user: User) -> None:
        self.selected_user = user
        self.enroll_draft = EnrollDraft()
        self.enroll_dialog_open = True

    def close_enroll_dialog(self) -> None:
        self.enroll_dialog_open = False
        self.selected_user = None
        self.enroll_draft = EnrollDraft()

    def select_course(self, course_id: str) -> None:
        self.enroll_draft.course_id = (course_id or "").strip()

    def set_validity_months(self, raw: object) -> int:
        self.enroll_draft.validity_months = parse_validity_months(raw)
        return self.enroll_draft.validity_months

    @property
    def available_courses(self) -> List[Course]:
        return eligible_courses(self.selected_user, self.courses)

    @property
    def can_submit_enrollment(self) -> bool:
        return bool(
            not self.busy
            and self.catalog_available
            and self.selected_user is not None
            and self.enroll_draft.course_id
        )

    def submit_enrollment(self) -> bool:
        if self.busy:
            return False
        user = self.selected_user
        course_id = self.enroll_draft.course_id
        if user is None or not course_id:
            self.notifier.error(MSG_SELECT_COURSE)
            return False
        if not self.catalog_available:
            self.notifier.error(MSG_CATALOG_UNAVAILABLE)
            return False

        validity_months = parse_validity_months(self.enroll_draft.validity_months)
        self.busy = True
        try:
            message = self._client.enroll_user(user.id, course_id, validity_months)
        except AdminAPIError as exc:
            self.notifier.error(exc.message)
            return False
        finally:
            self.busy = False

        logger.info("Enrolled user %s in course %s for %s months", user.id, course_id, validity_months)
        self.notifier.success(message or MSG_ENROLLED)
        self.close_enroll_dialog()
        self._reload_after_mutation()
        return True

    def remove_enrollment(self, user_id: str, course_id: str, course_name: Optional[str] = None) -> bool:
        prompt = f'Remove enrollment for "{course_name or "this course"}"?'
        if not self._confirm(prompt):
            return False
        try:
            self._client.remove_enrollment(user_id, course_id)
        except AdminAPIError as exc:
            logger.error("Failed to remove enrollment %s/%s: %s", user_id, course_id, exc)
            self.notifier.error(MSG_REMOVE_FAILED)
            return False

        logger.info("Removed enrollment of user %s from course %s", user_id, course_id)
        self.notifier.success(MSG_ENROLLMENT_REMOVED)
        self._reload_after_mutation()
        return True

    def remove_record(self, user: User, record: EnrollmentRecord) -> bool:
        course = record.resolved_course
        return self.remove_enrollment(
            user.id,
            record.course_id or "",
            course.name if course else None,
        )


__all__ = [
    "AdminClient",
    "AdminUserConsole",
    "ConfirmCallback",
    "DraftValidationError",
    "EnrollmentBadge",
    "enrollment_badges",
    "field_or_placeholder",
    "validate_new_user",
]
