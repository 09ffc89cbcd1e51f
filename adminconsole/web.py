"""Web interface for the user administration console."""
from __future__ import annotations

import logging
import os
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import anyio
from fastapi import FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from .client import AdminAPIClient
from .config import ConsoleConfig, load_console_config
from .console import AdminClient, AdminUserConsole, enrollment_badges, field_or_placeholder
from .models import (
    DEFAULT_VALIDITY_MONTHS,
    MAX_VALIDITY_MONTHS,
    MIN_VALIDITY_MONTHS,
    Category,
    Gender,
    NewUserDraft,
    User,
)
from .notifications import NOTIFICATION_TTL, Notification, Notifier

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

NOTIFICATION_KEY = "notification"
CREATE_DRAFT_KEY = "create_draft"
ENROLL_DRAFT_KEY = "enroll_draft"

logger = logging.getLogger("adminconsole.web")


def _secure_cookie() -> bool:
    setting = os.getenv("ADMIN_CONSOLE_SESSION_SECURE")
    if setting is None:
        return False
    return setting.strip().lower() not in {"0", "false", "no"}


def _clamp_page(page: int) -> int:
    return page if page >= 1 else 1


def create_app(
    *,
    config: Optional[ConsoleConfig] = None,
    client: Optional[AdminClient] = None,
    session_secret: Optional[str] = None,
) -> FastAPI:
    """Create the user administration web application."""

    if config is None:
        config = load_console_config()

    if session_secret is None:
        session_secret = config.session_secret
    if not session_secret:
        raise RuntimeError(
            "ADMIN_CONSOLE_SESSION_SECRET must be configured to use the web console"
        )

    if client is None:
        client = AdminAPIClient(
            config.base_url,
            credentials=config.credentials(),
            timeout=config.timeout,
            verify=config.verify,
        )

    app = FastAPI(
        title="User Administration Console",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.client = client

    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie="adminconsole_session",
        https_only=_secure_cookie(),
        same_site="lax",
        max_age=60 * 60 * 8,
    )

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.globals["placeholder"] = field_or_placeholder
    templates.env.globals["enrollment_badges"] = enrollment_badges

    def _console(**kwargs) -> AdminUserConsole:
        return AdminUserConsole(
            client,
            notifier=Notifier(),
            page_size=config.page_size,
            reload_after_mutation=False,
            **kwargs,
        )

    def _remember_notification(request: Request, console: AdminUserConsole) -> None:
        notification = console.notifier.current()
        if notification is not None:
            request.session[NOTIFICATION_KEY] = notification.to_dict()

    def _current_notification(request: Request) -> Optional[Notification]:
        notification = Notification.from_dict(request.session.get(NOTIFICATION_KEY))
        if notification is None:
            request.session.pop(NOTIFICATION_KEY, None)
            return None
        if notification.expires_at(NOTIFICATION_TTL) <= datetime.now(timezone.utc):
            request.session.pop(NOTIFICATION_KEY, None)
            return None
        return notification

    def _roster_url(request: Request, search: str, page: int) -> str:
        return str(request.url_for("list_users").include_query_params(search=search, page=page))

    def _enroll_url(request: Request, user_id: str, search: str, page: int) -> str:
        url = request.url_for("enroll_form", user_id=user_id)
        return str(url.include_query_params(search=search, page=page))

    def _redirect(url: str) -> RedirectResponse:
        return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)

    @app.get("/", response_class=HTMLResponse)
    async def root(request: Request):
        return _redirect(str(request.url_for("list_users")))

    @app.get("/users", response_class=HTMLResponse, name="list_users")
    async def list_users(request: Request, search: str = "", page: int = 1):
        console = _console()
        await anyio.to_thread.run_sync(console.apply_query, search, _clamp_page(page))
        _remember_notification(request, console)

        draft_data = request.session.pop(CREATE_DRAFT_KEY, None)
        create_open = isinstance(draft_data, dict)
        if create_open:
            console.new_user = NewUserDraft(**draft_data)
            console.open_create_dialog()

        return templates.TemplateResponse(
            request,
            "users.html",
            {
                "console": console,
                "notification": _current_notification(request),
                "categories": [item.value for item in Category],
                "genders": [item.value for item in Gender],
            },
        )

    @app.post("/users", name="create_user")
    async def create_user(
        request: Request,
        name: str = Form(""),
        email: str = Form(""),
        phone_number: str = Form(""),
        gender: str = Form(""),
        city: str = Form(""),
        category: str = Form(Category.CAT.value),
        target_exam: str = Form(""),
        search: str = Form(""),
        page: int = Form(1),
    ):
        console = _console()
        console.search_term = search
        console.page = _clamp_page(page)
        console.new_user = NewUserDraft(
            name=name,
            email=email,
            phone_number=phone_number[:10],
            gender=gender,
            city=city,
            category=category,
            target_exam=target_exam,
        )
        created = await anyio.to_thread.run_sync(console.submit_new_user)
        if not created:
            request.session[CREATE_DRAFT_KEY] = asdict(console.new_user)
        _remember_notification(request, console)
        return _redirect(_roster_url(request, search, console.page))

    @app.get("/users/{user_id}/enroll", response_class=HTMLResponse, name="enroll_form")
    async def enroll_form(request: Request, user_id: str, search: str = "", page: int = 1):
        console = _console()
        await anyio.to_thread.run_sync(console.apply_query, search, _clamp_page(page))
        user = console.find_user(user_id)
        if user is None:
            console.notifier.error("User is no longer listed on this page")
            _remember_notification(request, console)
            return _redirect(_roster_url(request, search, console.page))

        await anyio.to_thread.run_sync(console.load_catalog)
        console.open_enroll_dialog(user)
        draft_data = request.session.pop(ENROLL_DRAFT_KEY, None)
        if isinstance(draft_data, dict) and draft_data.get("user_id") == user_id:
            console.select_course(draft_data.get("course_id", ""))
            console.set_validity_months(draft_data.get("validity_months"))
        _remember_notification(request, console)
        return templates.TemplateResponse(
            request,
            "enroll.html",
            {
                "console": console,
                "user": user,
                "notification": _current_notification(request),
                "min_validity": MIN_VALIDITY_MONTHS,
                "max_validity": MAX_VALIDITY_MONTHS,
            },
        )

    @app.post("/users/{user_id}/enroll", name="enroll_user")
    async def enroll_user(
        request: Request,
        user_id: str,
        course_id: str = Form(""),
        validity_months: str = Form(str(DEFAULT_VALIDITY_MONTHS)),
        search: str = Form(""),
        page: int = Form(1),
    ):
        console = _console()
        console.search_term = search
        console.page = _clamp_page(page)
        await anyio.to_thread.run_sync(console.load_catalog)
        console.open_enroll_dialog(User(id=user_id))
        console.select_course(course_id)
        console.set_validity_months(validity_months)

        enrolled = await anyio.to_thread.run_sync(console.submit_enrollment)
        _remember_notification(request, console)
        if not enrolled:
            request.session[ENROLL_DRAFT_KEY] = {"user_id": user_id, **asdict(console.enroll_draft)}
            return _redirect(_enroll_url(request, user_id, search, console.page))
        request.session.pop(ENROLL_DRAFT_KEY, None)
        return _redirect(_roster_url(request, search, console.page))

    @app.get(
        "/users/{user_id}/enrollments/{course_id}/remove",
        response_class=HTMLResponse,
        name="confirm_remove",
    )
    async def confirm_remove(
        request: Request,
        user_id: str,
        course_id: str,
        name: str = "",
        search: str = "",
        page: int = 1,
    ):
        return templates.TemplateResponse(
            request,
            "confirm_remove.html",
            {
                "user_id": user_id,
                "course_id": course_id,
                "course_name": name,
                "prompt": f'Remove enrollment for "{name or "this course"}"?',
                "search": search,
                "page": _clamp_page(page),
                "notification": _current_notification(request),
            },
        )

    @app.post("/users/{user_id}/enrollments/{course_id}/remove", name="remove_enrollment")
    async def remove_enrollment(
        request: Request,
        user_id: str,
        course_id: str,
        confirm: str = Form(""),
        name: str = Form(""),
        search: str = Form(""),
        page: int = Form(1),
    ):
        confirmed = confirm.strip().lower() == "yes"
        console = _console(confirm=lambda _prompt: confirmed)
        removed = await anyio.to_thread.run_sync(
            console.remove_enrollment, user_id, course_id, name or None
        )
        if not removed and not confirmed:
            logger.info("Enrollment removal for user %s was not confirmed", user_id)
        _remember_notification(request, console)
        return _redirect(_roster_url(request, search, _clamp_page(page)))

    return app


__all__ = ["create_app"]
