"""Command-line interface for the user administration console."""

from __future__ import annotations
import argparse
import getpass
import json
import logging
import sys
from typing import List, Optional, Sequence

try:
    import httpx  # noqa: F401
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Install the project with "
        "`pip install -e .` to install dependencies."
    ) from exc

from adminconsole.client import AdminAPIClient
from adminconsole.config import ConfigurationError, ConsoleConfig, load_console_config
from adminconsole.console import AdminUserConsole, enrollment_badges, field_or_placeholder
from adminconsole.credentials import SessionFileCredentials
from adminconsole.models import Category, Course, Gender, User

logger = logging.getLogger("adminconsole.main")

KNOWN_COMMANDS = {"admin", "serve", "check-config"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration file (default: ADMIN_CONSOLE_CONFIG or config/console.yaml)",
    )
    common.add_argument(
        "--base-url",
        default=None,
        help="Base URL of the admin API, overriding the configuration file",
    )

    parser = argparse.ArgumentParser(description="User administration console")
    subparsers = parser.add_subparsers(dest="command")
    parser.set_defaults(command="admin")

    subparsers.add_parser(
        "admin", parents=[common], help="Launch the interactive administration console"
    )

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Serve the web administration console"
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the web console")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port for the web console (default: 8080)")

    subparsers.add_parser(
        "check-config", parents=[common], help="Print the resolved configuration and exit"
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["admin"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in KNOWN_COMMANDS:
            args_list = ["admin", *args_list]

    return parser.parse_args(args_list)


def _load_config(args: argparse.Namespace) -> ConsoleConfig:
    try:
        config = load_console_config(args.config)
        if args.base_url:
            config = config.with_environment({"ADMIN_CONSOLE_BASE_URL": args.base_url})
    except ConfigurationError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    return config


def _build_client(config: ConsoleConfig) -> AdminAPIClient:
    return AdminAPIClient(
        config.base_url,
        credentials=config.credentials(),
        timeout=config.timeout,
        verify=config.verify,
    )


def _serve(config: ConsoleConfig, *, host: str, port: int) -> None:
    from adminconsole.web import create_app
    import uvicorn

    try:
        app = create_app(config=config)
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    logger.info("Starting web console on http://%s:%s for %s", host, port, config.base_url)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N]: ").strip().lower()
    return answer in {"y", "yes"}


def _print_notification(console: AdminUserConsole) -> None:
    notification = console.notification
    if notification is None:
        return
    marker = "OK" if notification.severity == "success" else "ERROR"
    print(f"[{marker}] {notification.message}")
    console.notifier.clear()


def _print_roster(console: AdminUserConsole) -> None:
    if not console.users:
        print("No users found")
        return

    heading = f"Search: {console.search_term!r}" if console.search_term else "All users"
    print(heading)
    print(f"{'#':>3}  {'Name':<24}  {'Email':<28}  {'Phone':<12}  {'Category':<8}  Enrolled Courses")
    print("-" * 100)
    for index, user in enumerate(console.users, start=1):
        badges = enrollment_badges(user)
        enrolled = ", ".join(badge.label for badge in badges) or "No courses"
        print(
            f"{index:>3}  {field_or_placeholder(user.name):<24}  "
            f"{field_or_placeholder(user.email):<28}  "
            f"{field_or_placeholder(user.phone_number):<12}  "
            f"{field_or_placeholder(user.category):<8}  {enrolled}"
        )
    if console.pagination_visible:
        print(console.page_label)


def _choose_user(console: AdminUserConsole) -> Optional[User]:
    if not console.users:
        print("No users are listed on this page.")
        return None
    raw = input(f"User number [1-{len(console.users)}]: ").strip()
    try:
        index = int(raw)
    except ValueError:
        print("Invalid selection.")
        return None
    if not 1 <= index <= len(console.users):
        print("Invalid selection.")
        return None
    return console.users[index - 1]


def _choose_course(courses: List[Course]) -> Optional[Course]:
    for index, course in enumerate(courses, start=1):
        print(f"  {index}) {course.label}")
    raw = input(f"Course number [1-{len(courses)}]: ").strip()
    try:
        index = int(raw)
    except ValueError:
        return None
    if not 1 <= index <= len(courses):
        return None
    return courses[index - 1]


def _search(console: AdminUserConsole) -> None:
    term = input("Search by name, email or phone (blank for all): ").strip()
    if console.set_search_term(term):
        _print_roster(console)


def _go_to_page(console: AdminUserConsole) -> None:
    raw = input(f"Page number [1-{console.total_pages}]: ").strip()
    try:
        page = int(raw)
    except ValueError:
        print("Invalid page number.")
        return
    if console.go_to_page(page):
        _print_roster(console)


def _add_user(console: AdminUserConsole) -> None:
    print("\nCreate a new user (leave the name blank to cancel).")
    draft = console.new_user
    name = input(f"Name [{draft.name}]: ").strip() or draft.name
    if not name.strip():
        print("User creation cancelled.")
        return
    console.open_create_dialog()
    draft.name = name
    draft.email = input(f"Email address [{draft.email}]: ").strip() or draft.email
    draft.phone_number = (input(f"Phone number [{draft.phone_number}]: ").strip() or draft.phone_number)[:10]
    genders = "/".join(item.value for item in Gender if item.value)
    draft.gender = input(f"Gender ({genders}, blank to skip) [{draft.gender}]: ").strip() or draft.gender
    draft.city = input(f"City [{draft.city}]: ").strip() or draft.city
    categories = "/".join(item.value for item in Category)
    draft.category = input(f"Category ({categories}) [{draft.category}]: ").strip() or draft.category
    draft.target_exam = input(f"Target exam [{draft.target_exam}]: ").strip() or draft.target_exam

    if not console.submit_new_user():
        print("The entered details are kept; choose this option again to retry.")
    console.close_create_dialog()


def _enroll_user(console: AdminUserConsole) -> None:
    user = _choose_user(console)
    if user is None:
        return
    console.open_enroll_dialog(user)
    try:
        print(f"\nEnroll {user.display_name} {user.contact}".rstrip())
        if not console.catalog_available:
            print("Course catalog is unavailable. Reload courses and try again.")
            return
        courses = console.available_courses
        if not courses:
            print("All courses are already enrolled")
            return
        course = _choose_course(courses)
        if course is not None:
            console.select_course(course.id)
        raw = input(f"Validity in months [1-60, default {console.enroll_draft.validity_months}]: ").strip()
        if raw:
            console.set_validity_months(raw)
        console.submit_enrollment()
    finally:
        if console.enroll_dialog_open:
            console.close_enroll_dialog()


def _remove_enrollment(console: AdminUserConsole) -> None:
    user = _choose_user(console)
    if user is None:
        return
    badges = enrollment_badges(user)
    if not badges:
        print(f"{user.display_name} has no active enrollments.")
        return
    for index, badge in enumerate(badges, start=1):
        print(f"  {index}) {badge.label}")
    raw = input(f"Enrollment number [1-{len(badges)}]: ").strip()
    try:
        index = int(raw)
    except ValueError:
        print("Invalid selection.")
        return
    if not 1 <= index <= len(badges):
        print("Invalid selection.")
        return
    badge = badges[index - 1]
    console.remove_enrollment(user.id, badge.course_id, badge.confirm_name)


def _store_token(config: ConsoleConfig) -> None:
    if config.token_file is None:
        print(
            "No session token file configured. Set token_file in the configuration file or "
            f"export {config.token_env} before starting the console."
        )
        return
    token = getpass.getpass("Admin token: ").strip()
    if not token:
        print("No token entered.")
        return
    SessionFileCredentials(config.token_file).store(token)
    print(f"Stored admin token in {config.token_file}.")


def _run_admin_cli(console: AdminUserConsole, config: ConsoleConfig) -> None:
    """Provide an interactive management console for administrators."""

    print("User Administration Console")
    print(f"Connected to {config.base_url}")
    print("Press Ctrl+C at any time to exit.\n")

    console.mount()
    _print_roster(console)
    _print_notification(console)

    try:
        while True:
            print("\nSelect an option:")
            print("  1) Show current page")
            print("  2) Search users")
            print("  3) Next page")
            print("  4) Previous page")
            print("  5) Go to page")
            print("  6) Create a new user")
            print("  7) Enroll a user in a course")
            print("  8) Remove an enrollment")
            print("  9) Reload course catalog")
            print(" 10) Store admin session token")
            print(" 11) Exit")

            choice = input("Enter choice [1-11]: ").strip()

            if choice == "1":
                if console.load_roster():
                    _print_roster(console)
            elif choice == "2":
                _search(console)
            elif choice == "3":
                if console.next_page():
                    _print_roster(console)
                elif not console.has_next_page:
                    print("Already on the last page.")
            elif choice == "4":
                if console.previous_page():
                    _print_roster(console)
                elif not console.has_previous_page:
                    print("Already on the first page.")
            elif choice == "5":
                _go_to_page(console)
            elif choice == "6":
                _add_user(console)
            elif choice == "7":
                _enroll_user(console)
            elif choice == "8":
                _remove_enrollment(console)
            elif choice == "9":
                if console.load_catalog():
                    print(f"Loaded {len(console.courses)} course(s).")
            elif choice == "10":
                _store_token(config)
            elif choice == "11":
                print("Goodbye!")
                return
            else:
                print("Invalid selection. Please choose a number from the menu.")

            _print_notification(console)
    except (KeyboardInterrupt, EOFError):
        print("\nExiting administration console.")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    config = _load_config(args)

    if args.command == "serve":
        _serve(config, host=args.host, port=args.port)
    elif args.command == "check-config":
        print(json.dumps(config.describe(), indent=2))
    else:
        console = AdminUserConsole(
            _build_client(config),
            confirm=_confirm,
            page_size=config.page_size,
        )
        _run_admin_cli(console, config)


if __name__ == "__main__":
    main()
