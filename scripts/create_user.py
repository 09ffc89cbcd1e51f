import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adminconsole.client import AdminAPIClient, AdminAPIError
from adminconsole.config import ConfigurationError, load_console_config
from adminconsole.console import DraftValidationError, validate_new_user
from adminconsole.models import Category, Gender, NewUserDraft


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user through the admin API")
    parser.add_argument("name", help="Full name of the user")
    parser.add_argument("--email", default="", help="Email address")
    parser.add_argument("--phone", default="", help="10-digit phone number")
    parser.add_argument(
        "--gender",
        default="",
        choices=[item.value for item in Gender],
        help="Gender (blank when unspecified)",
    )
    parser.add_argument("--city", default="", help="City")
    parser.add_argument(
        "--category",
        default=Category.CAT.value,
        choices=[item.value for item in Category],
        help="Exam category (default: CAT)",
    )
    parser.add_argument("--exam", default="", help="Target exam, e.g. 'CAT 2025'")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the console configuration (defaults to ADMIN_CONSOLE_CONFIG or config/console.yaml)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    draft = NewUserDraft(
        name=args.name,
        email=args.email,
        phone_number=args.phone,
        gender=args.gender,
        city=args.city,
        category=args.category,
        target_exam=args.exam,
    )
    try:
        validate_new_user(draft)
    except DraftValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not draft.email.strip() and not draft.phone_number.strip():
        print("Error: provide at least one of --email or --phone", file=sys.stderr)
        return 1

    try:
        config = load_console_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    client = AdminAPIClient(
        config.base_url,
        credentials=config.credentials(),
        timeout=config.timeout,
        verify=config.verify,
    )
    try:
        message = client.create_user(draft)
    except AdminAPIError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(message or f"Created user {draft.name.strip()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
