"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the Acehive admin console.

Usage:
  # Sign in once; the session flag is kept in SESSION_PATH
  acehive login --user admin

  # Add a resource
  acehive submit --year "2nd Year" --degree Mechanical --specialisation Robotics \\
      --subject Thermo --resource-type "CT Paper" \\
      --file-urls "a.pdf, b.pdf" --title "Thermo CT-1" --description "2024 paper"

  # Browse a table with filters, as text or JSON
  acehive browse --table resources --year "2nd Year" --search thermo
  acehive browse --table feedback --json

  # Count widgets
  acehive stats

  acehive logout

  # Without installing: python -m acehive.interfaces.cli ...

Exit codes:
  0 — success (including an empty table)
  1 — runtime error (storage, authentication, configuration)
  2 — argument or validation error
"""
from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys

import pandas as pd

from acehive.config.taxonomy import DEGREES
from acehive.domain.exceptions import AcehiveError, AuthenticationError, DraftValidationError
from acehive.domain.models import BrowseStatus, ResourceType, SubjectType, Year
from acehive.services.container import ConsoleServices, get_console
from acehive.services.table_reader import TableBrowser

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="acehive",
        description="Curate the Acehive academic-resource catalogue.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    login = sub.add_parser("login", help="Sign in against the auth table.")
    login.add_argument("--user", "-u", required=True)
    login.add_argument("--password", "-p", help="Prompted for when omitted.")

    sub.add_parser("logout", help="Sign out and forget the local session.")

    submit = sub.add_parser("submit", help="Add a new resource.")
    submit.add_argument("--year", choices=[y.value for y in Year], required=True)
    submit.add_argument("--degree", choices=DEGREES, default="")
    submit.add_argument("--specialisation", default="")
    submit.add_argument("--subject", default="")
    submit.add_argument(
        "--subject-type",
        choices=[t.value for t in SubjectType],
        default=SubjectType.SUBJECT.value,
        dest="subject_type",
    )
    submit.add_argument(
        "--resource-type",
        choices=[t.value for t in ResourceType],
        required=True,
        dest="resource_type",
    )
    submit.add_argument("--file-urls", required=True, dest="file_urls",
                        help="Comma-separated list of file URLs.")
    submit.add_argument("--title", required=True)
    submit.add_argument("--description", required=True)
    submit.add_argument("--json", action="store_true", dest="json_output",
                        help="Print the stored record as JSON.")

    browse = sub.add_parser("browse", help="Show the rows of a table.")
    browse.add_argument("--table", "-t", default="resources")
    browse.add_argument("--year", choices=[y.value for y in Year])
    browse.add_argument("--resource-type", choices=[t.value for t in ResourceType],
                        dest="resource_type")
    browse.add_argument("--search", "-s", default="", help="Case-insensitive title search.")
    browse.add_argument("--json", action="store_true", dest="json_output",
                        help="Output rows as JSON.")

    stats = sub.add_parser("stats", help="Resource counts per year and type.")
    stats.add_argument("--json", action="store_true", dest="json_output")

    return p


# ── Commands ───────────────────────────────────────────────────────────────

def _cmd_login(console: ConsoleServices, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    session = console.session(persist=True)
    session.sign_in(args.user, password)
    print("Login successful!")
    return 0


def _cmd_logout(console: ConsoleServices, args: argparse.Namespace) -> int:
    console.session(persist=True).sign_out()
    print("Signed out.")
    return 0


def _cmd_submit(console: ConsoleServices, args: argparse.Namespace) -> int:
    controller = console.submission_controller()
    try:
        controller.update(
            year=args.year,
            degree=args.degree,
            specialisation=args.specialisation,
            subject=args.subject,
            subject_type=args.subject_type,
            resource_type=args.resource_type,
            file_urls=args.file_urls,
            title=args.title,
            description=args.description,
        )
    except DraftValidationError as exc:
        _print_field_errors(exc.errors)
        return 2

    result = controller.submit()
    if result.field_errors:
        _print_field_errors(result.field_errors)
        return 2
    if not result.ok:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 1

    if args.json_output:
        print(json.dumps(result.record.to_row(), indent=2, ensure_ascii=False))
    else:
        print(result.message)
        print(f"  tags: {', '.join(result.record.tags)}")
    controller.acknowledge()
    return 0


def _cmd_browse(console: ConsoleServices, args: argparse.Namespace) -> int:
    browser = console.table_browser()
    status = browser.select_table(args.table)
    if status == BrowseStatus.ERROR:
        print(f"ERROR: {browser.error}", file=sys.stderr)
        return 1

    if args.year or args.resource_type or args.search:
        browser.filters.set_year(args.year)
        browser.filters.set_resource_type(args.resource_type)
        browser.filters.on_search_change(args.search)
        browser.filters.apply_filters()

    if args.json_output:
        print(json.dumps(browser.visible_records(), indent=2, ensure_ascii=False))
        return 0
    _print_table(browser)
    return 0


def _cmd_stats(console: ConsoleServices, args: argparse.Namespace) -> int:
    stats = console.stats()
    counts = {"by_year": stats.by_year(), "by_resource_type": stats.by_resource_type()}
    if args.json_output:
        print(json.dumps(counts, indent=2))
        return 0
    for heading, values in counts.items():
        print(heading.replace("_", " ").title())
        for label, n in values.items():
            print(f"  {label:<16} {n}")
    return 0


_COMMANDS = {
    "login": _cmd_login,
    "logout": _cmd_logout,
    "submit": _cmd_submit,
    "browse": _cmd_browse,
    "stats": _cmd_stats,
}
_UNGUARDED = {"login", "logout"}


# ── Formatting helpers ─────────────────────────────────────────────────────

def _print_field_errors(errors: dict[str, str]) -> None:
    print("Resource not submitted:", file=sys.stderr)
    for name, message in errors.items():
        print(f"  {name}: {message}", file=sys.stderr)


def _print_table(browser: TableBrowser) -> None:
    if browser.status == BrowseStatus.EMPTY:
        print("No data available for the selected table.")
        return
    df = pd.DataFrame(browser.visible_rows(), columns=browser.visible_columns())
    print(df.to_string(index=False))
    if browser.filters.filters_applied:
        print(f"\n(Filters applied: {len(browser.filters.rows)} of "
              f"{len(browser.filters.source)} rows)")


# ── Main logic ─────────────────────────────────────────────────────────────

def run(args: argparse.Namespace) -> int:
    """Dispatch a parsed command.

    Returns:
        Exit code (0 = success, 1 = error, 2 = validation error).
    """
    try:
        console = get_console()
    except AcehiveError as exc:
        logger.exception("Failed to initialise console")
        print(f"ERROR: Console initialisation failed: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command not in _UNGUARDED:
            console.session(persist=True).require_authenticated()
        return _COMMANDS[args.command](console, args)
    except AuthenticationError as exc:
        hint = "" if args.command in _UNGUARDED else " (run `acehive login`)"
        print(f"ERROR: {exc}{hint}", file=sys.stderr)
        return 1
    except AcehiveError as exc:
        logger.exception("Command %s failed", args.command)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    """Entry point for the acehive console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(2)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
