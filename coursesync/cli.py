"""
CLI (Command Line Interface).

Quick terminal commands on top of a CourseSyncSession, e.g.:

    coursesync versions
    coursesync courses --search calculus
    coursesync select B123456
    coursesync deselect B123456
    coursesync selected
    coursesync clear
    coursesync label all_classes_1131_20240909.csv

Every command except ``label`` first runs the normal startup sequence
(load the active source, restore the selection), so it sees exactly what
the view layer would see.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from rich.console import Console
from rich.status import Status
from rich.table import Table

from coursesync.config import load_config
from coursesync.log import setup_logging
from coursesync.model import Course
from coursesync.navigation import fragment_from_url
from coursesync.session import CourseSyncSession
from coursesync.version_label import format_version

console = Console()


class _Spinner:
    """Shows a rich status spinner while the session's loading flag is set."""

    def __init__(self) -> None:
        self._status: Optional[Status] = None

    def __call__(self, reason: Optional[str]) -> None:
        if reason is None:
            if self._status is not None:
                self._status.stop()
                self._status = None
            return
        if self._status is None:
            self._status = console.status(f"Loading {reason}...")
            self._status.start()
        else:
            self._status.update(f"Loading {reason}...")


def _courses_table(courses: list[Course], session: CourseSyncSession, limit: int = 20) -> Table:
    table = Table(show_lines=False)
    table.add_column("", width=1)
    table.add_column("Number")
    table.add_column("Name")
    table.add_column("Teacher")
    table.add_column("Room")
    for course in courses[:limit]:
        mark = "*" if session.selection.is_selected(course) else ""
        table.add_row(mark, course.number, course.name, course.teacher, course.room)
    return table


def _cmd_label(args: argparse.Namespace) -> int:
    console.print(str(format_version(args.name)))
    return 0


def _cmd_versions(args: argparse.Namespace, session: CourseSyncSession) -> int:
    """
    List the periods (live) or snapshots (legacy) the active source offers.
    """
    if session.use_live_api:
        periods = session.reconciler.state.available_periods
        if not periods.latest:
            console.print("No periods available.")
            return 0
        for period in sorted(periods.history or {periods.latest: ()}, reverse=True):
            marks = []
            if period == periods.latest:
                marks.append("latest")
            if period == session.selected_period:
                marks.append("selected")
            suffix = f" ({', '.join(marks)})" if marks else ""
            console.print(f"{period}{suffix}")
        return 0

    snapshots = sorted(session.available_snapshots, key=lambda s: s.name, reverse=True)
    if not snapshots:
        console.print("No snapshots available.")
        return 0
    for snapshot in snapshots:
        marks = []
        if snapshot.name == session.latest_snapshot:
            marks.append("latest")
        if snapshot.name == session.current_snapshot:
            marks.append("current")
        suffix = f" ({', '.join(marks)})" if marks else ""
        console.print(f"{snapshot.name} | {format_version(snapshot.name)}{suffix}")
    return 0


def _cmd_courses(args: argparse.Namespace, session: CourseSyncSession) -> int:
    """
    Search courses by substring match in number, name, or teacher.
    """
    courses = session.courses
    query = (args.search or "").strip().lower()
    if query:
        courses = [c for c in courses if query in f"{c.number} {c.name} {c.teacher}".lower()]

    if not courses:
        console.print("No results.")
        return 0

    console.print(_courses_table(courses, session))
    if len(courses) > 20:
        console.print(f"... and {len(courses) - 20} more results")
    return 0


def _cmd_select(args: argparse.Namespace, session: CourseSyncSession, is_selected: bool) -> int:
    number = (args.number or "").strip()
    if not number:
        console.print("Please provide a course number.")
        return 1

    course = session.find_course(number)
    if course is None:
        console.print(f"Course '{number}' is not part of semester {session.current_semester() or '?'}.")
        return 1

    before = session.selection.is_selected(course)
    session.set_selected(course, is_selected)
    if before == is_selected:
        console.print(f"{'Already' if is_selected else 'Not'} selected: {number}")
    else:
        action = "Added" if is_selected else "Removed"
        console.print(f"{action}: {number} (selected: {len(session.selection)})")
    return 0


def _cmd_selected(args: argparse.Namespace, session: CourseSyncSession) -> int:
    selected = session.selected_courses
    if not selected:
        console.print("No courses selected.")
        return 0
    console.print(_courses_table(selected, session, limit=len(selected)))
    return 0


def _cmd_clear(args: argparse.Namespace, session: CourseSyncSession) -> int:
    session.clear_all()
    console.print("Selection cleared.")
    return 0


def _cmd_view(args: argparse.Namespace, session: CourseSyncSession) -> int:
    console.print(session.current_view)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursesync", description="Course selection sync CLI")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--live", dest="use_live_api", action="store_true", default=None, help="Use the live feed")
    source.add_argument("--legacy", dest="use_live_api", action="store_false", help="Use the snapshot archive")
    parser.add_argument("--period", type=str, default=None, help="Live period code (e.g. 1131)")
    parser.add_argument("--snapshot", type=str, default=None, help="Legacy snapshot file name")
    parser.add_argument("--url", type=str, default=None, help="Page URL whose fragment selects the view")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output")

    sub = parser.add_subparsers(dest="command", required=True)

    p_label = sub.add_parser("label", help="Format a snapshot file name")
    p_label.add_argument("name", type=str, help="Snapshot file name")

    sub.add_parser("versions", help="List available periods / snapshots")

    p_courses = sub.add_parser("courses", help="List or search courses")
    p_courses.add_argument("--search", "-s", type=str, default=None, help="Search text")

    p_select = sub.add_parser("select", help="Select course by number")
    p_select.add_argument("number", type=str, help="Course number")

    p_deselect = sub.add_parser("deselect", help="Deselect course by number")
    p_deselect.add_argument("number", type=str, help="Course number")

    sub.add_parser("selected", help="Show selected courses")
    sub.add_parser("clear", help="Clear all selected courses")
    sub.add_parser("view", help="Show the view selected by --url")

    return parser


async def _run(args: argparse.Namespace, session: CourseSyncSession) -> int:
    fragment = fragment_from_url(args.url) if args.url else None
    await session.start(fragment)

    if args.period:
        await session.change_selected_period(args.period.strip())
    if args.snapshot:
        name = args.snapshot.strip()
        snapshot = next((s for s in session.available_snapshots if s.name == name), None)
        if snapshot is None:
            console.print(f"Unknown snapshot: {name}")
            return 1
        await session.switch_version(snapshot)

    if args.command == "versions":
        return _cmd_versions(args, session)
    if args.command == "courses":
        return _cmd_courses(args, session)
    if args.command == "select":
        return _cmd_select(args, session, True)
    if args.command == "deselect":
        return _cmd_select(args, session, False)
    if args.command == "selected":
        return _cmd_selected(args, session)
    if args.command == "clear":
        return _cmd_clear(args, session)
    if args.command == "view":
        return _cmd_view(args, session)
    return 2


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "label":
        raise SystemExit(_cmd_label(args))

    settings = load_config(args.config)
    if args.use_live_api is not None:
        settings.use_live_api = args.use_live_api

    level = settings.log_level.upper()
    if args.verbose == 1:
        level = "INFO"
    elif args.verbose > 1:
        level = "DEBUG"
    setup_logging(level, args.log_file)
    logging.getLogger(__name__).debug("Using settings %s", settings)

    session = CourseSyncSession.from_settings(settings)
    spinner = _Spinner()
    unsubscribe = session.loading.subscribe(spinner)
    try:
        code = asyncio.run(_run(args, session))
    finally:
        unsubscribe()
        spinner(None)
    raise SystemExit(code)
