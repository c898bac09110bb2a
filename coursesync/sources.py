"""
Data-source clients (HTTP -> Course objects).

Two mutually exclusive sources exist:

- legacy: an archive of CSV snapshots, one file per capture date, listed by a
  JSON index (GitHub contents API format: [{"name", "download_url", ...}])
- live: a static JSON feed

      {base}/version.json                   -> {"latest": "1132", "history": {...}}
      {base}/{period}/version.json          -> {"latest": "<update id>", ...}
      {base}/{period}/{update}/all.json     -> [ {live course record}, ... ]

Live records use their own field names; normalize_live_course() maps them
onto the Course shape used everywhere else.

All network and payload problems surface as SourceError.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from coursesync.model import WEEKDAYS, AcademicYear, Course, CourseDataFilesInfo

logger = logging.getLogger(__name__)

DEFAULT_LIVE_BASE_URL = "https://whats2000.github.io/NSYSUCourseAPI"
DEFAULT_LEGACY_INDEX_URL = (
    "https://api.github.com/repos/whats2000/NSYSUCourseSelector/contents/public/data"
)
DEFAULT_TIMEOUT = 15.0


class SourceError(Exception):
    """A data source could not be reached or returned unusable data."""


# Legacy CSV column -> Course attribute
_LEGACY_COLUMNS = {
    "Number": "number",
    "Name": "name",
    "Department": "department",
    "Grade": "grade",
    "Class": "class_name",
    "Credit": "credit",
    "Compulsory": "compulsory",
    "Teacher": "teacher",
    "Room": "room",
}

# Live record field -> legacy CSV column, for everything kept in Course.extra
_LIVE_EXTRA_FIELDS = {
    "url": "Url",
    "change": "Change",
    "changeDescription": "Change Description",
    "multipleCompulsory": "Multiple Compulsory",
    "yearSemester": "Year Semester",
    "restrict": "Restrict",
    "select": "Select",
    "selected": "Selected",
    "remaining": "Remaining",
    "description": "Description",
    "tags": "Tags",
    "english": "English",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (list, tuple)):
        return ",".join(_as_text(v) for v in value if v is not None)
    return str(value).strip()


def course_from_legacy_row(row: Mapping[str, Any]) -> Optional[Course]:
    """
    Build a Course from one CSV row of a legacy snapshot.

    Rows without a course number are skipped (returns None).
    """
    values = {attr: _as_text(row.get(column)) for column, attr in _LEGACY_COLUMNS.items()}
    if not values["number"]:
        return None

    class_time = {day: _as_text(row.get(day)) for day in WEEKDAYS}
    known = set(_LEGACY_COLUMNS) | set(WEEKDAYS)
    extra = {str(k): _as_text(v) for k, v in row.items() if k is not None and k not in known}

    return Course(class_time=class_time, extra=extra, **values)


def normalize_live_course(record: Mapping[str, Any]) -> Optional[Course]:
    """
    Map one live-feed record onto the Course shape.

    - id -> number, class -> class_name
    - compulsory (bool) -> "必" / "選" as in the legacy CSV files
    - classTime (list of 7 strings, Monday first) -> class_time
    - the remaining known fields land in extra under their legacy column names
    """
    number = _as_text(record.get("id"))
    if not number:
        return None

    class_times = record.get("classTime") or []
    if not isinstance(class_times, (list, tuple)):
        class_times = []
    class_time = {
        day: _as_text(class_times[i]) if i < len(class_times) else "" for i, day in enumerate(WEEKDAYS)
    }

    compulsory = record.get("compulsory")
    if isinstance(compulsory, bool):
        compulsory_text = "必" if compulsory else "選"
    else:
        compulsory_text = _as_text(compulsory)

    extra = {column: _as_text(record.get(key)) for key, column in _LIVE_EXTRA_FIELDS.items() if key in record}

    return Course(
        number=number,
        name=_as_text(record.get("name")),
        department=_as_text(record.get("department")),
        grade=_as_text(record.get("grade")),
        class_name=_as_text(record.get("class")),
        credit=_as_text(record.get("credit")),
        compulsory=compulsory_text,
        teacher=_as_text(record.get("teacher")),
        room=_as_text(record.get("room")),
        class_time=class_time,
        extra=extra,
    )


def _dedupe(courses: List[Course]) -> List[Course]:
    """Keep the first course per number, preserving order."""
    seen: set[str] = set()
    out: List[Course] = []
    for course in courses:
        if course.number in seen:
            continue
        seen.add(course.number)
        out.append(course)
    return out


class _HttpClient:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str) -> requests.Response:
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise SourceError(f"Request to {url} failed: {exc}") from exc
        return resp

    def _get_json(self, url: str) -> Any:
        resp = self._get(url)
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceError(f"Invalid JSON from {url}") from exc


# ---------------------------------------------------------------------------
# Legacy snapshot archive
# ---------------------------------------------------------------------------


class LegacySourceClient(_HttpClient):
    def __init__(
        self,
        index_url: str = DEFAULT_LEGACY_INDEX_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.index_url = index_url

    def list_available(self) -> List[CourseDataFilesInfo]:
        """Return all CSV snapshots listed by the archive index."""
        data = self._get_json(self.index_url)
        if not isinstance(data, list):
            raise SourceError(f"Unexpected snapshot index format from {self.index_url}")

        files: List[CourseDataFilesInfo] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            name = _as_text(item.get("name"))
            if not name.endswith(".csv"):
                continue
            files.append(
                CourseDataFilesInfo(
                    name=name,
                    path=_as_text(item.get("path")),
                    download_url=_as_text(item.get("download_url")),
                    size=item["size"] if isinstance(item.get("size"), int) else 0,
                    sha=_as_text(item.get("sha")),
                )
            )
        return files

    def load(self, info: CourseDataFilesInfo) -> List[Course]:
        """Download one snapshot and return its courses, deduplicated by number."""
        url = info.download_url or f"{self.index_url.rstrip('/')}/{info.name}"
        resp = self._get(url)
        try:
            text = resp.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SourceError(f"Snapshot {info.name} is not valid UTF-8") from exc

        reader = csv.DictReader(io.StringIO(text))
        try:
            if not reader.fieldnames or "Number" not in reader.fieldnames:
                raise SourceError(f"Snapshot {info.name} has no Number column")
            courses = [c for c in (course_from_legacy_row(row) for row in reader) if c is not None]
        except csv.Error as exc:
            raise SourceError(f"Snapshot {info.name} is not a readable CSV file") from exc
        return _dedupe(courses)


# ---------------------------------------------------------------------------
# Live semester feed
# ---------------------------------------------------------------------------


class LiveSourceClient(_HttpClient):
    def __init__(
        self,
        base_url: str = DEFAULT_LIVE_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.base_url = base_url.rstrip("/")

    def list_available_periods(self) -> AcademicYear:
        data = self._get_json(f"{self.base_url}/version.json")
        if not isinstance(data, dict) or not data.get("latest"):
            raise SourceError("Period index has no 'latest' entry")

        history: Dict[str, tuple] = {}
        raw_history = data.get("history") or {}
        if isinstance(raw_history, dict):
            for period, updates in raw_history.items():
                if isinstance(updates, (list, tuple)):
                    history[str(period)] = tuple(str(u) for u in updates)
                elif isinstance(updates, dict):
                    history[str(period)] = tuple(str(u) for u in updates)
                else:
                    history[str(period)] = ()

        return AcademicYear(latest=str(data["latest"]), history=history)

    def list_updates(self, period: str) -> Dict[str, Any]:
        data = self._get_json(f"{self.base_url}/{period}/version.json")
        if not isinstance(data, dict) or not data.get("latest"):
            raise SourceError(f"Update index of {period} has no 'latest' entry")
        return data

    def load_courses(self, period: str, update_id: str) -> List[Course]:
        data = self._get_json(f"{self.base_url}/{period}/{update_id}/all.json")
        if not isinstance(data, list):
            raise SourceError(f"Unexpected course list format for {period}/{update_id}")

        courses: List[Course] = []
        skipped = 0
        for record in data:
            course = normalize_live_course(record) if isinstance(record, dict) else None
            if course is None:
                skipped += 1
                continue
            courses.append(course)

        if skipped:
            logger.warning("Skipped %d live record(s) without an id in %s/%s", skipped, period, update_id)
        return _dedupe(courses)
