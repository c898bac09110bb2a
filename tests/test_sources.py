"""
Tests for the HTTP source clients.

The requests session is replaced by a MagicMock so no network is used.
"""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

import requests

from coursesync.model import WEEKDAYS, CourseDataFilesInfo
from coursesync.sources import (
    LegacySourceClient,
    LiveSourceClient,
    SourceError,
    course_from_legacy_row,
    normalize_live_course,
)

LEGACY_CSV = (
    "\ufeffChange,Department,Number,Grade,Class,Name,Credit,Compulsory,Teacher,Room,"
    "Mon,Tue,Wed,Thu,Fri,Sat,Sun,Description\n"
    ",資工系,CSE101,1,全英班,計算機概論,3,必,王小明,EC1001,,34,,,,,,intro\n"
    ",資工系,CSE101,1,全英班,計算機概論,3,必,王小明,EC1001,,34,,,,,,duplicate\n"
    ",通識,GEAE1234,0,,音樂欣賞,2,選,李老師,LA2002,,,,,CD,,,\n"
)

LIVE_RECORD = {
    "id": "CSE101",
    "url": "https://example.org/CSE101",
    "change": "",
    "changeDescription": "",
    "multipleCompulsory": False,
    "department": "資工系",
    "grade": "1",
    "class": "全英班",
    "name": "計算機概論",
    "credit": "3",
    "yearSemester": "1131",
    "compulsory": True,
    "restrict": 60,
    "select": 40,
    "selected": 38,
    "remaining": 22,
    "teacher": "王小明",
    "room": "EC1001",
    "classTime": ["", "34", "", "", "", "", ""],
    "description": "intro",
    "tags": ["英語授課", "AI"],
    "english": True,
}


def _response(json_data=None, content: bytes = b"", status_error: Exception | None = None) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = json_data
    resp.content = content
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    return resp


def _session(*responses) -> MagicMock:
    session = MagicMock()
    session.get.side_effect = list(responses)
    return session


class TestNormalization(unittest.TestCase):
    def test_live_record_maps_onto_course(self) -> None:
        course = normalize_live_course(LIVE_RECORD)

        self.assertIsNotNone(course)
        assert course is not None
        self.assertEqual(course.number, "CSE101")
        self.assertEqual(course.name, "計算機概論")
        self.assertEqual(course.class_name, "全英班")
        self.assertEqual(course.compulsory, "必")
        self.assertEqual(course.class_time["Tue"], "34")
        self.assertEqual(list(course.class_time), list(WEEKDAYS))
        self.assertEqual(course.extra["Tags"], "英語授課,AI")
        self.assertEqual(course.extra["Remaining"], "22")
        self.assertEqual(course.extra["English"], "1")

    def test_live_and_legacy_courses_are_equal_by_number(self) -> None:
        live = normalize_live_course(LIVE_RECORD)
        legacy = course_from_legacy_row({"Number": "CSE101", "Name": "other name"})
        self.assertEqual(live, legacy)
        self.assertEqual(len({live, legacy}), 1)

    def test_records_without_id_are_skipped(self) -> None:
        self.assertIsNone(normalize_live_course({"name": "no id"}))
        self.assertIsNone(course_from_legacy_row({"Number": " ", "Name": "no number"}))

    def test_elective_and_short_class_time(self) -> None:
        course = normalize_live_course({"id": "X1", "compulsory": False, "classTime": ["12"]})
        assert course is not None
        self.assertEqual(course.compulsory, "選")
        self.assertEqual(course.class_time["Mon"], "12")
        self.assertEqual(course.class_time["Sun"], "")


class TestLegacySourceClient(unittest.TestCase):
    def test_list_available_keeps_csv_files(self) -> None:
        index = [
            {"name": "all_classes_1131_20240909.csv", "path": "data/a", "download_url": "https://x/a.csv", "size": 10},
            {"name": "README.md", "download_url": "https://x/README.md"},
            "garbage",
        ]
        client = LegacySourceClient("https://x/index", session=_session(_response(index)))
        files = client.list_available()

        self.assertEqual([f.name for f in files], ["all_classes_1131_20240909.csv"])
        self.assertEqual(files[0].download_url, "https://x/a.csv")
        self.assertEqual(files[0].size, 10)

    def test_load_parses_and_dedupes(self) -> None:
        session = _session(_response(content=LEGACY_CSV.encode("utf-8")))
        client = LegacySourceClient("https://x/index", session=session)
        courses = client.load(CourseDataFilesInfo(name="all_classes_1131_20240909.csv", download_url="https://x/a.csv"))

        self.assertEqual([c.number for c in courses], ["CSE101", "GEAE1234"])
        self.assertEqual(courses[0].extra["Description"], "intro")
        self.assertEqual(courses[1].class_time["Fri"], "CD")
        session.get.assert_called_once_with("https://x/a.csv", timeout=client.timeout)

    def test_load_without_download_url_uses_index_url(self) -> None:
        session = _session(_response(content=LEGACY_CSV.encode("utf-8")))
        client = LegacySourceClient("https://x/data/", session=session)
        client.load(CourseDataFilesInfo(name="all_classes_1131_20240909.csv"))
        self.assertEqual(session.get.call_args[0][0], "https://x/data/all_classes_1131_20240909.csv")

    def test_csv_without_number_column_fails(self) -> None:
        client = LegacySourceClient("https://x", session=_session(_response(content=b"a,b\n1,2\n")))
        with self.assertRaises(SourceError):
            client.load(CourseDataFilesInfo(name="x.csv", download_url="https://x/x.csv"))

    def test_oversized_field_becomes_source_error(self) -> None:
        huge = LEGACY_CSV + ",資工系,CSE999,1,,x,3,必,,,,,,,,,," + "a" * 200_000 + "\n"
        client = LegacySourceClient("https://x", session=_session(_response(content=huge.encode("utf-8"))))
        with self.assertRaises(SourceError):
            client.load(CourseDataFilesInfo(name="x.csv", download_url="https://x/x.csv"))

    def test_http_error_becomes_source_error(self) -> None:
        err = requests.HTTPError("404")
        client = LegacySourceClient("https://x", session=_session(_response(status_error=err)))
        with self.assertRaises(SourceError):
            client.list_available()

    def test_connection_error_becomes_source_error(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(SourceError):
            LegacySourceClient("https://x", session=session).list_available()


class TestLiveSourceClient(unittest.TestCase):
    def test_full_live_sequence(self) -> None:
        session = _session(
            _response({"latest": "1131", "history": {"1131": ["20240909_000000"], "1122": ["20240210_000000"]}}),
            _response({"latest": "20240909_000000", "history": {}}),
            _response([LIVE_RECORD, {"name": "broken"}, dict(LIVE_RECORD)]),
        )
        client = LiveSourceClient("https://feed/", session=session)

        periods = client.list_available_periods()
        self.assertEqual(periods.latest, "1131")
        self.assertEqual(periods.history["1122"], ("20240210_000000",))

        updates = client.list_updates(periods.latest)
        courses = client.load_courses(periods.latest, updates["latest"])

        self.assertEqual([c.number for c in courses], ["CSE101"])
        urls = [call.args[0] for call in session.get.call_args_list]
        self.assertEqual(
            urls,
            [
                "https://feed/version.json",
                "https://feed/1131/version.json",
                "https://feed/1131/20240909_000000/all.json",
            ],
        )

    def test_period_index_without_latest_fails(self) -> None:
        client = LiveSourceClient("https://feed", session=_session(_response({"history": {}})))
        with self.assertRaises(SourceError):
            client.list_available_periods()

    def test_invalid_json_fails(self) -> None:
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        client = LiveSourceClient("https://feed", session=_session(resp))
        with self.assertRaises(SourceError):
            client.list_updates("1131")

    def test_course_list_must_be_a_list(self) -> None:
        client = LiveSourceClient("https://feed", session=_session(_response({"courses": []})))
        with self.assertRaises(SourceError):
            client.load_courses("1131", "u1")


if __name__ == "__main__":
    unittest.main()
