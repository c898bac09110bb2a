"""
Human-readable labels for legacy snapshot file names.

Snapshot files follow the naming convention

    all_classes_<AAA><S>_<YYYY><MM><DD>.csv

where AAA is the 3-digit academic year, S the semester code (1, 2 or 3)
and YYYYMMDD the date the snapshot was captured. All fields are fixed-width,
which is what makes plain string ordering of names chronological.
"""

from __future__ import annotations

import re
from typing import Union

from coursesync.model import VersionLabel

SNAPSHOT_NAME_RE = re.compile(r"all_classes_(\d{3})([123])_(\d{4})(\d{2})(\d{2})\.csv", re.ASCII)
_SEMESTER_CODE_RE = re.compile(r"all_classes_(\d{4})", re.ASCII)

SEMESTER_NAMES = {
    "1": "上",
    "2": "下",
    "3": "暑",
}


def is_snapshot_name(name: str) -> bool:
    return SNAPSHOT_NAME_RE.fullmatch(name) is not None


def format_version(name: str) -> Union[VersionLabel, str]:
    """
    Convert a snapshot file name into a VersionLabel.

    Names that do not follow the convention are returned unchanged.
    """
    match = SNAPSHOT_NAME_RE.fullmatch(name)
    if not match:
        return name

    academic_year, semester_code, year, month, day = match.groups()
    return VersionLabel(
        academic_year=str(int(academic_year)),
        semester=SEMESTER_NAMES[semester_code],
        date_label=f"{year}{month}{day} 資料",
    )


def semester_code(name: str) -> str:
    """
    Extract the period code from a snapshot name.

    "all_classes_1131_20240909.csv" -> "1131", anything else -> "".
    """
    match = _SEMESTER_CODE_RE.search(name)
    return match.group(1) if match else ""
