"""
Central data model definitions used across the project.

This module defines the canonical structure of Course, TimeSlot and the
data-source metadata objects so that:
- the legacy CSV archive and the live JSON feed end up in the same shape
- the selection store, the filter set and the reconciler share field names
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Tuple

WEEKDAYS: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class DataSource(Enum):
    LEGACY = "legacy"
    LIVE = "live"

    @classmethod
    def from_flag(cls, use_live_api: bool) -> "DataSource":
        return cls.LIVE if use_live_api else cls.LEGACY


@dataclass(eq=False)
class Course:
    """
    Represents one course offering of one period.

    Identity is the course ``number`` only: two Course objects with the same
    number are the same course for selection purposes, even when they were
    loaded from different snapshots.
    """

    number: str
    name: str = ""
    department: str = ""
    grade: str = ""
    class_name: str = ""
    credit: str = ""
    compulsory: str = ""
    teacher: str = ""
    room: str = ""
    class_time: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, str] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Course):
            return NotImplemented
        return self.number == other.number

    def __hash__(self) -> int:
        return hash(self.number)


@dataclass(frozen=True)
class TimeSlot:
    """One (weekday, period) cell of the weekly schedule grid."""

    weekday: str
    time_slot: str


@dataclass(frozen=True)
class CourseDataFilesInfo:
    """
    Metadata of one legacy snapshot file, e.g. ``all_classes_1131_20240909.csv``.
    """

    name: str
    path: str = ""
    download_url: str = ""
    size: int = 0
    sha: str = ""


@dataclass(frozen=True)
class AcademicYear:
    latest: str = ""
    history: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionLabel:
    academic_year: str
    semester: str
    date_label: str

    def __str__(self) -> str:
        return f"{self.academic_year}{self.semester} {self.date_label}"
