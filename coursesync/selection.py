"""
Persistent storage for the user's course selection.

The selection is kept in memory as an ordered set of Course objects and
mirrored to durable storage as the ordered list of their numbers:

    selectedCoursesNumbers = '["B123456", "GEAE1234"]'

Design rules:
- the persisted record only ever contains numbers, never full courses
- every change of the in-memory set is written in one storage write
- restoring never crashes the caller: a broken record counts as "nothing saved"
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Optional, Protocol

from coursesync.model import Course

logger = logging.getLogger(__name__)

SELECTED_COURSES_KEY = "selectedCoursesNumbers"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


def _parse_numbers(raw: Optional[str]) -> Optional[List[str]]:
    """
    Decode a persisted record into a list of course numbers.

    Returns None for an absent or malformed record.
    """
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, list):
        return None
    return [str(x) for x in data if isinstance(x, (str, int))]


class SelectionStore:
    """Owns the set of selected courses, keyed by course number."""

    def __init__(self, storage: KeyValueStorage, key: str = SELECTED_COURSES_KEY) -> None:
        self._storage = storage
        self._key = key
        self._selected: Dict[str, Course] = {}

    @property
    def courses(self) -> List[Course]:
        return list(self._selected.values())

    def numbers(self) -> List[str]:
        return list(self._selected)

    def is_selected(self, course: Course) -> bool:
        return course.number in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def __iter__(self):
        return iter(list(self._selected.values()))

    def restore(self, courses: Iterable[Course]) -> List[Course]:
        """
        Rebuild the selection from the persisted numbers and a fresh course list.

        Numbers that are not part of ``courses`` (another semester, another
        data source) are dropped silently. The persisted record itself is left
        untouched so switching back restores them.
        """
        numbers = _parse_numbers(self._storage.get(self._key))
        if numbers is None:
            self._selected = {}
            return []

        wanted = set(numbers)
        restored: Dict[str, Course] = {}
        for course in courses:
            if course.number in wanted and course.number not in restored:
                restored[course.number] = course

        dropped = len(wanted) - len(restored)
        if dropped:
            logger.debug("Dropped %d selected course(s) missing from the loaded list", dropped)

        self._selected = restored
        return self.courses

    def select(self, course: Course) -> None:
        if course.number in self._selected:
            return
        self._selected[course.number] = course
        self._persist()

    def deselect(self, course: Course) -> None:
        if course.number not in self._selected:
            return
        del self._selected[course.number]
        self._persist()

    def set_selected(self, course: Course, is_selected: bool) -> None:
        if is_selected:
            self.select(course)
        else:
            self.deselect(course)

    def clear_all(self) -> None:
        """Empty the selection and delete the persisted record."""
        self._selected = {}
        try:
            self._storage.remove(self._key)
        except OSError:
            logger.warning("Could not erase saved course selection", exc_info=True)

    def _persist(self) -> None:
        payload = json.dumps(self.numbers(), ensure_ascii=False)
        try:
            self._storage.set(self._key, payload)
        except OSError:
            # best effort: the in-memory selection stays as it is
            logger.warning("Could not save course selection", exc_info=True)
