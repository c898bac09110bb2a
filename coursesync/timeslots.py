"""
Session-only filter of schedule grid cells.

The view layer uses the selected cells as a search predicate ("only show
courses taught in these slots"); this module only keeps the set itself.
"""

from __future__ import annotations

from typing import Iterator, List

from coursesync.model import TimeSlot


class TimeSlotFilter:
    def __init__(self) -> None:
        self._slots: List[TimeSlot] = []

    @property
    def slots(self) -> List[TimeSlot]:
        return list(self._slots)

    def toggle(self, slot: TimeSlot) -> bool:
        """
        Remove ``slot`` if an equal entry is present, otherwise append it.

        Returns True if the slot is part of the filter afterwards.
        """
        if slot in self._slots:
            self._slots.remove(slot)
            return False
        self._slots.append(slot)
        return True

    def __iter__(self) -> Iterator[TimeSlot]:
        return iter(list(self._slots))

    def __len__(self) -> int:
        return len(self._slots)
