"""
One user session: the state containers wired together.

Startup order:
    1. loading flag is busy ("data") from construction on
    2. the reconciler loads the active source and restores the selection
    3. loading flag cleared
    4. the URL fragment (if any) picks the initial view, once

Afterwards the view layer calls the operations below; each one goes to the
container that owns the state it changes.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from coursesync.config import Settings
from coursesync.loading import DATA, LoadingCoordinator
from coursesync.model import Course, CourseDataFilesInfo, DataSource, TimeSlot
from coursesync.navigation import DEFAULT_VIEW, VIEWS, restore_view
from coursesync.reconciler import DataSourceReconciler
from coursesync.selection import KeyValueStorage, SelectionStore
from coursesync.sources import LegacySourceClient, LiveSourceClient
from coursesync.storage import JsonFileStorage
from coursesync.timeslots import TimeSlotFilter
from coursesync.transitions import Effect
from coursesync.version_label import semester_code

logger = logging.getLogger(__name__)


class CourseSyncSession:
    def __init__(
        self,
        legacy: LegacySourceClient,
        live: LiveSourceClient,
        storage: KeyValueStorage,
        use_live_api: bool = True,
    ) -> None:
        self.loading = LoadingCoordinator(DATA)
        self.selection = SelectionStore(storage)
        self.time_slots = TimeSlotFilter()
        self.reconciler = DataSourceReconciler(
            legacy,
            live,
            self.loading,
            on_courses=self.selection.restore,
            use_live_api=use_live_api,
        )
        self.current_view = DEFAULT_VIEW
        self.hovered_course: Optional[str] = None
        self.clicked_course: Optional[str] = None
        self._view_restored = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "CourseSyncSession":
        return cls(
            legacy=LegacySourceClient(settings.legacy_index_url, timeout=settings.timeout),
            live=LiveSourceClient(settings.live_base_url, timeout=settings.timeout),
            storage=JsonFileStorage(settings.storage_path),
            use_live_api=settings.use_live_api,
        )

    # ------------------------------------------------------------------
    # State read by the view layer
    # ------------------------------------------------------------------

    @property
    def courses(self) -> List[Course]:
        return self.reconciler.courses

    @property
    def selected_courses(self) -> List[Course]:
        return self.selection.courses

    @property
    def search_time_slots(self) -> List[TimeSlot]:
        return self.time_slots.slots

    @property
    def mode(self) -> DataSource:
        return self.reconciler.mode

    @property
    def use_live_api(self) -> bool:
        return self.reconciler.state.use_live_api

    @property
    def selected_period(self) -> str:
        return self.reconciler.state.selected_period

    @property
    def available_snapshots(self) -> List[CourseDataFilesInfo]:
        return list(self.reconciler.state.available_snapshots)

    @property
    def current_snapshot(self) -> str:
        return self.reconciler.state.current_snapshot

    @property
    def latest_snapshot(self) -> str:
        return self.reconciler.state.latest_snapshot

    @property
    def loading_reason(self) -> Optional[str]:
        return self.loading.reason

    def current_semester(self) -> str:
        """Period code of the data on screen, e.g. "1131"."""
        if self.use_live_api:
            return self.selected_period
        return semester_code(self.current_snapshot)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, fragment: Optional[str] = None) -> None:
        await self.reconciler.reload()
        self.loading.end()
        self.apply_fragment(fragment)

    def apply_fragment(self, fragment: Optional[str]) -> str:
        """Pick the initial view from the URL fragment. Only the first call counts."""
        if self._view_restored:
            return self.current_view
        self._view_restored = True
        self.current_view = restore_view(fragment, self.current_view)
        return self.current_view

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def select(self, course: Course) -> None:
        """Select a course of the current list; other courses are ignored."""
        if self.find_course(course.number) is None:
            logger.warning("Ignoring selection of %s: not in the current course list", course.number)
            return
        self.selection.select(course)

    def deselect(self, course: Course) -> None:
        self.selection.deselect(course)

    def set_selected(self, course: Course, is_selected: bool) -> None:
        if is_selected:
            self.select(course)
        else:
            self.deselect(course)

    def clear_all(self) -> None:
        self.selection.clear_all()

    def toggle_time_slot(self, slot: TimeSlot) -> bool:
        return self.time_slots.toggle(slot)

    async def toggle_data_source_mode(self) -> List[Effect]:
        return await self.reconciler.toggle_data_source_mode()

    async def change_selected_period(self, period: str) -> List[Effect]:
        return await self.reconciler.change_selected_period(period)

    async def switch_version(self, snapshot: CourseDataFilesInfo) -> List[Effect]:
        return await self.reconciler.switch_version(snapshot)

    def reorder_courses(self, courses: Iterable[Course]) -> None:
        self.reconciler.reorder_courses(courses)

    def change_view(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view!r}")
        self.current_view = view

    def hover(self, course_number: Optional[str]) -> None:
        self.hovered_course = course_number

    def click(self, course: Course) -> None:
        self.clicked_course = course.number

    def find_course(self, number: str) -> Optional[Course]:
        for course in self.reconciler.state.courses:
            if course.number == number:
                return course
        return None
