"""
Data-source reconciliation.

Exactly one source is active at a time (see coursesync.sources). A reload
sequence lists what the active source offers, picks the default (newest
snapshot / latest period), loads it, and hands the resulting course list to
``on_courses`` so the selection can be restored against it.

Each sequence takes a generation number when it starts. Its results are only
applied while that number is still the newest, so a slow sequence started
before a mode switch can never overwrite the newer one's course list.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

from coursesync.loading import DATA, LoadingCoordinator
from coursesync.model import Course, CourseDataFilesInfo, DataSource
from coursesync.sources import LegacySourceClient, LiveSourceClient, SourceError
from coursesync.transitions import (
    Action,
    ChangeSelectedPeriod,
    Effect,
    LoadSnapshot,
    ReloadAll,
    ReloadPeriod,
    SourceState,
    SwitchVersion,
    ToggleDataSource,
    transition,
)
from coursesync.version_label import is_snapshot_name

logger = logging.getLogger(__name__)

CoursesCallback = Callable[[List[Course]], None]


def pick_latest_snapshot(snapshots: Sequence[CourseDataFilesInfo]) -> Optional[CourseDataFilesInfo]:
    """
    Return the newest snapshot by name.

    Name order equals date order only for names following the fixed-width
    convention, so other names are ignored unless nothing else is available.
    """
    if not snapshots:
        return None

    valid = [s for s in snapshots if is_snapshot_name(s.name)]
    if len(valid) != len(snapshots):
        odd = sorted(s.name for s in snapshots if not is_snapshot_name(s.name))
        logger.warning("Snapshot names outside the naming convention: %s", ", ".join(odd))

    pool = valid or list(snapshots)
    return max(pool, key=lambda s: s.name)


class DataSourceReconciler:
    def __init__(
        self,
        legacy: LegacySourceClient,
        live: LiveSourceClient,
        loading: LoadingCoordinator,
        on_courses: Optional[CoursesCallback] = None,
        use_live_api: bool = True,
    ) -> None:
        self.legacy = legacy
        self.live = live
        self.loading = loading
        self.on_courses = on_courses
        self.state = SourceState(use_live_api=use_live_api, provenance=DataSource.from_flag(use_live_api))
        self._generation = 0
        self._listed = 0

    @property
    def courses(self) -> List[Course]:
        return list(self.state.courses)

    @property
    def mode(self) -> DataSource:
        return self.state.mode

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def reload(self) -> None:
        """Full reload of the active source from scratch."""
        await self._run(ReloadAll(self.state.mode))

    async def toggle_data_source_mode(self) -> List[Effect]:
        return await self.dispatch(ToggleDataSource())

    async def change_selected_period(self, period: str) -> List[Effect]:
        return await self.dispatch(ChangeSelectedPeriod(period))

    async def switch_version(self, snapshot: CourseDataFilesInfo) -> List[Effect]:
        return await self.dispatch(SwitchVersion(snapshot))

    async def dispatch(self, action: Action) -> List[Effect]:
        previous = self.state
        self.state, effects = transition(previous, action)
        if self.state.provenance is not previous.provenance or self.state.courses != previous.courses:
            self._notify()
        for effect in effects:
            await self._run(effect)
        return effects

    def reorder_courses(self, courses: Iterable[Course]) -> None:
        """Replace the course list with a permutation of itself."""
        reordered = tuple(courses)
        if sorted(c.number for c in reordered) != sorted(c.number for c in self.state.courses):
            raise ValueError("Reordered list must contain exactly the loaded courses")
        self.state = replace(self.state, courses=reordered)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    async def _run(self, effect: Effect) -> None:
        self._generation += 1
        token = self._generation
        self.loading.begin(DATA)
        try:
            if isinstance(effect, ReloadAll):
                if effect.mode is DataSource.LIVE:
                    await self._reload_live(token)
                else:
                    await self._reload_legacy(token)
            elif isinstance(effect, ReloadPeriod):
                await self._reload_period(token, effect.period)
            elif isinstance(effect, LoadSnapshot):
                await self._load_snapshot(token, effect.snapshot)
            else:
                raise TypeError(f"Unknown effect: {effect!r}")
        except SourceError:
            logger.warning(
                "Loading %s data failed, keeping %d previously loaded course(s)",
                self.state.mode.value,
                len(self.state.courses),
                exc_info=True,
            )
        finally:
            if token == self._generation:
                self.loading.end()

    async def _reload_legacy(self, token: int) -> None:
        snapshots = await asyncio.to_thread(self.legacy.list_available)
        latest = pick_latest_snapshot(snapshots)
        self._store_listing(
            token,
            DataSource.LEGACY,
            available_snapshots=tuple(snapshots),
            latest_snapshot=latest.name if latest else "",
        )
        if not self._is_current(token):
            return
        if latest is None:
            logger.info("Legacy archive lists no snapshots")
            return

        courses = await asyncio.to_thread(self.legacy.load, latest)
        self._apply(token, courses, DataSource.LEGACY, current_snapshot=latest.name)

    async def _load_snapshot(self, token: int, snapshot: CourseDataFilesInfo) -> None:
        courses = await asyncio.to_thread(self.legacy.load, snapshot)
        self._apply(token, courses, DataSource.LEGACY, current_snapshot=snapshot.name)

    async def _reload_live(self, token: int) -> None:
        periods = await asyncio.to_thread(self.live.list_available_periods)
        self._store_listing(token, DataSource.LIVE, available_periods=periods)
        if not self._is_current(token):
            return

        self.state = replace(self.state, selected_period=periods.latest)
        await self._reload_period(token, periods.latest)

    async def _reload_period(self, token: int, period: str) -> None:
        updates = await asyncio.to_thread(self.live.list_updates, period)
        if not self._is_current(token):
            return

        courses = await asyncio.to_thread(self.live.load_courses, period, str(updates["latest"]))
        self._apply(token, courses, DataSource.LIVE)

    # ------------------------------------------------------------------

    def _store_listing(self, token: int, source: DataSource, **changes) -> None:
        """
        Keep what the source offers even if the sequence was superseded.

        A period change or version switch during the startup listing must not
        lose the list of periods/snapshots. Only the newest listing of the
        active source is stored.
        """
        if source is not self.state.mode or token < self._listed:
            return
        self._listed = token
        self.state = replace(self.state, **changes)

    def _is_current(self, token: int) -> bool:
        if token != self._generation:
            logger.debug("Discarding results of superseded load #%d", token)
            return False
        return True

    def _apply(self, token: int, courses: List[Course], source: DataSource, **changes) -> None:
        if not self._is_current(token):
            return
        if source is not self.state.mode:
            logger.debug("Discarding %s courses while %s is active", source.value, self.state.mode.value)
            return

        self.state = replace(self.state, courses=tuple(courses), provenance=source, **changes)
        logger.info("Loaded %d %s course(s)", len(courses), source.value)
        self._notify()

    def _notify(self) -> None:
        if self.on_courses is not None:
            self.on_courses(self.courses)
