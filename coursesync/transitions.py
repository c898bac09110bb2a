"""
Pure state transitions of the data-source reconciler.

transition(state, action) returns the next state together with the list of
effects the caller has to run (network loads). Nothing here performs I/O,
so every rule can be checked without a network or an event loop:

    ToggleDataSource        -> course list emptied, ReloadAll for the new source
    ChangeSelectedPeriod(p) -> live: ReloadPeriod(p) if p changed
                               legacy: period stored, nothing reloaded
    SwitchVersion(s)        -> legacy: LoadSnapshot(s); live: nothing
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from coursesync.model import AcademicYear, Course, CourseDataFilesInfo, DataSource


@dataclass(frozen=True)
class SourceState:
    use_live_api: bool = True
    selected_period: str = ""
    available_periods: AcademicYear = field(default_factory=AcademicYear)
    available_snapshots: Tuple[CourseDataFilesInfo, ...] = ()
    current_snapshot: str = ""
    latest_snapshot: str = ""
    courses: Tuple[Course, ...] = ()
    provenance: Optional[DataSource] = None

    @property
    def mode(self) -> DataSource:
        return DataSource.from_flag(self.use_live_api)


# Actions ------------------------------------------------------------------


@dataclass(frozen=True)
class ToggleDataSource:
    pass


@dataclass(frozen=True)
class ChangeSelectedPeriod:
    period: str


@dataclass(frozen=True)
class SwitchVersion:
    snapshot: CourseDataFilesInfo


Action = Union[ToggleDataSource, ChangeSelectedPeriod, SwitchVersion]


# Effects ------------------------------------------------------------------


@dataclass(frozen=True)
class ReloadAll:
    """List what the source offers, pick the default, load it."""

    mode: DataSource


@dataclass(frozen=True)
class ReloadPeriod:
    """Live only: fetch the latest update of ``period`` and its courses."""

    period: str


@dataclass(frozen=True)
class LoadSnapshot:
    """Legacy only: load one specific snapshot."""

    snapshot: CourseDataFilesInfo


Effect = Union[ReloadAll, ReloadPeriod, LoadSnapshot]


def transition(state: SourceState, action: Action) -> Tuple[SourceState, List[Effect]]:
    if isinstance(action, ToggleDataSource):
        use_live_api = not state.use_live_api
        new_mode = DataSource.from_flag(use_live_api)
        new_state = replace(state, use_live_api=use_live_api, courses=(), provenance=new_mode)
        return new_state, [ReloadAll(new_mode)]

    if isinstance(action, ChangeSelectedPeriod):
        if action.period == state.selected_period:
            return state, []
        new_state = replace(state, selected_period=action.period)
        if state.use_live_api:
            return new_state, [ReloadPeriod(action.period)]
        return new_state, []

    if isinstance(action, SwitchVersion):
        if state.use_live_api:
            return state, []
        return state, [LoadSnapshot(action.snapshot)]

    raise TypeError(f"Unknown action: {action!r}")
