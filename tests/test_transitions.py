"""
Unit tests for the pure reconciler transitions.
"""

import unittest

from fakes import make_courses

from coursesync.model import CourseDataFilesInfo, DataSource
from coursesync.transitions import (
    ChangeSelectedPeriod,
    LoadSnapshot,
    ReloadAll,
    ReloadPeriod,
    SourceState,
    SwitchVersion,
    ToggleDataSource,
    transition,
)


class TestTransition(unittest.TestCase):
    def test_toggle_clears_courses_and_reloads_new_source(self) -> None:
        state = SourceState(use_live_api=True, courses=tuple(make_courses("A")), provenance=DataSource.LIVE)
        new_state, effects = transition(state, ToggleDataSource())

        self.assertFalse(new_state.use_live_api)
        self.assertEqual(new_state.courses, ())
        self.assertIs(new_state.provenance, DataSource.LEGACY)
        self.assertEqual(effects, [ReloadAll(DataSource.LEGACY)])

    def test_toggle_back_to_live(self) -> None:
        _, effects = transition(SourceState(use_live_api=False), ToggleDataSource())
        self.assertEqual(effects, [ReloadAll(DataSource.LIVE)])

    def test_period_change_in_live_mode_reloads_period(self) -> None:
        state = SourceState(use_live_api=True, selected_period="1131")
        new_state, effects = transition(state, ChangeSelectedPeriod("1122"))

        self.assertEqual(new_state.selected_period, "1122")
        self.assertEqual(effects, [ReloadPeriod("1122")])

    def test_same_period_is_noop(self) -> None:
        state = SourceState(use_live_api=True, selected_period="1131")
        new_state, effects = transition(state, ChangeSelectedPeriod("1131"))
        self.assertIs(new_state, state)
        self.assertEqual(effects, [])

    def test_period_change_in_legacy_mode_does_not_reload(self) -> None:
        state = SourceState(use_live_api=False, selected_period="1131")
        new_state, effects = transition(state, ChangeSelectedPeriod("1122"))
        self.assertEqual(new_state.selected_period, "1122")
        self.assertEqual(effects, [])

    def test_switch_version_only_in_legacy_mode(self) -> None:
        snapshot = CourseDataFilesInfo(name="all_classes_1122_20240210.csv")
        legacy = SourceState(use_live_api=False, latest_snapshot="all_classes_1131_20240909.csv")

        new_state, effects = transition(legacy, SwitchVersion(snapshot))
        self.assertEqual(effects, [LoadSnapshot(snapshot)])
        self.assertEqual(new_state.latest_snapshot, "all_classes_1131_20240909.csv")

        _, effects = transition(SourceState(use_live_api=True), SwitchVersion(snapshot))
        self.assertEqual(effects, [])

    def test_unknown_action(self) -> None:
        with self.assertRaises(TypeError):
            transition(SourceState(), object())


if __name__ == "__main__":
    unittest.main()
