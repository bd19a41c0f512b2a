"""Tests for the change detector.

Checks the verdicts and cache updates of individual rules, independent of
block layout.
"""

from __future__ import annotations

import pytest

from gcode_export.gcode.detector import (
    ChangeDetector,
    CoolantCommand,
    EmittedState,
    SpindleCommand,
)
from gcode_export.trace.records import (
    MachineState,
    MotionMode,
    Plane,
    PositionRecord,
)


@pytest.fixture()
def detector() -> ChangeDetector:
    return ChangeDetector()


@pytest.fixture()
def emitted() -> EmittedState:
    return EmittedState()


def record(mode: MotionMode, x: float = 0.0, **state) -> PositionRecord:
    return PositionRecord(x=x, state=MachineState(motion_mode=mode, **state))


class TestSkip:
    def test_initial_returns_none(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        r = record(MotionMode.INITIAL, 7.0, feedrate=10.0, spindle_enabled=True)
        assert detector.detect(emitted, r, 0) is None

    def test_initial_leaves_cache_untouched(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        detector.detect(emitted, record(MotionMode.INITIAL, 7.0, flood_coolant=True), 0)
        assert emitted == EmittedState()


class TestCacheUpdates:
    def test_first_rapid_states_motion_mode(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        assert emitted.motion_mode is None
        t = detector.detect(emitted, record(MotionMode.RAPID), 0)
        assert t is not None
        assert t.motion_mode is MotionMode.RAPID
        assert t.plane is Plane.XY
        assert t.axes == []

    def test_move_updates_cache(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        r = record(MotionMode.LINEAR, 3.0, plane=Plane.XZ, feedrate=40.0)
        t = detector.detect(emitted, r, 0)
        assert t is not None
        assert t.feedrate == 40.0
        assert t.plane is Plane.XZ
        assert t.motion_mode is MotionMode.LINEAR
        assert t.axes == [("X", 3.0)]
        assert emitted.x == 3.0
        assert emitted.feedrate == 40.0
        assert emitted.plane is Plane.XZ
        assert emitted.motion_mode is MotionMode.LINEAR

    def test_rapid_keeps_feed_cache(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        t = detector.detect(emitted, record(MotionMode.RAPID, feedrate=900.0), 0)
        assert t is not None
        assert t.feedrate is None
        assert emitted.feedrate == 0.0

    def test_no_change_has_no_move(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        r = record(MotionMode.LINEAR, 1.0)
        detector.detect(emitted, r, 0)
        t = detector.detect(emitted, r, 1)
        assert t is not None
        assert not t.has_move
        assert t.spindle is None
        assert t.coolant == []


class TestInvalidation:
    def test_spindle_clears_motion_mode(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        detector.detect(emitted, record(MotionMode.LINEAR), 0)
        t = detector.detect(
            emitted, record(MotionMode.LINEAR, spindle_enabled=True), 1,
        )
        assert t is not None
        assert t.spindle is SpindleCommand.START_CW
        assert t.motion_mode is MotionMode.LINEAR
        assert emitted.spindle_enabled is True

    def test_coolant_clears_motion_mode(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        detector.detect(emitted, record(MotionMode.RAPID), 0)
        t = detector.detect(emitted, record(MotionMode.RAPID, mist_coolant=True), 1)
        assert t is not None
        assert t.coolant == [CoolantCommand.MIST_ON]
        assert t.motion_mode is MotionMode.RAPID

    def test_stopped_spindle_direction_change(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        t = detector.detect(
            emitted, record(MotionMode.LINEAR, spindle_clockwise=False), 0,
        )
        assert t is not None
        assert t.spindle is SpindleCommand.STOP


class TestCoolantExclusivity:
    def test_both_requested_caches_flood_only(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        t = detector.detect(
            emitted,
            record(MotionMode.LINEAR, flood_coolant=True, mist_coolant=True),
            0,
        )
        assert t is not None
        assert t.coolant == [CoolantCommand.FLOOD_ON]
        assert emitted.flood_coolant is True
        assert emitted.mist_coolant is False

    def test_mist_to_flood(
        self, detector: ChangeDetector, emitted: EmittedState,
    ) -> None:
        detector.detect(emitted, record(MotionMode.LINEAR, mist_coolant=True), 0)
        t = detector.detect(emitted, record(MotionMode.LINEAR, flood_coolant=True), 1)
        assert t is not None
        assert t.coolant == [CoolantCommand.ALL_OFF, CoolantCommand.FLOOD_ON]
