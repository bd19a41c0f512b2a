"""Tests for the trace exporter.

Validates the emission rules end to end: initial-record skipping,
redundancy elimination, spindle / coolant invalidation of the motion-mode
cache, arc restatement and parameter omission, block ordering, preamble
policy and fail-fast errors.
"""

from __future__ import annotations

import math

import pytest

from gcode_export.configs.loader import ExportConfig, HeaderConfig
from gcode_export.gcode.detector import ExportError
from gcode_export.gcode.document import Document
from gcode_export.gcode.emitter import export_trace, iter_blocks
from gcode_export.trace.records import (
    MachineState,
    MotionMode,
    Plane,
    PositionRecord,
)

PREAMBLE = ["(Exported by gcode_export)", "G21 G90 G94"]


def rec(
    mode: MotionMode,
    x: float = 0.0,
    y: float = 0.0,
    z: float = 0.0,
    *,
    i: float = 0.0,
    j: float = 0.0,
    k: float = 0.0,
    rot: int = 1,
    **state,
) -> PositionRecord:
    return PositionRecord(
        x=x, y=y, z=z, i=i, j=j, k=k, rot=rot,
        state=MachineState(motion_mode=mode, **state),
    )


def body(doc: Document) -> list[str]:
    """Rendered blocks after the two-block preamble."""
    lines = [b.to_text() for b in doc.blocks]
    assert lines[:2] == PREAMBLE
    return lines[2:]


# ---------------------------------------------------------------------------
# Preamble / initial records
# ---------------------------------------------------------------------------


class TestPreamble:
    def test_empty_trace_is_preamble_only(self) -> None:
        doc = export_trace([])
        assert [b.to_text() for b in doc.blocks] == PREAMBLE

    def test_initial_records_emit_nothing(self) -> None:
        trace = [
            rec(MotionMode.INITIAL),
            rec(MotionMode.INITIAL, 5.0, 5.0, feedrate=300.0, spindle_enabled=True),
        ]
        assert body(export_trace(trace)) == []

    def test_units_word_optional(self) -> None:
        cfg = ExportConfig(header=HeaderConfig(millimeter_units=False))
        doc = export_trace([], cfg)
        assert doc.blocks[1].to_text() == "G90 G94"

    def test_cutter_compensation_cancel(self) -> None:
        cfg = ExportConfig(header=HeaderConfig(cancel_cutter_compensation=True))
        doc = export_trace([], cfg)
        assert doc.blocks[1].to_text() == "G21 G40 G90 G94"

    def test_custom_comment(self) -> None:
        cfg = ExportConfig(header=HeaderConfig(comment="job 42"))
        doc = export_trace([], cfg)
        assert doc.blocks[0].to_text() == "(job 42)"


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    def test_rapid_then_spindle_linear(self) -> None:
        trace = [
            rec(MotionMode.INITIAL),
            rec(MotionMode.RAPID, 0.0, 0.0, 0.0, feedrate=0.0),
            rec(
                MotionMode.LINEAR, 10.0, 0.0, 0.0,
                feedrate=100.0, spindle_enabled=True,
                spindle_clockwise=True, spindle_speed=1000.0,
            ),
        ]
        assert body(export_trace(trace)) == [
            "G17 G0",
            "M3",
            "F100",
            "S1000",
            "G1 X10",
        ]

    def test_full_program_text(self) -> None:
        trace = [
            rec(MotionMode.INITIAL),
            rec(MotionMode.RAPID, 0.0, 0.0, 5.0),
            rec(MotionMode.LINEAR, 0.0, 0.0, -1.0, feedrate=50.0),
            rec(MotionMode.LINEAR, 20.0, 0.0, -1.0, feedrate=200.0),
            rec(MotionMode.ARC_CCW, 20.0, 20.0, -1.0, j=10.0, feedrate=200.0),
            rec(MotionMode.RAPID, 20.0, 20.0, 5.0, feedrate=200.0),
        ]
        assert export_trace(trace).to_text() == (
            "(Exported by gcode_export)\n"
            "G21 G90 G94\n"
            "G17 G0 Z5\n"
            "F50\n"
            "G1 Z-1\n"
            "F200\n"
            "X20\n"
            "G3 Y20 J10\n"
            "G0 Z5\n"
        )


# ---------------------------------------------------------------------------
# Redundancy elimination
# ---------------------------------------------------------------------------


class TestRedundancy:
    def test_identical_records_emit_once(self) -> None:
        r = rec(MotionMode.LINEAR, 5.0, feedrate=100.0)
        assert body(export_trace([r, r])) == ["F100", "G17 G1 X5"]

    def test_only_changed_axes(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, 1.0, 2.0, 3.0),
            rec(MotionMode.LINEAR, 1.0, 4.0, 3.0),
        ]
        assert body(export_trace(trace)) == ["G17 G1 X1 Y2 Z3", "Y4"]

    def test_zero_coordinates_not_emitted_first(self) -> None:
        assert body(export_trace([rec(MotionMode.LINEAR)])) == ["G17 G1"]

    def test_rapid_ignores_feed_and_speed(self) -> None:
        trace = [
            rec(MotionMode.RAPID, 1.0, feedrate=500.0, spindle_speed=2000.0),
            rec(MotionMode.LINEAR, 2.0, feedrate=500.0, spindle_speed=2000.0),
        ]
        assert body(export_trace(trace)) == [
            "G17 G0 X1",
            "F500",
            "S2000",
            "G1 X2",
        ]

    def test_speed_change_alone(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, 1.0, spindle_speed=1000.0),
            rec(MotionMode.LINEAR, 1.0, spindle_speed=1200.0),
        ]
        assert body(export_trace(trace)) == ["S1000", "G17 G1 X1", "S1200"]

    def test_plane_change(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, 1.0),
            rec(MotionMode.LINEAR, 1.0, plane=Plane.XZ),
        ]
        assert body(export_trace(trace)) == ["G17 G1 X1", "G18"]


# ---------------------------------------------------------------------------
# Spindle
# ---------------------------------------------------------------------------


class TestSpindle:
    def test_spindle_start_restates_motion_mode(self) -> None:
        s1 = rec(MotionMode.LINEAR, 5.0, feedrate=100.0)
        s2 = rec(
            MotionMode.LINEAR, 5.0, feedrate=100.0,
            spindle_enabled=True, spindle_clockwise=True,
        )
        s3 = rec(
            MotionMode.LINEAR, 5.0, feedrate=100.0,
            spindle_enabled=True, spindle_clockwise=True,
        )
        lines = body(export_trace([s1, s2, s3]))
        assert lines == ["F100", "G17 G1 X5", "M3", "G1"]

    def test_counter_clockwise(self) -> None:
        trace = [rec(MotionMode.LINEAR, spindle_enabled=True, spindle_clockwise=False)]
        assert body(export_trace(trace))[0] == "M4"

    def test_direction_change_while_running(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, spindle_enabled=True, spindle_clockwise=True),
            rec(MotionMode.LINEAR, spindle_enabled=True, spindle_clockwise=False),
        ]
        assert body(export_trace(trace)) == ["M3", "G17 G1", "M4", "G1"]

    def test_stop(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, spindle_enabled=True),
            rec(MotionMode.LINEAR, spindle_enabled=False),
        ]
        assert body(export_trace(trace)) == ["M3", "G17 G1", "M5", "G1"]


# ---------------------------------------------------------------------------
# Coolant
# ---------------------------------------------------------------------------


class TestCoolant:
    def test_flood_to_mist_turns_all_off_first(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, flood_coolant=True),
            rec(MotionMode.LINEAR, mist_coolant=True),
        ]
        assert body(export_trace(trace)) == ["M8", "G17 G1", "M9", "M7", "G1"]

    def test_turning_on_skips_all_off(self) -> None:
        trace = [rec(MotionMode.LINEAR, mist_coolant=True)]
        assert body(export_trace(trace)) == ["M7", "G17 G1"]

    def test_turning_off(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, flood_coolant=True),
            rec(MotionMode.LINEAR),
        ]
        assert body(export_trace(trace)) == ["M8", "G17 G1", "M9", "G1"]

    def test_never_both_on(self) -> None:
        trace = [
            rec(MotionMode.LINEAR, mist_coolant=True),
            rec(MotionMode.LINEAR, flood_coolant=True, mist_coolant=True),
            rec(MotionMode.LINEAR, flood_coolant=True, mist_coolant=True),
        ]
        assert body(export_trace(trace)) == ["M7", "G17 G1", "M9", "M8", "G1"]

    def test_both_requested_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        trace = [rec(MotionMode.LINEAR, flood_coolant=True, mist_coolant=True)]
        with caplog.at_level("WARNING"):
            export_trace(trace)
        assert "flood and mist" in caplog.text


# ---------------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------------


class TestArcs:
    def test_zero_offsets_and_single_turn_omitted(self) -> None:
        trace = [rec(MotionMode.ARC_CW, 10.0, i=0.0, j=5.0, k=0.0, rot=1)]
        assert body(export_trace(trace)) == ["G17 G2 X10 J5"]

    def test_turn_count(self) -> None:
        trace = [rec(MotionMode.ARC_CCW, i=-2.5, rot=3)]
        assert body(export_trace(trace)) == ["G17 G3 I-2.5 P3"]

    def test_all_offsets_in_order(self) -> None:
        trace = [rec(MotionMode.ARC_CW, 1.0, i=1.0, j=2.0, k=3.0, rot=2)]
        assert body(export_trace(trace)) == ["G17 G2 X1 I1 J2 K3 P2"]

    def test_consecutive_arcs_restate_mode(self) -> None:
        trace = [
            rec(MotionMode.ARC_CW, 10.0, j=5.0),
            rec(MotionMode.ARC_CW, 20.0, j=5.0),
        ]
        assert body(export_trace(trace)) == ["G17 G2 X10 J5", "G2 X20 J5"]

    def test_identical_arc_still_emits_mode(self) -> None:
        r = rec(MotionMode.ARC_CW, 10.0, j=5.0)
        assert body(export_trace([r, r])) == ["G17 G2 X10 J5", "G2 J5"]

    def test_arc_params_ignored_for_linear(self) -> None:
        trace = [rec(MotionMode.LINEAR, 1.0, i=3.0, j=4.0, rot=5)]
        assert body(export_trace(trace)) == ["G17 G1 X1"]

    def test_linear_after_arc(self) -> None:
        trace = [
            rec(MotionMode.ARC_CW, 10.0, j=5.0),
            rec(MotionMode.LINEAR, 12.0),
        ]
        assert body(export_trace(trace)) == ["G17 G2 X10 J5", "G1 X12"]


# ---------------------------------------------------------------------------
# Block ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_modal_commands_precede_move(self) -> None:
        trace = [
            rec(
                MotionMode.LINEAR, 1.0, plane=Plane.YZ,
                spindle_enabled=True, flood_coolant=True,
                feedrate=10.0, spindle_speed=20.0,
            ),
        ]
        assert body(export_trace(trace)) == [
            "M3", "M8", "F10", "S20", "G19 G1 X1",
        ]

    def test_single_word_modal_blocks(self) -> None:
        trace = [rec(MotionMode.LINEAR, spindle_enabled=True, feedrate=10.0)]
        doc = export_trace(trace)
        assert [len(b) for b in doc.blocks[2:]] == [1, 1, 2]


# ---------------------------------------------------------------------------
# Streaming / isolation
# ---------------------------------------------------------------------------


class TestStreaming:
    TRACE = [
        rec(MotionMode.INITIAL),
        rec(MotionMode.RAPID, 0.0, 0.0, 5.0),
        rec(MotionMode.LINEAR, 10.0, feedrate=100.0, spindle_enabled=True),
        rec(MotionMode.ARC_CW, 20.0, i=5.0, feedrate=100.0, spindle_enabled=True),
    ]

    def test_iter_blocks_matches_export(self) -> None:
        assert tuple(iter_blocks(self.TRACE)) == export_trace(self.TRACE).blocks

    def test_accepts_generator(self) -> None:
        doc = export_trace(r for r in self.TRACE)
        assert doc == export_trace(self.TRACE)

    def test_calls_do_not_share_state(self) -> None:
        first = export_trace(self.TRACE)
        second = export_trace(self.TRACE)
        assert first == second

    def test_trace_not_mutated(self) -> None:
        trace = list(self.TRACE)
        export_trace(trace)
        assert trace == self.TRACE


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_unknown_motion_mode(self) -> None:
        bad = PositionRecord(state=MachineState(motion_mode="G1"))  # type: ignore[arg-type]
        with pytest.raises(ExportError, match="record 1: unrecognized motion mode"):
            export_trace([rec(MotionMode.INITIAL), bad])

    def test_unknown_plane(self) -> None:
        bad = rec(MotionMode.LINEAR, plane="xy")
        with pytest.raises(ExportError, match="record 0: unrecognized plane") as info:
            export_trace([bad])
        assert info.value.index == 0

    def test_non_finite_coordinate(self) -> None:
        trace = [rec(MotionMode.LINEAR, 1.0), rec(MotionMode.LINEAR, math.nan)]
        with pytest.raises(ExportError, match="record 1: non-finite X"):
            export_trace(trace)

    def test_non_finite_feed(self) -> None:
        with pytest.raises(ExportError, match="non-finite feedrate"):
            export_trace([rec(MotionMode.LINEAR, feedrate=math.inf)])

    def test_streaming_fails_at_bad_record(self) -> None:
        trace = [rec(MotionMode.LINEAR, 1.0), rec(MotionMode.LINEAR, math.inf)]
        blocks = iter_blocks(trace)
        seen = [next(blocks) for _ in range(3)]
        assert seen[2].to_text() == "G17 G1 X1"
        with pytest.raises(ExportError):
            next(blocks)
