"""Trace records -- the vocabulary between the execution engine and export.

The execution engine simulates a motion program and hands this stage an
ordered *trace*: one ``PositionRecord`` per move, each carrying the full
modal ``MachineState`` that was active when the move was made.  Records are
immutable, slotted dataclasses; the trace is never mutated by export.

Modal attributes
----------------
Motion mode and plane are closed enumerations.  Their G-code numbers live
on the enum (``MotionMode.code``, ``Plane.code``) and are only looked up
when a token is built, so an invalid numeric code cannot reach the cache.

The first record of a trace is conventionally ``MotionMode.INITIAL``: the
machine condition before the program started.  It is never emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from src.utils import validators

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Modal enumerations
# ---------------------------------------------------------------------------


class MotionMode(Enum):
    """Active move type."""

    INITIAL = "initial"
    RAPID = "rapid"
    LINEAR = "linear"
    ARC_CW = "arc_cw"
    ARC_CCW = "arc_ccw"

    @property
    def code(self) -> int:
        """G-code number (G0..G3).  ``INITIAL`` has none."""
        try:
            return _MOTION_CODES[self]
        except KeyError:
            raise ValueError(f"{self.name} has no G-code") from None

    @property
    def is_arc(self) -> bool:
        return self in (MotionMode.ARC_CW, MotionMode.ARC_CCW)


class Plane(Enum):
    """Two-axis plane in which arcs are interpolated."""

    XY = "xy"
    XZ = "xz"
    YZ = "yz"

    @property
    def code(self) -> int:
        """G-code number (G17..G19)."""
        return _PLANE_CODES[self]


_MOTION_CODES = {
    MotionMode.RAPID: 0,
    MotionMode.LINEAR: 1,
    MotionMode.ARC_CW: 2,
    MotionMode.ARC_CCW: 3,
}

_PLANE_CODES = {
    Plane.XY: 17,
    Plane.XZ: 18,
    Plane.YZ: 19,
}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MachineState:
    """Modal context active for one record.

    Parameters
    ----------
    motion_mode : MotionMode
        Move type of the record.
    plane : Plane
        Arc plane.
    feedrate : float
        Feed in units per minute.  Ignored for rapid moves.
    spindle_speed : float
        Spindle speed (RPM).
    spindle_enabled, spindle_clockwise : bool
        Spindle state.  Direction is only meaningful while enabled.
    flood_coolant, mist_coolant : bool
        Coolant channels.
    """

    motion_mode: MotionMode = MotionMode.INITIAL
    plane: Plane = Plane.XY
    feedrate: float = 0.0
    spindle_speed: float = 0.0
    spindle_enabled: bool = False
    spindle_clockwise: bool = True
    flood_coolant: bool = False
    mist_coolant: bool = False


@dataclass(frozen=True, slots=True)
class PositionRecord:
    """One move of the trace.

    Parameters
    ----------
    x, y, z : float
        Absolute end point.
    i, j, k : float
        Arc centre offsets relative to the start point.  Only used for
        arc motion modes.
    rot : int
        Number of full turns of an arc.  ``1`` is the implicit default.
    state : MachineState
        Modal context of the move.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    i: float = 0.0
    j: float = 0.0
    k: float = 0.0
    rot: int = 1
    state: MachineState = field(default_factory=MachineState)


Trace = Sequence[PositionRecord]
"""Ordered records produced by the execution engine."""


# ---------------------------------------------------------------------------
# Trace files
# ---------------------------------------------------------------------------


def record_from_schema(rec: validators.TraceRecordV1) -> PositionRecord:
    """Convert one validated ``trace.v1`` entry into a ``PositionRecord``."""
    state = MachineState(
        motion_mode=MotionMode(rec.motion),
        plane=Plane(rec.plane),
        feedrate=rec.feedrate,
        spindle_speed=rec.spindle_speed,
        spindle_enabled=rec.spindle_enabled,
        spindle_clockwise=rec.spindle_clockwise,
        flood_coolant=rec.flood_coolant,
        mist_coolant=rec.mist_coolant,
    )
    return PositionRecord(
        x=rec.x, y=rec.y, z=rec.z,
        i=rec.i, j=rec.j, k=rec.k,
        rot=rec.rot,
        state=state,
    )


def load_trace(path: str | Path) -> list[PositionRecord]:
    """Load a ``trace.v1`` YAML file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file fails schema validation.
    """
    trace_file = validators.load_trace_file(path)
    records = [record_from_schema(rec) for rec in trace_file.records]
    logger.info("Loaded %d trace records from %s", len(records), path)
    return records
