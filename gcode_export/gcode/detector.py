"""Change detector -- decides what each trace record must emit.

The detector compares a ``PositionRecord`` against ``EmittedState``, the
exporter's memory of the last value *emitted* for every modal attribute,
and returns a ``Transition`` describing the commands needed to bring the
controller from that state to the record's state.  It updates
``EmittedState`` as it goes.

Rule order
----------
Rules run in a fixed order because later rules read caches that earlier
rules may have invalidated:

1. ``INITIAL`` records are skipped outright (no transition, no update).
2. Spindle: ``M3`` / ``M4`` / ``M5`` when enabled or direction changed.
3. Coolant: ``M9`` when a channel switches off, then ``M8`` or ``M7``.
4. Feed / speed: ``F`` and ``S`` when changed (not for rapid moves).
5. Plane: ``G17`` / ``G18`` / ``G19`` when changed.
6. Motion mode: when changed, and always for arcs.
7. Coordinates: each of X, Y, Z when changed.
8. Arc parameters: non-zero I / J / K, and ``P`` when ``rot != 1``.

Spindle and coolant M-codes disturb the controller's modal context, so
both rules invalidate the cached motion mode and the next move restates it.

Changing this order changes the emitted program.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

from gcode_export.trace.records import MachineState, MotionMode, Plane, PositionRecord

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when a trace record cannot be exported."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"record {index}: {message}")
        self.index = index


# ---------------------------------------------------------------------------
# Standalone modal commands
# ---------------------------------------------------------------------------


class SpindleCommand(Enum):
    """Spindle M-codes."""

    START_CW = 3
    START_CCW = 4
    STOP = 5


class CoolantCommand(Enum):
    """Coolant M-codes.  The controller can only switch both channels off."""

    MIST_ON = 7
    FLOOD_ON = 8
    ALL_OFF = 9


# ---------------------------------------------------------------------------
# State / verdict
# ---------------------------------------------------------------------------


@dataclass
class EmittedState:
    """Last emitted value of every modal attribute.

    ``motion_mode`` and ``plane`` are ``None`` until first emitted; the
    motion mode also drops back to ``None`` whenever an M-code invalidates
    it.  The spindle starts stopped and clockwise, coolant off, and all
    numbers at zero, matching a ``MachineState()``.  Owned by a single
    export pass.

    Because the motion mode starts unknown, the first rapid writes ``G0``
    explicitly rather than relying on the controller's power-on mode
    (which is also ``G0`` on most machines).
    """

    feedrate: float = 0.0
    spindle_speed: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    motion_mode: MotionMode | None = None
    plane: Plane | None = None
    spindle_enabled: bool = False
    spindle_clockwise: bool = True
    flood_coolant: bool = False
    mist_coolant: bool = False


@dataclass
class Transition:
    """Everything one record needs emitted, in emission order.

    Attributes
    ----------
    spindle : SpindleCommand | None
        Spindle command, if the spindle state changed.
    coolant : list[CoolantCommand]
        Coolant commands in order (``ALL_OFF`` first when present).
    feedrate, spindle_speed : float | None
        New values, if changed.
    plane : Plane | None
        Plane to select in the move block.
    motion_mode : MotionMode | None
        Motion mode to state in the move block.
    axes : list[tuple[str, float]]
        Changed coordinates, ``X``/``Y``/``Z`` order.
    arc : list[tuple[str, float]]
        Arc words (``I``/``J``/``K``/``P``) for arc moves.
    """

    spindle: SpindleCommand | None = None
    coolant: list[CoolantCommand] = field(default_factory=list)
    feedrate: float | None = None
    spindle_speed: float | None = None
    plane: Plane | None = None
    motion_mode: MotionMode | None = None
    axes: list[tuple[str, float]] = field(default_factory=list)
    arc: list[tuple[str, float]] = field(default_factory=list)

    @property
    def has_move(self) -> bool:
        return bool(
            self.plane is not None
            or self.motion_mode is not None
            or self.axes
            or self.arc
        )


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------


class ChangeDetector:
    """Apply the emission rules to one record at a time."""

    def detect(
        self, emitted: EmittedState, record: PositionRecord, index: int,
    ) -> Transition | None:
        """Compute the transition for *record* and update *emitted*.

        Parameters
        ----------
        emitted : EmittedState
            Cache of the current export pass.  Mutated in place.
        record : PositionRecord
            Record to examine.
        index : int
            Position of *record* in the trace, for error messages.

        Returns
        -------
        Transition | None
            ``None`` for ``INITIAL`` records, which emit nothing.

        Raises
        ------
        ExportError
            If the record carries an unknown motion mode or plane, or a
            non-finite number.
        """
        s = record.state
        if not isinstance(s.motion_mode, MotionMode):
            raise ExportError(index, f"unrecognized motion mode {s.motion_mode!r}")
        if s.motion_mode is MotionMode.INITIAL:
            return None
        _validate(record, index)

        t = Transition()
        self._spindle(emitted, s, t)
        self._coolant(emitted, s, t, index)
        self._feed_speed(emitted, s, t)
        self._plane(emitted, s, t)
        self._motion_mode(emitted, s, t)
        self._axes(emitted, record, t)
        self._arc(record, t)
        return t

    # -- rules -------------------------------------------------------------

    def _spindle(self, emitted: EmittedState, s: MachineState, t: Transition) -> None:
        if (
            s.spindle_enabled == emitted.spindle_enabled
            and s.spindle_clockwise == emitted.spindle_clockwise
        ):
            return
        if not s.spindle_enabled:
            t.spindle = SpindleCommand.STOP
        elif s.spindle_clockwise:
            t.spindle = SpindleCommand.START_CW
        else:
            t.spindle = SpindleCommand.START_CCW
        emitted.spindle_enabled = s.spindle_enabled
        emitted.spindle_clockwise = s.spindle_clockwise
        emitted.motion_mode = None

    def _coolant(
        self, emitted: EmittedState, s: MachineState, t: Transition, index: int,
    ) -> None:
        # At most one channel on in the output; flood wins
        flood = s.flood_coolant
        mist = s.mist_coolant and not flood
        if flood == emitted.flood_coolant and mist == emitted.mist_coolant:
            return
        if s.flood_coolant and s.mist_coolant:
            logger.warning(
                "Record %d requests flood and mist coolant; emitting flood only",
                index,
            )
        switched_off = (
            (emitted.flood_coolant and not flood)
            or (emitted.mist_coolant and not mist)
        )
        if switched_off:
            t.coolant.append(CoolantCommand.ALL_OFF)
        if flood:
            t.coolant.append(CoolantCommand.FLOOD_ON)
        elif mist:
            t.coolant.append(CoolantCommand.MIST_ON)
        emitted.flood_coolant = flood
        emitted.mist_coolant = mist
        emitted.motion_mode = None

    def _feed_speed(self, emitted: EmittedState, s: MachineState, t: Transition) -> None:
        # rapids run at machine speed
        if s.motion_mode is MotionMode.RAPID:
            return
        if s.feedrate != emitted.feedrate:
            t.feedrate = s.feedrate
            emitted.feedrate = s.feedrate
        if s.spindle_speed != emitted.spindle_speed:
            t.spindle_speed = s.spindle_speed
            emitted.spindle_speed = s.spindle_speed

    def _plane(self, emitted: EmittedState, s: MachineState, t: Transition) -> None:
        if s.plane is not emitted.plane:
            t.plane = s.plane
            emitted.plane = s.plane

    def _motion_mode(self, emitted: EmittedState, s: MachineState, t: Transition) -> None:
        if s.motion_mode.is_arc or s.motion_mode is not emitted.motion_mode:
            t.motion_mode = s.motion_mode
        emitted.motion_mode = s.motion_mode

    def _axes(self, emitted: EmittedState, record: PositionRecord, t: Transition) -> None:
        for axis in ("x", "y", "z"):
            value = getattr(record, axis)
            if value != getattr(emitted, axis):
                t.axes.append((axis.upper(), value))
                setattr(emitted, axis, value)

    def _arc(self, record: PositionRecord, t: Transition) -> None:
        if not record.state.motion_mode.is_arc:
            return
        for name in ("i", "j", "k"):
            value = getattr(record, name)
            if value != 0:
                t.arc.append((name.upper(), value))
        if record.rot != 1:
            t.arc.append(("P", float(record.rot)))


def _validate(record: PositionRecord, index: int) -> None:
    """Fail fast on records a conforming execution engine never produces."""
    s = record.state
    if not isinstance(s.plane, Plane):
        raise ExportError(index, f"unrecognized plane {s.plane!r}")
    for name in ("x", "y", "z", "i", "j", "k"):
        if not math.isfinite(getattr(record, name)):
            raise ExportError(
                index, f"non-finite {name.upper()}={getattr(record, name)!r}"
            )
    for name in ("feedrate", "spindle_speed"):
        if not math.isfinite(getattr(s, name)):
            raise ExportError(index, f"non-finite {name}={getattr(s, name)!r}")
