"""Human-readable trace dump for debugging.

Renders every record on its own line, independent of export state::

    rapid move, feedrate: 0.000000, spindle: 0.000000, X: 0.000000, ...

The dump is a side channel.  It never touches ``EmittedState`` and a
broken stream only stops the dump; export output is unaffected.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from gcode_export.trace.records import MotionMode, PositionRecord

logger = logging.getLogger(__name__)

MOTION_LABELS = {
    MotionMode.INITIAL: "initial pos",
    MotionMode.RAPID: "rapid move",
    MotionMode.LINEAR: "linear move",
    MotionMode.ARC_CW: "clockwise arc",
    MotionMode.ARC_CCW: "counterclockwise arc",
}


def format_record(record: PositionRecord) -> str:
    """One dump line for *record* (no trailing newline)."""
    s = record.state
    label = MOTION_LABELS.get(s.motion_mode, f"unknown ({s.motion_mode!r})")
    return (
        f"{label}, "
        f"feedrate: {s.feedrate:f}, "
        f"spindle: {s.spindle_speed:f}, "
        f"X: {record.x:f}, Y: {record.y:f}, Z: {record.z:f}, "
        f"I: {record.i:f}, J: {record.j:f}, K: {record.k:f}"
    )


def dump_trace(
    trace: Iterable[PositionRecord],
    stream: TextIO | None = None,
) -> int:
    """Write one line per record to *stream*.

    Parameters
    ----------
    trace : Iterable[PositionRecord]
        Records to render.
    stream : TextIO | None
        Destination, ``sys.stdout`` when ``None``.

    Returns
    -------
    int
        Number of lines written.  Short if the stream failed.
    """
    out = stream if stream is not None else sys.stdout
    written = 0
    try:
        for record in trace:
            out.write(format_record(record) + "\n")
            written += 1
    except Exception as exc:
        # Any failure stops the dump, never the caller
        logger.warning(
            "Trace dump stopped after %d lines: %s", written, exc, exc_info=True,
        )
    return written
