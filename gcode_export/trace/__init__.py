"""
Trace module.

Defines the machine-state records produced by the execution engine and
consumed by the exporter, plus loading of ``trace.v1`` YAML files.
"""

from gcode_export.trace.records import (
    MachineState,
    MotionMode,
    Plane,
    PositionRecord,
    Trace,
    load_trace,
    record_from_schema,
)

__all__ = [
    "MachineState",
    "MotionMode",
    "Plane",
    "PositionRecord",
    "Trace",
    "load_trace",
    "record_from_schema",
]
