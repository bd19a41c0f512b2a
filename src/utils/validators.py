"""YAML schema validation for trace files.

Provides pydantic validation for ``trace.v1`` files: the on-disk form of a
machine-state trace, as written by the execution engine or by hand for
tests and debugging.

Every record must name its motion mode; everything else has a default
matching a machine at rest (XY plane, spindle stopped, coolant off, all
numbers zero, one arc turn).  Unknown keys are rejected so a typo such as
``feed_rate`` fails loudly instead of silently exporting ``F0``.

Units:
    - Geometry: millimeters (mm)
    - Feed: mm/min
    - Spindle speed: RPM

Usage:
    from src.utils import validators

    trace_file = validators.load_trace_file("trace.yaml")
    for rec in trace_file.records:
        ...
"""

from pathlib import Path
from typing import List, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# TRACE SCHEMA V1
# ============================================================================

MotionName = Literal["initial", "rapid", "linear", "arc_cw", "arc_ccw"]
PlaneName = Literal["xy", "xz", "yz"]


class TraceRecordV1(BaseModel):
    """One position record with its modal state."""
    model_config = ConfigDict(extra="forbid")

    motion: MotionName = Field(..., description="Motion mode")
    plane: PlaneName = Field("xy", description="Arc plane")
    feedrate: float = Field(0.0, ge=0.0, allow_inf_nan=False, description="Feed (mm/min)")
    spindle_speed: float = Field(0.0, ge=0.0, allow_inf_nan=False, description="Spindle speed (RPM)")
    spindle_enabled: bool = Field(False, description="Spindle running")
    spindle_clockwise: bool = Field(True, description="Spindle direction (when running)")
    flood_coolant: bool = Field(False, description="Flood coolant on")
    mist_coolant: bool = Field(False, description="Mist coolant on")
    x: float = Field(0.0, allow_inf_nan=False, description="Absolute X (mm)")
    y: float = Field(0.0, allow_inf_nan=False, description="Absolute Y (mm)")
    z: float = Field(0.0, allow_inf_nan=False, description="Absolute Z (mm)")
    i: float = Field(0.0, allow_inf_nan=False, description="Arc centre X offset (mm)")
    j: float = Field(0.0, allow_inf_nan=False, description="Arc centre Y offset (mm)")
    k: float = Field(0.0, allow_inf_nan=False, description="Arc centre Z offset (mm)")
    rot: int = Field(1, ge=1, description="Full arc turns")

    @field_validator('motion', 'plane', mode='before')
    @classmethod
    def normalize_case(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class TraceFileV1(BaseModel):
    """Trace file schema v1."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    schema_version: str = Field("trace.v1", alias="schema", description="Schema version")
    records: List[TraceRecordV1] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "trace.v1":
            raise ValueError(f"Expected schema 'trace.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_trace_file(path: Union[str, Path]) -> TraceFileV1:
    """Load and validate a trace file from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to trace.v1.yaml file

    Returns
    -------
    TraceFileV1
        Validated trace

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file is not valid YAML or validation fails (with actionable
        error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Trace file is not valid YAML: {path}: {e}") from e
    if data is None:
        raise ValueError(f"Trace file is empty: {path}")
    try:
        return TraceFileV1(**data)
    except Exception as e:
        raise ValueError(f"Trace file validation failed at {path}: {e}") from e
