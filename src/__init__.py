"""Shared utility layer for the G-code exporter.

Architecture layers (strict one-way dependency):
    gcode_export/scripts -> gcode_export/{gcode,trace,configs} -> src/utils/

Key invariants:
    - Geometry in millimeters end-to-end
    - YAML-only configs and trace files
    - Output files are written atomically
"""

__version__ = "0.1.0"
