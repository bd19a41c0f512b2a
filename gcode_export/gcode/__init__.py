"""
G-code export module.

Diffs a machine-state trace against the last emitted state and builds a
minimal G-code document; also provides the diagnostic trace dump.
"""

from gcode_export.gcode.detector import (
    ChangeDetector,
    EmittedState,
    ExportError,
    Transition,
)
from gcode_export.gcode.document import Block, Comment, Document, Word
from gcode_export.gcode.dump import dump_trace, format_record
from gcode_export.gcode.emitter import (
    DocumentAssembler,
    InstructionEmitter,
    export_trace,
    iter_blocks,
)

__all__ = [
    "Block",
    "ChangeDetector",
    "Comment",
    "Document",
    "DocumentAssembler",
    "EmittedState",
    "ExportError",
    "InstructionEmitter",
    "Transition",
    "Word",
    "dump_trace",
    "export_trace",
    "format_record",
    "iter_blocks",
]
