"""
G-code Export Package.

Final stage of the toolpath compiler: turns the machine-state trace
produced by the execution engine into a minimal, modally correct G-code
program.

Subpackages:
    trace: Machine-state records and trace-file loading
    gcode: Change detection, emission, document model, trace dump
    configs: Exporter configuration loading and validation
    scripts: Command-line entrypoints
"""

__version__ = "0.1.0"

__all__ = ["trace", "gcode", "configs", "scripts"]
