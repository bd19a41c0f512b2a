"""Exporter configuration loading and validation."""

from gcode_export.configs.loader import (
    ConfigError,
    ExportConfig,
    HeaderConfig,
    LoggingConfig,
    OutputConfig,
    load_config,
)

__all__ = [
    "ConfigError",
    "ExportConfig",
    "HeaderConfig",
    "LoggingConfig",
    "OutputConfig",
    "load_config",
]
