"""Configuration loader for the exporter.

Loads and validates ``export.yaml`` into typed, frozen dataclasses.  The
config covers deployment policy only (preamble contents, number
precision, logging); export semantics are not configurable.

Usage::

    from gcode_export.configs.loader import load_config
    cfg = load_config()                      # default path
    cfg = load_config("/custom/export.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.utils.fs import load_yaml

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_MAX_PRECISION = 8


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderConfig:
    """Document preamble.

    ``millimeter_units`` controls the ``G21`` word of the header block;
    some deployments leave units to the controller.  ``G90 G94`` are
    always emitted.
    """

    comment: str = "Exported by gcode_export"
    millimeter_units: bool = True
    cancel_cutter_compensation: bool = False


@dataclass(frozen=True)
class OutputConfig:
    """Text rendering settings."""

    precision: int = 4


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings passed to ``setup_logging`` by the CLI."""

    level: str = "INFO"
    file: str | None = None
    json: bool = False


@dataclass(frozen=True)
class ExportConfig:
    """Complete exporter configuration loaded from ``export.yaml``."""

    header: HeaderConfig = field(default_factory=HeaderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: ExportConfig) -> None:
    comment = cfg.header.comment
    if not comment.strip():
        raise ConfigError("header.comment must not be empty")
    if "(" in comment or ")" in comment:
        raise ConfigError(
            f"header.comment must not contain parentheses, got {comment!r}"
        )
    if not 0 <= cfg.output.precision <= _MAX_PRECISION:
        raise ConfigError(
            f"output.precision must be in [0, {_MAX_PRECISION}], "
            f"got {cfg.output.precision}"
        )
    if cfg.logging.level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {list(_LOG_LEVELS)}, "
            f"got {cfg.logging.level!r}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> ExportConfig:
    """Load and validate exporter configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``export.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    ExportConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is not valid YAML, or any field is missing or fails
        validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "export.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data: dict[str, Any] = load_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed configuration file: {e}") from e
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    try:
        # -- header ---------------------------------------------------------
        hd = data["header"]
        header = HeaderConfig(
            comment=str(hd["comment"]),
            millimeter_units=bool(hd.get("millimeter_units", True)),
            cancel_cutter_compensation=bool(
                hd.get("cancel_cutter_compensation", False)
            ),
        )

        # -- output ---------------------------------------------------------
        od = data.get("output") or {}
        output = OutputConfig(precision=int(od.get("precision", 4)))

        # -- logging --------------------------------------------------------
        ld = data.get("logging") or {}
        log_file = ld.get("file")
        logging_cfg = LoggingConfig(
            level=str(ld.get("level", "INFO")).upper(),
            file=str(log_file) if log_file else None,
            json=bool(ld.get("json", False)),
        )

        config = ExportConfig(
            header=header,
            output=output,
            logging=logging_cfg,
        )

        _validate_config(config)
        logger.info("Configuration loaded successfully")
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc
