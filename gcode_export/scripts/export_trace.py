#!/usr/bin/env python3
"""
Export Trace Script.

Convert a ``trace.v1`` YAML file into a G-code program.

Usage:
    python -m gcode_export.scripts.export_trace trace.yaml
    python -m gcode_export.scripts.export_trace trace.yaml -o part.nc
    python -m gcode_export.scripts.export_trace trace.yaml --dump
    python -m gcode_export.scripts.export_trace trace.yaml -c export.yaml

G-code goes to stdout unless ``--output`` is given; logs and the
``--dump`` listing go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys

from gcode_export.configs.loader import ConfigError, ExportConfig, load_config
from gcode_export.gcode.detector import ExportError
from gcode_export.gcode.dump import dump_trace
from gcode_export.gcode.emitter import export_trace
from gcode_export.trace.records import load_trace
from src.utils.fs import atomic_write_text
from src.utils.logging_config import pop_context, push_context, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export a machine-state trace to G-code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "trace",
        type=str,
        help="Trace file (trace.v1 YAML)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write G-code to this file instead of stdout",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the trace in human-readable form to stderr",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=args.log_level or config.logging.level,
        log_file=config.logging.file,
        json=config.logging.json,
        context={"app": "export"},
    )

    push_context(trace=args.trace)
    try:
        return _export(args, config)
    finally:
        pop_context(keys=["trace"])


def _export(args: argparse.Namespace, config: ExportConfig) -> int:
    try:
        trace = load_trace(args.trace)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading trace: {e}", file=sys.stderr)
        return 1

    if args.dump:
        dump_trace(trace, sys.stderr)

    try:
        doc = export_trace(trace, config)
    except ExportError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1

    text = doc.to_text(config.output.precision)
    if args.output:
        atomic_write_text(args.output, text)
        logger.info("Wrote %d blocks to %s", len(doc), args.output)
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
