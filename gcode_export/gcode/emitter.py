"""Trace exporter -- machine-state trace to a minimal G-code document.

One forward pass over the trace.  For every record the ``ChangeDetector``
works out what differs from the last emitted state, the
``InstructionEmitter`` turns that into blocks, and the
``DocumentAssembler`` appends them after a fixed preamble::

    (Exported by gcode_export)
    G21 G90 G94
    ...one block per modal command...
    ...one combined move block per record...

Block layout per record:
    - one single-word block for each spindle, coolant, ``F`` and ``S``
      command, in that order;
    - at most one move block: plane, motion mode, X, Y, Z, then for arcs
      I, J, K, P.  Dropped when empty.

``iter_blocks`` yields blocks lazily; ``export_trace`` collects them into
an immutable ``Document``.  Each call owns a fresh ``EmittedState`` so
calls never influence each other.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from gcode_export.configs.loader import ExportConfig, HeaderConfig
from gcode_export.gcode.detector import ChangeDetector, EmittedState, Transition
from gcode_export.gcode.document import Block, Comment, Document, Word
from gcode_export.trace.records import PositionRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class InstructionEmitter:
    """Turn a ``Transition`` into ordered blocks."""

    def emit(self, t: Transition) -> list[Block]:
        blocks: list[Block] = []

        # Standalone modal commands, one per block
        if t.spindle is not None:
            blocks.append(Block.of(Word("M", t.spindle.value)))
        for cmd in t.coolant:
            blocks.append(Block.of(Word("M", cmd.value)))
        if t.feedrate is not None:
            blocks.append(Block.of(Word("F", t.feedrate)))
        if t.spindle_speed is not None:
            blocks.append(Block.of(Word("S", t.spindle_speed)))

        if not t.has_move:
            return blocks

        move: list[Word] = []
        if t.plane is not None:
            move.append(Word("G", t.plane.code))
        if t.motion_mode is not None:
            move.append(Word("G", t.motion_mode.code))
        move.extend(Word(axis, value) for axis, value in t.axes)
        move.extend(Word(name, value) for name, value in t.arc)
        blocks.append(Block.of(*move))
        return blocks


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------


def preamble(header: HeaderConfig) -> list[Block]:
    """Identifying comment block and the fixed modal header block."""
    words = []
    if header.millimeter_units:
        words.append(Word("G", 21))
    if header.cancel_cutter_compensation:
        words.append(Word("G", 40))
    words.append(Word("G", 90))
    words.append(Word("G", 94))
    return [Block.of(Comment(header.comment)), Block.of(*words)]


class DocumentAssembler:
    """Append-only builder for a ``Document``.

    Parameters
    ----------
    header : HeaderConfig
        Preamble settings.
    """

    def __init__(self, header: HeaderConfig) -> None:
        self._blocks: list[Block] = preamble(header)

    def append(self, block: Block) -> None:
        if len(block) > 0:
            self._blocks.append(block)

    def finish(self) -> Document:
        return Document(blocks=tuple(self._blocks))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _record_blocks(trace: Iterable[PositionRecord]) -> Iterator[Block]:
    """Blocks of every record, preamble excluded."""
    emitted = EmittedState()
    detector = ChangeDetector()
    emitter = InstructionEmitter()

    for index, record in enumerate(trace):
        transition = detector.detect(emitted, record, index)
        if transition is None:
            logger.debug("Skipping initial record %d", index)
            continue
        yield from emitter.emit(transition)


def iter_blocks(
    trace: Iterable[PositionRecord],
    config: ExportConfig | None = None,
) -> Iterator[Block]:
    """Yield the preamble, then the blocks of each record in trace order.

    Parameters
    ----------
    trace : Iterable[PositionRecord]
        Records from the execution engine.  Consumed once, not mutated.
    config : ExportConfig | None
        ``None`` uses built-in defaults.

    Raises
    ------
    ExportError
        When a record is malformed.  Blocks already yielded stay valid.
    """
    cfg = config if config is not None else ExportConfig()
    yield from preamble(cfg.header)
    yield from _record_blocks(trace)


def export_trace(
    trace: Iterable[PositionRecord],
    config: ExportConfig | None = None,
) -> Document:
    """Export a complete trace to a G-code ``Document``.

    Parameters
    ----------
    trace : Iterable[PositionRecord]
        Records from the execution engine.
    config : ExportConfig | None
        ``None`` uses built-in defaults.

    Returns
    -------
    Document
        Preamble followed by every emitted block.

    Raises
    ------
    ExportError
        If any record is malformed.  No partial document is returned.
    """
    cfg = config if config is not None else ExportConfig()
    records = list(trace)
    assembler = DocumentAssembler(cfg.header)
    n_blocks = 0
    for block in _record_blocks(records):
        assembler.append(block)
        n_blocks += 1

    doc = assembler.finish()
    logger.info(
        "Exported %d records into %d blocks", len(records), n_blocks,
    )
    return doc
