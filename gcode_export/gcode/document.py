"""G-code document model -- tokens, blocks and text rendering.

A ``Document`` is an ordered tuple of ``Block`` objects; each block is an
ordered tuple of nodes rendered together on one line.  A node is either a
``Word`` (one address letter plus a number, e.g. ``G1`` or ``X10.5``) or a
``Comment``.

Everything here is immutable.  The exporter collects blocks in a list and
freezes them into a ``Document`` once the pass is complete.

Number rendering
----------------
Values are rounded to ``precision`` decimals and trailing zeros are
stripped, so ``G1.0`` becomes ``G1`` and ``X10.5000`` becomes ``X10.5``.
A value that rounds to zero is always rendered as ``0`` (never ``-0``).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

DEFAULT_PRECISION = 4


def format_number(value: float, precision: int = DEFAULT_PRECISION) -> str:
    """Render *value* with at most *precision* decimals, no trailing zeros."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Word:
    """Single-letter coded numeric command.

    Parameters
    ----------
    address : str
        Upper-case address letter (``G``, ``M``, ``X``, ``F`` ...).
    value : float
        Numeric argument.
    """

    address: str
    value: float

    def __post_init__(self) -> None:
        if len(self.address) != 1 or not self.address.isalpha():
            raise ValueError(
                f"Word address must be a single letter, got {self.address!r}"
            )

    def to_text(self, precision: int = DEFAULT_PRECISION) -> str:
        return f"{self.address.upper()}{format_number(self.value, precision)}"


@dataclass(frozen=True, slots=True)
class Comment:
    """Free-text comment, rendered in parentheses."""

    text: str

    def __post_init__(self) -> None:
        if "(" in self.text or ")" in self.text:
            raise ValueError(
                f"Comment text must not contain parentheses: {self.text!r}"
            )

    def to_text(self, precision: int = DEFAULT_PRECISION) -> str:
        return f"({self.text})"


Node = Union[Word, Comment]


# ---------------------------------------------------------------------------
# Blocks / document
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Block:
    """Nodes emitted together as one atomic line."""

    nodes: tuple[Node, ...]

    @classmethod
    def of(cls, *nodes: Node) -> Block:
        return cls(nodes=tuple(nodes))

    def __len__(self) -> int:
        return len(self.nodes)

    def to_text(self, precision: int = DEFAULT_PRECISION) -> str:
        return " ".join(n.to_text(precision) for n in self.nodes)


@dataclass(frozen=True, slots=True)
class Document:
    """Ordered, immutable sequence of blocks."""

    blocks: tuple[Block, ...] = ()

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def to_text(self, precision: int = DEFAULT_PRECISION) -> str:
        """Render one line per block, newline terminated.

        Parameters
        ----------
        precision : int
            Maximum number of decimals for word values.
        """
        return "".join(
            block.to_text(precision) + "\n" for block in self.blocks
        )
