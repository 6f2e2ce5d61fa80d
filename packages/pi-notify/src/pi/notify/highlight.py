"""Highlight overlay: turn highlighter captures into per-token highlights.

A highlighter reports captures over the original, unwrapped message text.
Captures are grouped by source row and re-tokenized so that the line
wrapper can match each emitted token against them by row, text and column
containment.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from pi.notify.types import Capture, HighlightRecord, Token
from pi.notify.utils import tokenize

logger = logging.getLogger(__name__)

CONCEAL = "conceal"

# Captures that only carry spell-checking hints
_SPELL_CAPTURES = frozenset({"spell", "nospell"})

# Block grammars whose inline content is parsed by a second grammar
_INLINE_GRAMMARS: dict[str, str] = {"markdown": "markdown_inline"}


class HighlighterError(Exception):
    """Raised by a highlighter when a grammar or its query is unavailable."""


class Highlighter(Protocol):
    """Interface for syntax highlighters producing captures."""

    def get_captures(self, text: str, grammar: str) -> Iterable[Capture]: ...


# ---------------------------------------------------------------------------
# HighlightTable
# ---------------------------------------------------------------------------


class HighlightTable:
    """Resolve capture names to highlight identifiers."""

    def __init__(self, groups: Mapping[str, Any], normal: Any = "Normal") -> None:
        self._groups = groups
        self.normal = normal

    def lookup(self, name: str) -> Any | None:
        hl = self._groups.get(name)
        if hl is None:
            hl = self._groups.get("@" + name)
        return hl

    def resolve(self, name: str) -> Any:
        """Look up *name*, then ``@name``, falling back to the normal highlight."""
        hl = self.lookup(name)
        return self.normal if hl is None else hl

    @property
    def conceal(self) -> Any | None:
        return self.lookup(CONCEAL)


# ---------------------------------------------------------------------------
# HighlightIndex
# ---------------------------------------------------------------------------


class HighlightIndex:
    """Highlight records bucketed by source row, de-duplicated."""

    def __init__(self) -> None:
        self._rows: dict[int, list[HighlightRecord]] = {}
        self._seen: set[HighlightRecord] = set()

    def add(self, record: HighlightRecord) -> None:
        if record in self._seen:
            return
        self._seen.add(record)
        self._rows.setdefault(record.row, []).append(record)

    def row(self, row: int) -> list[HighlightRecord]:
        return self._rows.get(row, [])

    def match(self, row: int, token: Token) -> list[HighlightRecord]:
        """Records of *row* with the token's text whose range contains it."""
        return [
            rec
            for rec in self._rows.get(row, ())
            if rec.text == token.text and rec.scol <= token.start and token.end <= rec.ecol
        ]

    def __len__(self) -> int:
        return len(self._seen)

    def __bool__(self) -> bool:
        return bool(self._seen)


def _valid_capture(capture: Capture) -> bool:
    return (
        capture.text is not None
        and capture.start_row >= 0
        and 0 <= capture.start_col <= capture.end_col
    )


def collect_highlights(
    text: str,
    grammar: str,
    highlighter: Highlighter,
    table: HighlightTable,
    into: HighlightIndex | None = None,
) -> HighlightIndex | None:
    """Collect highlight records for *text* parsed with *grammar*.

    Returns ``None`` when the highlighter cannot handle *grammar*. When
    *into* is given, records are merged into it and it is returned.
    """
    try:
        captures = list(highlighter.get_captures(text, grammar))
    except HighlighterError as e:
        logger.debug("No highlights for grammar %r: %s", grammar, e)
        return None

    index = into if into is not None else HighlightIndex()
    for capture in captures:
        if capture.name in _SPELL_CAPTURES:
            continue
        if not _valid_capture(capture):
            logger.debug("Skipping malformed capture %r", capture)
            continue
        hl = table.resolve(capture.name)
        for tok in tokenize(capture.text):
            index.add(
                HighlightRecord(
                    row=capture.start_row,
                    scol=capture.start_col,
                    ecol=capture.end_col,
                    text=tok.text,
                    highlight=hl,
                )
            )
    return index


def highlight_message(
    text: str,
    grammar: str,
    highlighter: Highlighter,
    table: HighlightTable,
) -> HighlightIndex | None:
    """Collect block highlights, then overlay the inline sub-grammar if any."""
    index = collect_highlights(text, grammar, highlighter, table)
    inline = _INLINE_GRAMMARS.get(grammar)
    if inline is None:
        return index
    merged = collect_highlights(text, inline, highlighter, table, into=index)
    return merged if merged is not None else index


def merge_highlights(current: list[Any], incoming: Any, default: Any) -> list[Any]:
    """Merge *incoming* into the highlight stack *current*.

    A trailing default highlight is overwritten; any other highlight is kept
    and a non-default *incoming* is stacked on top of it.
    """
    merged = list(current)
    if merged and merged[-1] == default:
        merged[-1] = incoming
    elif incoming != default and incoming not in merged:
        merged.append(incoming)
    return merged
