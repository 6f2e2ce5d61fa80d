"""Render cache for group separators, group headers and items.

Entries survive across render passes. A change of the host's column count
marks a pass as resized, which makes every lookup in that pass miss; the
stored entries are overwritten one by one as they are recomputed.

Every lookup hands out a fresh copy of the lines and their tokens, so callers
may modify what they get without touching the stored entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Hashable, Optional

from pi.notify.types import Line

logger = logging.getLogger(__name__)

Rendered = tuple[Optional[list[Line]], int]
RenderFn = Callable[[], Rendered]


@dataclass
class SeparatorEntry:
    lines: list[Line] | None
    width: int


@dataclass
class HeaderEntry:
    lines: list[Line] | None
    width: int
    icon: Any


@dataclass
class ItemEntry:
    lines: list[Line] | None
    width: int
    count: int


class RenderCache:
    """Read-through cache of rendered chunks."""

    def __init__(self) -> None:
        self.group_separator: SeparatorEntry | None = None
        self.group_header: dict[Hashable, HeaderEntry] = {}
        self.render_item: dict[Hashable, ItemEntry] = {}
        # Host column count seen by the last pass that updated it
        self.render_width: int | None = None
        self.hits = 0
        self.misses = 0

    def clear(self) -> None:
        self.group_separator = None
        self.group_header.clear()
        self.render_item.clear()
        self.render_width = None

    def begin_pass(self, columns: int) -> bool:
        """Record the observed *columns*; return whether the host resized."""
        resized = self.render_width is not None and self.render_width != columns
        if self.render_width is None or resized:
            self.render_width = columns
        return resized

    def separator(self, resized: bool, compute: RenderFn) -> Rendered:
        entry = self.group_separator
        if entry is not None and not resized:
            self.hits += 1
            return _detached(entry.lines), entry.width
        self.misses += 1
        lines, width = compute()
        self.group_separator = SeparatorEntry(lines, width)
        return _detached(lines), width

    def header(self, name: Hashable, icon: Any, resized: bool, compute: RenderFn) -> Rendered:
        entry = self.group_header.get(name)
        if entry is not None and not resized and entry.icon == icon:
            self.hits += 1
            return _detached(entry.lines), entry.width
        self.misses += 1
        logger.debug("Rendering header for group %r", name)
        lines, width = compute()
        self.group_header[name] = HeaderEntry(lines, width, icon)
        return _detached(lines), width

    def item(
        self,
        key: Hashable,
        count: int,
        columns: int,
        resized: bool,
        compute: RenderFn,
    ) -> Rendered:
        entry = self.render_item.get(key)
        if (
            entry is not None
            and not resized
            and _same_count(entry.count, count)
            and self.render_width == columns
        ):
            self.hits += 1
            return _detached(entry.lines), entry.width
        self.misses += 1
        logger.debug("Rendering item %r (count %d)", key, count)
        lines, width = compute()
        self.render_item[key] = ItemEntry(lines, width, count)
        return _detached(lines), width


def _same_count(stored: Any, count: int) -> bool:
    # A corrupted entry (non-int count) is just a miss.
    return type(stored) is int and stored == count


def _detached(lines: list[Line] | None) -> list[Line] | None:
    # Callers get their own lines and tokens; stored entries stay untouched
    if lines is None:
        return None
    return [[replace(tok, highlights=list(tok.highlights)) for tok in line] for line in lines]
