"""Render notification groups into highlighted, width-bounded lines.

``NotificationView.render`` is meant to be called on every frame of the
host's update loop. Separators, group headers and items are looked up in a
:class:`~pi.notify.cache.RenderCache` so unchanged content is not wrapped
and highlighted again.
"""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Any, Hashable

from pi.notify.cache import RenderCache
from pi.notify.config import ViewOptions
from pi.notify.highlight import HighlightIndex, Highlighter, HighlightTable, highlight_message
from pi.notify.host import Chunk, Host
from pi.notify.markdown import MarkdownHighlighter
from pi.notify.types import Dynamic, Group, GroupConfig, HistoryItem, Item, Line
from pi.notify.wrap import WrapContext, wrap_message

logger = logging.getLogger(__name__)

# Columns taken by the host window's border and padding
WINDOW_CHROME = 4


def _resolve(value: Dynamic, now: float, items: list[Item]) -> Any:
    if callable(value):
        return value(now, items)
    return value


def content_key(item: Item) -> Hashable:
    """Dedup and cache key of *item*; the item itself when it has no usable key."""
    key = item.content_key
    if key is None:
        return item
    try:
        hash(key)
    except TypeError:
        logger.debug("Unhashable content key %r, keying item by identity", key)
        return item
    return key


def line_text(line: Line) -> str:
    """Rebuild the displayed text of a rendered line.

    Whitespace between message tokens is recovered from their columns.
    """
    parts: list[str] = []
    prev_ecol: int | None = None
    for tok in line:
        if tok.scol is not None and tok.ecol is not None:
            gap = tok.scol - (prev_ecol if prev_ecol is not None else 0)
            if gap > 0:
                parts.append(" " * gap)
            prev_ecol = tok.ecol
        parts.append(tok.text)
    return "".join(parts)


class NotificationView:
    """Renders notification groups for a host window."""

    def __init__(
        self,
        host: Host,
        options: ViewOptions | None = None,
        cache: RenderCache | None = None,
        highlighter: Highlighter | None = None,
    ) -> None:
        self._host = host
        self.options = options or ViewOptions()
        self.cache = cache if cache is not None else RenderCache()
        self._highlighter = highlighter if highlighter is not None else MarkdownHighlighter()
        self._columns = host.columns
        self._ctx = self._make_context()

    # -- per-pass state -----------------------------------------------------

    def _make_context(self) -> WrapContext:
        table = self._highlight_table()
        return WrapContext(
            line_margin=self.options.line_margin,
            tabstop=self._host.tabstop,
            align=self.options.align,
            hide_conceal=self.options.hide_conceal,
            extended_highlights=self._host.supports_extended_highlights(),
            conceal_hl=table.conceal,
        )

    def _highlight_table(self) -> HighlightTable:
        return HighlightTable(self._host.highlight_groups, normal=self._normal_hl())

    def _normal_hl(self) -> str:
        return self.options.normal_hl or "Normal"

    def _wrap_budget(self) -> int:
        columns = self._columns
        if self.options.max_width:
            columns = min(columns, self.options.max_width)
        return columns - 2 * self.options.line_margin - WINDOW_CHROME

    # -- chunk renderers ----------------------------------------------------

    def render_group_separator(self) -> tuple[list[Line] | None, int]:
        sep = self.options.group_separator
        if sep is False:
            return None, 0
        ctx = self._ctx
        return [ctx.line(ctx.token(sep, self.options.group_separator_hl))], ctx.line_width(sep)

    def render_group_header(self, now: float, group: Group) -> tuple[list[Line] | None, int]:
        """Render the header of *group*, containing group name and icon."""
        ctx = self._ctx
        config = group.config
        name = _resolve(config.name, now, group.items)
        icon = _resolve(config.icon, now, group.items)

        group_style = config.group_style or "Title"
        name_tok = ctx.token(name, group_style) if name is not None else None
        icon_tok = ctx.token(icon, config.icon_style or group_style) if icon is not None else None

        if name_tok and icon_tok:
            sep = self.options.icon_separator
            sep_tok = ctx.token(sep)
            width = ctx.line_width(name, icon, sep)
            if config.icon_on_left:
                return [ctx.line(icon_tok, sep_tok, name_tok)], width
            return [ctx.line(name_tok, sep_tok, icon_tok)], width
        if name_tok:
            return [ctx.line(name_tok)], ctx.line_width(name)
        if icon_tok:
            return [ctx.line(icon_tok)], ctx.line_width(icon)
        # No group header to render
        return None, 0

    @staticmethod
    def dedup_items(items: list[Item]) -> tuple[list[Item], dict[Hashable, int]]:
        """Merge items sharing a content key; first occurrence wins."""
        deduped: list[Item] = []
        counts: dict[Hashable, int] = {}
        for item in items:
            key = content_key(item)
            if key in counts:
                counts[key] += 1
            else:
                counts[key] = 1
                deduped.append(item)
        return deduped, counts

    def render_item(self, item: Item, config: GroupConfig, count: int) -> tuple[list[Line] | None, int]:
        """Render a notification item, containing message and annote."""
        if item.hidden:
            return None, 0

        msg = self.options.render_message(item.message, count)
        if msg is None or msg is False:
            return None, 0

        normal_hl = self._normal_hl()
        sep = config.annote_separator if config.annote_separator is not None else " "
        return wrap_message(
            self._ctx,
            msg,
            self._wrap_budget(),
            annote=item.annote,
            annote_style=item.style,
            sep=sep,
            default_hl=normal_hl,
            highlights=self._message_highlights(msg),
        )

    def _message_highlights(self, msg: str) -> HighlightIndex | None:
        grammar = self.options.highlight
        if not grammar:
            return None
        try:
            return highlight_message(msg, grammar, self._highlighter, self._highlight_table())
        except Exception:
            # Contained to this item; it renders with the normal highlight
            logger.exception("Highlighting failed for grammar %r", grammar)
            return None

    # -- main entry ---------------------------------------------------------

    def render(self, now: float, groups: list[Group]) -> tuple[list[Line], int]:
        """Render *groups* into lines, returning them and the widest width."""
        self._ctx = self._make_context()
        columns = self._host.columns
        self._columns = columns

        # Force rendering when the width of the window changes
        resized = self.cache.begin_pass(columns)

        chunks: list[list[Line]] = []
        max_width = 0

        for idx, group in enumerate(groups):
            if idx != 0:
                sep, sep_width = self.cache.separator(resized, self.render_group_separator)
                if sep:
                    chunks.append(sep)
                    max_width = max(max_width, sep_width)

            icon = _resolve(group.config.icon, now, group.items)
            hdr, hdr_width = self.cache.header(
                group.config.name,
                icon,
                resized,
                partial(self.render_group_header, now, group),
            )
            if hdr:
                chunks.append(hdr)
                max_width = max(max_width, hdr_width)

            items, counts = self.dedup_items(group.items)
            limit = group.config.render_limit
            if limit is not None:
                # Don't bother rendering the rest (though they still exist)
                items = items[:limit]

            for item in items:
                key = content_key(item)
                it, it_width = self.cache.item(
                    key,
                    counts[key],
                    columns,
                    resized,
                    partial(self.render_item, item, group.config, counts[key]),
                )
                if it:
                    chunks.append(it)
                    max_width = max(max_width, it_width)

        ordered = reversed(chunks) if self.options.stack_upwards else iter(chunks)
        lines: list[Line] = [line for chunk in ordered for line in chunk]
        return lines, max_width

    # -- history ------------------------------------------------------------

    def echo_history(self, items: list[HistoryItem]) -> None:
        """Echo past notifications through the host."""
        for item in items:
            self._host.echo(history_chunks(item))


def history_chunks(item: HistoryItem) -> list[Chunk]:
    """Format one history item as highlighted ``(text, highlight)`` chunks."""
    is_multiline_msg = "\n" in item.message

    chunks: list[Chunk] = [(time.strftime("%c", time.localtime(item.last_updated)), "Comment")]
    if item.group_name:
        chunks.append((" ", "MsgArea"))
        chunks.append((item.group_name, "Special"))
    chunks.append((" | ", "Comment"))
    if item.annote:
        chunks.append((item.annote, item.style))
    chunks.append(("\n" if is_multiline_msg else " ", "MsgArea"))
    chunks.append((item.message, "MsgArea"))
    if is_multiline_msg:
        chunks.append(("\n", "MsgArea"))
    return chunks
