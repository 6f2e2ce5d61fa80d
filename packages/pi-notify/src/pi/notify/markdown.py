"""Markdown capture provider built on ``markdown-it-py``.

Implements the :class:`~pi.notify.highlight.Highlighter` protocol for two
grammars:

- ``markdown``: block structure (headings, code blocks, list markers,
  block quotes, thematic breaks).
- ``markdown_inline``: emphasis, strong, strikethrough, inline code and
  links inside paragraphs and headings. Every delimiter is reported as a
  ``conceal`` capture.

markdown-it tokens only carry line maps, so columns are recovered by
searching the source row from a moving cursor. Constructs whose source text
can't be located (entities, escapes) produce no capture.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.token import Token

from pi.notify.highlight import CONCEAL, HighlighterError
from pi.notify.types import Capture

# ---------------------------------------------------------------------------
# markdown-it singleton (CommonMark + strikethrough)
# ---------------------------------------------------------------------------

_md_parser = MarkdownIt("commonmark").enable("strikethrough")

_STYLE_OPEN = {
    "strong_open": "markup.strong",
    "em_open": "markup.italic",
    "s_open": "markup.strikethrough",
}
_STYLE_CLOSE = {"strong_close", "em_close", "s_close"}


class MarkdownHighlighter:
    """Produce highlight captures for markdown text."""

    grammars = ("markdown", "markdown_inline")

    def __init__(self) -> None:
        self._cached_text: str | None = None
        self._cached_tokens: list[Token] | None = None

    def get_captures(self, text: str, grammar: str) -> list[Capture]:
        if grammar not in self.grammars:
            raise HighlighterError(f"No parser available for grammar {grammar!r}")

        tokens = self._parse(text)
        rows = text.split("\n")
        if grammar == "markdown":
            return _block_captures(tokens, rows)
        return _inline_captures(tokens, rows)

    def _parse(self, text: str) -> list[Token]:
        if self._cached_tokens is None or self._cached_text != text:
            self._cached_tokens = _md_parser.parse(text)
            self._cached_text = text
        return self._cached_tokens


def _find(rows: list[str], row: int, needle: str, start: int = 0) -> int:
    if not needle or row >= len(rows):
        return -1
    return rows[row].find(needle, start)


def _capture(rows: list[str], name: str, row: int, start: int, end: int) -> Capture:
    return Capture(name, row, start, end, rows[row][start:end])


# ---------------------------------------------------------------------------
# Block grammar
# ---------------------------------------------------------------------------


def _block_captures(tokens: list[Token], rows: list[str]) -> list[Capture]:
    captures: list[Capture] = []

    for i, tok in enumerate(tokens):
        if tok.map is None:
            continue
        first, last = tok.map

        if tok.type == "heading_open":
            if tok.markup.startswith("#"):
                p = _find(rows, first, tok.markup)
                if p >= 0:
                    captures.append(_capture(rows, "punctuation.special", first, p, p + len(tok.markup)))
            inline = tokens[i + 1] if i + 1 < len(tokens) else None
            if inline is not None and inline.type == "inline" and inline.content:
                # Setext headings span several rows; only the first is located.
                content = inline.content.split("\n")[0]
                c = _find(rows, first, content)
                if c >= 0:
                    captures.append(_capture(rows, "markup.heading", first, c, c + len(content)))

        elif tok.type == "fence":
            p = _find(rows, first, tok.markup)
            if p >= 0:
                captures.append(_capture(rows, CONCEAL, first, p, p + len(tok.markup)))
                info = tok.info.strip()
                q = _find(rows, first, info, p + len(tok.markup))
                if info and q >= 0:
                    captures.append(_capture(rows, "label", first, q, q + len(info)))
            closed = last - 1 > first and _find(rows, last - 1, tok.markup) >= 0
            body_end = last - 1 if closed else last
            for row in range(first + 1, min(body_end, len(rows))):
                if rows[row]:
                    captures.append(_capture(rows, "markup.raw.block", row, 0, len(rows[row])))
            if closed:
                p = _find(rows, last - 1, tok.markup)
                captures.append(_capture(rows, CONCEAL, last - 1, p, p + len(tok.markup)))

        elif tok.type == "code_block":
            for row in range(first, min(last, len(rows))):
                if rows[row].strip():
                    captures.append(_capture(rows, "markup.raw.block", row, 0, len(rows[row])))

        elif tok.type == "list_item_open":
            marker = tok.info + tok.markup if tok.info else tok.markup
            p = _find(rows, first, marker)
            if p >= 0:
                captures.append(_capture(rows, "markup.list", first, p, p + len(marker)))

        elif tok.type == "blockquote_open":
            for row in range(first, min(last, len(rows))):
                p = _find(rows, row, ">")
                if p >= 0:
                    captures.append(_capture(rows, "punctuation.special", row, p, p + 1))

        elif tok.type == "hr":
            line = rows[first] if first < len(rows) else ""
            stripped = line.strip()
            if stripped:
                p = line.find(stripped)
                captures.append(_capture(rows, "punctuation.special", first, p, p + len(stripped)))

    return captures


# ---------------------------------------------------------------------------
# Inline grammar
# ---------------------------------------------------------------------------


class _InlineWalker:
    """Walk the children of one inline token, tracking source positions."""

    def __init__(self, rows: list[str], inline: Token) -> None:
        self.rows = rows
        self.captures: list[Capture] = []
        self._styles: list[str] = []
        self._autolink: list[bool] = []

        first = inline.map[0] if inline.map else 0
        # Source row and starting column of each content line
        self._lines: list[tuple[int, int]] = []
        for n, content_line in enumerate(inline.content.split("\n")):
            row = first + n
            self._lines.append((row, _find(rows, row, content_line.strip()) if content_line.strip() else -1))
        self._line = 0
        self.row, self.cursor = self._lines[0] if self._lines else (first, -1)

    def _next_line(self) -> None:
        self._line += 1
        if self._line < len(self._lines):
            self.row, self.cursor = self._lines[self._line]
        else:
            self.cursor = -1

    def _locate(self, needle: str) -> int:
        if self.cursor < 0:
            return -1
        return _find(self.rows, self.row, needle, self.cursor)

    def _emit(self, name: str, needle: str) -> bool:
        p = self._locate(needle)
        if p < 0:
            return False
        self.captures.append(_capture(self.rows, name, self.row, p, p + len(needle)))
        self.cursor = p + len(needle)
        return True

    def _skip(self, needle: str) -> None:
        p = self._locate(needle)
        if p >= 0:
            self.cursor = p + len(needle)

    def walk(self, children: list[Token]) -> list[Capture]:
        for child in children:
            t = child.type
            if t in ("softbreak", "hardbreak"):
                self._next_line()
            elif t == "text":
                if self._styles:
                    self._emit(self._styles[-1], child.content)
                else:
                    self._skip(child.content)
            elif t in _STYLE_OPEN:
                self._emit(CONCEAL, child.markup)
                self._styles.append(_STYLE_OPEN[t])
            elif t in _STYLE_CLOSE:
                self._emit(CONCEAL, child.markup)
                if self._styles:
                    self._styles.pop()
            elif t == "code_inline":
                if self._emit(CONCEAL, child.markup):
                    self._emit("markup.raw", child.content)
                    self._emit(CONCEAL, child.markup)
            elif t == "link_open":
                autolink = child.markup == "autolink"
                self._autolink.append(autolink)
                self._emit(CONCEAL, "<" if autolink else "[")
                self._styles.append("markup.link.url" if autolink else "markup.link.label")
            elif t == "link_close":
                if self._styles:
                    self._styles.pop()
                autolink = self._autolink.pop() if self._autolink else False
                if autolink:
                    self._emit(CONCEAL, ">")
                else:
                    self._close_link()
        return self.captures

    def _close_link(self) -> None:
        p = self._locate("]")
        if p < 0:
            return
        line = self.rows[self.row]
        end = p + 1
        if line[end : end + 1] == "(":
            q = line.find(")", end)
            if q >= 0:
                end = q + 1
        self.captures.append(_capture(self.rows, CONCEAL, self.row, p, end))
        self.cursor = end


def _inline_captures(tokens: list[Token], rows: list[str]) -> list[Capture]:
    captures: list[Capture] = []
    for tok in tokens:
        if tok.type == "inline" and tok.children:
            captures.extend(_InlineWalker(rows, tok).walk(tok.children))
    return captures
