"""Line wrapping and annotation alignment for notification messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pi.notify.highlight import HighlightIndex, merge_highlights
from pi.notify.types import Line, RenderToken
from pi.notify.utils import line_width, str_width, tokenize

# Prepended to every token when the host can't blend highlights itself
NO_BLEND_HL = "NotifyNoBlend"


@dataclass
class WrapContext:
    """Settings shared by every line rendered during one pass."""

    line_margin: int = 1
    tabstop: int = 8
    align: Literal["message", "annote"] = "message"
    hide_conceal: bool = True
    extended_highlights: bool = False
    no_blend_hl: Any = NO_BLEND_HL
    conceal_hl: Any = None

    def width(self, *texts: str) -> int:
        return str_width(*texts, tabstop=self.tabstop)

    def line_width(self, *texts: str) -> int:
        return line_width(*texts, tabstop=self.tabstop, line_margin=self.line_margin)

    def highlights(self, *hl: Any) -> list[Any]:
        stack = [h for h in hl if h is not None and h is not False]
        if self.extended_highlights:
            return stack
        return [self.no_blend_hl, *stack]

    def token(self, text: str, *hl: Any) -> RenderToken:
        """Pack *text* and its highlights into a decoration token."""
        return RenderToken(text, self.highlights(*hl))

    def line(self, *tokens: RenderToken) -> Line:
        """Frame *tokens* with margins; no tokens make an empty line."""
        if not tokens:
            return []
        return [self.margin(), *tokens, self.margin()]

    def margin(self) -> RenderToken:
        return self.token(" " * self.line_margin)


def annotate(
    ctx: WrapContext,
    line: list[RenderToken],
    width: int,
    annote: RenderToken | None,
    sep: str,
    first: bool,
) -> tuple[list[RenderToken], int]:
    """Attach the annote to the first wrapped line, or indent a continuation.

    Returns the line and its width, both extended as needed.
    """
    if annote is None:
        return line, width
    if first:
        text = sep + annote.text
        line.append(RenderToken(text, list(annote.highlights)))
        width += ctx.line_width(text)
    elif ctx.align == "message":
        # Indent messages longer than a single line
        indent = ctx.width(annote.text)
        line.append(ctx.token((sep[:1] or " ") * indent))
        width += indent
    return line, width


def _logical_lines(message: str) -> tuple[list[str], int]:
    """Split on newlines, trimming empty lines at both ends.

    Also returns the number of leading lines dropped, i.e. the source row of
    the first returned line.
    """
    lines = message.split("\n")
    start, end = 0, len(lines)
    while start < end and not lines[start]:
        start += 1
    while end > start and not lines[end - 1]:
        end -= 1
    return lines[start:end], start


def wrap_message(
    ctx: WrapContext,
    message: str,
    budget: int,
    *,
    annote: str | None = None,
    annote_style: Any = None,
    sep: str = " ",
    default_hl: Any = "Normal",
    highlights: HighlightIndex | None = None,
) -> tuple[list[Line], int]:
    """Wrap *message* into lines no wider than *budget* columns.

    Each logical line is wrapped greedily, token by token. The annote (if
    any) is placed on the first wrapped line of the whole message; the other
    lines get an indent depending on ``ctx.align``. Tokens matching a record
    in *highlights* are highlighted, or hidden when concealed.

    Returns the lines and the widest line width, margins included.
    """
    annote_tok = ctx.token(annote, annote_style) if annote else None
    avail = budget - (ctx.line_width(annote) if annote else 0)
    base_hl = ctx.highlights(default_hl)

    lines: list[Line] = []
    width = 0
    # Lines inserted by wrapping; keeps wrapped lines aligned to source rows
    extra_lines = 0

    logical, row_offset = _logical_lines(message)
    for source in logical:
        current: list[RenderToken] = []
        line_ptr = 0
        prev_end = 0
        origin = 0
        current_width = 0

        for tok in tokenize(source):
            spacing = tok.start - prev_end
            tok_width = ctx.width(tok.text)

            # Would the token overflow the window if added as it is?
            if line_ptr + tok_width + spacing >= avail:
                current, current_width = annotate(ctx, current, current_width, annote_tok, sep, not lines)
                lines.append(ctx.line(*current))
                width = max(width, current_width)
                current = []
                line_ptr = 0
                current_width = 0
                origin = tok.start
                extra_lines += 1

            render_tok = RenderToken(
                tok.text,
                list(base_hl),
                scol=tok.start - origin,
                ecol=tok.end - origin,
            )
            line_ptr += tok_width + spacing

            if highlights:
                row = len(lines) - extra_lines + row_offset
                concealed = False
                for rec in highlights.match(row, tok):
                    if ctx.conceal_hl is not None and rec.highlight == ctx.conceal_hl and ctx.hide_conceal:
                        if not concealed:
                            render_tok.text = ""
                            line_ptr -= tok_width
                            concealed = True
                    else:
                        render_tok.highlights = merge_highlights(render_tok.highlights, rec.highlight, default_hl)

            current.append(render_tok)
            prev_end = tok.end
            current_width = line_ptr + 2 * ctx.line_margin

        current, current_width = annotate(ctx, current, current_width, annote_tok, sep, not lines)
        lines.append(ctx.line(*current))
        width = max(width, current_width)

    # The message is empty but there's an annote to render
    if not lines and annote_tok is not None:
        lines = [ctx.line(annote_tok)]
        width = ctx.line_width(annote_tok.text)
    return lines, width
