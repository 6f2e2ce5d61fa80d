"""Presentation host abstraction.

The renderer never draws anything itself. It asks the host for the current
window size, tab width and highlight capabilities, and hands echoed history
chunks back to it.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

# (text, highlight) pairs passed to Host.echo
Chunk = tuple[str, Any]

# Groups a bare host knows about; capture groups use the "@" prefix
DEFAULT_HIGHLIGHT_GROUPS: tuple[str, ...] = (
    "Normal",
    "Title",
    "Comment",
    "Special",
    "MsgArea",
    "NotifyNoBlend",
    "@conceal",
    "@label",
    "@markup.heading",
    "@markup.strong",
    "@markup.italic",
    "@markup.strikethrough",
    "@markup.raw",
    "@markup.raw.block",
    "@markup.link.label",
    "@markup.link.url",
    "@markup.list",
    "@punctuation.special",
)


class Host(Protocol):
    """Interface for the presentation layer the renderer runs inside."""

    @property
    def columns(self) -> int: ...

    @property
    def tabstop(self) -> int: ...

    @property
    def highlight_groups(self) -> Mapping[str, Any]: ...

    def supports_extended_highlights(self) -> bool: ...

    def echo(self, chunks: list[Chunk]) -> None: ...


class StaticHost:
    """In-memory host with fixed dimensions.

    Highlight groups default to an identity mapping over
    :data:`DEFAULT_HIGHLIGHT_GROUPS`; more can be registered with
    :meth:`define_highlight`. Echoed chunks are kept in
    :attr:`echoed` for later inspection.
    """

    def __init__(
        self,
        columns: int = 80,
        tabstop: int = 8,
        extended_highlights: bool = False,
        highlight_groups: Mapping[str, Any] | None = None,
    ) -> None:
        self._columns = columns
        self._tabstop = tabstop
        self._extended_highlights = extended_highlights
        if highlight_groups is None:
            highlight_groups = {name: name for name in DEFAULT_HIGHLIGHT_GROUPS}
        self._highlight_groups: dict[str, Any] = dict(highlight_groups)
        self.echoed: list[list[Chunk]] = []

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    @property
    def tabstop(self) -> int:
        return self._tabstop

    @tabstop.setter
    def tabstop(self, value: int) -> None:
        self._tabstop = value

    @property
    def highlight_groups(self) -> Mapping[str, Any]:
        return self._highlight_groups

    def define_highlight(self, name: str, hl_id: Any = None) -> None:
        self._highlight_groups[name] = name if hl_id is None else hl_id

    def supports_extended_highlights(self) -> bool:
        return self._extended_highlights

    def set_extended_highlights(self, value: bool) -> None:
        self._extended_highlights = value

    def echo(self, chunks: list[Chunk]) -> None:
        self.echoed.append(list(chunks))
