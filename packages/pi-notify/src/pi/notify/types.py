"""Core type definitions for pi-notify."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Union


@dataclass(frozen=True)
class Token:
    """A word run or a single non-space character of a logical line.

    ``start`` and ``end`` are codepoint indices; ``end`` is exclusive.
    """

    start: int
    end: int
    text: str


@dataclass
class RenderToken:
    """Positioned, highlighted unit of output within one wrapped line.

    ``scol``/``ecol`` are relative to the start of the token's own wrapped
    line and are only set for message tokens.
    """

    text: str
    highlights: list[Any] = field(default_factory=list)
    scol: int | None = None
    ecol: int | None = None


Line = list[RenderToken]


@dataclass(frozen=True)
class Capture:
    """A highlighter's assertion that a single-row range belongs to *name*."""

    name: str
    start_row: int
    start_col: int
    end_col: int
    text: str | None


@dataclass(frozen=True)
class HighlightRecord:
    row: int
    scol: int
    ecol: int
    text: str
    highlight: Any


# A header field is either a value or a function of (now, items)
Dynamic = Union[str, None, Callable[[float, list["Item"]], Union[str, None]]]


@dataclass(eq=False)
class Item:
    """A single notification.

    Items compare and hash by identity so that an item without a
    ``content_key`` deduplicates only with itself.
    """

    message: str
    annote: str | None = None
    style: str | None = None
    content_key: Any = None
    hidden: bool = False


@dataclass
class GroupConfig:
    name: Dynamic = None
    icon: Dynamic = None
    group_style: str | None = "Title"
    icon_style: str | None = None
    icon_on_left: bool = False
    annote_separator: str | None = " "
    render_limit: int | None = None


@dataclass
class Group:
    config: GroupConfig
    items: list[Item] = field(default_factory=list)


@dataclass
class HistoryItem:
    message: str
    last_updated: float
    group_name: str | None = None
    group_icon: str | None = None
    annote: str | None = None
    style: str | None = None


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------


def _get(data: dict, snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def group_config_from_dict(data: dict) -> GroupConfig:
    """Deserialize a GroupConfig from a JSON-compatible dict."""
    return GroupConfig(
        name=data.get("name"),
        icon=data.get("icon"),
        group_style=_get(data, "group_style", "groupStyle", "Title"),
        icon_style=_get(data, "icon_style", "iconStyle"),
        icon_on_left=bool(_get(data, "icon_on_left", "iconOnLeft", False)),
        annote_separator=_get(data, "annote_separator", "annoteSeparator", " "),
        render_limit=_get(data, "render_limit", "renderLimit"),
    )


def item_from_dict(data: dict) -> Item:
    """Deserialize an Item from a JSON-compatible dict."""
    return Item(
        message=data["message"],
        annote=data.get("annote"),
        style=data.get("style"),
        content_key=_get(data, "content_key", "contentKey"),
        hidden=bool(data.get("hidden", False)),
    )


def group_from_dict(data: dict) -> Group:
    """Deserialize a Group (config plus items) from a JSON-compatible dict."""
    return Group(
        config=group_config_from_dict(data.get("config", {})),
        items=[item_from_dict(i) for i in data.get("items", [])],
    )
