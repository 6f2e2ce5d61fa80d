"""Rendering options for notification views.

Options can be built directly, from a dict, or loaded from
``~/.pi/notify.json`` (the directory honours ``PI_CONFIG_DIR``).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Literal, Union

logger = logging.getLogger(__name__)

RenderMessageFn = Callable[[str, int], Union[str, None, Literal[False]]]


class ConfigError(ValueError):
    """Raised when view options violate a precondition."""


def default_render_message(msg: str, cnt: int) -> str:
    """Show repeated messages once, prefixed with their occurrence count."""
    return msg if cnt == 1 else f"({cnt}x) {msg}"


@dataclass
class ViewOptions:
    """Notification rendering options."""

    # Display items from bottom to top
    stack_upwards: bool = True
    # "message" indents continuation lines by the annote width, "annote" does not
    align: Literal["message", "annote"] = "message"
    # Between group name and icon; must not contain newlines
    icon_separator: str = " "
    # Between groups; False omits the separator entirely
    group_separator: str | Literal[False] = "--"
    group_separator_hl: str | Literal[False] = "Comment"
    # Spaces padding both sides of each non-empty line
    line_margin: int = 1
    # Grammar used to highlight messages, False to disable
    highlight: str | Literal[False] = "markdown"
    hide_conceal: bool = True
    normal_hl: str = "Normal"
    # Wrap width limit in columns; 0 follows the host window
    max_width: int = 0
    render_message: RenderMessageFn = field(default=default_render_message)

    def __post_init__(self) -> None:
        if "\n" in self.icon_separator:
            raise ConfigError("icon_separator must not contain newlines")
        if self.group_separator is not False and "\n" in self.group_separator:
            raise ConfigError("group_separator must not contain newlines")
        if self.align not in ("message", "annote"):
            raise ConfigError(f"align must be 'message' or 'annote', got {self.align!r}")
        if self.line_margin < 0:
            raise ConfigError("line_margin must be >= 0")
        if self.max_width < 0:
            raise ConfigError("max_width must be >= 0")
        if not callable(self.render_message):
            raise ConfigError("render_message must be callable")


_CAMEL_KEYS = {
    "stackUpwards": "stack_upwards",
    "iconSeparator": "icon_separator",
    "groupSeparator": "group_separator",
    "groupSeparatorHl": "group_separator_hl",
    "lineMargin": "line_margin",
    "hideConceal": "hide_conceal",
    "normalHl": "normal_hl",
    "maxWidth": "max_width",
    "renderMessage": "render_message",
}


def options_from_dict(data: dict[str, Any]) -> ViewOptions:
    """Build ViewOptions from a dict with snake_case or camelCase keys."""
    known = {f.name for f in fields(ViewOptions)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_KEYS.get(key, key)
        if name not in known:
            raise ConfigError(f"Unknown view option: {key!r}")
        kwargs[name] = value
    return ViewOptions(**kwargs)


def _get_config_path() -> Path:
    config_dir = Path(os.environ.get("PI_CONFIG_DIR", Path.home() / ".pi"))
    return config_dir / "notify.json"


def load_options(path: str | Path | None = None) -> ViewOptions:
    """Load options from *path* (or the default config file).

    A missing or unreadable file yields default options; invalid option
    values raise :class:`ConfigError`.
    """
    config_path = Path(path) if path is not None else _get_config_path()
    if not config_path.exists():
        return ViewOptions()
    try:
        data = json.loads(config_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Error reading view options from %s: %s", config_path, e)
        return ViewOptions()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a JSON object")
    return options_from_dict(data)
