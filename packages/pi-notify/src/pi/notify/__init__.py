"""pi-notify: notification layout with wrapping, annotes and highlighting."""

# Render cache
from pi.notify.cache import RenderCache

# Options
from pi.notify.config import ConfigError, ViewOptions, load_options, options_from_dict

# Highlight overlay
from pi.notify.highlight import (
    HighlightIndex,
    Highlighter,
    HighlighterError,
    HighlightTable,
    collect_highlights,
    highlight_message,
    merge_highlights,
)

# Presentation host
from pi.notify.host import DEFAULT_HIGHLIGHT_GROUPS, Host, StaticHost

# Markdown captures
from pi.notify.markdown import MarkdownHighlighter

# Data model
from pi.notify.types import (
    Capture,
    Group,
    GroupConfig,
    HighlightRecord,
    HistoryItem,
    Item,
    Line,
    RenderToken,
    Token,
    group_config_from_dict,
    group_from_dict,
    item_from_dict,
)

# Text utilities
from pi.notify.utils import line_width, str_width, tokenize

# Renderer
from pi.notify.view import NotificationView, history_chunks, line_text

# Wrapping
from pi.notify.wrap import NO_BLEND_HL, WrapContext, annotate, wrap_message

__all__ = [
    # Cache
    "RenderCache",
    # Options
    "ConfigError",
    "ViewOptions",
    "load_options",
    "options_from_dict",
    # Highlight
    "HighlightIndex",
    "Highlighter",
    "HighlighterError",
    "HighlightTable",
    "collect_highlights",
    "highlight_message",
    "merge_highlights",
    # Host
    "DEFAULT_HIGHLIGHT_GROUPS",
    "Host",
    "StaticHost",
    # Markdown
    "MarkdownHighlighter",
    # Types
    "Capture",
    "Group",
    "GroupConfig",
    "HighlightRecord",
    "HistoryItem",
    "Item",
    "Line",
    "RenderToken",
    "Token",
    "group_config_from_dict",
    "group_from_dict",
    "item_from_dict",
    # Utilities
    "line_width",
    "str_width",
    "tokenize",
    # View
    "NotificationView",
    "history_chunks",
    "line_text",
    # Wrap
    "NO_BLEND_HL",
    "WrapContext",
    "annotate",
    "wrap_message",
]
