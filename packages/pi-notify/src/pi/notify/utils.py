"""Text utilities: tokenization and display width measurement.

Provides the tokenizer used by the line wrapper and functions for measuring
the number of terminal cells a string occupies, with tab expansion and
grapheme-cluster aware handling of wide and zero-width codepoints.
"""

from __future__ import annotations

import unicodedata

import grapheme
import wcwidth as _wcwidth

from pi.notify.types import Token

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Return the display width of a single grapheme cluster.

    Rules:
    1. Control characters and zero-width marks -> 0
    2. Emoji (VS16, ZWJ sequences, modifiers, regional indicators) -> 2
    3. Otherwise delegate to wcwidth for the first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):  # VS16, ZWJ
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF:  # Skin tone modifiers
            return 2
        if 0x1F1E6 <= cp <= 0x1F1FF:  # Regional indicators
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000:
        return 2
    if 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


def _cell_width(text: str) -> int:
    """Width of *text* with every tab counted as a single cell."""
    is_ascii = True
    for ch in text:
        if not 0x20 <= ord(ch) <= 0x7E:
            is_ascii = False
            break
    if is_ascii:
        return len(text)

    cached = _width_cache.get(text)
    if cached is not None:
        return cached

    total = 0
    for g in grapheme.graphemes(text):
        # Tabs are treated as one cell here, the caller adds the expansion.
        total += 1 if g == "\t" else _grapheme_width(g)
    return _cache_width(text, total)


# ---------------------------------------------------------------------------
# str_width / line_width
# ---------------------------------------------------------------------------


def str_width(*texts: str, tabstop: int = 8) -> int:
    """Return the number of display cells occupied by *texts*.

    Each tab contributes ``1 + max(0, tabstop - 1)`` cells, i.e. a full
    tabstop, independent of its position.
    """
    w = 0
    for text in texts:
        if not text:
            continue
        w += _cell_width(text) + text.count("\t") * max(0, tabstop - 1)
    return w


def line_width(*texts: str, tabstop: int = 8, line_margin: int = 0) -> int:
    """Like :func:`str_width` but accounting for the margin on both sides.

    An empty string has no width at all, margins included.
    """
    w = str_width(*texts, tabstop=tabstop)
    return w if w == 0 else w + 2 * line_margin


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def is_word_cluster(g: str) -> bool:
    """Return ``True`` if grapheme cluster *g* is part of a word run."""
    return g[0].isalnum()


def tokenize(source: str) -> list[Token]:
    """Split *source* into word runs and single non-space characters.

    Whitespace only separates tokens and is never emitted. Offsets are
    codepoint indices into *source*; a combining sequence stays attached to
    its base character.
    """
    tokens: list[Token] = []
    pos = 0
    word_start: int | None = None

    for g in grapheme.graphemes(source):
        end = pos + len(g)
        if is_word_cluster(g):
            if word_start is None:
                word_start = pos
        else:
            if word_start is not None:
                tokens.append(Token(word_start, pos, source[word_start:pos]))
                word_start = None
            if not g[0].isspace():
                tokens.append(Token(pos, end, g))
        pos = end

    if word_start is not None:
        tokens.append(Token(word_start, pos, source[word_start:pos]))
    return tokens
