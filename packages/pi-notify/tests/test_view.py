"""Tests for pi.notify.view -- rendering groups, caching and history."""

from __future__ import annotations

import logging
import time

import pytest

from pi.notify.config import ViewOptions
from pi.notify.host import StaticHost
from pi.notify.types import Group, GroupConfig, HistoryItem, Item
from pi.notify.view import NotificationView, content_key, history_chunks, line_text
from pi.notify.wrap import NO_BLEND_HL


def _texts(lines) -> list[str]:
    return [line_text(line) for line in lines]


def _group(name: str | None, *messages: str, **config) -> Group:
    return Group(GroupConfig(name=name, **config), [Item(m) for m in messages])


# ---------------------------------------------------------------------------
# Group headers and separators
# ---------------------------------------------------------------------------


class TestGroupHeader:
    """Header line with name and icon."""

    def test_name_and_icon(self, view: NotificationView) -> None:
        lines, width = view.render_group_header(0, _group("LSP", icon="*"))
        assert _texts(lines) == [" LSP * "]
        assert width == 7

    def test_icon_on_left(self, view: NotificationView) -> None:
        lines, _ = view.render_group_header(0, _group("LSP", icon="*", icon_on_left=True))
        assert _texts(lines) == [" * LSP "]

    def test_icon_separator(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(icon_separator=" | ", highlight=False))
        lines, width = view.render_group_header(0, _group("LSP", icon="*"))
        assert _texts(lines) == [" LSP | * "]
        assert width == 9

    def test_name_only(self, view: NotificationView) -> None:
        lines, width = view.render_group_header(0, _group("LSP"))
        assert _texts(lines) == [" LSP "]
        assert width == 5

    def test_icon_only(self, view: NotificationView) -> None:
        lines, _ = view.render_group_header(0, _group(None, icon="*"))
        assert _texts(lines) == [" * "]

    def test_no_header(self, view: NotificationView) -> None:
        assert view.render_group_header(0, _group(None)) == (None, 0)

    def test_styles(self, view: NotificationView) -> None:
        lines, _ = view.render_group_header(0, _group("LSP", icon="*", icon_style="Special"))
        _, name, _, icon, _ = lines[0]
        assert name.highlights == ["Title"]
        assert icon.highlights == ["Special"]

    def test_dynamic_fields(self, view: NotificationView) -> None:
        group = Group(
            GroupConfig(name=lambda now, items: f"{len(items)} jobs", icon=lambda now, items: str(int(now))),
            [Item("a"), Item("b")],
        )
        lines, _ = view.render_group_header(3.0, group)
        assert _texts(lines) == [" 2 jobs 3 "]


class TestGroupSeparator:
    def test_default(self, view: NotificationView) -> None:
        lines, width = view.render_group_separator()
        assert _texts(lines) == [" -- "]
        assert lines[0][1].highlights == ["Comment"]
        assert width == 4

    def test_disabled(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(group_separator=False))
        assert view.render_group_separator() == (None, 0)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class TestRenderItem:
    def test_message_with_annote(self, view: NotificationView) -> None:
        item = Item("done", annote="INFO", style="Title")
        lines, width = view.render_item(item, GroupConfig(), 1)
        assert _texts(lines) == [" done INFO "]
        assert width == 4 + 2 + 7

    def test_annote_separator_from_group(self, view: NotificationView) -> None:
        item = Item("done", annote="INFO")
        lines, _ = view.render_item(item, GroupConfig(annote_separator=": "), 1)
        assert _texts(lines) == [" done: INFO "]

    def test_count_prefix(self, view: NotificationView) -> None:
        lines, _ = view.render_item(Item("x"), GroupConfig(), 2)
        assert _texts(lines) == [" (2x) x "]

    def test_hidden(self, view: NotificationView) -> None:
        assert view.render_item(Item("x", hidden=True), GroupConfig(), 1) == (None, 0)

    def test_hook_can_suppress(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(render_message=lambda msg, cnt: None))
        assert view.render_item(Item("x"), GroupConfig(), 1) == (None, 0)

    def test_hook_can_rewrite(self, host: StaticHost) -> None:
        options = ViewOptions(highlight=False, render_message=lambda msg, cnt: msg.upper())
        view = NotificationView(host, options)
        lines, _ = view.render_item(Item("loud"), GroupConfig(), 1)
        assert _texts(lines) == [" LOUD "]


class TestDedup:
    """Items sharing a content key collapse into one."""

    def test_first_occurrence_wins(self) -> None:
        a = Item("first", content_key="k")
        b = Item("second", content_key="k")
        c = Item("other")
        deduped, counts = NotificationView.dedup_items([a, b, c])
        assert deduped == [a, c]
        assert counts == {"k": 2, c: 1}

    def test_items_without_key_are_distinct(self) -> None:
        items = [Item("same"), Item("same")]
        deduped, _ = NotificationView.dedup_items(items)
        assert len(deduped) == 2

    def test_counts_add_up(self) -> None:
        items = [Item("x", content_key=n % 3) for n in range(10)]
        deduped, counts = NotificationView.dedup_items(items)
        assert sum(counts.values()) == len(items)
        assert [content_key(i) for i in deduped] == [0, 1, 2]

    def test_unhashable_key_falls_back_to_identity(self) -> None:
        a = Item("m", content_key=["a"])
        b = Item("m", content_key=["a"])
        assert content_key(a) is a
        deduped, counts = NotificationView.dedup_items([a, b])
        assert deduped == [a, b]
        assert counts == {a: 1, b: 1}

    def test_unhashable_key_renders(self, view: NotificationView) -> None:
        group = Group(GroupConfig(), [Item("m", content_key=["a"]), Item("n", content_key={"k": 1})])
        lines, _ = view.render(0, [group])
        assert _texts(lines) == [" m ", " n "]
        assert _texts(view.render(0, [group])[0]) == [" m ", " n "]

    def test_rendered_once_with_count(self, view: NotificationView) -> None:
        group = Group(GroupConfig(), [Item("x", content_key="k"), Item("x", content_key="k")])
        lines, _ = view.render(0, [group])
        assert _texts(lines) == [" (2x) x "]


# ---------------------------------------------------------------------------
# Full render
# ---------------------------------------------------------------------------


class TestRender:
    def test_top_down(self, view: NotificationView) -> None:
        lines, width = view.render(0, [_group("A", "a1"), _group("B", "b1", "b2")])
        assert _texts(lines) == [" A ", " a1 ", " -- ", " B ", " b1 ", " b2 "]
        assert width == 4

    def test_stack_upwards_reverses_chunks(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(highlight=False))
        lines, _ = view.render(0, [_group("A", "a1"), _group("B", "b1")])
        assert _texts(lines) == [" b1 ", " B ", " -- ", " a1 ", " A "]

    def test_stack_upwards_keeps_wrapped_lines_in_order(self, host: StaticHost) -> None:
        host.columns = 20
        view = NotificationView(host, ViewOptions(highlight=False))
        lines, _ = view.render(0, [_group(None, "aaaa bbbb cccc")])
        assert _texts(lines) == [" aaaa bbbb ", " cccc "]

    def test_no_separator(self, host: StaticHost) -> None:
        options = ViewOptions(stack_upwards=False, highlight=False, group_separator=False)
        view = NotificationView(host, options)
        lines, _ = view.render(0, [_group("A"), _group("B")])
        assert _texts(lines) == [" A ", " B "]

    def test_render_limit(self, view: NotificationView) -> None:
        lines, _ = view.render(0, [_group(None, "one", "two", "three", render_limit=2)])
        assert _texts(lines) == [" one ", " two "]

    def test_hidden_items_are_skipped(self, view: NotificationView) -> None:
        group = Group(GroupConfig(), [Item("shown"), Item("gone", hidden=True)])
        lines, _ = view.render(0, [group])
        assert _texts(lines) == [" shown "]

    def test_empty(self, view: NotificationView) -> None:
        assert view.render(0, []) == ([], 0)

    def test_max_width_limits_budget(self, host: StaticHost) -> None:
        options = ViewOptions(stack_upwards=False, highlight=False, max_width=20)
        view = NotificationView(host, options)
        lines, _ = view.render(0, [_group(None, "aaaa bbbb cccc dddd eeee ffff")])
        assert len(lines) == 3

    def test_no_blend_without_extended_highlights(self, plain_options: ViewOptions) -> None:
        view = NotificationView(StaticHost(extended_highlights=False), plain_options)
        lines, _ = view.render(0, [_group("A", "a1")])
        for line in lines:
            for tok in line:
                assert tok.highlights[0] == NO_BLEND_HL


class TestRenderHighlighting:
    """Markdown highlighting applied through the view."""

    def test_markup_is_concealed(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(stack_upwards=False))
        lines, width = view.render(0, [_group(None, "A **bold** word")])
        assert _texts(lines) == [" A bold word "]
        assert width == 13
        bold = [tok for tok in lines[0] if tok.text == "bold"][0]
        assert bold.highlights == ["@markup.strong"]

    def test_markup_is_shown(self, host: StaticHost) -> None:
        view = NotificationView(host, ViewOptions(stack_upwards=False, hide_conceal=False))
        lines, width = view.render(0, [_group(None, "A **bold** word")])
        assert _texts(lines) == [" A **bold** word "]
        assert width == 17

    def test_disabled(self, view: NotificationView) -> None:
        lines, _ = view.render(0, [_group(None, "A **bold** word")])
        assert _texts(lines) == [" A **bold** word "]

    def test_failing_highlighter_is_contained(
        self, host: StaticHost, caplog: pytest.LogCaptureFixture
    ) -> None:
        class Broken:
            def get_captures(self, text, grammar):
                raise RuntimeError("boom")

        view = NotificationView(host, ViewOptions(stack_upwards=False), highlighter=Broken())
        with caplog.at_level(logging.WARNING, logger="pi.notify.view"):
            lines, _ = view.render(0, [_group(None, "A **bold** word")])
        assert _texts(lines) == [" A **bold** word "]
        assert "Highlighting failed" in caplog.text


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class TestRenderCaching:
    def test_second_pass_hits(self, view: NotificationView) -> None:
        groups = [_group("A", "a1"), _group("B", "b1")]
        first = view.render(0, groups)
        misses = view.cache.misses
        assert view.cache.hits == 0

        second = view.render(0, groups)
        assert second == first
        assert view.cache.misses == misses
        # two headers, one separator, two items
        assert view.cache.hits == 5

    def test_count_change_rerenders(self, view: NotificationView) -> None:
        group = Group(GroupConfig(), [Item("x", content_key="k")])
        assert _texts(view.render(0, [group])[0]) == [" x "]
        group.items.append(Item("x", content_key="k"))
        assert _texts(view.render(0, [group])[0]) == [" (2x) x "]

    def test_resize_rewraps(self, host: StaticHost, view: NotificationView) -> None:
        groups = [_group(None, "aaaa bbbb cccc dddd eeee ffff")]
        lines, _ = view.render(0, groups)
        assert len(lines) == 1

        host.columns = 20
        lines, _ = view.render(0, groups)
        assert _texts(lines) == [" aaaa bbbb ", " cccc dddd ", " eeee ffff "]

    def test_dynamic_icon_invalidates_header(self, view: NotificationView) -> None:
        group = Group(GroupConfig(name="Jobs", icon=lambda now, items: "x" if now < 10 else "y"), [])
        assert _texts(view.render(0, [group])[0]) == [" Jobs x "]
        assert _texts(view.render(5, [group])[0]) == [" Jobs x "]
        assert _texts(view.render(20, [group])[0]) == [" Jobs y "]

    def test_options_change_needs_cache_clear(self, view: NotificationView) -> None:
        groups = [_group(None, "hi")]
        view.render(0, groups)
        view.options = ViewOptions(stack_upwards=False, highlight=False, line_margin=2)
        assert _texts(view.render(0, groups)[0]) == [" hi "]
        view.cache.clear()
        assert _texts(view.render(0, groups)[0]) == ["  hi  "]


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class TestHistory:
    def test_single_line(self) -> None:
        item = HistoryItem("hi", 0.0, group_name="LSP", annote="INFO", style="Title")
        chunks = history_chunks(item)
        assert chunks[0] == (time.strftime("%c", time.localtime(0.0)), "Comment")
        assert chunks[1:] == [
            (" ", "MsgArea"),
            ("LSP", "Special"),
            (" | ", "Comment"),
            ("INFO", "Title"),
            (" ", "MsgArea"),
            ("hi", "MsgArea"),
        ]

    def test_multi_line(self) -> None:
        chunks = history_chunks(HistoryItem("a\nb", 0.0))
        assert chunks[1:] == [
            (" | ", "Comment"),
            ("\n", "MsgArea"),
            ("a\nb", "MsgArea"),
            ("\n", "MsgArea"),
        ]

    def test_echo_history(self, host: StaticHost, view: NotificationView) -> None:
        view.echo_history([HistoryItem("one", 0.0), HistoryItem("two", 1.0)])
        assert len(host.echoed) == 2
        assert host.echoed[1][-1] == ("two", "MsgArea")
