"""Shared fixtures for pi-notify tests."""

from __future__ import annotations

import pytest

from pi.notify.config import ViewOptions
from pi.notify.host import StaticHost
from pi.notify.view import NotificationView


@pytest.fixture
def host() -> StaticHost:
    """An 80-column host that blends highlights itself."""
    return StaticHost(columns=80, extended_highlights=True)


@pytest.fixture
def plain_options() -> ViewOptions:
    """Top-down stacking, no syntax highlighting."""
    return ViewOptions(stack_upwards=False, highlight=False)


@pytest.fixture
def view(host: StaticHost, plain_options: ViewOptions) -> NotificationView:
    return NotificationView(host, plain_options)
