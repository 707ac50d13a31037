"""Shared pytest fixtures for all tests."""

from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Page

from webcast.driver import reset_browser_launcher
from webcast.ffmpeg import reset_process_factory


class FakeClock:
    """Monotonic clock that only moves when the page is asked to wait."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, milliseconds: float) -> None:
        self.now += milliseconds / 1000


@pytest.fixture(autouse=True)
def clear_webcast_env_vars(monkeypatch: pytest.MonkeyPatch):
    """Clear WEBCAST_* env vars to ensure tests don't depend on user's environment."""
    monkeypatch.delenv("WEBCAST_URL", raising=False)
    monkeypatch.delenv("WEBCAST_OUTPUT", raising=False)
    monkeypatch.delenv("WEBCAST_ARCHIVE", raising=False)


@pytest.fixture(autouse=True)
def reset_hooks_after_test():
    """Reset the browser launcher and the ffmpeg process factory after each test."""
    yield
    reset_browser_launcher()
    reset_process_factory()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def page(clock: FakeClock) -> MagicMock:
    """A Playwright page stand-in whose waits advance the fake clock."""
    page = MagicMock(spec=Page)
    page.wait_for_timeout.side_effect = clock.advance_ms
    page.query_selector.return_value = None
    return page


@pytest.fixture
def encoder_process() -> MagicMock:
    process = MagicMock()
    process.returncode = 0
    process.communicate.return_value = (None, b"")
    return process
