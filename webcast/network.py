"""Network quiescence tracking for a single page."""

import time
from collections.abc import Callable

from playwright.sync_api import Page
from playwright.sync_api import Request

from webcast.errors import TimeoutExceededError

Clock = Callable[[], float]

NETWORK_IDLE_POLL_MS = 50


class NetworkIdleMonitor:
    """Counts the page's in-flight requests and remembers when the count last dropped to zero.

    Unlike Playwright's "networkidle" load state, which is only reached once per
    navigation, this can be waited on again after any interaction.
    """

    def __init__(self, page: Page, clock: Clock = time.monotonic) -> None:
        self._page = page
        self._clock = clock
        self._in_flight = 0
        self._quiet_since: float | None = clock()

        page.on("request", self._on_request_started)
        page.on("requestfinished", self._on_request_done)
        page.on("requestfailed", self._on_request_done)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _on_request_started(self, request: Request) -> None:
        self._in_flight += 1
        self._quiet_since = None

    def _on_request_done(self, request: Request) -> None:
        self._in_flight = max(0, self._in_flight - 1)
        if self._in_flight == 0 and self._quiet_since is None:
            self._quiet_since = self._clock()

    def quiet_for_ms(self) -> float:
        """Milliseconds since the last request settled, 0 while requests are in flight."""
        if self._quiet_since is None:
            return 0
        return (self._clock() - self._quiet_since) * 1000

    def wait_until_idle(self, idle_ms: int, timeout_ms: int, poll_ms: int = NETWORK_IDLE_POLL_MS) -> None:
        """Block until no request has been in flight for `idle_ms`, counted from this call at the earliest."""
        started = self._clock()
        deadline = started + timeout_ms / 1000
        while True:
            quiet_for = min(self.quiet_for_ms(), (self._clock() - started) * 1000)
            if quiet_for >= idle_ms:
                return
            if self._clock() >= deadline:
                raise TimeoutExceededError(
                    f"Network did not become idle within {timeout_ms} ms ({self.in_flight} requests in flight)"
                )
            # Browser events are only delivered while Playwright is waiting.
            self._page.wait_for_timeout(max(1, min(poll_ms, idle_ms - quiet_for)))
