"""Scripted browser interaction with a synthetic cursor and optional screen recording."""

import logging
import math
import time
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from types import TracebackType

from playwright.sync_api import Browser
from playwright.sync_api import BrowserContext
from playwright.sync_api import ConsoleMessage
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import Playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright
from pydantic import BaseModel
from pydantic import ConfigDict

from webcast.cadence import TypingCadence
from webcast.cursor import CursorOverlay
from webcast.errors import ElementNotFoundError
from webcast.errors import ElementNotVisibleError
from webcast.errors import SessionClosedError
from webcast.errors import SessionNotStartedError
from webcast.errors import TimeoutExceededError
from webcast.network import Clock
from webcast.network import NetworkIdleMonitor
from webcast.options import ColorScheme
from webcast.options import RecorderConfig
from webcast.options import ReducedMotion
from webcast.options import WebCastOptions
from webcast.recorder import Idle
from webcast.recorder import RecorderAlreadyActiveError
from webcast.recorder import RecorderState
from webcast.recorder import Recording
from webcast.recorder import ScreenRecorder
from webcast.splash import render_splash

logger = logging.getLogger(__name__)
console_logger = logging.getLogger("webcast.console")

# Pause after an interaction so the result is visible before the next step
SETTLE_DELAY_MS = 200
# Pause after starting a recording so the first frames are captured before anything moves
SCREENCAST_WARM_UP_MS = 100
DEFAULT_WAIT_FOR_TIMEOUT_MS = 30_000
DEFAULT_SPLASH_DURATION_MS = 2000

SCROLL_INTO_VIEW_JS = """
(selector) => {
    const element = document.querySelector(selector);
    if (element) {
        element.scrollIntoView({ behavior: 'smooth', block: 'start' });
    }
}
"""

GET_ATTRIBUTE_JS = """
({ selector, attribute }) => {
    const element = document.querySelector(selector);
    return element?.getAttribute(attribute) || null;
}
"""

_CONSOLE_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "debug": logging.DEBUG,
}


class SessionState(StrEnum):
    CREATED = "created"
    STARTED = "started"
    NAVIGATED = "navigated"
    CLOSED = "closed"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class Box(BaseModel):
    """Rendered rectangle of an element in CSS pixels."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[int, int]:
        return _round_half_up(self.x + self.width / 2), _round_half_up(self.y + self.height / 2)


class BrowserSession(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    page: Page
    context: BrowserContext | None = None
    browser: Browser | None = None
    playwright: Playwright | None = None

    def close(self) -> None:
        try:
            if self.context is not None:
                self.context.close()
            if self.browser is not None:
                self.browser.close()
        finally:
            if self.playwright is not None:
                self.playwright.stop()


# Type alias for the function that launches the browser for a driver
BrowserLauncher = Callable[[WebCastOptions], BrowserSession]


def _default_browser_launcher(options: WebCastOptions) -> BrowserSession:
    """Default launcher that starts a headless Chromium with the configured viewport."""
    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.launch(headless=options.headless)
        context = browser.new_context(
            viewport={"width": options.width, "height": options.height},
            device_scale_factor=options.scale,
            color_scheme=options.color_scheme.value if options.color_scheme else None,
            reduced_motion=options.reduced_motion.value if options.reduced_motion else None,
        )
        page = context.new_page()
    except Exception:
        playwright.stop()
        raise
    return BrowserSession(page=page, context=context, browser=browser, playwright=playwright)


# Global browser launcher that can be replaced for testing
_browser_launcher: BrowserLauncher = _default_browser_launcher


def set_browser_launcher(launcher: BrowserLauncher) -> None:
    """Set the browser launcher function. Used for testing."""
    global _browser_launcher
    _browser_launcher = launcher


def reset_browser_launcher() -> None:
    """Reset the browser launcher to the default. Used for testing."""
    global _browser_launcher
    _browser_launcher = _default_browser_launcher


def _forward_console_message(message: ConsoleMessage) -> None:
    console_logger.log(_CONSOLE_LEVELS.get(message.type, logging.INFO), "[%s] %s", message.type, message.text)


def _forward_page_error(error: PlaywrightError) -> None:
    console_logger.error("Uncaught page error: %s", error)


class WebCast:
    """Drives a single browser page step by step for a screen recording.

    Every operation blocks until it is complete. Clicks are preceded by a
    visible cursor pulse at the click target, typing follows an ease-in-out
    cadence, and interactions that may trigger requests wait for the network
    to go quiet before returning.

    Use as a context manager so that an active recording is always stopped
    before the browser is closed, including when a step fails:

        with WebCast(WebCastOptions(width=1280, height=800)) as cast:
            cast.goto("http://localhost:3000")
            cast.screencast("screen.mp4")
            cast.element_click("main button")
    """

    def __init__(self, options: WebCastOptions | None = None, clock: Clock = time.monotonic) -> None:
        self.options = options or WebCastOptions()
        self.state = SessionState.CREATED
        self.recorder_state: RecorderState = Idle()
        self._clock = clock
        self._session: BrowserSession | None = None
        self._cursor: CursorOverlay | None = None
        self._network: NetworkIdleMonitor | None = None

    def __enter__(self) -> "WebCast":
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _require_session(self) -> BrowserSession:
        if self.state == SessionState.CLOSED:
            raise SessionClosedError("The browser session is closed")
        if self._session is None:
            raise SessionNotStartedError("The browser session has not been started")
        return self._session

    @property
    def page(self) -> Page:
        return self._require_session().page

    @property
    def cursor(self) -> CursorOverlay:
        self._require_session()
        if self._cursor is None:
            raise SessionNotStartedError("The cursor overlay is created when the session starts")
        return self._cursor

    @property
    def network(self) -> NetworkIdleMonitor:
        self._require_session()
        if self._network is None:
            raise SessionNotStartedError("The network monitor is created when the session starts")
        return self._network

    @property
    def is_recording(self) -> bool:
        return isinstance(self.recorder_state, Recording)

    def start(self) -> "WebCast":
        if self.state == SessionState.CLOSED:
            raise SessionClosedError("A closed session cannot be restarted")
        if self._session is not None:
            return self

        session = _browser_launcher(self.options)
        page = session.page
        self._session = session
        self._network = NetworkIdleMonitor(page, self._clock)
        self._cursor = CursorOverlay(
            page,
            size=self.options.cursor_size,
            background=self.options.cursor_background,
            move_steps=self.options.cursor_move_steps,
        )
        if self.options.forward_console:
            page.on("console", _forward_console_message)
            page.on("pageerror", _forward_page_error)

        self.state = SessionState.STARTED
        logger.debug("Browser started with a %dx%d viewport", self.options.width, self.options.height)
        return self

    def stop(self) -> Path | None:
        """Stop the active recording and return the video path. Does nothing when not recording."""
        recorder_state = self.recorder_state
        if not isinstance(recorder_state, Recording):
            return None
        self.recorder_state = Idle()
        output_path = recorder_state.recorder.stop()
        logger.debug("Recording saved to %s", output_path)
        return output_path

    def close(self) -> None:
        """Stop any recording, then close the browser. Safe to call more than once."""
        if self.state == SessionState.CLOSED:
            return
        try:
            self.stop()
        finally:
            session = self._session
            self._session = None
            self._cursor = None
            self._network = None
            self.state = SessionState.CLOSED
            if session is not None:
                session.close()
                logger.debug("Browser closed")

    def screencast(self, output_path: str | Path, config: RecorderConfig | None = None) -> None:
        """Start recording the page to `output_path`."""
        page = self.page
        if isinstance(self.recorder_state, Recording):
            raise RecorderAlreadyActiveError(f"Already recording to {self.recorder_state.output_path}")

        path = Path(output_path)
        recorder = ScreenRecorder(page, config or self.options.recorder, max_size=self.options.screen_size)
        recorder.start(path)
        self.recorder_state = Recording(recorder=recorder, output_path=path)
        self.sleep(SCREENCAST_WARM_UP_MS)

    def sleep(self, milliseconds: float) -> None:
        # Waiting through Playwright keeps browser events (and screencast frames) flowing.
        self.page.wait_for_timeout(milliseconds)

    def goto(self, url: str) -> None:
        """Navigate to the url, wait for the network to be idle and put the cursor marker on the page."""
        logger.debug("Navigating to %s", url)
        self.page.goto(url)
        self.wait_for_network_idle()
        self.cursor.install()
        self.state = SessionState.NAVIGATED

    def wait_for_network_idle(self) -> None:
        self.page.focus("body")
        self.network.wait_until_idle(self.options.network_idle_ms, self.options.network_idle_timeout_ms)

    def splash(self, title: str, subtitle: str | None = None, duration_ms: int = DEFAULT_SPLASH_DURATION_MS) -> None:
        """Replace the page with a title card for `duration_ms`."""
        color_scheme = self.options.color_scheme.value if self.options.color_scheme else None
        self.page.set_content(render_splash(title, subtitle, color_scheme))
        self.cursor.install()
        self.state = SessionState.NAVIGATED
        self.sleep(duration_ms)

    def emulate_media(
        self,
        color_scheme: ColorScheme | None = None,
        reduced_motion: ReducedMotion | None = None,
    ) -> None:
        self.page.emulate_media(
            color_scheme=color_scheme.value if color_scheme else None,
            reduced_motion=reduced_motion.value if reduced_motion else None,
        )

    def text_type(self, selector: str, text: str) -> None:
        """Type into the element one character at a time, slower at the start and end of the text."""
        page = self.page
        page.focus(selector)

        cadence = TypingCadence(self.options.typing_speed_ms)
        for position, character in enumerate(text):
            page.keyboard.type(character)
            pause = cadence.advance(position, len(text))
            if pause:
                self.sleep(pause)

    def element_exists(self, selector: str) -> bool:
        return self.page.query_selector(selector) is not None

    def element_get_box(self, selector: str) -> Box:
        element = self.page.query_selector(selector)
        if element is None:
            raise ElementNotFoundError(f"Element not found: {selector}")

        box = element.bounding_box()
        if box is None or box["width"] == 0 or box["height"] == 0:
            raise ElementNotVisibleError(f"Element not visible: {selector}")

        return Box(x=box["x"], y=box["y"], width=box["width"], height=box["height"])

    def _press(self, selector: str) -> None:
        """Move the cursor to the centre of the element and click it there."""
        x, y = self.element_get_box(selector).center
        cursor = self.cursor
        cursor.move(x, y)
        cursor.click()

    def element_click(self, selector: str) -> None:
        """Click the centre of the element and wait for the network to be idle."""
        logger.debug("Clicking %s", selector)
        self._press(selector)
        self.wait_for_network_idle()
        self.sleep(SETTLE_DELAY_MS)

    def element_select(self, selector: str, value: str) -> None:
        """Click the select element, then choose the option with the given value."""
        logger.debug("Selecting %r in %s", value, selector)
        self._press(selector)
        self.page.select_option(selector, value)
        self.sleep(SETTLE_DELAY_MS)

    def element_scroll_into_view(self, selector: str) -> None:
        """Smoothly scroll the element to the top of the viewport. Missing elements are ignored."""
        self.page.evaluate(SCROLL_INTO_VIEW_JS, selector)
        self.sleep(SETTLE_DELAY_MS)

    def element_file_select(self, selector: str, file: str | Path) -> None:
        # Some upload widgets only accept files after they were interacted with.
        self.element_click(selector)
        element = self.page.query_selector(selector)
        if element is None:
            raise ElementNotFoundError(f"Element not found: {selector}")
        element.set_input_files(file)

    def element_wait_for(self, selector: str, timeout: float = DEFAULT_WAIT_FOR_TIMEOUT_MS) -> None:
        """Block until an element matching the selector is in the page."""
        try:
            self.page.wait_for_selector(selector, state="attached", timeout=timeout)
        except PlaywrightTimeoutError as error:
            raise TimeoutExceededError(f"Timed out after {timeout} ms waiting for {selector}") from error

    def element_get_attribute(self, selector: str, attribute: str) -> str | None:
        """Return the attribute value, or None when the element or the attribute is missing or empty."""
        return self.page.evaluate(GET_ATTRIBUTE_JS, {"selector": selector, "attribute": attribute})
