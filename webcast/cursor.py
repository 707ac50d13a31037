from playwright.sync_api import Page

# Used both when the marker is created and when it is looked up for a click.
CURSOR_ELEMENT_ID = "webcast-cursor"
CURSOR_STYLE_ID = "webcast-cursor-style"

# Pauses around the real mouse press so the pulse is visible in the recording.
CLICK_LEAD_IN_MS = 200
CLICK_FOLLOW_THROUGH_MS = 200

INSTALL_CURSOR_JS = """
({ id, styleId, size, background }) => {
    if (!document.getElementById(styleId)) {
        const style = document.createElement('style');
        style.id = styleId;
        style.textContent = `
@keyframes webcast-bounce {
    0%, 100% { transform: scale(1); }
    25% { transform: scale(1.25); }
    50% { transform: scale(0.75); }
    75% { transform: scale(1.15); }
}

.webcast-cursor {
    position: fixed;
    z-index: 9999;
    pointer-events: none;
    border-radius: 50%;
}

.webcast-cursor.webcast-pulse {
    animation: webcast-bounce 0.5s;
    animation-iteration-count: 1;
}`;
        (document.head || document.documentElement).append(style);
    }

    let cursor = document.getElementById(id);
    if (!cursor) {
        cursor = document.createElement('div');
        cursor.id = id;
        cursor.className = 'webcast-cursor';
        (document.body || document.documentElement).append(cursor);
    }
    cursor.style.background = background;
    cursor.style.width = size + 'px';
    cursor.style.height = size + 'px';
    cursor.style.display = 'none';
}
"""

PULSE_CURSOR_JS = """
({ id, x, y, size, hideAfterMs }) => {
    const cursor = document.getElementById(id);
    if (!cursor) {
        return false;
    }
    const radius = size / 2;
    cursor.style.left = (x - radius) + 'px';
    cursor.style.top = (y - radius) + 'px';
    cursor.style.display = 'block';

    // Restart the bounce animation even if the previous pulse is still running.
    cursor.classList.remove('webcast-pulse');
    void cursor.offsetWidth;
    cursor.classList.add('webcast-pulse');

    clearTimeout(cursor._webcastHideTimer);
    cursor._webcastHideTimer = setTimeout(() => {
        cursor.style.display = 'none';
        cursor.classList.remove('webcast-pulse');
    }, hideAfterMs);
    return true;
}
"""


class CursorOverlay:
    """A purely visual cursor marker that follows the real pointer on the page.

    The marker never receives input: real moves and clicks go through
    Playwright's mouse at the tracked coordinates.
    """

    def __init__(
        self,
        page: Page,
        size: int = 20,
        background: str = "rgba(0, 0, 0, 0.5)",
        hide_after_ms: int = 500,
        move_steps: int = 1,
    ) -> None:
        self._page = page
        self.size = size
        self.background = background
        self.hide_after_ms = hide_after_ms
        self.move_steps = move_steps
        self.x: float = -size
        self.y: float = -size

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    def install(self) -> None:
        """Add the marker to the current document and park the cursor off-screen."""
        self.x = -self.size
        self.y = -self.size
        self._page.evaluate(
            INSTALL_CURSOR_JS,
            {
                "id": CURSOR_ELEMENT_ID,
                "styleId": CURSOR_STYLE_ID,
                "size": self.size,
                "background": self.background,
            },
        )

    def move(self, x: float, y: float) -> None:
        self.x = x
        self.y = y
        self._page.mouse.move(x, y, steps=self.move_steps)

    def pulse(self) -> bool:
        """Show the bounce animation at the current position. Returns False if the marker is missing."""
        return self._page.evaluate(
            PULSE_CURSOR_JS,
            {
                "id": CURSOR_ELEMENT_ID,
                "x": self.x,
                "y": self.y,
                "size": self.size,
                "hideAfterMs": self.hide_after_ms,
            },
        )

    def click(self) -> None:
        self.pulse()
        self._page.wait_for_timeout(CLICK_LEAD_IN_MS)
        self._page.mouse.down()
        self._page.mouse.up()
        self._page.wait_for_timeout(CLICK_FOLLOW_THROUGH_MS)
