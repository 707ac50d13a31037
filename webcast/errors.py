class WebCastError(Exception):
    """Base class for errors raised by the interaction driver."""

    pass


class ElementNotFoundError(WebCastError):
    """Raised when a selector matches no element on the page."""

    pass


class ElementNotVisibleError(WebCastError):
    """Raised when a matched element has no rendered box to click."""

    pass


class TimeoutExceededError(WebCastError):
    """Raised when a wait (for an element or for network idle) runs out of time."""

    pass


class SessionNotStartedError(WebCastError):
    """Raised when a page operation is attempted before the browser is started."""

    pass


class SessionClosedError(WebCastError):
    """Raised when a page operation is attempted after the session was closed."""

    pass
