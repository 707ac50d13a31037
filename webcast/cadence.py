import math
from collections.abc import Iterator

# Base per-character typing delay in milliseconds
DEFAULT_TYPING_SPEED_MS = 40


def ease_in_out(position: int, length: int, base: float) -> float:
    """Delay for the character at `position` in a string of `length` characters.

    Close to `2 * base` at both ends of the string and `base` in the middle, so
    typing starts slow, speeds up, and slows down again.
    """
    return base + (1 - math.sin((position / length) * math.pi)) * base


class TypingCadence:
    """Turns the continuous ease-in-out delay curve into whole-millisecond pauses.

    Fractional delay is carried over between characters instead of being
    rounded away, so the issued pauses never drift from the continuous sum.
    """

    def __init__(self, speed: float = DEFAULT_TYPING_SPEED_MS) -> None:
        self.speed = speed
        self.accumulator = 0.0

    def advance(self, position: int, length: int) -> int:
        """Add the delay for one character and return the pause to issue now, in ms."""
        self.accumulator += ease_in_out(position, length, self.speed)
        if self.accumulator < 1:
            return 0
        pause = math.floor(self.accumulator)
        self.accumulator -= pause
        return pause

    def pauses(self, length: int) -> Iterator[int]:
        for position in range(length):
            yield self.advance(position, length)
