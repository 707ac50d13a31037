"""Configuration models for the interaction driver and the screen recorder."""

from enum import StrEnum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from webcast.cadence import DEFAULT_TYPING_SPEED_MS


class ColorScheme(StrEnum):
    LIGHT = "light"
    DARK = "dark"
    NO_PREFERENCE = "no-preference"


class ReducedMotion(StrEnum):
    REDUCE = "reduce"
    NO_PREFERENCE = "no-preference"


class RecorderConfig(BaseModel):
    """Encoding settings handed to ffmpeg as-is."""

    model_config = ConfigDict(frozen=True)

    fps: int = Field(default=60, gt=0)
    video_codec: str = "libx264"
    video_crf: int = 18
    video_preset: str = "ultrafast"
    # Letterbox colour used when the frames do not match aspect_ratio. None disables padding.
    autopad_color: str | None = "black"
    # "width:height", e.g. "1280:800"
    aspect_ratio: str | None = None
    # JPEG quality of the screencast frames (0-100)
    frame_quality: int = Field(default=100, ge=0, le=100)


class WebCastOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = 1280
    height: int = 800
    scale: float = 1
    headless: bool = True

    cursor_size: int = 20
    cursor_background: str = "rgba(0, 0, 0, 0.5)"
    # Intermediate pointer moves issued between the previous and the next cursor position
    cursor_move_steps: int = Field(default=1, ge=1)

    typing_speed_ms: float = DEFAULT_TYPING_SPEED_MS

    network_idle_ms: int = 500
    network_idle_timeout_ms: int = 30_000

    color_scheme: ColorScheme | None = None
    reduced_motion: ReducedMotion | None = None
    forward_console: bool = False

    recorder: RecorderConfig = RecorderConfig()

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}

    @property
    def screen_size(self) -> tuple[int, int]:
        """Size of the rendered frames in device pixels."""
        return round(self.width * self.scale), round(self.height * self.scale)
