"""Screen recording of a Playwright page through the Chrome DevTools screencast.

Chromium pushes JPEG frames whenever the page repaints, so frames arrive at a
variable rate. `FrameTimeline` repeats each frame for as long as it was on
screen, and the resulting constant-rate stream is piped into ffmpeg.
"""

import base64
import logging
import math
import subprocess
import time
from pathlib import Path
from typing import Any
from typing import Literal

from playwright.sync_api import CDPSession
from playwright.sync_api import Page
from pydantic import BaseModel
from pydantic import ConfigDict

from webcast import ffmpeg
from webcast.options import RecorderConfig

logger = logging.getLogger(__name__)


class RecorderError(Exception):
    """Raised when the encoder fails or the recording cannot be finalized."""

    pass


class RecorderAlreadyActiveError(RecorderError):
    """Raised when a recording is started while another one is still running."""

    pass


class FrameTimeline:
    def __init__(self, fps: int) -> None:
        self.fps = fps
        self._last_frame: bytes | None = None
        self._last_timestamp: float | None = None

    def push(self, frame: bytes, timestamp: float) -> list[bytes]:
        """Accept a frame captured at `timestamp` (seconds) and return the frames to write now.

        The previous frame is emitted once for every output frame interval it
        stayed on screen; the new frame is held back until its duration is known.
        """
        frames: list[bytes] = []
        if self._last_frame is not None and self._last_timestamp is not None:
            elapsed = max(0.0, timestamp - self._last_timestamp)
            repeats = math.floor(elapsed * self.fps + 0.5)
            frames = [self._last_frame] * repeats
        self._last_frame = frame
        self._last_timestamp = timestamp
        return frames

    def flush(self) -> list[bytes]:
        """Return the held-back frame, if any."""
        if self._last_frame is None:
            return []
        frame = self._last_frame
        self._last_frame = None
        self._last_timestamp = None
        return [frame]


class ScreenRecorder:
    def __init__(self, page: Page, config: RecorderConfig, max_size: tuple[int, int] | None = None) -> None:
        self._page = page
        self.config = config
        self.max_size = max_size
        self.frame_count = 0
        self._timeline = FrameTimeline(config.fps)
        self._process: subprocess.Popen[bytes] | None = None
        self._cdp: CDPSession | None = None
        self._write_error: OSError | None = None
        self.output_path: Path | None = None

    def start(self, output_path: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path = output_path
        self._process = ffmpeg.start_encoder(self.config, output_path)

        self._cdp = self._page.context.new_cdp_session(self._page)
        self._cdp.on("Page.screencastFrame", self._on_frame)

        parameters: dict[str, Any] = {
            "format": "jpeg",
            "quality": self.config.frame_quality,
            "everyNthFrame": 1,
        }
        if self.max_size is not None:
            parameters["maxWidth"], parameters["maxHeight"] = self.max_size
        self._cdp.send("Page.startScreencast", parameters)
        logger.debug("Screencast started, encoding to %s", output_path)

    def _on_frame(self, event: dict[str, Any]) -> None:
        cdp = self._cdp
        if cdp is None:
            return
        # Chromium stops sending frames until the previous one is acknowledged.
        cdp.send("Page.screencastFrameAck", {"sessionId": event["sessionId"]})

        timestamp = event.get("metadata", {}).get("timestamp")
        if timestamp is None:
            timestamp = time.time()
        self._write_frames(self._timeline.push(base64.b64decode(event["data"]), timestamp))

    def _write_frames(self, frames: list[bytes]) -> None:
        if self._process is None or self._process.stdin is None or self._write_error is not None:
            return
        try:
            for frame in frames:
                self._process.stdin.write(frame)
                self.frame_count += 1
        except OSError as error:
            # ffmpeg went away; reported from stop() together with its exit status.
            self._write_error = error

    def stop(self) -> Path:
        process = self._process
        cdp = self._cdp
        if process is None or cdp is None or self.output_path is None:
            raise RecorderError("Recorder was not started")

        self._cdp = None
        try:
            cdp.send("Page.stopScreencast")
            cdp.detach()
        finally:
            # ffmpeg is finalized even when the page or its target is already gone.
            stderr = self._finish_encoder(process)
        logger.debug("Screencast stopped after %d frames, ffmpeg exited with %s", self.frame_count, process.returncode)

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise RecorderError(f"ffmpeg exited with code {process.returncode}: {message}")
        if self._write_error is not None:
            raise RecorderError(f"Failed to write frames to ffmpeg: {self._write_error}")
        return self.output_path

    def _finish_encoder(self, process: subprocess.Popen[bytes]) -> bytes:
        self._write_frames(self._timeline.flush())
        self._process = None
        try:
            # Closes stdin, which tells ffmpeg to finish the file.
            _, stderr = process.communicate()
        except BaseException:
            process.kill()
            process.wait()
            raise
        return stderr or b""


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    object_type: Literal["idle"] = "idle"


class Recording(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    object_type: Literal["recording"] = "recording"
    recorder: ScreenRecorder
    output_path: Path


RecorderState = Idle | Recording
