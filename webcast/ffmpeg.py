"""ffmpeg subprocess utilities."""

import subprocess
from collections.abc import Callable
from collections.abc import Sequence
from fractions import Fraction
from pathlib import Path

from webcast.options import RecorderConfig

# Type alias for the function that starts the encoder process
ProcessFactory = Callable[[Sequence[str]], subprocess.Popen[bytes]]


class InvalidAspectRatioError(ValueError):
    pass


def _default_process_factory(args: Sequence[str]) -> subprocess.Popen[bytes]:
    """Default process factory that starts ffmpeg reading frames from stdin."""
    return subprocess.Popen(args, stdin=subprocess.PIPE, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)


# Global process factory that can be replaced for testing
_process_factory: ProcessFactory = _default_process_factory


def set_process_factory(factory: ProcessFactory) -> None:
    """Set the process factory function. Used for testing."""
    global _process_factory
    _process_factory = factory


def reset_process_factory() -> None:
    """Reset the process factory to the default. Used for testing."""
    global _process_factory
    _process_factory = _default_process_factory


def parse_aspect_ratio(aspect_ratio: str) -> Fraction:
    """Parse a "width:height" ratio such as "16:9"."""
    width, separator, height = aspect_ratio.partition(":")
    try:
        ratio = Fraction(int(width), int(height)) if separator else Fraction(aspect_ratio)
    except (ValueError, ZeroDivisionError) as error:
        raise InvalidAspectRatioError(f"Invalid aspect ratio: {aspect_ratio!r}") from error
    if ratio <= 0:
        raise InvalidAspectRatioError(f"Invalid aspect ratio: {aspect_ratio!r}")
    return ratio


def build_video_filter(config: RecorderConfig) -> str:
    """Build the -vf filter that pads frames to the aspect ratio and keeps dimensions even for yuv420p."""
    if config.autopad_color is None:
        return "scale=trunc(iw/2)*2:trunc(ih/2)*2"

    if config.aspect_ratio is None:
        width = "ceil(iw/2)*2"
        height = "ceil(ih/2)*2"
    else:
        ratio = parse_aspect_ratio(config.aspect_ratio)
        ratio_value = f"{ratio.numerator}/{ratio.denominator}"
        width = f"ceil(max(iw,ih*{ratio_value})/2)*2"
        height = f"ceil(max(ih,iw/({ratio_value}))/2)*2"

    return f"pad=w='{width}':h='{height}':x='(ow-iw)/2':y='(oh-ih)/2':color={config.autopad_color}"


def build_encode_arguments(config: RecorderConfig, output_path: Path) -> list[str]:
    return [
        "ffmpeg",
        "-y",
        "-loglevel",
        "error",
        "-f",
        "image2pipe",
        "-vcodec",
        "mjpeg",
        "-framerate",
        str(config.fps),
        "-i",
        "-",
        "-vf",
        build_video_filter(config),
        "-c:v",
        config.video_codec,
        "-crf",
        str(config.video_crf),
        "-preset",
        config.video_preset,
        "-pix_fmt",
        "yuv420p",
        "-r",
        str(config.fps),
        str(output_path),
    ]


def start_encoder(config: RecorderConfig, output_path: Path) -> subprocess.Popen[bytes]:
    """Start ffmpeg encoding JPEG frames written to its stdin into output_path."""
    return _process_factory(build_encode_arguments(config, output_path))
