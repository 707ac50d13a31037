"""Tests for the ffmpeg argument builder and process hooks."""

import subprocess
from collections.abc import Sequence
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from webcast.ffmpeg import InvalidAspectRatioError
from webcast.ffmpeg import build_encode_arguments
from webcast.ffmpeg import build_video_filter
from webcast.ffmpeg import parse_aspect_ratio
from webcast.ffmpeg import set_process_factory
from webcast.ffmpeg import start_encoder
from webcast.options import RecorderConfig


def _option_value(arguments: list[str], option: str) -> str:
    return arguments[arguments.index(option) + 1]


def test_encode_arguments_pass_the_config_through(tmp_path: Path) -> None:
    config = RecorderConfig(fps=30, video_codec="libx265", video_crf=23, video_preset="slow")
    output_path = tmp_path / "screen.mp4"

    arguments = build_encode_arguments(config, output_path)

    assert arguments[0] == "ffmpeg"
    assert arguments[-1] == str(output_path)
    assert _option_value(arguments, "-framerate") == "30"
    assert _option_value(arguments, "-c:v") == "libx265"
    assert _option_value(arguments, "-crf") == "23"
    assert _option_value(arguments, "-preset") == "slow"
    assert _option_value(arguments, "-f") == "image2pipe"
    assert _option_value(arguments, "-vcodec") == "mjpeg"
    assert _option_value(arguments, "-i") == "-"
    assert _option_value(arguments, "-pix_fmt") == "yuv420p"


def test_video_filter_pads_to_the_aspect_ratio() -> None:
    config = RecorderConfig(aspect_ratio="1280:800", autopad_color="black")

    video_filter = build_video_filter(config)

    assert video_filter.startswith("pad=")
    assert "ih*8/5" in video_filter
    assert "color=black" in video_filter


def test_video_filter_only_evens_out_dimensions_without_aspect_ratio() -> None:
    video_filter = build_video_filter(RecorderConfig(autopad_color="white"))

    assert "ceil(iw/2)*2" in video_filter
    assert "color=white" in video_filter


def test_video_filter_scales_when_padding_is_disabled() -> None:
    config = RecorderConfig(aspect_ratio="16:9", autopad_color=None)

    assert build_video_filter(config) == "scale=trunc(iw/2)*2:trunc(ih/2)*2"


@pytest.mark.parametrize(
    ("aspect_ratio", "numerator", "denominator"),
    [("16:9", 16, 9), ("1280:800", 8, 5), ("1.5", 3, 2)],
)
def test_parse_aspect_ratio(aspect_ratio: str, numerator: int, denominator: int) -> None:
    ratio = parse_aspect_ratio(aspect_ratio)

    assert (ratio.numerator, ratio.denominator) == (numerator, denominator)


@pytest.mark.parametrize("aspect_ratio", ["wide", "16:0", "-4:3", ""])
def test_parse_aspect_ratio_rejects_invalid_values(aspect_ratio: str) -> None:
    with pytest.raises(InvalidAspectRatioError):
        parse_aspect_ratio(aspect_ratio)


def test_start_encoder_uses_the_process_factory(tmp_path: Path) -> None:
    captured_args: list[str] = []
    process = MagicMock(spec=subprocess.Popen)

    def factory(args: Sequence[str]) -> subprocess.Popen[bytes]:
        captured_args.extend(args)
        return process

    set_process_factory(factory)

    result = start_encoder(RecorderConfig(), tmp_path / "out.mp4")

    assert result is process
    assert captured_args == build_encode_arguments(RecorderConfig(), tmp_path / "out.mp4")
