"""Tests for the CLI."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from webcast.cli import app
from webcast.errors import ElementNotFoundError
from webcast.errors import TimeoutExceededError
from webcast.options import ColorScheme
from webcast.scenario import ScenarioError

runner = CliRunner()


@pytest.fixture
def web_cast_class() -> Iterator[MagicMock]:
    with patch("webcast.cli.WebCast") as web_cast_class:
        yield web_cast_class


@pytest.fixture
def run_deploy_demo() -> Iterator[MagicMock]:
    with patch("webcast.cli.run_deploy_demo") as run_deploy_demo:
        run_deploy_demo.return_value = Path("screen.mp4")
        yield run_deploy_demo


def test_record_prints_progress_and_done(web_cast_class: MagicMock, run_deploy_demo: MagicMock) -> None:
    result = runner.invoke(app, ["record"])

    assert result.exit_code == 0
    assert result.stdout.splitlines()[0] == "start"
    assert "Saved screen.mp4" in result.stdout
    assert result.stdout.splitlines()[-1] == "Done"


def test_record_passes_options_to_the_driver(web_cast_class: MagicMock, run_deploy_demo: MagicMock) -> None:
    result = runner.invoke(
        app,
        ["record", "--width", "800", "--height", "600", "--scale", "2", "--fps", "30", "--color-scheme", "dark"],
    )

    assert result.exit_code == 0
    options = web_cast_class.call_args.args[0]
    assert (options.width, options.height, options.scale) == (800, 600, 2)
    assert options.color_scheme == ColorScheme.DARK
    assert options.recorder.fps == 30
    assert options.recorder.aspect_ratio == "800:600"
    assert options.forward_console is False


def test_record_reads_settings_from_environment(
    web_cast_class: MagicMock, run_deploy_demo: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("WEBCAST_URL", "http://localhost:9000")
    monkeypatch.setenv("WEBCAST_ARCHIVE", "/tmp/build.tar.gz")
    monkeypatch.setenv("WEBCAST_OUTPUT", "/tmp/out.mp4")

    result = runner.invoke(app, ["record"])

    assert result.exit_code == 0
    _, settings, output_path, _ = run_deploy_demo.call_args.args
    assert settings.base_url == "http://localhost:9000"
    assert settings.archive_path == Path("/tmp/build.tar.gz")
    assert output_path == Path("/tmp/out.mp4")


def test_verbose_forwards_the_page_console(web_cast_class: MagicMock, run_deploy_demo: MagicMock) -> None:
    result = runner.invoke(app, ["--verbose", "record"])

    assert result.exit_code == 0
    options = web_cast_class.call_args.args[0]
    assert options.forward_console is True


@pytest.mark.parametrize(
    "error",
    [
        ElementNotFoundError("Element not found: #app_id"),
        TimeoutExceededError("Timed out after 120000 ms waiting for main ul>li svg.text-success"),
        ScenarioError("instance id not found"),
    ],
)
def test_record_exits_with_one_on_failure(
    web_cast_class: MagicMock, run_deploy_demo: MagicMock, error: Exception
) -> None:
    run_deploy_demo.side_effect = error

    result = runner.invoke(app, ["record"])

    assert result.exit_code == 1
    assert f"Error: {error}" in result.stderr
    assert "Done" not in result.stdout
    web_cast_class.return_value.__exit__.assert_called_once()
