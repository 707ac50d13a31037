"""Command-line interface for webcast."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from playwright.sync_api import Error as PlaywrightError

from webcast.driver import WebCast
from webcast.errors import WebCastError
from webcast.options import ColorScheme
from webcast.options import RecorderConfig
from webcast.options import WebCastOptions
from webcast.recorder import RecorderError
from webcast.scenario import DeployDemoSettings
from webcast.scenario import ScenarioError
from webcast.scenario import run_deploy_demo

app = typer.Typer(
    help="Record scripted walkthroughs of a web application with a visible cursor.",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every driver step and forward the page console."),
    ] = False,
) -> None:
    _configure_logging(verbose)


@app.command()
def record(
    context: typer.Context,
    url: Annotated[
        str,
        typer.Option(envvar="WEBCAST_URL", help="Address of the application to walk through."),
    ] = DeployDemoSettings().base_url,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", envvar="WEBCAST_OUTPUT", help="Where to write the video."),
    ] = Path("screen.mp4"),
    archive: Annotated[
        Path,
        typer.Option(envvar="WEBCAST_ARCHIVE", help="Build archive uploaded during the walkthrough."),
    ] = DeployDemoSettings().archive_path,
    width: Annotated[int, typer.Option(help="Viewport width in CSS pixels.")] = 1280,
    height: Annotated[int, typer.Option(help="Viewport height in CSS pixels.")] = 800,
    scale: Annotated[float, typer.Option(help="Device scale factor.")] = 4,
    fps: Annotated[int, typer.Option(help="Frame rate of the video.")] = 60,
    color_scheme: Annotated[
        ColorScheme | None,
        typer.Option(help="Emulate a prefers-color-scheme value."),
    ] = None,
    headless: Annotated[bool, typer.Option("--headless/--headed", help="Hide the browser window.")] = True,
    look_around_delay: Annotated[int, typer.Option(help="Pause before each step, in milliseconds.")] = 1000,
    intro: Annotated[str | None, typer.Option(help="Title card shown before the walkthrough.")] = None,
) -> None:
    """Record the deploy walkthrough: app, build, instance and domain."""
    verbose = context.parent is not None and bool(context.parent.params.get("verbose"))
    options = WebCastOptions(
        width=width,
        height=height,
        scale=scale,
        headless=headless,
        color_scheme=color_scheme,
        forward_console=verbose,
        recorder=RecorderConfig(fps=fps, aspect_ratio=f"{width}:{height}"),
    )
    settings = DeployDemoSettings(
        base_url=url,
        archive_path=archive,
        look_around_delay_ms=look_around_delay,
        intro_title=intro,
    )

    typer.echo("start")
    try:
        with WebCast(options) as cast:
            video_path = run_deploy_demo(cast, settings, output, typer.echo)
    except (WebCastError, RecorderError, ScenarioError, PlaywrightError, OSError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1)

    if video_path is not None:
        typer.echo(f"Saved {video_path}")
    typer.echo("Done")


def entry_point() -> None:
    """Entry point for the CLI that exits with the appropriate code."""
    app()


if __name__ == "__main__":
    entry_point()
