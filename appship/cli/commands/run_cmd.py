"""Run command - build (optionally), upload and notify."""

from __future__ import annotations

from pathlib import Path

import typer

from appship.cli.context import build_context
from appship.services.pipeline import PipelineController, RunArgs
from appship.services.upload import DEFAULT_API_URL


def run(
    app_dir: Path | None = typer.Option(
        None,
        "--app-dir",
        "--path",
        help="App directory (defaults to the current directory)",
    ),
    platform: str | None = typer.Option(
        None,
        "--platform",
        help="ios | android (auto-detected from ios/ and android/ when omitted)",
    ),
    update: bool = typer.Option(
        False,
        "--update",
        help="git pull, update submodules and fetch dependencies before building",
    ),
    upload: bool = typer.Option(
        False,
        "--upload",
        help="Skip the build and upload the existing artifact",
    ),
    flutter: str = typer.Option(
        "flutter",
        "--flutter",
        envvar="APPSHIP_FLUTTER",
        help="Build tool executable",
    ),
    api_url: str = typer.Option(
        DEFAULT_API_URL,
        "--api-url",
        envvar="APPSHIP_API_URL",
        hidden=True,
    ),
) -> None:
    """Build the app, upload it to appho.st and post the install link."""
    ctx = build_context()
    controller = PipelineController(
        console=ctx.console,
        http=ctx.http,
        flutter=flutter,
        api_url=api_url,
    )
    outcome = controller.run(
        RunArgs(app_dir=app_dir, platform=platform, update=update, upload=upload),
        cwd=ctx.cwd,
    )
    if outcome.exit_code != 0:
        raise typer.Exit(code=outcome.exit_code)
