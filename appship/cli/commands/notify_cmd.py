"""notify-test command - check the Telegram bot configuration."""

from __future__ import annotations

from pathlib import Path

import typer

from appship.cli.commands._helpers import value_or_exit
from appship.cli.context import build_context
from appship.core.config import resolve_app_dir
from appship.core.errors import ErrorCode
from appship.output.console import Style
from appship.services.notify import NOTIFICATION_FILE, Notifier, load_notification_config


def notify_test(
    app_dir: Path | None = typer.Option(
        None,
        "--app-dir",
        "--path",
        help="App directory (defaults to the current directory)",
    ),
) -> None:
    """Send a test message using the app's telegram_bot.env."""
    ctx = build_context()

    root = value_or_exit(resolve_app_dir(app_dir, ctx.cwd), ctx, ErrorCode.USER_ERROR)

    config = value_or_exit(load_notification_config(root), ctx, ErrorCode.ENV_ERROR)
    if config is None:
        ctx.console.error(f"{NOTIFICATION_FILE} not found in {root}")
        ctx.console.print("Create it with:", Style.DIM)
        ctx.console.print("  TELEGRAM_BOT_TOKEN=your_bot_token", Style.DIM)
        ctx.console.print("  TELEGRAM_CHAT_ID=your_chat_id", Style.DIM)
        ctx.console.print("  TELEGRAM_TOPIC_ID=your_topic_id (optional)", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    ctx.console.success(f"parsed {NOTIFICATION_FILE}")
    ctx.console.print(f"  Bot token: {config.bot_token[:10]}...", Style.DIM)
    ctx.console.print(f"  Chat ID: {config.chat_id}", Style.DIM)
    ctx.console.print(f"  Topic ID: {config.topic_id or '(not set)'}", Style.DIM)

    ctx.console.print("Sending test message...")
    warning = Notifier(app_dir=root, http=ctx.http, console=ctx.console).send_test(config)
    if warning is not None:
        ctx.console.error(warning.message)
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
    ctx.console.success("test message sent; check your Telegram chat")
