"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from appship.core.errors import ErrorCode
from appship.core.result import Err, Result
from appship.output.console import Style

if TYPE_CHECKING:
    from appship.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")


def value_or_exit(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode,
) -> T:
    """Return the Ok value, or print the error and exit.

    Expects error objects to have a 'message' and optional 'hint' attribute.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value
