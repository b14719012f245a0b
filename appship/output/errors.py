"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from appship.core.errors import (
    ArtifactNotFoundError,
    BuildError,
    ConfigError,
    ErrorCode,
    PipelineError,
    ProtocolError,
    UploadError,
)
from appship.output.console import Style

if TYPE_CHECKING:
    from appship.output.console import ConsoleProtocol

__all__ = ["describe_error", "print_pipeline_error", "exit_code_for"]


def describe_error(error: PipelineError) -> str:
    """One-line cause, used both on the console and in failure notifications."""
    match error:
        case ConfigError(message=message):
            return message
        case BuildError():
            return str(error)
        case ArtifactNotFoundError(platform=platform):
            return f"could not find a {platform} build artifact"
        case ProtocolError(step=step, message=message):
            return f"{step}: {message}"
        case UploadError():
            return str(error)


def print_pipeline_error(stage: str, error: PipelineError, console: ConsoleProtocol) -> None:
    """Print a fatal error naming the failing stage and its cause."""
    console.error(f"{stage} failed: {describe_error(error)}")
    match error:
        case ConfigError(hint=hint) if hint:
            console.print(f"hint: {hint}", Style.DIM)
        case BuildError(step="build"):
            console.print("hint: see the build tool output above", Style.DIM)
        case ArtifactNotFoundError(searched=searched):
            for path in searched:
                console.print(f"searched: {path}", Style.DIM)
            console.print("hint: make sure the build completed successfully", Style.DIM)
        case _:
            pass


def exit_code_for(error: PipelineError) -> int:
    """Get the process exit status for a fatal pipeline error."""
    match error:
        case ConfigError(kind="app_dir_missing" | "invalid_platform"):
            return int(ErrorCode.USER_ERROR)
        case ConfigError():
            return int(ErrorCode.ENV_ERROR)
        case BuildError():
            return int(ErrorCode.BUILD_ERROR)
        case ProtocolError() | UploadError():
            return int(ErrorCode.NETWORK_ERROR)
        case ArtifactNotFoundError():
            return int(ErrorCode.IO_ERROR)
