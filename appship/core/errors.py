"""Error values and exit codes.

Every fatal pipeline failure is one of the frozen dataclasses below,
carried inside an ``Err``. ``ErrorCode`` holds the process exit status
each of them maps to (see ``appship.output.errors``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Literal

__all__ = [
    "ErrorCode",
    "ConfigError",
    "BuildError",
    "ArtifactNotFoundError",
    "ProtocolError",
    "UploadError",
    "NotificationWarning",
    "PipelineError",
]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad flag value, missing app directory)
    - 2: Environment error (project layout, metadata, credentials)
    - 3: Build error (sync or build tool failed)
    - 4: Network error (distribution protocol, artifact transfer)
    - 5: I/O error (no build artifact on disk)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


ConfigErrorKind = Literal[
    "app_dir_missing",
    "invalid_platform",
    "ambiguous_platform",
    "unknown_platform",
    "metadata_missing",
    "metadata_invalid",
    "credentials_missing",
    "credentials_invalid",
]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Run configuration, project metadata or credentials are unusable."""

    kind: ConfigErrorKind
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class BuildError:
    """A sync or build subprocess exited non-zero (or could not start)."""

    step: str
    returncode: int
    message: str = ""

    def __str__(self) -> str:
        text = f"{self.step} failed (exit {self.returncode})"
        if self.message:
            text += f": {self.message}"
        return text


@dataclass(frozen=True, slots=True)
class ArtifactNotFoundError:
    """No file with the expected extension in any candidate directory."""

    platform: str
    searched: tuple[Path, ...]

    def __str__(self) -> str:
        return f"no {self.platform} build artifact found"


@dataclass(frozen=True, slots=True)
class ProtocolError:
    """The distribution service answered with something unusable."""

    step: str
    message: str

    def __str__(self) -> str:
        return f"{self.step}: {self.message}"


@dataclass(frozen=True, slots=True)
class UploadError:
    """The artifact PUT did not succeed.

    Attributes:
        status: HTTP status code (0 when no response was received).
    """

    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"artifact upload failed: HTTP {self.status} {self.message}".rstrip()
        return f"artifact upload failed: {self.message}"


@dataclass(frozen=True, slots=True)
class NotificationWarning:
    """Non-fatal notification problem; logged, never escalated."""

    message: str

    def __str__(self) -> str:
        return self.message


PipelineError = ConfigError | BuildError | ArtifactNotFoundError | ProtocolError | UploadError
