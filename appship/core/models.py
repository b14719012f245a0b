"""Per-run data model.

Everything here is created fresh for each invocation and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

__all__ = [
    "Platform",
    "Mode",
    "PipelineConfig",
    "AppIdentity",
    "DistributionCredentials",
    "BuildArtifact",
    "UploadResult",
    "NotificationConfig",
]


class Platform(Enum):
    """Mobile target platform."""

    IOS = "ios"
    ANDROID = "android"

    def __str__(self) -> str:
        return self.value

    @property
    def bundle_id_key(self) -> str:
        """Key naming the bundle identifier in the credential record."""
        return {
            Platform.IOS: "ios_bundle_identifier",
            Platform.ANDROID: "android_package_name",
        }[self]


class Mode(Enum):
    """What the pipeline does after resolving its configuration."""

    BUILD_AND_UPLOAD = auto()
    UPLOAD_ONLY = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Resolved run configuration, threaded through every stage."""

    app_dir: Path
    platform: Platform
    update_before_build: bool = False
    mode: Mode = Mode.BUILD_AND_UPLOAD

    def app_path(self, *parts: str) -> Path:
        return self.app_dir.joinpath(*parts)

    @property
    def builds(self) -> bool:
        return self.mode == Mode.BUILD_AND_UPLOAD

    @property
    def syncs(self) -> bool:
        return self.builds and self.update_before_build


@dataclass(frozen=True, slots=True)
class AppIdentity:
    """Snapshot of the app's name, version and bundle identifier.

    Attributes:
        version: Version exactly as written in the metadata file (e.g. "1.2.3+4").
        version_name: The "major.minor.patch" part.
        build_number: The "+build" part, 1 when absent.
        app_name: Package name from the metadata file.
        bundle_id: Platform bundle identifier / package name.
    """

    version: str
    version_name: str
    build_number: int
    app_name: str
    bundle_id: str


@dataclass(frozen=True, slots=True)
class DistributionCredentials:
    user_id: str
    app_id: str
    secret_key: str

    def __repr__(self) -> str:
        return f"DistributionCredentials(user_id={self.user_id!r}, app_id={self.app_id!r})"


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    path: Path
    platform: Platform

    @property
    def size(self) -> int:
        return self.path.stat().st_size


@dataclass(frozen=True, slots=True)
class UploadResult:
    install_url: str


@dataclass(frozen=True, slots=True)
class NotificationConfig:
    bot_token: str
    chat_id: str
    topic_id: str | None = None

    def __repr__(self) -> str:
        return f"NotificationConfig(chat_id={self.chat_id!r}, topic_id={self.topic_id!r})"
