"""Find the build artifact the last build left on disk.

Each platform has a fixed, priority-ordered list of output directories.
The first directory containing a regular file with the expected
extension wins; within a directory, names are compared in sorted order
so the pick does not depend on filesystem listing order.

Android prefers the app bundle (``.aab``) over APKs because the
distribution stores require it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from appship.core.models import BuildArtifact, Platform

__all__ = ["ArtifactLocator", "Candidate", "CANDIDATES"]


@dataclass(frozen=True, slots=True)
class Candidate:
    """A directory (relative to the app dir) and the extension to look for."""

    directory: tuple[str, ...]
    suffix: str


CANDIDATES: dict[Platform, tuple[Candidate, ...]] = {
    Platform.IOS: (Candidate(("build", "ios", "ipa"), ".ipa"),),
    Platform.ANDROID: (
        Candidate(("build", "app", "outputs", "bundle", "release"), ".aab"),
        Candidate(("build", "app", "outputs", "flutter-apk"), ".apk"),
        Candidate(("build", "app", "outputs", "apk", "release"), ".apk"),
    ),
}


class ArtifactLocator:
    def __init__(self, app_dir: Path) -> None:
        self._app_dir = app_dir

    def candidates(self, platform: Platform) -> tuple[Path, ...]:
        """Directories searched for platform, in priority order."""
        return tuple(self._app_dir.joinpath(*c.directory) for c in CANDIDATES[platform])

    def find(self, platform: Platform) -> BuildArtifact | None:
        """Return the first matching artifact, or None when nothing matches."""
        for candidate in CANDIDATES[platform]:
            directory = self._app_dir.joinpath(*candidate.directory)
            if not directory.is_dir():
                continue
            for entry in sorted(directory.iterdir(), key=lambda p: p.name):
                if entry.is_file() and entry.name.endswith(candidate.suffix):
                    return BuildArtifact(path=entry, platform=platform)
        return None
