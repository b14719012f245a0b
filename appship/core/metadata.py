"""Read the app's name and version from its pubspec.yaml.

Only two lines matter: ``name: <identifier>`` and
``version: <major.minor.patch>[+<build>]``. The file is otherwise owned
by the app, so it is scanned with regexes rather than parsed.
"""

from __future__ import annotations

import re
from pathlib import Path

from .errors import ConfigError
from .models import AppIdentity
from .result import Err, Ok, Result

__all__ = ["PUBSPEC_FILE", "parse_version", "read_pubspec", "load_identity", "peek_version"]

PUBSPEC_FILE = "pubspec.yaml"

_VERSION_LINE = re.compile(r"version:\s*(\S+)")
_NAME_LINE = re.compile(r"^name:\s*(\S+)", re.MULTILINE)
_VERSION = re.compile(r"^(\d+\.\d+\.\d+)(?:\+(\d+))?$")


def parse_version(raw: str) -> Result[tuple[str, int], ConfigError]:
    """Split "1.2.3+4" into ("1.2.3", 4). A missing build number is 1."""
    match = _VERSION.match(raw)
    if match is None:
        return Err(
            ConfigError(
                kind="metadata_invalid",
                message=f"invalid version '{raw}'",
                hint="Expected major.minor.patch or major.minor.patch+build",
            )
        )
    name, build = match.groups()
    build_number = int(build) if build is not None else 1
    if build_number < 1:
        return Err(
            ConfigError(kind="metadata_invalid", message=f"build number must be positive: '{raw}'")
        )
    return Ok((name, build_number))


def read_pubspec(app_dir: Path) -> Result[str, ConfigError]:
    path = app_dir / PUBSPEC_FILE
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(
            ConfigError(
                kind="metadata_missing",
                message=f"could not find {PUBSPEC_FILE} in {app_dir}",
                hint=f"Make sure the app directory contains a valid {PUBSPEC_FILE}",
            )
        )
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(kind="metadata_missing", message=f"cannot read {path}: {e}"))


def load_identity(app_dir: Path, bundle_id: str) -> Result[AppIdentity, ConfigError]:
    text_result = read_pubspec(app_dir)
    if isinstance(text_result, Err):
        return text_result
    text = text_result.value

    version_match = _VERSION_LINE.search(text)
    if version_match is None:
        return Err(
            ConfigError(kind="metadata_invalid", message=f"no version line in {PUBSPEC_FILE}")
        )
    name_match = _NAME_LINE.search(text)
    if name_match is None:
        return Err(ConfigError(kind="metadata_invalid", message=f"no name line in {PUBSPEC_FILE}"))

    version = version_match.group(1)
    parsed = parse_version(version)
    if isinstance(parsed, Err):
        return parsed
    version_name, build_number = parsed.value

    return Ok(
        AppIdentity(
            version=version,
            version_name=version_name,
            build_number=build_number,
            app_name=name_match.group(1),
            bundle_id=bundle_id,
        )
    )


def peek_version(app_dir: Path) -> str | None:
    """Best-effort raw version string, for failure reports."""
    text_result = read_pubspec(app_dir)
    if isinstance(text_result, Err):
        return None
    match = _VERSION_LINE.search(text_result.value)
    return match.group(1) if match else None
