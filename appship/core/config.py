"""Run configuration: app directory, target platform, credentials.

Resolution order for the app directory is explicit flag, then the
current directory. The platform is either given explicitly or detected
from which of ``ios/`` and ``android/`` exists in the app directory.
"""

from __future__ import annotations

import json
from pathlib import Path

from .errors import ConfigError
from .models import DistributionCredentials, Mode, PipelineConfig, Platform
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str

__all__ = [
    "CREDENTIALS_FILE",
    "resolve_app_dir",
    "parse_platform",
    "detect_platform",
    "resolve_config",
    "load_credential_record",
    "load_credentials",
    "bundle_id_for",
]

CREDENTIALS_FILE = ".apphost"

_PLATFORM_HINT = "Pass --platform ios or --platform android"


def resolve_app_dir(explicit: Path | None, cwd: Path) -> Result[Path, ConfigError]:
    """Return the absolute app directory, preferring the explicit flag."""
    candidate = explicit.expanduser() if explicit is not None else cwd
    if not candidate.is_absolute():
        candidate = cwd / candidate
    candidate = candidate.resolve()

    if not candidate.is_dir():
        return Err(
            ConfigError(
                kind="app_dir_missing",
                message=f"app directory does not exist: {candidate}",
            )
        )
    return Ok(candidate)


def parse_platform(value: str) -> Result[Platform, ConfigError]:
    normalized = value.strip().lower()
    for platform in Platform:
        if platform.value == normalized:
            return Ok(platform)
    return Err(
        ConfigError(
            kind="invalid_platform",
            message=f'invalid platform "{value}"',
            hint='Must be "ios" or "android"',
        )
    )


def detect_platform(app_dir: Path) -> Result[Platform, ConfigError]:
    """Pick the platform whose project directory exists under app_dir.

    Succeeds only when exactly one of ``ios/`` and ``android/`` is present.
    """
    present = [p for p in Platform if (app_dir / p.value).is_dir()]
    if len(present) == 1:
        return Ok(present[0])

    if present:
        return Err(
            ConfigError(
                kind="ambiguous_platform",
                message="could not determine platform: both ios/ and android/ exist",
                hint=_PLATFORM_HINT,
            )
        )
    return Err(
        ConfigError(
            kind="unknown_platform",
            message="could not determine platform: neither ios/ nor android/ exists",
            hint=_PLATFORM_HINT,
        )
    )


def resolve_config(
    *,
    app_dir: Path | None,
    platform: str | None,
    update: bool,
    upload: bool,
    cwd: Path,
) -> Result[PipelineConfig, ConfigError]:
    """Build the immutable PipelineConfig from raw command line values."""
    dir_result = resolve_app_dir(app_dir, cwd)
    if isinstance(dir_result, Err):
        return dir_result
    root = dir_result.value

    if platform is not None:
        platform_result = parse_platform(platform)
    else:
        platform_result = detect_platform(root)
    if isinstance(platform_result, Err):
        return platform_result

    mode = Mode.UPLOAD_ONLY if upload else Mode.BUILD_AND_UPLOAD
    return Ok(
        PipelineConfig(
            app_dir=root,
            platform=platform_result.value,
            # --update only applies to builds
            update_before_build=update and not upload,
            mode=mode,
        )
    )


def load_credential_record(app_dir: Path) -> Result[StrDict, ConfigError]:
    """Read the raw JSON credential record from the app directory."""
    path = app_dir / CREDENTIALS_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            ConfigError(
                kind="credentials_missing",
                message=f"credential file not found: {path}",
                hint=f"Create {CREDENTIALS_FILE} with user_id, app_id and key",
            )
        )
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(kind="credentials_invalid", message=f"cannot read {path}: {e}"))

    try:
        data_obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ConfigError(kind="credentials_invalid", message=f"invalid JSON in {path}: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(
            ConfigError(kind="credentials_invalid", message=f"{path} must contain a JSON object")
        )
    return Ok(data)


def load_credentials(record: StrDict) -> Result[DistributionCredentials, ConfigError]:
    user_id = get_str(record, "user_id")
    app_id = get_str(record, "app_id")
    key = get_str(record, "key")

    missing = [
        name
        for name, value in (("user_id", user_id), ("app_id", app_id), ("key", key))
        if value is None
    ]
    if missing or user_id is None or app_id is None or key is None:
        return Err(
            ConfigError(
                kind="credentials_invalid",
                message=f"missing required fields in {CREDENTIALS_FILE}: {', '.join(missing)}",
            )
        )
    return Ok(DistributionCredentials(user_id=user_id, app_id=app_id, secret_key=key))


def bundle_id_for(record: StrDict, platform: Platform) -> Result[str, ConfigError]:
    key = platform.bundle_id_key
    value = get_str(record, key)
    if value is None:
        return Err(
            ConfigError(
                kind="credentials_invalid",
                message=f"missing {key} in {CREDENTIALS_FILE}",
                hint=f"Add {key} to {CREDENTIALS_FILE} for {platform} uploads",
            )
        )
    return Ok(value)
