from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from appship.core.result import Err, Ok, Result
from appship.platform.process import CompletedCommand, ProcessError


@dataclass
class FakeRunner:
    """Command runner that records calls and returns scripted exit codes.

    ``returncodes`` maps a command prefix to its exit code; unmatched
    commands succeed.
    """

    returncodes: dict[tuple[str, ...], int] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)
    cwds: list[Path] = field(default_factory=list)

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> Result[CompletedCommand, ProcessError]:
        self.calls.append(list(cmd))
        self.cwds.append(cwd)
        if on_output is not None:
            on_output(f"$ {' '.join(cmd)}")

        for prefix, code in self.returncodes.items():
            if tuple(cmd[: len(prefix)]) == prefix and code != 0:
                return Err(ProcessError(command=tuple(cmd), returncode=code))
        return Ok(CompletedCommand(command=tuple(cmd), output=()))


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


CREDENTIALS = {
    "user_id": "user-1",
    "app_id": "app-1",
    "key": "secret-key",
    "ios_bundle_identifier": "com.example.demo",
    "android_package_name": "com.example.demo.android",
}


@pytest.fixture
def make_app(tmp_path: Path) -> Callable[..., Path]:
    """Create an app directory with the given platform dirs and project files."""

    def _make(
        *platforms: str,
        version: str | None = "1.2.3+4",
        name: str = "demo_app",
        credentials: dict[str, str] | None = CREDENTIALS,
        telegram: str | None = None,
    ) -> Path:
        app = tmp_path / "app"
        app.mkdir(exist_ok=True)
        for platform in platforms:
            (app / platform).mkdir(exist_ok=True)
        lines = [f"name: {name}", "description: demo"]
        if version is not None:
            lines.append(f"version: {version}")
        (app / "pubspec.yaml").write_text("\n".join(lines) + "\n", encoding="utf-8")
        if credentials is not None:
            (app / ".apphost").write_text(json.dumps(credentials), encoding="utf-8")
        if telegram is not None:
            (app / "telegram_bot.env").write_text(telegram, encoding="utf-8")
        return app

    return _make


def put_file(root: Path, relative: str, content: bytes = b"artifact") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def write_file() -> Callable[..., Path]:
    return put_file
