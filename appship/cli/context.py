from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from appship.net.http import HttpClient, RealHttpClient
from appship.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    console: ConsoleProtocol
    http: HttpClient


def build_context() -> CLIContext:
    return CLIContext(
        cwd=Path.cwd(),
        console=RichConsole(),
        http=RealHttpClient(),
    )
