"""Subprocess execution with streamed output and Result-based errors.

Build tools write a lot to both stdout and stderr. ``stream`` drains
both pipes on reader threads while the process runs, forwards every
line to a callback (usually the console) and keeps a copy, then blocks
until the process exits.

Usage:
    result = stream(["flutter", "pub", "get"], cwd=app_dir, on_output=print)
    match result:
        case Ok(done):
            print(f"took {len(done.output)} lines")
        case Err(error):
            print(f"Failed: {error}")
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol

from appship.core.result import Err, Ok, Result

__all__ = ["CommandRunner", "CompletedCommand", "ProcessError", "stream"]

OutputSink = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class CompletedCommand:
    """A command that exited with status 0."""

    command: tuple[str, ...]
    output: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code of the process, -1 if it could not be started.
        output: Interleaved stdout/stderr lines (may be empty).
        message: Start-up failure details (empty when the process ran).
    """

    command: tuple[str, ...]
    returncode: int
    output: tuple[str, ...] = ()
    message: str = ""

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


class CommandRunner(Protocol):
    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        *,
        on_output: OutputSink | None = None,
    ) -> Result[CompletedCommand, ProcessError]: ...


def _drain(pipe: IO[str], lines: list[str], lock: threading.Lock, sink: OutputSink | None) -> None:
    with pipe:
        for raw in pipe:
            line = raw.rstrip("\r\n")
            with lock:
                lines.append(line)
                if sink is not None:
                    sink(line)


def stream(
    cmd: list[str],
    cwd: Path,
    *,
    on_output: OutputSink | None = None,
) -> Result[CompletedCommand, ProcessError]:
    """Run a command to completion, streaming its output.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        on_output: Called once per output line, from a reader thread.
            Calls are serialized.

    Returns:
        Ok(CompletedCommand) on exit status 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, message=str(e)))

    lines: list[str] = []
    lock = threading.Lock()
    readers = [
        threading.Thread(target=_drain, args=(pipe, lines, lock, on_output), daemon=True)
        for pipe in (proc.stdout, proc.stderr)
        if pipe is not None
    ]
    for reader in readers:
        reader.start()

    returncode = proc.wait()
    for reader in readers:
        reader.join()

    if returncode != 0:
        return Err(ProcessError(command=tuple(cmd), returncode=returncode, output=tuple(lines)))
    return Ok(CompletedCommand(command=tuple(cmd), output=tuple(lines)))
