"""Operating system integration (subprocesses)."""

from .process import CommandRunner, CompletedCommand, ProcessError, stream

__all__ = [
    "CommandRunner",
    "CompletedCommand",
    "ProcessError",
    "stream",
]
