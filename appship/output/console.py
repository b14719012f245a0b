"""Console output abstraction.

Services report progress, warnings and subprocess output through
``ConsoleProtocol`` so they never depend on a terminal. ``RichConsole``
is the production backend; ``MockConsole`` records output for tests.

Errors and warnings go to stderr so a wrapper script can capture the
install URL from stdout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # subprocess output, hints
    HEADER = auto()  # pipeline stage banner

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def theme_key(self) -> str:
        return f"appship.{self}"


_THEME = {
    Style.DEFAULT.theme_key: "none",
    Style.SUCCESS.theme_key: "green",
    Style.ERROR.theme_key: "red bold",
    Style.WARNING.theme_key: "yellow",
    Style.INFO.theme_key: "cyan",
    Style.DIM.theme_key: "dim",
    Style.HEADER.theme_key: "blue bold",
}

# Labels put in front of status lines; the mock uses the same text.
_LABELS = {
    Style.SUCCESS: "OK",
    Style.ERROR: "error:",
    Style.WARNING: "warning:",
    Style.INFO: "info:",
}


class ConsoleProtocol(Protocol):
    """Protocol for console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None:
        """Print a stage banner."""
        ...

    def output(self, line: str) -> None:
        """Echo one line of subprocess output."""
        ...

    def newline(self) -> None: ...


class RichConsole:
    """Console implementation using the Rich library."""

    def __init__(self) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.theme import Theme

        theme = Theme(_THEME)
        self._out = Console(theme=theme, highlight=False)
        self._err = Console(theme=theme, highlight=False, stderr=True)

    def _status(self, style: Style, message: str) -> None:
        target = self._err if style in (Style.ERROR, Style.WARNING) else self._out
        key = style.theme_key
        # Only the label is markup; the message is printed verbatim.
        target.print(f"[{key}]{_LABELS[style]}[/{key}] ", end="")
        target.print(message, markup=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        # Messages carry paths, commands and URLs; brackets in them are literal.
        self._out.print(message, style=style.theme_key, markup=False)

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        from rich.markup import escape

        self._out.print()
        self._out.rule(escape(message), style=Style.HEADER.theme_key, align="left")

    def output(self, line: str) -> None:
        # Tool output may contain brackets that Rich would read as markup.
        self._out.print(line, style=Style.DIM.theme_key, markup=False)

    def newline(self) -> None:
        self._out.print()


@dataclass(frozen=True, slots=True)
class OutputRecord:
    """A single line captured by MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing.

    Status lines are stored with the same label RichConsole prints
    (``"error: ..."``, ``"OK ..."``), so assertions read like the terminal.
    """

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def _record(self, message: str, style: Style) -> None:
        self.outputs.append(OutputRecord(f"{_LABELS[style]} {message}", style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self._record(message, Style.SUCCESS)

    def error(self, message: str) -> None:
        self._record(message, Style.ERROR)

    def warning(self, message: str) -> None:
        self._record(message, Style.WARNING)

    def info(self, message: str) -> None:
        self._record(message, Style.INFO)

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def output(self, line: str) -> None:
        self.outputs.append(OutputRecord(line, Style.DIM))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def of_style(self, style: Style) -> list[str]:
        return [o.message for o in self.outputs if o.style is style]

    def has_error(self) -> bool:
        return bool(self.of_style(Style.ERROR))

    def has_warning(self) -> bool:
        return bool(self.of_style(Style.WARNING))

    def find(self, substring: str) -> list[OutputRecord]:
        """All captured lines containing substring."""
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return len(self.of_style(style))
