"""Result type for explicit error handling.

Services in appship never raise for expected failures (missing files,
non-zero exit codes, bad HTTP responses). They return ``Ok(value)`` or
``Err(error)`` and the caller branches with ``isinstance`` or ``match``:

    match locator.find(platform):
        case Ok(artifact): ...
        case Err(error): ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
