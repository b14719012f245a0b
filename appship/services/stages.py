"""Minimal stage runner: look up the handler for the current stage, run it,
advance or stop.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from appship.core.result import Err, Ok, Result

S = TypeVar("S")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    state: S


@dataclass(frozen=True, slots=True)
class StepFinish(Generic[S]):
    state: S


StepOutcome = StepAdvance[S] | StepFinish[S]
StepHandler = Callable[[S], Result[StepOutcome[S], E]]


def advance(state: S) -> StepAdvance[S]:
    return StepAdvance(state=state)


def finish(state: S) -> StepFinish[S]:
    return StepFinish(state=state)


class UnknownStage(LookupError):
    """A state pointed at a stage with no handler (a wiring bug, not a run failure)."""


def run_stages(
    *,
    initial_state: S,
    get_stage: Callable[[S], Hashable],
    handlers: Mapping[Hashable, StepHandler[S, E]],
    on_enter: Callable[[S], None] | None = None,
) -> Result[S, E]:
    """Run handlers until one finishes (Ok(final state)) or fails (its Err)."""
    current = initial_state

    while True:
        stage = get_stage(current)
        handler = handlers.get(stage)
        if handler is None:
            raise UnknownStage(f"no handler for stage: {stage}")

        if on_enter is not None:
            on_enter(current)

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(outcome.value.state)
        current = outcome.value.state
