"""
Ordered stage pipelines.

Builders, the task executor, the run orchestrator and the host adapter are
each written as a list of named stages. A stage takes the pipeline state
and returns it. Raising stops the pipeline (fatal); problems a stage can
live with are recorded on the state instead. Setting `state.halted` stops
the remaining stages without an error, e.g. when a guard fails.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class Stage(Generic[S]):
    """A named step of a pipeline."""

    name: str
    fn: Callable[[S], S]


class Pipeline(Generic[S]):
    """Runs stages in order against a state object.

    Example:
        >>> pipeline = Pipeline("create", [Stage("template", set_template),
        ...                                Stage("names", eval_name)])
        >>> state = pipeline.run(state)
    """

    def __init__(self, name: str, stages: Iterable[Stage[S]]):
        self.name = name
        self.stages = list(stages)

    def extend(self, *stages: Stage[S]) -> "Pipeline[S]":
        """Return a new pipeline with extra stages appended."""
        return Pipeline(self.name, [*self.stages, *stages])

    def run(self, state: S) -> S:
        for stage in self.stages:
            logger.debug(f"{self.name}: running stage {stage.name}")
            state = stage.fn(state)
            if getattr(state, "halted", False):
                logger.debug(f"{self.name}: halted after stage {stage.name}")
                break
        return state
