from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Protocol, Sequence, Tuple

from .errors import PrerequisiteMissing
from .logging_utils import log_success
from .state_store import CheckpointStore

if TYPE_CHECKING:
    from .context import ProvisionCtx

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent, checkpointed step."""

    step_id: str
    title: str
    skip_requested: bool
    reapply_when_satisfied: bool

    def is_satisfied(self, ctx: "ProvisionCtx") -> bool:
        ...

    def run(self, ctx: "ProvisionCtx", *, satisfied: bool) -> None:
        ...


class StepOutcome(Enum):
    SKIPPED_CHECKPOINT = "skipped (checkpoint)"
    SKIPPED_EXPLICIT = "skipped (requested)"
    SATISFIED = "already satisfied"
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    outcomes: List[Tuple[str, StepOutcome]] = field(default_factory=list)

    def _with(self, *wanted: StepOutcome) -> List[str]:
        return [step_id for step_id, outcome in self.outcomes if outcome in wanted]

    @property
    def ran(self) -> List[str]:
        return self._with(StepOutcome.EXECUTED)

    @property
    def skipped(self) -> List[str]:
        return self._with(StepOutcome.SKIPPED_CHECKPOINT, StepOutcome.SKIPPED_EXPLICIT, StepOutcome.SATISFIED)

    @property
    def failed(self) -> List[str]:
        return self._with(StepOutcome.FAILED)

    def outcome_of(self, step_id: str) -> StepOutcome:
        for sid, outcome in self.outcomes:
            if sid == step_id:
                return outcome
        raise KeyError(step_id)


def _check_satisfied(step: Step, ctx: "ProvisionCtx") -> bool:
    try:
        return bool(step.is_satisfied(ctx))
    except Exception as e:
        logger.warning("Could not determine whether %s is satisfied (%s); assuming not", step.step_id, e)
        return False


def run_step(step: Step, store: CheckpointStore, ctx: "ProvisionCtx") -> StepOutcome:
    """Run one step. Never raises for step-local failures."""

    if store.has(step.step_id):
        logger.info("Skipping step %s (already completed)", step.step_id)
        return StepOutcome.SKIPPED_CHECKPOINT

    if step.skip_requested:
        logger.info("Skipping step %s (requested)", step.step_id)
        store.mark_done(step.step_id)
        return StepOutcome.SKIPPED_EXPLICIT

    satisfied = _check_satisfied(step, ctx)
    if satisfied:
        logger.info("%s: already satisfied", step.title)
        if not step.reapply_when_satisfied:
            store.mark_done(step.step_id)
            return StepOutcome.SATISFIED

    logger.info("Running step %s (%s)", step.step_id, step.title)
    try:
        step.run(ctx, satisfied=satisfied)
    except PrerequisiteMissing as e:
        logger.warning("Step %s (%s) could not run: %s", step.step_id, step.title, e)
        return StepOutcome.FAILED
    except Exception as e:
        logger.error("Step %s (%s) failed: %s", step.step_id, step.title, e, exc_info=True)
        return StepOutcome.FAILED

    store.mark_done(step.step_id)
    log_success(logger, "Step %s completed", step.step_id)
    return StepOutcome.EXECUTED


def run_pipeline(
    *,
    steps: Sequence[Step],
    store: CheckpointStore,
    ctx: "ProvisionCtx",
) -> PipelineResult:
    """Run steps in order with resume/idempotency semantics.

    Every step is attempted, whatever happened to the ones before it.
    """

    result = PipelineResult()
    for step in steps:
        result.outcomes.append((step.step_id, run_step(step, store, ctx)))
    return result
