"""Pipeline orchestration with rollback on apply failure."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from gentle_ai.core.pipeline import (
    ExecutionResult,
    FailurePolicy,
    ProgressCallback,
    ProgressEvent,
    ReversibleStep,
    Stage,
    StagePlan,
    StageResult,
    StageRunner,
    Step,
    StepResult,
    StepStatus,
    utc_now,
)

logger = logging.getLogger("gentle_ai.orchestrator")


class RollbackError(Exception):
    """A compensating action failed.

    Files touched by the apply stage may be left modified. This is reported
    instead of the apply error that triggered the rollback.
    """

    def __init__(self, step_id: str, cause: Exception):
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"Rollback of step {step_id!r} failed: {cause}")


@dataclass(frozen=True)
class RollbackPolicy:
    on_apply_failure: bool = True

    def should_rollback(self, stage: Stage, error: Exception | None) -> bool:
        if error is None:
            return False
        return stage == Stage.APPLY and self.on_apply_failure


def execute_rollback(
    steps: Sequence[StepResult],
    step_index: Mapping[str, Step],
    on_progress: ProgressCallback | None = None,
) -> StageResult:
    """Compensate succeeded steps in reverse order.

    Steps that did not succeed, or that have no compensating action, are
    skipped. The first failing compensation stops the walk; results recorded
    before it are kept.

    Raises:
        KeyError: If a result refers to a step that was never indexed
    """
    result = StageResult(stage=Stage.ROLLBACK)

    for step_result in reversed(steps):
        if step_result.status != StepStatus.SUCCEEDED:
            continue

        step = step_index[step_result.step_id]
        if not isinstance(step, ReversibleStep):
            continue

        item = StepResult(step_id=step.id, status=StepStatus.RUNNING, started_at=utc_now())
        if on_progress is not None:
            on_progress(ProgressEvent(step.id, Stage.ROLLBACK, StepStatus.RUNNING))
        logger.info("Rolling back %s", step.id)

        try:
            step.rollback()
        except Exception as e:
            item.finished_at = utc_now()
            item.status = StepStatus.FAILED
            item.error = e
            result.steps.append(item)
            result.success = False
            result.error = RollbackError(step.id, e)
            logger.error("Rollback of %s failed: %s", step.id, e)
            if on_progress is not None:
                on_progress(ProgressEvent(step.id, Stage.ROLLBACK, StepStatus.FAILED, e))
            return result

        item.finished_at = utc_now()
        item.status = StepStatus.ROLLED_BACK
        step_result.status = StepStatus.ROLLED_BACK
        result.steps.append(item)
        if on_progress is not None:
            on_progress(ProgressEvent(step.id, Stage.ROLLBACK, StepStatus.ROLLED_BACK))

    return result


class Orchestrator:
    """Runs a StagePlan: Prepare, then Apply, then rollback if Apply failed.

    Prepare always stops at its first failure, and Apply does not run unless
    Prepare succeeded completely.
    """

    def __init__(
        self,
        policy: RollbackPolicy | None = None,
        failure_policy: FailurePolicy = FailurePolicy.STOP_ON_ERROR,
        on_progress: ProgressCallback | None = None,
    ):
        self.policy = policy or RollbackPolicy()
        self.failure_policy = failure_policy
        self.on_progress = on_progress
        self.runner = StageRunner(failure_policy, on_progress)
        self._step_by_id: dict[str, Step] = {}

    def execute(self, plan: StagePlan) -> ExecutionResult:
        """Execute a plan and report every stage's outcome."""
        self._index_steps(plan)

        prepare = self.runner.run(Stage.PREPARE, plan.prepare, FailurePolicy.STOP_ON_ERROR)
        if not prepare.success:
            logger.error("Prepare stage failed: %s", prepare.error)
            return ExecutionResult(prepare=prepare, error=prepare.error)

        apply = self.runner.run(Stage.APPLY, plan.apply, self.failure_policy)
        result = ExecutionResult(prepare=prepare, apply=apply)
        if apply.success:
            return result

        result.error = apply.error
        if self.policy.should_rollback(Stage.APPLY, apply.error):
            result.rollback = execute_rollback(apply.steps, self._step_by_id, self.on_progress)
            if not result.rollback.success:
                result.error = result.rollback.error

        return result

    def _index_steps(self, plan: StagePlan) -> None:
        self._step_by_id = {}
        for step in (*plan.prepare, *plan.apply):
            if step.id in self._step_by_id:
                raise ValueError(f"Duplicate step id in plan: {step.id!r}")
            self._step_by_id[step.id] = step
