"""Staged step execution.

A pipeline run is a StagePlan of two ordered step lists, Prepare and Apply.
The StageRunner executes one list strictly in order and records a StepResult
per executed step. Steps signal failure by raising; the runner records the
exception and never re-raises it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger("gentle_ai.pipeline")


class Stage(str, Enum):
    PREPARE = "prepare"
    APPLY = "apply"
    ROLLBACK = "rollback"


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ROLLED_BACK = "rolled-back"


class FailurePolicy(str, Enum):
    """How a stage reacts to a failing step."""

    STOP_ON_ERROR = "stop"
    CONTINUE_ON_ERROR = "continue"


# =============================================================================
# Steps
# =============================================================================


@dataclass(frozen=True)
class OneShotStep:
    """A step with nothing to undo."""

    id: str
    run: Callable[[], None]


@dataclass(frozen=True)
class ReversibleStep:
    """A step with a compensating action invoked during rollback."""

    id: str
    run: Callable[[], None]
    rollback: Callable[[], None]


Step = OneShotStep | ReversibleStep


@dataclass(frozen=True)
class StagePlan:
    """Ordered Prepare and Apply steps for one run."""

    prepare: tuple[Step, ...] = ()
    apply: tuple[Step, ...] = ()

    @classmethod
    def of(cls, prepare: Sequence[Step] = (), apply: Sequence[Step] = ()) -> StagePlan:
        return cls(prepare=tuple(prepare), apply=tuple(apply))


# =============================================================================
# Results
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StepResult:
    """Outcome of one step within a stage."""

    step_id: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: Exception | None = None


class StageFailedError(Exception):
    """Several steps of one stage failed.

    The individual exceptions are kept, in execution order, on ``errors``.
    """

    def __init__(self, stage: Stage, errors: Sequence[Exception]):
        self.stage = stage
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} step(s) failed in {stage.value} stage: {details}")


@dataclass
class StageResult:
    """Outcome of one stage."""

    stage: Stage
    steps: list[StepResult] = field(default_factory=list)
    success: bool = True
    error: Exception | None = None

    @property
    def errors(self) -> list[Exception]:
        """Every step error in this stage, in execution order."""
        return [s.error for s in self.steps if s.error is not None]

    @property
    def succeeded_step_ids(self) -> list[str]:
        return [s.step_id for s in self.steps if s.status == StepStatus.SUCCEEDED]


@dataclass
class ExecutionResult:
    """Aggregate outcome of a pipeline run."""

    prepare: StageResult = field(default_factory=lambda: StageResult(Stage.PREPARE))
    apply: StageResult = field(default_factory=lambda: StageResult(Stage.APPLY))
    rollback: StageResult = field(default_factory=lambda: StageResult(Stage.ROLLBACK))
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def rolled_back(self) -> bool:
        return bool(self.rollback.steps)

    @property
    def rollback_failed(self) -> bool:
        return not self.rollback.success


# =============================================================================
# Runner
# =============================================================================


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted as each step starts and finishes."""

    step_id: str
    stage: Stage
    status: StepStatus
    error: Exception | None = None


ProgressCallback = Callable[[ProgressEvent], None]


class StageRunner:
    """Runs the steps of a single stage, one at a time, in list order."""

    def __init__(
        self,
        failure_policy: FailurePolicy = FailurePolicy.STOP_ON_ERROR,
        on_progress: ProgressCallback | None = None,
    ):
        self.failure_policy = failure_policy
        self.on_progress = on_progress

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is not None:
            self.on_progress(event)

    def run(
        self,
        stage: Stage,
        steps: Sequence[Step],
        failure_policy: FailurePolicy | None = None,
    ) -> StageResult:
        """Execute steps and collect their results.

        Args:
            stage: Stage being run (recorded on results and events)
            steps: Steps in execution order
            failure_policy: Override of the runner's policy for this call

        Returns:
            StageResult; ``error`` is the failing step's exception, or a
            StageFailedError when several steps failed under
            CONTINUE_ON_ERROR
        """
        policy = failure_policy or self.failure_policy
        result = StageResult(stage=stage)

        for step in steps:
            self._emit(ProgressEvent(step.id, stage, StepStatus.RUNNING))
            step_result = StepResult(step_id=step.id, status=StepStatus.RUNNING, started_at=utc_now())
            logger.debug("[%s] running %s", stage.value, step.id)

            try:
                step.run()
            except Exception as e:
                step_result.finished_at = utc_now()
                step_result.status = StepStatus.FAILED
                step_result.error = e
                result.steps.append(step_result)
                result.success = False
                logger.warning("[%s] step %s failed: %s", stage.value, step.id, e)
                self._emit(ProgressEvent(step.id, stage, StepStatus.FAILED, e))
                if policy == FailurePolicy.STOP_ON_ERROR:
                    break
                continue

            step_result.finished_at = utc_now()
            step_result.status = StepStatus.SUCCEEDED
            result.steps.append(step_result)
            self._emit(ProgressEvent(step.id, stage, StepStatus.SUCCEEDED))

        errors = result.errors
        if len(errors) == 1:
            result.error = errors[0]
        elif errors:
            result.error = StageFailedError(stage, errors)
        return result
