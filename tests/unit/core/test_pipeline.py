"""Tests for gentle_ai.core.pipeline module."""

from gentle_ai.core.pipeline import (
    ExecutionResult,
    FailurePolicy,
    OneShotStep,
    ProgressEvent,
    ReversibleStep,
    Stage,
    StageFailedError,
    StagePlan,
    StageRunner,
    StepStatus,
)


def recording_step(step_id: str, calls: list[str], error: Exception | None = None) -> OneShotStep:
    def run() -> None:
        calls.append(step_id)
        if error is not None:
            raise error

    return OneShotStep(step_id, run)


class TestStageRunner:
    """Tests for StageRunner.run."""

    def test_runs_steps_in_order(self):
        calls: list[str] = []
        steps = [recording_step(s, calls) for s in ("a", "b", "c")]

        result = StageRunner().run(Stage.APPLY, steps)

        assert calls == ["a", "b", "c"]
        assert result.success is True
        assert result.error is None
        assert [s.status for s in result.steps] == [StepStatus.SUCCEEDED] * 3
        assert result.succeeded_step_ids == ["a", "b", "c"]

    def test_records_timestamps(self):
        result = StageRunner().run(Stage.APPLY, [recording_step("a", [])])

        step = result.steps[0]
        assert step.started_at is not None
        assert step.finished_at is not None
        assert step.started_at <= step.finished_at

    def test_stop_on_error_halts(self):
        """Steps after the failing one never start."""
        calls: list[str] = []
        boom = RuntimeError("boom")
        steps = [recording_step("a", calls), recording_step("b", calls, boom), recording_step("c", calls)]

        result = StageRunner().run(Stage.APPLY, steps)

        assert calls == ["a", "b"]
        assert result.success is False
        assert result.error is boom
        assert [s.step_id for s in result.steps] == ["a", "b"]
        assert result.steps[1].status == StepStatus.FAILED
        assert result.steps[1].error is boom

    def test_continue_on_error_runs_everything(self):
        calls: list[str] = []
        first, second = RuntimeError("first"), RuntimeError("second")
        steps = [
            recording_step("a", calls, first),
            recording_step("b", calls),
            recording_step("c", calls, second),
        ]

        result = StageRunner(FailurePolicy.CONTINUE_ON_ERROR).run(Stage.APPLY, steps)

        assert calls == ["a", "b", "c"]
        assert result.success is False
        assert isinstance(result.error, StageFailedError)
        assert result.error.errors == [first, second]
        assert result.error.stage == Stage.APPLY
        assert result.errors == [first, second]
        assert result.succeeded_step_ids == ["b"]

    def test_single_failure_under_continue_is_not_wrapped(self):
        boom = ValueError("boom")

        result = StageRunner(FailurePolicy.CONTINUE_ON_ERROR).run(
            Stage.APPLY, [recording_step("a", [], boom), recording_step("b", [])]
        )

        assert result.error is boom

    def test_policy_override(self):
        calls: list[str] = []
        steps = [recording_step("a", calls, RuntimeError("x")), recording_step("b", calls)]

        StageRunner(FailurePolicy.CONTINUE_ON_ERROR).run(Stage.PREPARE, steps, FailurePolicy.STOP_ON_ERROR)

        assert calls == ["a"]

    def test_empty_stage_succeeds(self):
        result = StageRunner().run(Stage.PREPARE, [])

        assert result.success is True
        assert result.steps == []

    def test_reversible_step_runs_forward_only(self):
        calls: list[str] = []
        step = ReversibleStep("r", lambda: calls.append("run"), lambda: calls.append("rollback"))

        StageRunner().run(Stage.APPLY, [step])

        assert calls == ["run"]

    def test_emits_progress(self):
        events: list[ProgressEvent] = []
        steps = [recording_step("a", []), recording_step("b", [], RuntimeError("x"))]

        StageRunner(on_progress=events.append).run(Stage.APPLY, steps)

        assert [(e.step_id, e.status) for e in events] == [
            ("a", StepStatus.RUNNING),
            ("a", StepStatus.SUCCEEDED),
            ("b", StepStatus.RUNNING),
            ("b", StepStatus.FAILED),
        ]
        assert all(e.stage == Stage.APPLY for e in events)
        assert events[-1].error is not None


class TestStagePlan:
    """Tests for StagePlan."""

    def test_of_builds_tuples(self):
        step = recording_step("a", [])

        plan = StagePlan.of([step], [step])

        assert plan.prepare == (step,)
        assert plan.apply == (step,)


class TestExecutionResult:
    """Tests for ExecutionResult properties."""

    def test_defaults(self):
        result = ExecutionResult()

        assert result.success is True
        assert result.rolled_back is False
        assert result.rollback_failed is False
        assert result.prepare.stage == Stage.PREPARE
        assert result.rollback.stage == Stage.ROLLBACK
