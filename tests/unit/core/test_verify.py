"""Tests for gentle_ai.core.verify module."""

from pathlib import Path

from gentle_ai.core.verify import (
    NOT_READY_MESSAGE,
    READY_MESSAGE,
    Check,
    CheckStatus,
    build_report,
    render_report,
    run_checks,
    verify_paths,
)


def failing() -> None:
    raise RuntimeError("missing binary")


class TestRunChecks:
    """Tests for run_checks function."""

    def test_statuses(self):
        results = run_checks(
            [
                Check("ok", run=lambda: None),
                Check("bad", run=failing),
                Check("soft", run=failing, soft=True),
                Check("todo"),
            ]
        )

        assert [(r.id, r.status) for r in results] == [
            ("ok", CheckStatus.PASSED),
            ("bad", CheckStatus.FAILED),
            ("soft", CheckStatus.WARNING),
            ("todo", CheckStatus.SKIPPED),
        ]
        assert results[1].error == "missing binary"


class TestBuildReport:
    """Tests for build_report function."""

    def test_counts_and_ready(self):
        report = build_report(run_checks([Check("a", run=lambda: None), Check("b", run=failing, soft=True)]))

        assert (report.passed, report.failed, report.skipped, report.warnings) == (1, 0, 0, 1)
        assert report.ready is True
        assert report.final_note == READY_MESSAGE

    def test_failure_is_not_ready(self):
        report = build_report(run_checks([Check("b", run=failing)]))

        assert report.ready is False
        assert report.final_note == NOT_READY_MESSAGE


class TestVerifyPaths:
    """Tests for verify_paths function."""

    def test_existing_and_missing(self, temp_dir: Path):
        present = temp_dir / "present.md"
        present.write_text("x")

        report = verify_paths([present, temp_dir / "missing.md", present])

        assert report.passed == 1
        assert report.failed == 1
        assert len(report.checks) == 2

    def test_nothing_to_verify_is_ready(self):
        assert verify_paths([]).ready is True


class TestRenderReport:
    """Tests for render_report function."""

    def test_render(self):
        report = build_report(
            run_checks([Check("verify:a", "required file exists", run=lambda: None), Check("verify:b", run=failing)])
        )

        assert render_report(report) == (
            "Verification checks: 1 passed, 1 failed, 0 skipped\n"
            "[ok] verify:a - required file exists\n"
            "[!!] verify:b (missing binary)\n"
            f"{NOT_READY_MESSAGE}\n"
        )
