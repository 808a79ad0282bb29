"""Post-apply verification checks and report."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger("gentle_ai.verify")

READY_MESSAGE = "You're ready. Run `claude` or `opencode` and start building."
NOT_READY_MESSAGE = "Installation completed with verification issues. Re-run install to repair failed checks."


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    WARNING = "warning"


@dataclass(frozen=True)
class Check:
    """A named verification. ``run`` raises to fail; None means not implemented.

    Soft checks report a warning instead of a failure.
    """

    id: str
    description: str = ""
    run: Callable[[], None] | None = None
    soft: bool = False


@dataclass(frozen=True)
class CheckResult:
    id: str
    status: CheckStatus
    description: str = ""
    error: str = ""


@dataclass
class VerificationReport:
    checks: list[CheckResult] = field(default_factory=list)
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    warnings: int = 0

    @property
    def ready(self) -> bool:
        return self.failed == 0

    @property
    def final_note(self) -> str:
        return READY_MESSAGE if self.ready else NOT_READY_MESSAGE


def run_checks(checks: Iterable[Check]) -> list[CheckResult]:
    """Run every check in order. A failing check never stops the others."""
    results = []
    for check in checks:
        if check.run is None:
            results.append(CheckResult(check.id, CheckStatus.SKIPPED, check.description, "check not implemented"))
            continue

        try:
            check.run()
        except Exception as e:
            status = CheckStatus.WARNING if check.soft else CheckStatus.FAILED
            logger.debug("Check %s %s: %s", check.id, status.value, e)
            results.append(CheckResult(check.id, status, check.description, str(e)))
            continue

        results.append(CheckResult(check.id, CheckStatus.PASSED, check.description))
    return results


def build_report(results: Sequence[CheckResult]) -> VerificationReport:
    report = VerificationReport(checks=list(results))
    for result in results:
        if result.status == CheckStatus.PASSED:
            report.passed += 1
        elif result.status == CheckStatus.FAILED:
            report.failed += 1
        elif result.status == CheckStatus.SKIPPED:
            report.skipped += 1
        else:
            report.warnings += 1
    return report


def file_exists_check(path: Path) -> Check:
    """Check that ``path`` exists after the apply stage."""

    def run() -> None:
        if not path.exists():
            raise FileNotFoundError(f"{path} does not exist")

    return Check(id=f"verify:file:{path}", description="required file exists", run=run)


def verify_paths(paths: Iterable[Path]) -> VerificationReport:
    """Verify every expected path exists, once per distinct path."""
    unique = sorted(set(paths))
    return build_report(run_checks(file_exists_check(p) for p in unique))


_MARKERS = {
    CheckStatus.PASSED: "[ok]",
    CheckStatus.FAILED: "[!!]",
    CheckStatus.SKIPPED: "[--]",
    CheckStatus.WARNING: "[~~]",
}


def render_report(report: VerificationReport) -> str:
    """Render a report as plain text, one line per check."""
    lines = [
        f"Verification checks: {report.passed} passed, {report.failed} failed, {report.skipped} skipped"
    ]
    for check in report.checks:
        line = f"{_MARKERS[check.status]} {check.id}"
        if check.description:
            line += f" - {check.description}"
        if check.error:
            line += f" ({check.error})"
        lines.append(line)
    lines.append(report.final_note)
    return "\n".join(lines) + "\n"
