"""Install orchestration.

This module turns a Selection into a StagePlan of real steps and runs it:

    prepare:check-dependencies   platform must be supported
    prepare:backup-snapshot      snapshot every file the run may touch
    apply:rollback-restore       no-op; its rollback restores that snapshot
    agent:<id>                   install the agent binary
    component:<id>               install/inject one component

Because ``apply:rollback-restore`` runs first, any Apply failure that
triggers rollback puts every captured file back the way it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from gentle_ai.adapters import get_adapter
from gentle_ai.adapters.base import AgentAdapter
from gentle_ai.components.injectors import InjectionContext, get_injector, selected_skills
from gentle_ai.config.schemas import PlatformProfile, Selection, SnapshotManifest
from gentle_ai.core.backup import Snapshotter, restore_snapshot, snapshot_directory_name
from gentle_ai.core.orchestrator import Orchestrator, RollbackPolicy
from gentle_ai.core.pipeline import (
    ExecutionResult,
    FailurePolicy,
    OneShotStep,
    ProgressCallback,
    ReversibleStep,
    StagePlan,
    Step,
)
from gentle_ai.core.resolver import (
    ComponentResolver,
    PlatformDecision,
    ResolvedPlan,
    ReviewPayload,
    build_review_payload,
)
from gentle_ai.core.verify import VerificationReport, render_report, verify_paths
from gentle_ai.utils.filesystem import ensure_directory
from gentle_ai.utils.process import CommandSequence, run_command_sequence

logger = logging.getLogger("gentle_ai.installer")

CommandRunner = Callable[[CommandSequence], None]


class InstallError(Exception):
    """Error during installation. ``result`` holds whatever ran before it."""

    def __init__(self, message: str, result: InstallResult | None = None):
        self.result = result
        super().__init__(message)


class UnsupportedPlatformStepError(Exception):
    """The detected platform cannot run an install."""


@dataclass
class InstallOptions:
    """Knobs for one install run."""

    home: Path
    backup_root: Path
    dry_run: bool = False
    rollback_on_failure: bool = True
    failure_policy: FailurePolicy = FailurePolicy.STOP_ON_ERROR
    skip_agent_install: bool = False
    skip_binary_installs: bool = False


@dataclass
class InstallResult:
    """Everything known about an install run."""

    selection: Selection
    resolved: ResolvedPlan
    review: ReviewPayload
    plan: StagePlan
    dry_run: bool = False
    execution: ExecutionResult | None = None
    snapshot: SnapshotManifest | None = None
    verification: VerificationReport | None = None

    @property
    def success(self) -> bool:
        if self.dry_run:
            return True
        if self.execution is None or not self.execution.success:
            return False
        return self.verification is None or self.verification.ready


# =============================================================================
# Targets
# =============================================================================


def selected_skill_ids(selection: Selection) -> list[str]:
    """Skills an install writes: the explicit list, else the preset's."""
    return selected_skills(selection)


def resolve_adapters(agent_ids: Iterable[str]) -> tuple[AgentAdapter, ...]:
    """Create adapters for agent ids, skipping agents without one."""
    adapters = []
    for agent_id in agent_ids:
        try:
            adapters.append(get_adapter(agent_id))
        except ValueError:
            logger.debug("No adapter for agent %s", agent_id)
    return tuple(adapters)


def component_paths(home: Path, selection: Selection, adapters: Iterable[AgentAdapter], component: str) -> list[Path]:
    """Files ``component`` writes for the given agents."""
    ctx = InjectionContext(home=home, adapters=tuple(adapters), selection=selection)
    return get_injector(component).target_paths(ctx)


def backup_targets(home: Path, selection: Selection, resolved: ResolvedPlan) -> list[Path]:
    """Every file the resolved components may touch, de-duplicated and sorted."""
    adapters = resolve_adapters(resolved.agents)
    paths: set[Path] = set()
    for component in resolved.ordered_components:
        paths.update(component_paths(home, selection, adapters, component))
    return sorted(paths)


# =============================================================================
# Stage Plans
# =============================================================================


def _noop() -> None:
    return None


def build_preview_plan(selection: Selection, resolved: ResolvedPlan) -> StagePlan:
    """Step outline shown by a dry run. Nothing in it touches the system."""
    prepare: list[Step] = [
        OneShotStep("prepare:system-check", _noop),
        OneShotStep("prepare:check-dependencies", _noop),
    ]
    apply: list[Step] = [OneShotStep(f"agent:{agent}", _noop) for agent in resolved.agents]
    apply.extend(OneShotStep(f"component:{c}", _noop) for c in resolved.ordered_components)

    if not selection.agents and not resolved.ordered_components:
        prepare = []
    return StagePlan.of(prepare, apply)


class InstallRuntime:
    """Builds the real stage plan for one run and holds its shared state.

    The snapshot manifest captured in Prepare is stored here and read by the
    rollback of ``apply:rollback-restore``.
    """

    def __init__(
        self,
        options: InstallOptions,
        selection: Selection,
        resolved: ResolvedPlan,
        profile: PlatformProfile,
        command_runner: CommandRunner = run_command_sequence,
        now: Callable[[], datetime] | None = None,
    ):
        self.options = options
        self.selection = selection
        self.resolved = resolved
        self.profile = profile
        self.command_runner = command_runner
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.adapters = resolve_adapters(resolved.agents)
        self.manifest: SnapshotManifest | None = None
        self.snapshot_dir = options.backup_root / snapshot_directory_name(self._now())

    def stage_plan(self) -> StagePlan:
        prepare: list[Step] = [
            OneShotStep("prepare:check-dependencies", self._check_dependencies),
            OneShotStep("prepare:backup-snapshot", self._backup_snapshot),
        ]

        apply: list[Step] = [ReversibleStep("apply:rollback-restore", _noop, self._restore_snapshot)]
        for adapter in self.adapters:
            apply.append(OneShotStep(f"agent:{adapter.agent_id}", self._agent_install(adapter)))
        for component in self.resolved.ordered_components:
            apply.append(OneShotStep(f"component:{component}", self._component_apply(component)))

        return StagePlan.of(prepare, apply)

    # =========================================================================
    # Prepare
    # =========================================================================

    def _check_dependencies(self) -> None:
        if not self.profile.supported:
            raise UnsupportedPlatformStepError(
                f"Platform is not supported: os={self.profile.os or 'unknown'} "
                f"distro={self.profile.linux_distro or 'n/a'}"
            )

    def _backup_snapshot(self) -> None:
        targets = backup_targets(self.options.home, self.selection, self.resolved)
        self.manifest = Snapshotter(now=self._now).create(self.snapshot_dir, targets)

    # =========================================================================
    # Apply
    # =========================================================================

    def _restore_snapshot(self) -> None:
        if self.manifest is None or not self.manifest.entries:
            return
        restore_snapshot(self.manifest)

    def _agent_install(self, adapter: AgentAdapter) -> Callable[[], None]:
        def run() -> None:
            if self.options.skip_agent_install or not adapter.supports_auto_install():
                logger.info("Skipping install of %s", adapter.display_name)
                return
            self.command_runner(adapter.install_command(self.profile))

        return run

    def _component_apply(self, component: str) -> Callable[[], None]:
        injector = get_injector(component)

        def run() -> None:
            if not self.options.skip_binary_installs:
                commands = injector.install_command(self.profile)
                if commands is not None:
                    self.command_runner(commands)
            ctx = InjectionContext(home=self.options.home, adapters=self.adapters, selection=self.selection)
            result = injector.inject(ctx)
            logger.info(
                "Applied %s (%d file(s), %s)",
                component,
                len(result.files),
                "changed" if result.changed else "unchanged",
            )

        return run


# =============================================================================
# Installer
# =============================================================================


class Installer:
    """Resolves a selection and runs it through the staged pipeline."""

    def __init__(
        self,
        options: InstallOptions,
        profile: PlatformProfile,
        resolver: ComponentResolver | None = None,
        command_runner: CommandRunner = run_command_sequence,
        on_progress: ProgressCallback | None = None,
    ):
        self.options = options
        self.profile = profile
        self.resolver = resolver or ComponentResolver()
        self.command_runner = command_runner
        self.on_progress = on_progress

    def plan(self, selection: Selection) -> InstallResult:
        """Resolve a selection without executing anything."""
        resolved = self.resolver.resolve(selection, self.profile)
        return InstallResult(
            selection=selection,
            resolved=resolved,
            review=build_review_payload(selection, resolved),
            plan=build_preview_plan(selection, resolved),
            dry_run=True,
        )

    def install(self, selection: Selection) -> InstallResult:
        """Install a selection.

        Returns:
            InstallResult; a dry run returns after planning

        Raises:
            ResolutionError: If the selection cannot be resolved
            InstallError: If the pipeline or post-apply verification failed
        """
        result = self.plan(selection)
        if self.options.dry_run:
            return result
        result.dry_run = False

        try:
            ensure_directory(self.options.backup_root)
        except OSError as e:
            raise InstallError(f"Cannot create backup root {self.options.backup_root}: {e}", result) from e

        runtime = InstallRuntime(
            self.options,
            selection,
            result.resolved,
            self.profile,
            command_runner=self.command_runner,
        )
        result.plan = runtime.stage_plan()

        orchestrator = Orchestrator(
            policy=RollbackPolicy(on_apply_failure=self.options.rollback_on_failure),
            failure_policy=self.options.failure_policy,
            on_progress=self.on_progress,
        )
        result.execution = orchestrator.execute(result.plan)
        result.snapshot = runtime.manifest
        if not result.execution.success:
            raise InstallError(f"Install pipeline failed: {result.execution.error}", result)

        expected = backup_targets(self.options.home, selection, result.resolved)
        result.verification = verify_paths(expected)
        if not result.verification.ready:
            raise InstallError(f"Post-apply verification failed:\n{render_report(result.verification)}", result)

        logger.info("Install complete: %d component(s)", len(result.resolved.ordered_components))
        return result


# =============================================================================
# Dry Run Rendering
# =============================================================================


def _join(values: Iterable[str]) -> str:
    values = list(values)
    return ",".join(values) if values else "none"


def format_platform_decision(decision: PlatformDecision) -> str:
    os_name = decision.os.strip() or "unknown"
    distro = decision.linux_distro.strip() or "n/a"
    manager = decision.package_manager.strip() or "n/a"
    status = "supported" if decision.supported else "unsupported"
    return f"os={os_name} distro={distro} package-manager={manager} status={status}"


def render_dry_run(result: InstallResult) -> str:
    """Render the plain-text preview of an install."""
    lines = [
        "AI Gentle Stack dry-run",
        "=====================",
        f"Agents: {_join(result.resolved.agents)}",
        f"Unsupported agents: {_join(result.resolved.unsupported_agents)}",
        f"Persona: {result.selection.persona}",
        f"Preset: {result.selection.preset}",
        f"Components order: {_join(result.resolved.ordered_components)}",
        f"Auto-added dependencies: {_join(result.resolved.added_dependencies)}",
        f"Platform decision: {format_platform_decision(result.review.platform_decision)}",
        f"Prepare steps: {len(result.plan.prepare)}",
        f"Apply steps: {len(result.plan.apply)}",
    ]
    return "\n".join(lines)
