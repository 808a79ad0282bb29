"""Component resolver for gentle-ai.

This module expands a user's selection into its transitive dependency
closure, determines a deterministic installation order, and partitions the
requested agents into supported and unsupported ones.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from gentle_ai.config.schemas import SUPPORTED_AGENTS, PlatformProfile, Selection
from gentle_ai.core.graph import (
    DependencyCycleError,
    DependencyGraph,
    ResolutionError,
    default_graph,
    topological_sort,
)

logger = logging.getLogger("gentle_ai.resolver")

__all__ = [
    "ComponentAction",
    "ComponentResolver",
    "DependencyCycleError",
    "PlatformDecision",
    "ResolutionError",
    "ResolvedPlan",
    "ReviewPayload",
    "UnknownComponentError",
    "build_review_payload",
]


class UnknownComponentError(ResolutionError):
    """Error when a selected component or a declared dependency is not in the graph."""

    def __init__(self, component: str, required_by: str | None = None):
        self.component = component
        self.required_by = required_by
        if required_by is None:
            message = f"Unknown component: {component!r}"
        else:
            message = f"Component {required_by!r} depends on unknown component {component!r}"
        super().__init__(message)


@dataclass(frozen=True)
class PlatformDecision:
    """Platform facts the plan was made for."""

    os: str = ""
    linux_distro: str = ""
    package_manager: str = ""
    supported: bool = False

    @classmethod
    def from_profile(cls, profile: PlatformProfile) -> PlatformDecision:
        return cls(
            os=profile.os,
            linux_distro=profile.linux_distro,
            package_manager=profile.package_manager,
            supported=profile.supported,
        )


@dataclass(frozen=True)
class ResolvedPlan:
    """Result of resolving a selection. Never mutated after creation."""

    agents: tuple[str, ...] = ()
    unsupported_agents: tuple[str, ...] = ()
    ordered_components: tuple[str, ...] = ()
    added_dependencies: tuple[str, ...] = ()
    platform_decision: PlatformDecision = field(default_factory=PlatformDecision)


class ComponentResolver:
    """Resolves a Selection against a dependency graph.

    Resolution either yields a complete plan or raises; a partial plan is
    never returned.
    """

    def __init__(
        self,
        graph: DependencyGraph | None = None,
        supported_agents: Iterable[str] = SUPPORTED_AGENTS,
    ):
        self.graph = graph if graph is not None else default_graph()
        self.supported_agents = frozenset(supported_agents)

    def resolve(
        self,
        selection: Selection,
        profile: PlatformProfile | None = None,
    ) -> ResolvedPlan:
        """Resolve a selection into an ordered plan.

        Args:
            selection: Components and agents the user picked
            profile: Optional platform profile to record on the plan

        Returns:
            ResolvedPlan with dependencies ordered before dependents

        Raises:
            UnknownComponentError: If a component or dependency is not in the graph
            DependencyCycleError: If the closure cannot be ordered
        """
        closure: dict[str, tuple[str, ...]] = {}
        selected = set()

        for component in selection.components:
            if not self.graph.has(component):
                raise UnknownComponentError(component)
            selected.add(component)
            self._expand(component, closure)

        ordered = topological_sort(closure)
        added = tuple(c for c in ordered if c not in selected)
        if added:
            logger.info("Auto-added dependencies: %s", ", ".join(added))

        agents: list[str] = []
        unsupported: list[str] = []
        for agent in selection.agents:
            if agent in self.supported_agents:
                agents.append(agent)
            else:
                unsupported.append(agent)
        if unsupported:
            logger.warning("Unsupported agents will be skipped: %s", ", ".join(unsupported))

        return ResolvedPlan(
            agents=tuple(agents),
            unsupported_agents=tuple(unsupported),
            ordered_components=tuple(ordered),
            added_dependencies=added,
            platform_decision=PlatformDecision.from_profile(profile) if profile else PlatformDecision(),
        )

    def _expand(self, root: str, closure: dict[str, tuple[str, ...]]) -> None:
        """Add ``root`` and everything it needs to ``closure``.

        Iterative walk with the closure doubling as the visited set.
        """
        pending = [root]
        while pending:
            component = pending.pop()
            if component in closure:
                continue

            deps = self.graph.dependencies_of(component)
            for dep in deps:
                if not self.graph.has(dep):
                    raise UnknownComponentError(dep, required_by=component)
            closure[component] = deps
            pending.extend(dep for dep in deps if dep not in closure)


# =============================================================================
# Review Payload
# =============================================================================


@dataclass(frozen=True)
class ComponentAction:
    """A component in the plan and why it is there."""

    id: str
    action: str  # "selected" or "auto-dependency"


@dataclass(frozen=True)
class ReviewPayload:
    """Everything the user sees before confirming an install."""

    agents: tuple[str, ...]
    unsupported_agents: tuple[str, ...]
    persona: str
    preset: str
    components: tuple[ComponentAction, ...]
    added_dependencies: tuple[str, ...]
    platform_decision: PlatformDecision


def build_review_payload(selection: Selection, plan: ResolvedPlan) -> ReviewPayload:
    """Summarize a resolved plan for confirmation."""
    auto_added = set(plan.added_dependencies)
    components = tuple(
        ComponentAction(id=c, action="auto-dependency" if c in auto_added else "selected")
        for c in plan.ordered_components
    )
    return ReviewPayload(
        agents=plan.agents,
        unsupported_agents=plan.unsupported_agents,
        persona=selection.persona,
        preset=selection.preset,
        components=components,
        added_dependencies=plan.added_dependencies,
        platform_decision=plan.platform_decision,
    )
