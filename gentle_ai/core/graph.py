"""Component dependency graph and topological ordering."""

from collections.abc import Iterable, Mapping

from gentle_ai.config.schemas import (
    COMPONENT_CONTEXT7,
    COMPONENT_ENGRAM,
    COMPONENT_GGA,
    COMPONENT_PERMISSIONS,
    COMPONENT_PERSONA,
    COMPONENT_SDD,
    COMPONENT_SKILLS,
    COMPONENT_THEME,
)


class ResolutionError(Exception):
    """Error resolving a component selection into an install order."""


class DependencyCycleError(ResolutionError):
    """Error when the dependency graph cannot be fully ordered."""

    def __init__(self, remaining: Iterable[str]):
        self.remaining = sorted(remaining)
        super().__init__(f"Dependency cycle detected among: {', '.join(self.remaining)}")


class DependencyGraph:
    """Immutable mapping of component ID to its declared prerequisites."""

    def __init__(self, dependencies: Mapping[str, Iterable[str]]):
        self._dependencies: dict[str, tuple[str, ...]] = {
            component: tuple(deps) for component, deps in dependencies.items()
        }

    def __contains__(self, component: object) -> bool:
        return component in self._dependencies

    def __iter__(self):
        return iter(self._dependencies)

    def __len__(self) -> int:
        return len(self._dependencies)

    def has(self, component: str) -> bool:
        return component in self._dependencies

    def dependencies_of(self, component: str) -> tuple[str, ...]:
        """Get the direct prerequisites of a component (empty if unknown)."""
        return self._dependencies.get(component, ())


def default_graph() -> DependencyGraph:
    """Build the graph of every installable component."""
    return DependencyGraph(
        {
            COMPONENT_ENGRAM: (),
            COMPONENT_SDD: (COMPONENT_ENGRAM,),
            COMPONENT_SKILLS: (COMPONENT_SDD,),
            COMPONENT_CONTEXT7: (),
            COMPONENT_PERSONA: (),
            COMPONENT_PERMISSIONS: (),
            COMPONENT_GGA: (),
            COMPONENT_THEME: (),
        }
    )


def topological_sort(dependencies: Mapping[str, Iterable[str]]) -> list[str]:
    """Order components so that every dependency comes before its dependents.

    Kahn's algorithm; when several nodes are ready at once the
    lexicographically smallest goes first, so the same input always yields
    the same order.

    Args:
        dependencies: Mapping of component to its prerequisites. Prerequisites
            that are not keys are still treated as nodes.

    Returns:
        Ordered list of every node

    Raises:
        DependencyCycleError: If some nodes can never become ready
    """
    in_degree: dict[str, int] = {}
    children: dict[str, list[str]] = {}

    for component, deps in dependencies.items():
        in_degree.setdefault(component, 0)
        for dep in deps:
            in_degree.setdefault(dep, 0)
            in_degree[component] += 1
            children.setdefault(dep, []).append(component)

    ready = sorted(node for node, degree in in_degree.items() if degree == 0)
    ordered: list[str] = []

    while ready:
        node = ready.pop(0)
        ordered.append(node)
        for child in children.get(node, []):
            in_degree[child] -= 1
            if in_degree[child] == 0:
                ready.append(child)
        ready.sort()

    if len(ordered) != len(in_degree):
        raise DependencyCycleError(node for node, degree in in_degree.items() if degree > 0)

    return ordered
