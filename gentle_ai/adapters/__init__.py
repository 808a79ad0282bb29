"""Agent adapters.

An adapter knows where one agent keeps its files, how it wants system
prompts and MCP servers written, and how its binary is installed. Adapter
classes register themselves by agent id with ``register_adapter``; the
built-in modules are imported on first lookup.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gentle_ai.adapters.base import AgentAdapter

AdapterClass = type["AgentAdapter"]

_BUILTIN_ADAPTER_MODULES = (
    "gentle_ai.adapters.claude_code",
    "gentle_ai.adapters.opencode",
)

_registry: dict[str, AdapterClass] = {}
_builtins_imported = False


def register_adapter(agent_id: str) -> Callable[[AdapterClass], AdapterClass]:
    """Class decorator registering an adapter under ``agent_id``."""

    def register(cls: AdapterClass) -> AdapterClass:
        _registry[agent_id] = cls
        return cls

    return register


def _import_builtins() -> None:
    global _builtins_imported
    if not _builtins_imported:
        for module in _BUILTIN_ADAPTER_MODULES:
            importlib.import_module(module)
        _builtins_imported = True


def get_adapter(agent_id: str) -> AgentAdapter:
    """Create a fresh adapter for an agent.

    Raises:
        ValueError: If no adapter is registered for ``agent_id``
    """
    _import_builtins()

    cls = _registry.get(agent_id)
    if cls is None:
        known = ", ".join(sorted(_registry)) or "none"
        raise ValueError(f"Unknown adapter: {agent_id}. Available adapters: {known}")
    return cls()


def list_adapters() -> list[str]:
    """Agent ids with a registered adapter, sorted."""
    _import_builtins()
    return sorted(_registry)
