"""Component injectors.

Each injector knows which files a component writes for a set of agents and
how to write them. ``target_paths`` must list every file ``inject`` may
touch: the installer snapshots exactly those paths before applying.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gentle_ai.adapters.base import AgentAdapter, MCPStrategy, SystemPromptStrategy, UnsupportedPlatformError
from gentle_ai.components import assets
from gentle_ai.config.schemas import (
    COMPONENT_CONTEXT7,
    COMPONENT_ENGRAM,
    COMPONENT_GGA,
    COMPONENT_PERMISSIONS,
    COMPONENT_PERSONA,
    COMPONENT_SDD,
    COMPONENT_SKILLS,
    COMPONENT_THEME,
    PlatformProfile,
    Selection,
)
from gentle_ai.utils.filesystem import WriteResult, read_file_or_empty, write_file_atomic
from gentle_ai.utils.json_merge import dump_json, merge_json_file
from gentle_ai.utils.markers import inject_markdown_section
from gentle_ai.utils.process import CommandSequence

logger = logging.getLogger("gentle_ai.components")

_HOMEBREW_TAP = "Gentleman-Programming/homebrew-tap"


@dataclass(frozen=True)
class InjectionContext:
    """Inputs shared by every injector in one run."""

    home: Path
    adapters: tuple[AgentAdapter, ...]
    selection: Selection

    @property
    def agent_ids(self) -> list[str]:
        return [a.agent_id for a in self.adapters]


@dataclass
class InjectionResult:
    """Files an injector wrote and whether any of them changed."""

    changed: bool = False
    files: list[Path] = field(default_factory=list)

    def record(self, path: Path, write: WriteResult) -> None:
        self.changed = self.changed or write.changed
        self.files.append(path)


def selected_skills(selection: Selection) -> list[str]:
    """Explicit skills win; otherwise the preset decides."""
    if selection.skills:
        return list(selection.skills)
    return assets.skills_for_preset(selection.preset)


def _inject_section(path: Path, section_id: str, content: str) -> WriteResult:
    updated = inject_markdown_section(read_file_or_empty(path), section_id, content)
    return write_file_atomic(path, updated)


def _mcp_target(home: Path, adapter: AgentAdapter, server_name: str) -> Path | None:
    if adapter.mcp_strategy == MCPStrategy.MERGE_INTO_SETTINGS:
        return adapter.settings_path(home)
    return adapter.mcp_config_path(home, server_name)


def _write_mcp_server(home: Path, adapter: AgentAdapter, name: str, server: dict[str, Any]) -> tuple[Path, WriteResult] | None:
    path = _mcp_target(home, adapter, name)
    if path is None:
        return None
    if adapter.mcp_strategy == MCPStrategy.SEPARATE_FILES:
        return path, write_file_atomic(path, dump_json(server))
    return path, merge_json_file(path, assets.mcp_servers_overlay(name, server))


class ComponentInjector(ABC):
    """Writes one component's configuration for every selected agent."""

    component_id: str

    @abstractmethod
    def target_paths(self, ctx: InjectionContext) -> list[Path]: ...

    @abstractmethod
    def inject(self, ctx: InjectionContext) -> InjectionResult: ...

    def install_command(self, profile: PlatformProfile) -> CommandSequence | None:
        """Commands installing the component's binary, or None if it has none."""
        return None


class EngramInjector(ComponentInjector):
    """Persistent memory: MCP server plus the memory protocol prompt section."""

    component_id = COMPONENT_ENGRAM

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        paths: list[Path] = []
        for adapter in ctx.adapters:
            mcp_path = _mcp_target(ctx.home, adapter, "engram")
            if mcp_path is not None:
                paths.append(mcp_path)
            if adapter.system_prompt_strategy == SystemPromptStrategy.MARKED_SECTIONS:
                paths.append(adapter.system_prompt_file(ctx.home))
        return paths

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        for adapter in ctx.adapters:
            written = _write_mcp_server(ctx.home, adapter, "engram", assets.engram_server())
            if written is not None:
                result.record(*written)
            if adapter.system_prompt_strategy == SystemPromptStrategy.MARKED_SECTIONS:
                prompt = adapter.system_prompt_file(ctx.home)
                result.record(prompt, _inject_section(prompt, "engram-protocol", assets.ENGRAM_PROTOCOL))
        return result

    def install_command(self, profile: PlatformProfile) -> CommandSequence | None:
        if profile.package_manager == "brew":
            return [["brew", "tap", _HOMEBREW_TAP], ["brew", "install", "engram"]]
        if profile.package_manager in ("apt", "pacman"):
            return [
                [
                    "env",
                    "CGO_ENABLED=0",
                    "go",
                    "install",
                    "github.com/Gentleman-Programming/engram/cmd/engram@latest",
                ]
            ]
        raise UnsupportedPlatformError(self.component_id, profile)


class SDDInjector(ComponentInjector):
    """Spec-driven development: orchestrator prompt, slash commands, SDD skills."""

    component_id = COMPONENT_SDD

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        paths: list[Path] = []
        for adapter in ctx.adapters:
            paths.append(adapter.system_prompt_file(ctx.home))
            commands_dir = adapter.commands_dir(ctx.home) if adapter.supports_slash_commands() else None
            if commands_dir is not None:
                paths.extend(commands_dir / f"{name}.md" for name, _, _ in assets.SDD_COMMANDS)
            skills_dir = adapter.skills_dir(ctx.home)
            paths.extend(skills_dir / skill / "SKILL.md" for skill in assets.SDD_SKILLS)
        return paths

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        for adapter in ctx.adapters:
            prompt = adapter.system_prompt_file(ctx.home)
            result.record(prompt, _inject_section(prompt, "sdd-orchestrator", assets.SDD_ORCHESTRATOR))

            commands_dir = adapter.commands_dir(ctx.home) if adapter.supports_slash_commands() else None
            if commands_dir is not None:
                for name, description, body in assets.SDD_COMMANDS:
                    path = commands_dir / f"{name}.md"
                    result.record(path, write_file_atomic(path, assets.command_document(name, description, body)))

            skills_dir = adapter.skills_dir(ctx.home)
            for skill in assets.SDD_SKILLS:
                path = skills_dir / skill / "SKILL.md"
                result.record(path, write_file_atomic(path, assets.skill_document(skill)))
        return result


class SkillsInjector(ComponentInjector):
    """One SKILL.md per selected skill."""

    component_id = COMPONENT_SKILLS

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        skills = selected_skills(ctx.selection)
        return [adapter.skills_dir(ctx.home) / skill / "SKILL.md" for adapter in ctx.adapters for skill in skills]

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        skills = selected_skills(ctx.selection)
        if not skills:
            logger.info("No skills selected")
            return result

        for path in self.target_paths(ctx):
            skill = path.parent.name
            result.record(path, write_file_atomic(path, assets.skill_document(skill)))
        return result


class Context7Injector(ComponentInjector):
    """Context7 documentation MCP server."""

    component_id = COMPONENT_CONTEXT7

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        paths = (_mcp_target(ctx.home, adapter, "context7") for adapter in ctx.adapters)
        return [p for p in paths if p is not None]

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        for adapter in ctx.adapters:
            written = _write_mcp_server(ctx.home, adapter, "context7", assets.context7_server())
            if written is not None:
                result.record(*written)
        return result


class PersonaInjector(ComponentInjector):
    """System prompt persona. The custom persona leaves everything untouched."""

    component_id = COMPONENT_PERSONA

    def _content(self, persona: str) -> str:
        return assets.PERSONA_GENTLEMAN if persona == "gentleman" else assets.PERSONA_NEUTRAL

    def _output_style_path(self, ctx: InjectionContext, adapter: AgentAdapter) -> Path | None:
        if ctx.selection.persona != "gentleman" or not adapter.supports_output_styles():
            return None
        style_dir = adapter.output_style_dir(ctx.home)
        return style_dir / "gentleman.md" if style_dir is not None else None

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        if ctx.selection.persona == "custom":
            return []

        paths: list[Path] = []
        for adapter in ctx.adapters:
            paths.append(adapter.system_prompt_file(ctx.home))
            style_path = self._output_style_path(ctx, adapter)
            settings = adapter.settings_path(ctx.home)
            if style_path is not None:
                paths.append(style_path)
                if settings is not None:
                    paths.append(settings)
        return paths

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        if ctx.selection.persona == "custom":
            return result

        content = self._content(ctx.selection.persona)
        for adapter in ctx.adapters:
            prompt = adapter.system_prompt_file(ctx.home)
            if adapter.system_prompt_strategy == SystemPromptStrategy.REPLACE_FILE:
                result.record(prompt, write_file_atomic(prompt, content))
            else:
                result.record(prompt, _inject_section(prompt, "persona", content))

            style_path = self._output_style_path(ctx, adapter)
            if style_path is None:
                continue
            result.record(style_path, write_file_atomic(style_path, assets.OUTPUT_STYLE_GENTLEMAN))
            settings = adapter.settings_path(ctx.home)
            if settings is not None:
                result.record(settings, merge_json_file(settings, assets.output_style_overlay()))
        return result


class _SettingsOverlayInjector(ComponentInjector):
    """Merges a fixed overlay into each agent's settings file."""

    @abstractmethod
    def overlay(self) -> dict[str, Any]: ...

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        return [p for p in (a.settings_path(ctx.home) for a in ctx.adapters) if p is not None]

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        for path in self.target_paths(ctx):
            result.record(path, merge_json_file(path, self.overlay()))
        return result


class PermissionsInjector(_SettingsOverlayInjector):
    """Security-first permission defaults."""

    component_id = COMPONENT_PERMISSIONS

    def overlay(self) -> dict[str, Any]:
        return assets.permissions_overlay()


class ThemeInjector(_SettingsOverlayInjector):
    component_id = COMPONENT_THEME

    def overlay(self) -> dict[str, Any]:
        return assets.theme_overlay()


class GGAInjector(ComponentInjector):
    """Gentleman Guardian Angel review hook: binary plus provider config."""

    component_id = COMPONENT_GGA

    def config_path(self, home: Path) -> Path:
        return home / ".config" / "gga" / "config.json"

    def target_paths(self, ctx: InjectionContext) -> list[Path]:
        return [self.config_path(ctx.home)]

    def inject(self, ctx: InjectionContext) -> InjectionResult:
        result = InjectionResult()
        path = self.config_path(ctx.home)
        result.record(path, write_file_atomic(path, dump_json(assets.gga_config(ctx.agent_ids))))
        return result

    def install_command(self, profile: PlatformProfile) -> CommandSequence | None:
        if profile.package_manager == "brew":
            return [["brew", "tap", _HOMEBREW_TAP], ["brew", "install", "gga"]]
        if profile.package_manager in ("apt", "pacman"):
            checkout = "/tmp/gentleman-guardian-angel"
            return [
                ["git", "clone", "https://github.com/Gentleman-Programming/gentleman-guardian-angel.git", checkout],
                ["bash", f"{checkout}/install.sh"],
            ]
        raise UnsupportedPlatformError(self.component_id, profile)


_INJECTORS: dict[str, ComponentInjector] = {
    injector.component_id: injector
    for injector in (
        EngramInjector(),
        SDDInjector(),
        SkillsInjector(),
        Context7Injector(),
        PersonaInjector(),
        PermissionsInjector(),
        ThemeInjector(),
        GGAInjector(),
    )
}


def get_injector(component: str) -> ComponentInjector:
    """Get the injector for a component id.

    Raises:
        ValueError: If no injector handles the component
    """
    if component not in _INJECTORS:
        raise ValueError(f"Component {component!r} is not supported by the installer")
    return _INJECTORS[component]
