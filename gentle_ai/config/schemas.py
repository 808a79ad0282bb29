"""Pydantic schemas for gentle-ai.

This module defines the data models for:
- gentle-ai.yaml (install configuration)
- manifest.json (backup snapshot manifest)
- the user's component selection and the detected platform profile
"""

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Catalog Identifiers
# =============================================================================

COMPONENT_ENGRAM = "engram"
COMPONENT_SDD = "sdd"
COMPONENT_SKILLS = "skills"
COMPONENT_CONTEXT7 = "context7"
COMPONENT_PERSONA = "persona"
COMPONENT_PERMISSIONS = "permissions"
COMPONENT_GGA = "gga"
COMPONENT_THEME = "theme"

ALL_COMPONENTS = (
    COMPONENT_ENGRAM,
    COMPONENT_SDD,
    COMPONENT_SKILLS,
    COMPONENT_CONTEXT7,
    COMPONENT_PERSONA,
    COMPONENT_PERMISSIONS,
    COMPONENT_GGA,
    COMPONENT_THEME,
)

AGENT_CLAUDE_CODE = "claude-code"
AGENT_OPENCODE = "opencode"
AGENT_GEMINI_CLI = "gemini-cli"
AGENT_CURSOR = "cursor"
AGENT_VSCODE_COPILOT = "vscode-copilot"

SUPPORTED_AGENTS = frozenset({AGENT_CLAUDE_CODE, AGENT_OPENCODE})

SDD_SKILLS = (
    "sdd-init",
    "sdd-explore",
    "sdd-propose",
    "sdd-spec",
    "sdd-design",
    "sdd-tasks",
    "sdd-apply",
    "sdd-verify",
    "sdd-archive",
)

FRAMEWORK_SKILLS = (
    "typescript",
    "react-19",
    "nextjs-15",
    "tailwind-4",
    "zustand-5",
    "zod-4",
)

EXTRA_SKILLS = (
    "ai-sdk-5",
    "playwright",
    "pytest",
    "django-drf",
    "go-testing",
)

ALL_SKILLS = SDD_SKILLS + FRAMEWORK_SKILLS + EXTRA_SKILLS

PersonaID = Literal["gentleman", "neutral", "custom"]
PresetID = Literal["full-gentleman", "ecosystem-only", "minimal", "custom"]
FailurePolicyName = Literal["stop", "continue"]


# =============================================================================
# Selection
# =============================================================================


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _check_catalog(values: list[str], catalog: tuple[str, ...], kind: str) -> list[str]:
    for value in values:
        if value not in catalog:
            raise ValueError(f"unsupported {kind} {value!r}")
    return values


class Selection(BaseModel):
    """What the user asked to install in one run.

    Duplicates are dropped on construction, preserving first occurrence.
    """

    agents: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    persona: PersonaID = "gentleman"
    preset: PresetID = "full-gentleman"

    model_config = {"frozen": True}

    @field_validator("agents", "components", "skills")
    @classmethod
    def dedupe(cls, values: list[str]) -> list[str]:
        return _unique(values)

    @field_validator("skills")
    @classmethod
    def known_skills(cls, values: list[str]) -> list[str]:
        return _check_catalog(values, ALL_SKILLS, "skill")

    def has_agent(self, agent: str) -> bool:
        return agent in self.agents

    def has_component(self, component: str) -> bool:
        return component in self.components


# =============================================================================
# Platform
# =============================================================================


class PlatformProfile(BaseModel):
    """Detected host platform, as consumed by the install engine."""

    os: str = ""
    linux_distro: str = ""
    package_manager: str = ""
    supported: bool = False

    model_config = {"frozen": True}


# =============================================================================
# Snapshot Manifest (<backup-root>/<id>/manifest.json)
# =============================================================================


class ManifestEntry(BaseModel):
    """One file captured by a snapshot."""

    original_path: str
    snapshot_path: str | None = None
    existed: bool = False
    mode: int | None = None


class SnapshotManifest(BaseModel):
    """Durable record of a backup snapshot."""

    id: str
    created_at: datetime
    root_dir: str
    entries: list[ManifestEntry] = Field(default_factory=list)


# =============================================================================
# Install Configuration (gentle-ai.yaml)
# =============================================================================


def default_backup_root(home: Path | None = None) -> Path:
    return (home or Path.home()) / ".gentle-ai" / "backups"


class InstallConfig(BaseModel):
    """Install configuration (gentle-ai.yaml) schema."""

    agents: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    persona: PersonaID = "gentleman"
    preset: PresetID = "full-gentleman"
    backup_root: Path | None = None
    rollback_on_failure: bool = True
    failure_policy: FailurePolicyName = "stop"
    skip_binary_installs: bool = False

    @field_validator("components")
    @classmethod
    def known_components(cls, values: list[str]) -> list[str]:
        return _check_catalog(values, ALL_COMPONENTS, "component")

    @field_validator("skills")
    @classmethod
    def known_skills(cls, values: list[str]) -> list[str]:
        return _check_catalog(values, ALL_SKILLS, "skill")

    def to_selection(self) -> Selection:
        return Selection(
            agents=self.agents,
            components=self.components,
            skills=self.skills,
            persona=self.persona,
            preset=self.preset,
        )
