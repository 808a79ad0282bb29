"""Content written into agent configuration by component injectors.

Overlays are built by functions so every caller gets a fresh object that it
is free to modify.
"""

from typing import Any

from gentle_ai.config.schemas import (
    ALL_SKILLS,
    COMPONENT_CONTEXT7,
    COMPONENT_ENGRAM,
    COMPONENT_PERMISSIONS,
    COMPONENT_PERSONA,
    COMPONENT_SDD,
    COMPONENT_SKILLS,
    FRAMEWORK_SKILLS,
    SDD_SKILLS,
)

PERSONA_GENTLEMAN = """\
## Persona

You are a senior software architect and mentor. Be direct and technically
precise, explain the reasoning behind recommendations, and push back when a
request would lead to a worse design. Prefer small, verifiable steps.
"""

PERSONA_NEUTRAL = "Be helpful, direct, and technically precise. Focus on accuracy and clarity.\n"

OUTPUT_STYLE_GENTLEMAN = """\
---
name: Gentleman
description: Direct, mentoring tone with architectural reasoning
---

Explain the why before the how. Keep answers focused, show trade-offs, and
end with the next concrete step.
"""

ENGRAM_PROTOCOL = """\
## Engram Memory Protocol

Persistent memory is available through the `engram` MCP server.
- Search memory before starting non-trivial work.
- Save decisions, conventions and discoveries when a task completes.
- Summarize the session before it ends.
"""

SDD_ORCHESTRATOR = """\
## Spec-Driven Development (SDD) Orchestrator

For substantial changes follow the SDD flow: explore, propose, spec, design,
tasks, apply, verify, archive. Delegate each phase to its skill and keep the
artifacts of a change together so work can resume across sessions.
"""

# (name, description, body)
SDD_COMMANDS = (
    ("sdd-init", "Initialize SDD context", "/sdd-init"),
    ("sdd-new", "Start a new SDD change", "/sdd-new ${change-name}"),
    ("sdd-continue", "Continue next pending artifact", "/sdd-continue ${change-name}"),
    ("sdd-ff", "Generate all planning artifacts", "/sdd-ff ${change-name}"),
    ("sdd-apply", "Implement tasks", "/sdd-apply ${change-name}"),
    ("sdd-verify", "Verify implementation", "/sdd-verify ${change-name}"),
    ("sdd-archive", "Archive completed change", "/sdd-archive ${change-name}"),
)


def skills_for_preset(preset: str) -> list[str]:
    """Skills installed for a preset when none are picked explicitly.

    - minimal: SDD skills only
    - ecosystem-only: SDD + common framework skills
    - full-gentleman (and anything unknown): every skill
    - custom: nothing, the caller lists skills explicitly
    """
    if preset == "minimal":
        return list(SDD_SKILLS)
    if preset == "ecosystem-only":
        return list(SDD_SKILLS + FRAMEWORK_SKILLS)
    if preset == "custom":
        return []
    return list(ALL_SKILLS)


def components_for_preset(preset: str) -> list[str]:
    """Components installed for a preset when none are picked explicitly."""
    if preset == "minimal":
        return [COMPONENT_ENGRAM]
    ecosystem = [COMPONENT_ENGRAM, COMPONENT_SDD, COMPONENT_SKILLS, COMPONENT_CONTEXT7]
    if preset == "ecosystem-only":
        return ecosystem
    if preset == "custom":
        return []
    return ecosystem + [COMPONENT_PERSONA, COMPONENT_PERMISSIONS]


def skill_document(skill_id: str) -> str:
    """Render the SKILL.md for a skill."""
    title = skill_id.replace("-", " ").title()
    return f"""\
---
name: {skill_id}
description: {title} conventions and workflow
---

# {title}

Apply the {skill_id} conventions when the task touches this area. Read the
project's existing code first and follow its patterns over generic advice.
"""


def command_document(name: str, description: str, body: str) -> str:
    """Render a slash command file."""
    return f"---\ndescription: {description}\n---\n\n{body}\n"


def engram_server() -> dict[str, Any]:
    return {"command": "engram", "args": ["mcp"]}


def context7_server() -> dict[str, Any]:
    return {"command": "npx", "args": ["-y", "@upstash/context7-mcp"]}


def mcp_servers_overlay(name: str, server: dict[str, Any]) -> dict[str, Any]:
    return {"mcpServers": {name: server}}


def output_style_overlay() -> dict[str, Any]:
    return {"outputStyle": "Gentleman"}


def permissions_overlay() -> dict[str, Any]:
    return {
        "permissions": {
            "defaultMode": "ask",
            "deny": ["rm -rf /", "sudo rm -rf /", ".env"],
        }
    }


def theme_overlay() -> dict[str, Any]:
    return {"theme": "gentleman-kanagawa"}


def gga_config(providers: list[str]) -> dict[str, Any]:
    return {
        "enabled": True,
        "providers": list(providers),
        "defaultProvider": providers[0] if providers else "",
    }
