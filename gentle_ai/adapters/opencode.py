"""OpenCode agent adapter.

Directory structure:
~/.config/opencode/
├── AGENTS.md                 # System prompt (owned by gentle-ai)
├── opencode.json             # Settings, including MCP servers
├── commands/
│   └── {command}.md          # Slash commands
└── skill/
    └── {skill-id}/
        └── SKILL.md
"""

from pathlib import Path

from gentle_ai.adapters import register_adapter
from gentle_ai.adapters.base import (
    AgentAdapter,
    MCPStrategy,
    SystemPromptStrategy,
    UnsupportedPlatformError,
)
from gentle_ai.config.schemas import AGENT_OPENCODE, PlatformProfile
from gentle_ai.utils.process import CommandSequence


@register_adapter(AGENT_OPENCODE)
class OpenCodeAdapter(AgentAdapter):
    """Adapter for OpenCode."""

    @property
    def agent_id(self) -> str:
        return AGENT_OPENCODE

    @property
    def display_name(self) -> str:
        return "OpenCode"

    def install_command(self, profile: PlatformProfile) -> CommandSequence:
        if profile.package_manager == "brew":
            return [
                ["brew", "tap", "Gentleman-Programming/homebrew-tap"],
                ["brew", "install", "opencode"],
            ]
        if profile.package_manager == "pacman":
            return [["sudo", "pacman", "-S", "--noconfirm", "opencode"]]
        if profile.package_manager == "apt":
            # Not packaged for apt
            return [["env", "CGO_ENABLED=0", "go", "install", "github.com/opencode-ai/opencode@latest"]]
        raise UnsupportedPlatformError(self.agent_id, profile)

    def config_dir(self, home: Path) -> Path:
        return home / ".config" / "opencode"

    def system_prompt_file(self, home: Path) -> Path:
        return self.config_dir(home) / "AGENTS.md"

    def skills_dir(self, home: Path) -> Path:
        return self.config_dir(home) / "skill"

    def settings_path(self, home: Path) -> Path | None:
        return self.config_dir(home) / "opencode.json"

    def mcp_config_path(self, home: Path, server_name: str) -> Path:
        return self.config_dir(home) / "opencode.json"

    @property
    def system_prompt_strategy(self) -> SystemPromptStrategy:
        return SystemPromptStrategy.REPLACE_FILE

    @property
    def mcp_strategy(self) -> MCPStrategy:
        return MCPStrategy.MERGE_INTO_SETTINGS

    def supports_slash_commands(self) -> bool:
        return True

    def commands_dir(self, home: Path) -> Path | None:
        return self.config_dir(home) / "commands"
