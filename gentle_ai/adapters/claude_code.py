"""Claude Code agent adapter.

Directory structure:
~/.claude/
├── CLAUDE.md                 # System prompt (marked sections)
├── settings.json             # Permissions, theme, output style
├── mcp/
│   └── {server}.json         # One file per MCP server
├── output-styles/
│   └── gentleman.md
└── skills/
    └── {skill-id}/
        └── SKILL.md
"""

from pathlib import Path

from gentle_ai.adapters import register_adapter
from gentle_ai.adapters.base import AgentAdapter, MCPStrategy, SystemPromptStrategy
from gentle_ai.config.schemas import AGENT_CLAUDE_CODE, PlatformProfile
from gentle_ai.utils.process import CommandSequence

_NPM_PACKAGE = "@anthropic-ai/claude-code"


@register_adapter(AGENT_CLAUDE_CODE)
class ClaudeCodeAdapter(AgentAdapter):
    """Adapter for Claude Code."""

    @property
    def agent_id(self) -> str:
        return AGENT_CLAUDE_CODE

    @property
    def display_name(self) -> str:
        return "Claude Code"

    def install_command(self, profile: PlatformProfile) -> CommandSequence:
        # Global npm installs write to system directories on Linux
        if profile.os == "linux":
            return [["sudo", "npm", "install", "-g", _NPM_PACKAGE]]
        return [["npm", "install", "-g", _NPM_PACKAGE]]

    def config_dir(self, home: Path) -> Path:
        return home / ".claude"

    def system_prompt_file(self, home: Path) -> Path:
        return self.config_dir(home) / "CLAUDE.md"

    def skills_dir(self, home: Path) -> Path:
        return self.config_dir(home) / "skills"

    def settings_path(self, home: Path) -> Path | None:
        return self.config_dir(home) / "settings.json"

    def mcp_config_path(self, home: Path, server_name: str) -> Path:
        return self.config_dir(home) / "mcp" / f"{server_name}.json"

    @property
    def system_prompt_strategy(self) -> SystemPromptStrategy:
        return SystemPromptStrategy.MARKED_SECTIONS

    @property
    def mcp_strategy(self) -> MCPStrategy:
        return MCPStrategy.SEPARATE_FILES

    def supports_output_styles(self) -> bool:
        return True

    def output_style_dir(self, home: Path) -> Path | None:
        return self.config_dir(home) / "output-styles"
