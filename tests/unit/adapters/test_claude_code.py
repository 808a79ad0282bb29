"""Tests for gentle_ai.adapters.claude_code module."""

from pathlib import Path

import pytest

from gentle_ai.adapters.base import MCPStrategy, SystemPromptStrategy
from gentle_ai.adapters.claude_code import ClaudeCodeAdapter
from gentle_ai.config.schemas import PlatformProfile


@pytest.fixture
def adapter():
    """Get a ClaudeCodeAdapter instance."""
    return ClaudeCodeAdapter()


class TestIdentity:
    """Tests for adapter identity."""

    def test_agent_id(self, adapter):
        assert adapter.agent_id == "claude-code"
        assert adapter.display_name == "Claude Code"


class TestPaths:
    """Tests for configuration paths."""

    def test_config_dir(self, adapter, temp_dir: Path):
        assert adapter.config_dir(temp_dir) == temp_dir / ".claude"

    def test_system_prompt_file(self, adapter, temp_dir: Path):
        assert adapter.system_prompt_file(temp_dir) == temp_dir / ".claude" / "CLAUDE.md"

    def test_settings_path(self, adapter, temp_dir: Path):
        assert adapter.settings_path(temp_dir) == temp_dir / ".claude" / "settings.json"

    def test_mcp_config_path_per_server(self, adapter, temp_dir: Path):
        assert adapter.mcp_config_path(temp_dir, "engram") == temp_dir / ".claude" / "mcp" / "engram.json"

    def test_skills_dir(self, adapter, temp_dir: Path):
        assert adapter.skills_dir(temp_dir) == temp_dir / ".claude" / "skills"

    def test_output_style_dir(self, adapter, temp_dir: Path):
        assert adapter.supports_output_styles() is True
        assert adapter.output_style_dir(temp_dir) == temp_dir / ".claude" / "output-styles"


class TestStrategies:
    """Tests for configuration strategies and capabilities."""

    def test_strategies(self, adapter):
        assert adapter.system_prompt_strategy == SystemPromptStrategy.MARKED_SECTIONS
        assert adapter.mcp_strategy == MCPStrategy.SEPARATE_FILES

    def test_no_slash_commands(self, adapter, temp_dir: Path):
        assert adapter.supports_slash_commands() is False
        assert adapter.commands_dir(temp_dir) is None


class TestInstallCommand:
    """Tests for install_command."""

    def test_linux_uses_sudo(self, adapter):
        profile = PlatformProfile(os="linux", linux_distro="ubuntu", package_manager="apt", supported=True)

        assert adapter.install_command(profile) == [["sudo", "npm", "install", "-g", "@anthropic-ai/claude-code"]]

    def test_darwin(self, adapter):
        profile = PlatformProfile(os="darwin", package_manager="brew", supported=True)

        assert adapter.install_command(profile) == [["npm", "install", "-g", "@anthropic-ai/claude-code"]]
