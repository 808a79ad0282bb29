"""Tests for gentle_ai.adapters.opencode module."""

from pathlib import Path

import pytest

from gentle_ai.adapters.base import MCPStrategy, SystemPromptStrategy, UnsupportedPlatformError
from gentle_ai.adapters.opencode import OpenCodeAdapter
from gentle_ai.config.schemas import PlatformProfile


@pytest.fixture
def adapter():
    """Get an OpenCodeAdapter instance."""
    return OpenCodeAdapter()


class TestPaths:
    """Tests for configuration paths."""

    def test_config_dir(self, adapter, temp_dir: Path):
        assert adapter.config_dir(temp_dir) == temp_dir / ".config" / "opencode"

    def test_system_prompt_file(self, adapter, temp_dir: Path):
        assert adapter.system_prompt_file(temp_dir) == temp_dir / ".config" / "opencode" / "AGENTS.md"

    def test_mcp_lives_in_settings(self, adapter, temp_dir: Path):
        settings = temp_dir / ".config" / "opencode" / "opencode.json"

        assert adapter.settings_path(temp_dir) == settings
        assert adapter.mcp_config_path(temp_dir, "context7") == settings

    def test_commands_dir(self, adapter, temp_dir: Path):
        assert adapter.supports_slash_commands() is True
        assert adapter.commands_dir(temp_dir) == temp_dir / ".config" / "opencode" / "commands"

    def test_no_output_styles(self, adapter, temp_dir: Path):
        assert adapter.supports_output_styles() is False
        assert adapter.output_style_dir(temp_dir) is None


class TestStrategies:
    """Tests for configuration strategies."""

    def test_strategies(self, adapter):
        assert adapter.system_prompt_strategy == SystemPromptStrategy.REPLACE_FILE
        assert adapter.mcp_strategy == MCPStrategy.MERGE_INTO_SETTINGS


class TestInstallCommand:
    """Tests for install_command."""

    def test_brew(self, adapter):
        profile = PlatformProfile(os="darwin", package_manager="brew", supported=True)

        commands = adapter.install_command(profile)

        assert commands[-1] == ["brew", "install", "opencode"]

    def test_pacman(self, adapter):
        profile = PlatformProfile(os="linux", linux_distro="arch", package_manager="pacman", supported=True)

        assert adapter.install_command(profile) == [["sudo", "pacman", "-S", "--noconfirm", "opencode"]]

    def test_apt_uses_go_install(self, adapter):
        profile = PlatformProfile(os="linux", linux_distro="ubuntu", package_manager="apt", supported=True)

        assert adapter.install_command(profile)[0][:3] == ["env", "CGO_ENABLED=0", "go"]

    def test_unsupported_platform(self, adapter):
        profile = PlatformProfile(os="linux", linux_distro="gentoo")

        with pytest.raises(UnsupportedPlatformError) as exc_info:
            adapter.install_command(profile)

        assert exc_info.value.target == "opencode"
        assert exc_info.value.profile == profile
