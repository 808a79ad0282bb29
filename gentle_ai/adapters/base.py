"""Abstract base class for agent adapters.

Components never branch on agent ids. They ask the adapter where a file lives
and how it should be written, so supporting a new agent means adding an
adapter, not touching component code.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from gentle_ai.config.schemas import PlatformProfile
from gentle_ai.utils.process import CommandSequence


class SystemPromptStrategy(str, Enum):
    """How an agent's system prompt file is managed."""

    MARKED_SECTIONS = "marked-sections"  # inject <!-- gentle-ai:ID --> sections
    REPLACE_FILE = "replace-file"  # own the whole file


class MCPStrategy(str, Enum):
    """How MCP server configs are written for an agent."""

    SEPARATE_FILES = "separate-file"  # one JSON file per server
    MERGE_INTO_SETTINGS = "merge-into-settings"  # merged into the settings file


class UnsupportedPlatformError(Exception):
    """No install command exists for this platform."""

    def __init__(self, target: str, profile: PlatformProfile):
        self.target = target
        self.profile = profile
        super().__init__(
            f"Unsupported platform for {target}: os={profile.os!r} "
            f"distro={profile.linux_distro!r} package-manager={profile.package_manager!r}"
        )


class AgentAdapter(ABC):
    """Abstract base class for agent adapters.

    Subclasses must implement all abstract methods to support a new agent.
    Optional capabilities default to unsupported.
    """

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    @abstractmethod
    def agent_id(self) -> str: ...

    @property
    @abstractmethod
    def display_name(self) -> str: ...

    # =========================================================================
    # Installation
    # =========================================================================

    def supports_auto_install(self) -> bool:
        return True

    @abstractmethod
    def install_command(self, profile: PlatformProfile) -> CommandSequence:
        """Get the commands that install this agent's binary.

        Raises:
            UnsupportedPlatformError: If the platform has no install path
        """
        ...

    # =========================================================================
    # Config Paths
    # =========================================================================

    @abstractmethod
    def config_dir(self, home: Path) -> Path: ...

    @abstractmethod
    def system_prompt_file(self, home: Path) -> Path: ...

    @abstractmethod
    def skills_dir(self, home: Path) -> Path: ...

    @abstractmethod
    def settings_path(self, home: Path) -> Path | None: ...

    @abstractmethod
    def mcp_config_path(self, home: Path, server_name: str) -> Path: ...

    # =========================================================================
    # Config Strategies
    # =========================================================================

    @property
    @abstractmethod
    def system_prompt_strategy(self) -> SystemPromptStrategy: ...

    @property
    @abstractmethod
    def mcp_strategy(self) -> MCPStrategy: ...

    # =========================================================================
    # Optional Capabilities
    # =========================================================================

    def supports_output_styles(self) -> bool:
        return False

    def output_style_dir(self, home: Path) -> Path | None:
        return None

    def supports_slash_commands(self) -> bool:
        return False

    def commands_dir(self, home: Path) -> Path | None:
        return None
