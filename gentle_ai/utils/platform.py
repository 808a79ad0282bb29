"""Platform and OS detection utilities."""

import os
import platform
import shutil
from pathlib import Path
from typing import Literal

from gentle_ai.config.schemas import AGENT_CLAUDE_CODE, AGENT_OPENCODE, PlatformProfile

PlatformOS = Literal["darwin", "linux", "windows"]

# Package managers the installer knows how to drive, per distro family
_LINUX_PACKAGE_MANAGERS = {
    "ubuntu": "apt",
    "debian": "apt",
    "arch": "pacman",
}


def get_os() -> PlatformOS:
    """Get the current operating system.

    Returns:
        One of: "darwin", "linux", "windows"
    """
    system = platform.system().lower()
    if system == "darwin":
        return "darwin"
    elif system == "windows":
        return "windows"
    else:
        return "linux"


def get_linux_distro(os_release: Path = Path("/etc/os-release")) -> str:
    """Read the distro ID from an os-release file.

    ID_LIKE is consulted when ID itself is not a known family, so derivatives
    like Pop!_OS resolve to "ubuntu".

    Returns:
        Lowercase distro ID, or "" if it cannot be determined
    """
    try:
        lines = os_release.read_text(encoding="utf-8").splitlines()
    except OSError:
        return ""

    values: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip().strip('"').lower()

    distro = values.get("ID", "")
    if distro in _LINUX_PACKAGE_MANAGERS:
        return distro
    for like in values.get("ID_LIKE", "").split():
        if like in _LINUX_PACKAGE_MANAGERS:
            return like
    return distro


def get_package_manager(os_name: str, distro: str = "") -> str:
    """Pick the package manager for a platform.

    Returns:
        "brew", "apt", "pacman", or "" when unsupported
    """
    if os_name == "darwin":
        return "brew"
    if os_name == "linux":
        return _LINUX_PACKAGE_MANAGERS.get(distro, "")
    return ""


def detect_platform_profile() -> PlatformProfile:
    """Detect the host platform profile.

    macOS is supported when Homebrew is on PATH; Linux when the distro maps
    to a known package manager.
    """
    os_name = get_os()
    distro = get_linux_distro() if os_name == "linux" else ""
    manager = get_package_manager(os_name, distro)

    supported = bool(manager)
    if os_name == "darwin":
        supported = shutil.which("brew") is not None

    return PlatformProfile(
        os=os_name,
        linux_distro=distro,
        package_manager=manager,
        supported=supported,
    )


def get_home_directory() -> Path:
    """Get the user's home directory.

    Returns:
        Path to the home directory
    """
    return Path(os.path.expanduser("~"))


def agent_config_dirs(home: Path) -> dict[str, Path]:
    """Configuration directories of the supported agents, in catalog order."""
    return {
        AGENT_CLAUDE_CODE: home / ".claude",
        AGENT_OPENCODE: home / ".config" / "opencode",
    }


def detect_agents(home: Path) -> list[str]:
    """Agents to configure when none are requested.

    Agents whose configuration directory already exists under ``home`` are
    picked; when there are none, every supported agent is.
    """
    dirs = agent_config_dirs(home)
    found = [agent for agent, path in dirs.items() if path.exists()]
    return found or list(dirs)
