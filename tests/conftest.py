"""Shared fixtures for gentle-ai tests."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from gentle_ai.config.schemas import PlatformProfile, Selection


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="gentle_ai_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def home_dir(temp_dir: Path) -> Path:
    """A fake user home directory."""
    home = temp_dir / "home"
    home.mkdir()
    return home


@pytest.fixture
def backup_root(temp_dir: Path) -> Path:
    """Backup root outside the fake home."""
    return temp_dir / "backups"


@pytest.fixture
def linux_profile() -> PlatformProfile:
    """A supported Ubuntu platform."""
    return PlatformProfile(os="linux", linux_distro="ubuntu", package_manager="apt", supported=True)


@pytest.fixture
def unsupported_profile() -> PlatformProfile:
    """A platform the installer cannot drive."""
    return PlatformProfile(os="linux", linux_distro="gentoo", package_manager="", supported=False)


@pytest.fixture
def claude_selection() -> Selection:
    """Claude Code with the memory and SDD stack."""
    return Selection(
        agents=["claude-code"],
        components=["sdd", "persona"],
        preset="minimal",
    )
