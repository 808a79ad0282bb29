"""Filesystem utilities for gentle-ai.

Every configuration file the installer touches goes through
``write_file_atomic`` so that a file on disk is either the old content or the
new content, never a partial write.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

DEFAULT_FILE_MODE = 0o644


class FileOperationError(Exception):
    """Error reading or writing a managed file."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of an atomic write."""

    changed: bool = False
    created: bool = False


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_bytes_or_none(path: Path) -> bytes | None:
    """Read a file's bytes, returning None if it does not exist.

    Raises:
        FileOperationError: If the file exists but cannot be read
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise FileOperationError(f"Cannot read {path}: {e}", path) from e


def read_file_or_empty(path: Path) -> str:
    """Read a text file, returning an empty string if it does not exist."""
    content = read_bytes_or_none(path)
    if content is None:
        return ""
    return content.decode("utf-8")


def write_file_atomic(
    path: Path,
    content: bytes | str,
    mode: int = DEFAULT_FILE_MODE,
) -> WriteResult:
    """Write a file atomically, skipping the write when nothing changed.

    If the file already holds exactly ``content`` no disk I/O beyond the read
    is performed. Otherwise the content goes to a temp file in the destination
    directory, gets ``mode`` applied and is renamed over ``path``.

    Args:
        path: Destination file path
        content: Bytes (or UTF-8 text) to write
        mode: Permission bits for the written file (0 means the default)

    Returns:
        WriteResult telling whether the file changed and whether it was created

    Raises:
        FileOperationError: If any step fails; the temp file is removed first
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not mode:
        mode = DEFAULT_FILE_MODE

    existing = read_bytes_or_none(path)
    if existing is not None and existing == content:
        return WriteResult()
    created = existing is None

    try:
        ensure_directory(path.parent)
    except OSError as e:
        raise FileOperationError(f"Cannot create parent directories for {path}: {e}", path) from e

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".gentle-ai-", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise FileOperationError(f"Cannot create temp file for {path}: {e}", path) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise FileOperationError(f"Cannot replace {path} atomically: {e}", path) from e

    return WriteResult(changed=True, created=created)

