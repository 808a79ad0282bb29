"""Backup snapshots of agent configuration files.

A snapshot is a directory holding a copy of every target file plus a
manifest.json describing them:

    <backup-root>/<timestamp>/manifest.json
    <backup-root>/<timestamp>/files/<original-path>

The manifest on disk is the source of truth for restoring; it is written once
when the snapshot is created and never rewritten.
"""

import json
import logging
import os
import shutil
import stat
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from gentle_ai.config.schemas import ManifestEntry, SnapshotManifest
from gentle_ai.utils.filesystem import FileOperationError, ensure_directory, write_file_atomic

logger = logging.getLogger("gentle_ai.backup")

MANIFEST_FILENAME = "manifest.json"
FILES_DIRNAME = "files"


class BackupError(Exception):
    """Error creating or restoring a snapshot."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        super().__init__(message)


def snapshot_directory_name(moment: datetime) -> str:
    """Directory name for a snapshot taken at ``moment`` (UTC, sortable)."""
    return moment.astimezone(timezone.utc).strftime("%Y%m%d%H%M%S.%f")


def write_manifest(path: Path, manifest: SnapshotManifest) -> None:
    """Write a manifest as indented JSON."""
    try:
        ensure_directory(path.parent)
        with open(path, "w", encoding="utf-8") as f:
            f.write(manifest.model_dump_json(indent=2))
            f.write("\n")
    except OSError as e:
        raise BackupError(f"Cannot write manifest {path}: {e}", path) from e


def read_manifest(path: Path) -> SnapshotManifest:
    """Read a manifest written by ``write_manifest``."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise BackupError(f"Cannot read manifest {path}: {e}", path) from e
    except json.JSONDecodeError as e:
        raise BackupError(f"Invalid manifest {path}: {e}", path) from e

    try:
        return SnapshotManifest.model_validate(data)
    except ValidationError as e:
        raise BackupError(f"Invalid manifest {path}: {e}", path) from e


def _relative_snapshot_path(source: Path) -> str:
    relative = str(source).lstrip(os.sep)
    if os.altsep:
        relative = relative.lstrip(os.altsep)
    # Drive letters cannot appear inside a path
    relative = relative.replace(":", "")
    return relative or "root"


class Snapshotter:
    """Captures the current state of target files."""

    def __init__(self, now: Callable[[], datetime] | None = None):
        self._now = now or (lambda: datetime.now(timezone.utc))

    def create(self, snapshot_dir: Path, paths: Iterable[Path | str]) -> SnapshotManifest:
        """Snapshot every target path into ``snapshot_dir``.

        Missing targets are recorded with ``existed=False`` so restoring
        deletes whatever a later step creates there.

        Args:
            snapshot_dir: Directory for this snapshot (created if needed)
            paths: Files to capture

        Returns:
            The manifest, already persisted as manifest.json

        Raises:
            BackupError: If a target is a directory or cannot be copied
        """
        try:
            ensure_directory(snapshot_dir)
        except OSError as e:
            raise BackupError(f"Cannot create snapshot directory {snapshot_dir}: {e}", snapshot_dir) from e

        entries = [self._snapshot_path(snapshot_dir, Path(p)) for p in paths]
        manifest = SnapshotManifest(
            id=snapshot_dir.name,
            created_at=self._now().astimezone(timezone.utc),
            root_dir=str(snapshot_dir),
            entries=entries,
        )
        write_manifest(snapshot_dir / MANIFEST_FILENAME, manifest)
        logger.info("Snapshot %s captured %d path(s)", manifest.id, len(entries))
        return manifest

    def _snapshot_path(self, snapshot_dir: Path, source: Path) -> ManifestEntry:
        source = Path(os.path.normpath(source))

        try:
            info = source.stat()
        except FileNotFoundError:
            logger.debug("Snapshot target %s does not exist yet", source)
            return ManifestEntry(original_path=str(source), existed=False)
        except OSError as e:
            raise BackupError(f"Cannot stat {source}: {e}", source) from e

        if stat.S_ISDIR(info.st_mode):
            raise BackupError(f"Backup target {source} is a directory", source)

        destination = snapshot_dir / FILES_DIRNAME / _relative_snapshot_path(source)
        mode = stat.S_IMODE(info.st_mode)
        try:
            ensure_directory(destination.parent)
            shutil.copyfile(source, destination)
            os.chmod(destination, mode)
        except OSError as e:
            raise BackupError(f"Cannot copy {source} to {destination}: {e}", source) from e

        return ManifestEntry(
            original_path=str(source),
            snapshot_path=str(destination),
            existed=True,
            mode=mode,
        )


def restore_snapshot(manifest: SnapshotManifest) -> None:
    """Put every captured path back the way it was.

    Entries that existed are rewritten atomically with their original bytes
    and mode; entries that did not exist are deleted if present. Stops at the
    first failing entry.

    Raises:
        BackupError: If a snapshot copy is missing or a path cannot be written
    """
    logger.info("Restoring snapshot %s (%d path(s))", manifest.id, len(manifest.entries))
    for entry in manifest.entries:
        original = Path(entry.original_path)

        if not entry.existed:
            try:
                original.unlink()
                logger.debug("Removed %s", original)
            except FileNotFoundError:
                pass
            except OSError as e:
                raise BackupError(f"Cannot remove {original}: {e}", original) from e
            continue

        if not entry.snapshot_path:
            raise BackupError(f"Manifest entry for {original} has no snapshot copy", original)

        snapshot_path = Path(entry.snapshot_path)
        try:
            content = snapshot_path.read_bytes()
        except OSError as e:
            raise BackupError(f"Cannot read snapshot file {snapshot_path}: {e}", snapshot_path) from e

        try:
            write_file_atomic(original, content, entry.mode or 0)
            # The writer maps mode 0 to its default and skips unchanged content
            if entry.mode is not None and stat.S_IMODE(original.stat().st_mode) != entry.mode:
                os.chmod(original, entry.mode)
        except FileOperationError as e:
            raise BackupError(f"Cannot restore {original}: {e}", original) from e
        except OSError as e:
            raise BackupError(f"Cannot set mode of {original}: {e}", original) from e
        logger.debug("Restored %s", original)


def load_snapshot(backup_root: Path, snapshot_id: str) -> SnapshotManifest:
    """Load the manifest of one snapshot by id."""
    return read_manifest(backup_root / snapshot_id / MANIFEST_FILENAME)


def list_snapshots(backup_root: Path) -> list[SnapshotManifest]:
    """List every readable snapshot under a backup root, newest first."""
    if not backup_root.is_dir():
        return []

    manifests: list[SnapshotManifest] = []
    for manifest_path in backup_root.glob(f"*/{MANIFEST_FILENAME}"):
        try:
            manifests.append(read_manifest(manifest_path))
        except BackupError as e:
            logger.warning("Skipping unreadable snapshot: %s", e)

    manifests.sort(key=lambda m: m.created_at, reverse=True)
    return manifests
