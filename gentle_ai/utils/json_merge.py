"""Structural JSON merging for agent settings files."""

import json
from pathlib import Path
from typing import Any

from gentle_ai.utils.filesystem import DEFAULT_FILE_MODE, WriteResult, read_bytes_or_none, write_file_atomic


class JSONMergeError(ValueError):
    """Error parsing one side of a JSON merge."""


def merge_objects(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base``, returning a new dict.

    Nested objects merge key by key. Any other overlay value, arrays
    included, replaces the base value outright.
    """
    result = dict(base)
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = merge_objects(current, value)
        else:
            result[key] = value
    return result


def _parse_object(raw: bytes | str | None, label: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not raw.strip():
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise JSONMergeError(f"Invalid {label} JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise JSONMergeError(f"{label.capitalize()} JSON must be an object, got {type(parsed).__name__}")
    return parsed


def dump_json(data: dict[str, Any]) -> bytes:
    """Serialize a JSON object the way every managed settings file is written."""
    return (json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n").encode("utf-8")


def merge_json_objects(base_json: bytes | str | None, overlay_json: bytes | str | None) -> bytes:
    """Merge two JSON documents whose top-level values are objects.

    Empty or whitespace-only input counts as ``{}``.

    Args:
        base_json: Existing document
        overlay_json: Document to merge on top

    Returns:
        Key-sorted, 2-space indented JSON with a trailing newline

    Raises:
        JSONMergeError: If either side is not a JSON object
    """
    base = _parse_object(base_json, "base")
    overlay = _parse_object(overlay_json, "overlay")
    return dump_json(merge_objects(base, overlay))


def merge_json_file(
    path: Path,
    overlay: dict[str, Any],
    mode: int = DEFAULT_FILE_MODE,
) -> WriteResult:
    """Merge an overlay into a JSON file on disk, creating it if needed.

    Args:
        path: Settings file to update
        overlay: Object to merge on top of the current content
        mode: Permission bits for the written file

    Returns:
        WriteResult of the atomic write
    """
    base = _parse_object(read_bytes_or_none(path), f"base ({path})")
    return write_file_atomic(path, dump_json(merge_objects(base, overlay)), mode)
