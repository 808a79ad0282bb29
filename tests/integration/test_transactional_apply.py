"""End-to-end scenarios for snapshot, apply and rollback working together."""

import json
from pathlib import Path

import pytest

from gentle_ai.core.backup import BackupError, Snapshotter, restore_snapshot
from gentle_ai.core.orchestrator import Orchestrator
from gentle_ai.core.pipeline import OneShotStep, ReversibleStep, StagePlan, StepStatus
from gentle_ai.utils.filesystem import write_file_atomic
from gentle_ai.utils.json_merge import merge_json_objects
from gentle_ai.utils.markers import inject_markdown_section


class TestFileWritingSteps:
    """A reversible step writes files; a later step fails."""

    def test_failed_apply_restores_every_touched_path(self, temp_dir: Path):
        settings = temp_dir / "settings.json"
        settings.write_text('{"user": true}\n')
        created = temp_dir / "mcp" / "engram.json"
        snapshot_dir = temp_dir / "backups" / "snap"
        state = {}

        def snapshot() -> None:
            state["manifest"] = Snapshotter().create(snapshot_dir, [settings, created])

        def write_a() -> None:
            write_file_atomic(settings, merge_json_objects(settings.read_bytes(), '{"theme": "dark"}'))
            write_file_atomic(created, "{}\n")

        def fail_b() -> None:
            raise RuntimeError("step B failed")

        plan = StagePlan.of(
            [OneShotStep("prepare:backup-snapshot", snapshot)],
            [
                ReversibleStep("A", write_a, lambda: restore_snapshot(state["manifest"])),
                OneShotStep("B", fail_b),
            ],
        )

        result = Orchestrator().execute(plan)

        assert result.apply.success is False
        assert [s.step_id for s in result.rollback.steps] == ["A"]
        assert result.rollback.steps[0].status == StepStatus.ROLLED_BACK
        assert settings.read_text() == '{"user": true}\n'
        assert not created.exists()


class TestSnapshotOfMissingPath:
    """Restoring a snapshot of a path that did not exist."""

    def test_later_created_file_is_deleted(self, temp_dir: Path):
        target = temp_dir / "new.md"
        manifest = Snapshotter().create(temp_dir / "snap", [target])

        target.write_text("created later")
        restore_snapshot(manifest)

        assert not target.exists()

    def test_never_created_is_noop(self, temp_dir: Path):
        target = temp_dir / "new.md"
        manifest = Snapshotter().create(temp_dir / "snap", [target])

        restore_snapshot(manifest)

        assert not target.exists()

    def test_missing_snapshot_file_is_an_error(self, temp_dir: Path):
        target = temp_dir / "file.md"
        target.write_text("original")
        manifest = Snapshotter().create(temp_dir / "snap", [target])
        Path(manifest.entries[0].snapshot_path).unlink()

        with pytest.raises(BackupError):
            restore_snapshot(manifest)


class TestMergeAndInject:
    """Worked examples for the structural merge and section injector."""

    def test_merge_example(self):
        merged = merge_json_objects('{"a":1,"b":{"x":true}}', '{"b":{"y":true},"c":2}')

        assert json.loads(merged) == {"a": 1, "b": {"x": True, "y": True}, "c": 2}

    def test_inject_then_remove_leaves_empty_document(self):
        injected = inject_markdown_section("", "s", "hi\n")

        assert injected == "<!-- gentle-ai:s -->\nhi\n<!-- /gentle-ai:s -->\n"
        assert inject_markdown_section(injected, "s", "") == ""

    def test_atomic_write_twice(self, temp_dir: Path):
        path = temp_dir / "file.txt"

        first = write_file_atomic(path, b"data", 0o600)
        second = write_file_atomic(path, b"data", 0o600)

        assert (first.changed, second.changed) == (True, False)
        assert path.read_bytes() == b"data"
