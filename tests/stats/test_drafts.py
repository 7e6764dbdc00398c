"""Tests for the local JSON draft store."""

import json

import pytest

from evalcore.stats.drafts import DRAFT_VERSION, JsonFileDraftStore


class TestJsonFileDraftStore:
    def test_round_trip(self, draft_store):
        draft_store.save("guide-1", "athlete-1", {"current_step": 4})

        assert draft_store.load("guide-1", "athlete-1") == {"current_step": 4}

    def test_missing_draft(self, draft_store):
        assert draft_store.load("guide-1", "athlete-1") is None

    def test_overwrite_leaves_no_temp_file(self, draft_store):
        draft_store.save("guide-1", "athlete-1", {"current_step": 1})
        draft_store.save("guide-1", "athlete-1", {"current_step": 2})

        assert draft_store.load("guide-1", "athlete-1") == {"current_step": 2}
        assert [p.name for p in draft_store.directory.iterdir()] == ["guide-1__athlete-1.json"]

    def test_failed_write_removes_temp_file_and_keeps_previous(self, draft_store, monkeypatch):
        draft_store.save("guide-1", "athlete-1", {"current_step": 1})

        def _fail_fsync(fd):
            raise OSError("disk full")

        monkeypatch.setattr("evalcore.stats.drafts.os.fsync", _fail_fsync)

        with pytest.raises(OSError, match="disk full"):
            draft_store.save("guide-1", "athlete-1", {"current_step": 2})

        assert [p.name for p in draft_store.directory.iterdir()] == ["guide-1__athlete-1.json"]
        assert draft_store.load("guide-1", "athlete-1") == {"current_step": 1}

    def test_envelope_is_versioned(self, draft_store):
        draft_store.save("guide-1", "athlete-1", {"current_step": 1})

        envelope = json.loads(draft_store.path_for("guide-1", "athlete-1").read_text())

        assert envelope["version"] == DRAFT_VERSION

    def test_ids_are_sanitized(self, draft_store):
        path = draft_store.path_for("../guide", "athlete/1")

        assert path.parent == draft_store.directory
        assert path.name == "___guide__athlete_1.json"

    def test_corrupt_draft_is_discarded(self, draft_store):
        path = draft_store.path_for("guide-1", "athlete-1")
        path.write_text("{not json")

        assert draft_store.load("guide-1", "athlete-1") is None
        assert not path.exists()

    def test_unknown_version_is_discarded(self, draft_store):
        path = draft_store.path_for("guide-1", "athlete-1")
        path.write_text(json.dumps({"version": 99, "session": {}}))

        assert draft_store.load("guide-1", "athlete-1") is None
        assert not path.exists()

    def test_delete_is_idempotent(self, draft_store):
        draft_store.save("guide-1", "athlete-1", {})

        draft_store.delete("guide-1", "athlete-1")
        draft_store.delete("guide-1", "athlete-1")

        assert draft_store.load("guide-1", "athlete-1") is None

    def test_directory_is_created(self, tmp_path):
        store = JsonFileDraftStore(tmp_path / "nested" / "drafts")

        assert store.directory.is_dir()
