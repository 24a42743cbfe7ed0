"""Tests for the working file store and workspace layout."""
from pathlib import Path

import pytest

from filesmith.engine.models import WorkingFile
from filesmith.engine.store import WorkingFileStore
from filesmith.engine.workspace import Workspace
from filesmith.utils.exceptions import WorkingFileNotFoundError


def _file(file_id="f1"):
    return WorkingFile(
        id=file_id,
        name="photo",
        extension="png",
        current_extension="png",
        original_path="/tmp/photo.png",
        working_path="/tmp/ws/f1/base.png",
    )


class TestWorkingFileStore:
    def test_get_returns_copy(self):
        store = WorkingFileStore()
        store.add(_file(), Path("/tmp/ws/f1/base.png"))
        copy = store.get("f1")
        copy.applied_skills.append("tampered")
        assert store.get("f1").applied_skills == []

    def test_commit_publishes(self):
        store = WorkingFileStore()
        store.add(_file(), Path("/tmp/ws/f1/base.png"))
        updated = store.get("f1").model_copy(update={"current_extension": "jpg"})
        store.commit(updated)
        assert store.get("f1").current_extension == "jpg"

    def test_unknown_id(self):
        store = WorkingFileStore()
        with pytest.raises(WorkingFileNotFoundError):
            store.get("missing")
        with pytest.raises(WorkingFileNotFoundError):
            store.lock("missing")

    def test_commit_after_clear_fails(self):
        store = WorkingFileStore()
        store.add(_file(), Path("/tmp/ws/f1/base.png"))
        pending = store.get("f1")
        assert store.clear() == 1
        with pytest.raises(WorkingFileNotFoundError):
            store.commit(pending)

    def test_list_in_import_order(self):
        store = WorkingFileStore()
        for fid in ("b", "a", "c"):
            store.add(_file(fid), Path(f"/tmp/{fid}"))
        assert [f.id for f in store.list_files()] == ["b", "a", "c"]
        assert "a" in store
        assert len(store) == 3


class TestWorkspace:
    def test_layout(self, tmp_path):
        ws = Workspace(tmp_path)
        assert ws.root.parent == tmp_path
        assert ws.base_path("f1", "png") == ws.root / "f1" / "base.png"
        rev = ws.new_revision_path("f1", "jpg")
        assert rev.parent == ws.root / "f1"
        assert rev.name.startswith("rev-") and rev.suffix == ".jpg"
        assert ws.owns(rev)
        assert not ws.owns(tmp_path / "elsewhere.png")

    def test_rotate(self, tmp_path):
        ws = Workspace(tmp_path)
        old = ws.rotate()
        assert old != ws.root
        Workspace.discard(old)
        assert not old.exists()
        assert ws.root.exists()
