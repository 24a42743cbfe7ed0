"""Tests for applying skills to batches of working files."""
import asyncio
import os

import pytest

from filesmith.utils.exceptions import (
    ParamValidationError,
    SkillNotFoundError,
    UnknownDriverError,
)
from filesmith.skills.models import Skill


async def _import(engine, paths):
    result = await engine.add_files(paths)
    assert not result.failures
    return [f.id for f in result.files]


class TestExecuteSkill:
    @pytest.mark.asyncio
    async def test_appends_history(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        result = await engine.execute_skill(ids, "tag", {"label": "v1"})

        assert [f.id for f in result.updated_files] == ids
        updated = result.updated_files[0]
        assert [(a.skill_id, a.params) for a in updated.applied_skills] == [("tag", {"label": "v1"})]
        assert updated.current_extension == "txt"
        assert result.failures == []
        assert result.session.mode.value == "batch"

        with open(updated.working_path, "rb") as fh:
            assert fh.read() == b"alpha|tag:label=v1"

    @pytest.mark.asyncio
    async def test_defaults_recorded(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        result = await engine.execute_skill(ids, "shout", {})
        assert result.updated_files[0].applied_skills[0].params == {"times": 1}

    @pytest.mark.asyncio
    async def test_output_type_changes_extension(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        result = await engine.execute_skill(ids, "to_markdown")
        updated = result.updated_files[0]
        assert updated.current_extension == "md"
        assert updated.extension == "txt"
        assert updated.working_path.endswith(".md")

        # Input type check follows the current extension.
        again = await engine.execute_skill(ids, "only_md")
        assert len(again.updated_files) == 1

    @pytest.mark.asyncio
    async def test_chained_history_order(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        await engine.execute_skill(ids, "tag", {"label": "a"})
        await engine.execute_skill(ids, "shout", {"times": 2})
        result = await engine.execute_skill(ids, "tag", {"label": "b"})
        history = [a.skill_id for a in result.updated_files[0].applied_skills]
        assert history == ["tag", "shout", "tag"]

    @pytest.mark.asyncio
    async def test_superseded_revision_removed(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        first = (await engine.execute_skill(ids, "tag")).updated_files[0]
        second = (await engine.execute_skill(ids, "tag")).updated_files[0]
        assert not os.path.exists(first.working_path)
        assert os.path.exists(second.working_path)


class TestCallLevelFailures:
    @pytest.mark.asyncio
    async def test_unknown_skill(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        with pytest.raises(SkillNotFoundError):
            await engine.execute_skill(ids, "does_not_exist")

    @pytest.mark.asyncio
    async def test_invalid_params_touch_nothing(self, engine, text_files, stamp_driver):
        ids = await _import(engine, text_files)
        with pytest.raises(ParamValidationError) as exc_info:
            await engine.execute_skill(ids, "shout", {"times": 9})
        assert exc_info.value.field == "times"
        assert stamp_driver.calls == []
        assert all(f.applied_skills == [] for f in engine.list_files())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    async def test_non_finite_params_touch_nothing(self, engine, text_files, stamp_driver, value):
        ids = await _import(engine, text_files)
        with pytest.raises(ParamValidationError) as exc_info:
            await engine.execute_skill(ids, "shout", {"times": value})
        assert exc_info.value.field == "times"
        assert stamp_driver.calls == []
        assert all(f.applied_skills == [] for f in engine.list_files())

    @pytest.mark.asyncio
    async def test_required_param_missing(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        with pytest.raises(ParamValidationError):
            await engine.execute_skill(ids, "needs_level", {})

    @pytest.mark.asyncio
    async def test_unregistered_driver(self, make_engine, text_files):
        ghost = Skill(id="ghost", name="Ghost", version="1", driver="nowhere", input_types=["txt"])
        engine = make_engine(skills=[ghost])
        ids = await _import(engine, text_files[:1])
        with pytest.raises(UnknownDriverError):
            await engine.execute_skill(ids, "ghost")


class TestPartialSuccess:
    @pytest.mark.asyncio
    async def test_unknown_file_is_isolated(self, engine, text_files):
        ids = await _import(engine, text_files)
        result = await engine.execute_skill([*ids, "missing"], "tag")
        assert len(result.updated_files) == 3
        assert [f.file_id for f in result.failures] == ["missing"]
        assert result.failures[0].error == "WorkingFileNotFoundError"
        assert "3 of 4" in result.message

    @pytest.mark.asyncio
    async def test_survivors_match_one_at_a_time_runs(self, engine, text_files):
        batch_ids = await _import(engine, text_files)
        single_ids = await _import(engine, text_files)

        batch = await engine.execute_skill([*batch_ids, "missing"], "tag", {"label": "v2"})
        assert len(batch.failures) == 1
        for fid in single_ids:
            alone = await engine.execute_skill([fid], "tag", {"label": "v2"})
            assert alone.failures == []

        for batch_id, single_id in zip(batch_ids, single_ids):
            together = engine.store.get(batch_id)
            alone = engine.store.get(single_id)
            with open(together.working_path, "rb") as a, open(alone.working_path, "rb") as b:
                assert a.read() == b.read()
            assert together.current_extension == alone.current_extension
            assert [(s.skill_id, s.params) for s in together.applied_skills] == [
                (s.skill_id, s.params) for s in alone.applied_skills
            ]

    @pytest.mark.asyncio
    async def test_unsupported_input_type(self, engine, text_files):
        ids = await _import(engine, text_files)
        await engine.execute_skill(ids[:1], "to_markdown")

        result = await engine.execute_skill(ids, "to_markdown")
        assert {f.id for f in result.updated_files} == set(ids[1:])
        assert result.failures[0].file_id == ids[0]
        assert result.failures[0].error == "UnsupportedInputTypeError"

    @pytest.mark.asyncio
    async def test_driver_failure_leaves_file_unchanged(self, engine, text_files, stamp_driver):
        ids = await _import(engine, text_files[:2])
        stamp_driver.fail_on.add("shout")
        before = engine.store.get(ids[0])

        result = await engine.execute_skill(ids, "shout")

        assert result.updated_files == []
        assert [f.error for f in result.failures] == ["DriverExecutionError"] * 2
        assert "exploded" in result.failures[0].detail
        after = engine.store.get(ids[0])
        assert after.working_path == before.working_path
        assert after.applied_skills == []

    @pytest.mark.asyncio
    async def test_duplicate_ids_collapsed(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        result = await engine.execute_skill([ids[0], ids[0]], "tag")
        assert len(result.updated_files) == 1
        assert len(engine.store.get(ids[0]).applied_skills) == 1


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_same_file_writers_serialise(self, engine, text_files):
        ids = await _import(engine, text_files[:1])
        await asyncio.gather(*(engine.execute_skill(ids, "tag", {"label": str(i)}) for i in range(5)))
        data = engine.store.get(ids[0])
        assert len(data.applied_skills) == 5
        assert await engine.verify_file(ids[0])

    @pytest.mark.asyncio
    async def test_parallel_limit(self, make_engine, stamp_driver, text_files):
        engine = make_engine(max_parallel=1)
        active = 0
        peak = 0
        original = stamp_driver.transform

        async def tracking(*args):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            try:
                await original(*args)
            finally:
                active -= 1

        stamp_driver.transform = tracking
        ids = await _import(engine, text_files)
        result = await engine.execute_skill(ids, "tag")
        assert len(result.updated_files) == 3
        assert peak == 1


class TestResizeScenario:
    @pytest.mark.asyncio
    async def test_resize_png(self, catalog_engine, make_png):
        added = await catalog_engine.add_files([make_png(size=(640, 480))])
        f1 = added.files[0]

        result = await catalog_engine.execute_skill([f1.id], "resize", {"width": 200})

        assert len(result.updated_files) == 1
        updated = result.updated_files[0]
        assert updated.id == f1.id
        assert len(updated.applied_skills) == 1
        entry = updated.applied_skills[0]
        assert entry.skill_id == "resize"
        assert entry.params == {"width": 200}
        assert entry.applied_at is not None
        assert updated.current_extension == "png"
        assert updated.preview_data_url.startswith("data:image/png;base64,")


class TestPreviewFailure:
    @pytest.mark.asyncio
    async def test_new_revision_removed(self, engine, text_files, monkeypatch):
        ids = await _import(engine, text_files[:1])
        before = engine.store.get(ids[0])

        async def broken_preview(path, max_width):
            raise ValueError("image too large")

        monkeypatch.setattr("filesmith.engine.executor.build_preview", broken_preview)
        result = await engine.execute_skill(ids, "tag")

        assert result.updated_files == []
        assert result.failures[0].error == "DriverExecutionError"
        assert engine.store.get(ids[0]).working_path == before.working_path
        leftovers = sorted(p.name for p in engine.workspace.file_dir(ids[0]).iterdir())
        assert leftovers == ["base.txt"]
