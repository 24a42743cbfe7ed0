"""Tests for the bundled transform drivers."""
import sys
from pathlib import Path

import pytest
from PIL import Image

from filesmith.config import Settings
from filesmith.drivers import build_default_drivers
from filesmith.drivers.base import DriverRegistry
from filesmith.drivers.cli import CLIDriver, render_argument
from filesmith.skills.models import ExecutorSpec, Skill, SkillSource
from filesmith.skills.registry import SkillRegistry
from filesmith.utils.exceptions import DriverExecutionError, UnknownDriverError

COPY_SCRIPT = "import shutil, sys; shutil.copyfile(sys.argv[1], sys.argv[2])"


@pytest.fixture(scope="module")
def registry():
    registry = SkillRegistry()
    registry.discover(Settings(_env_file=None).skills_core_dir)
    return registry


@pytest.fixture(scope="module")
def drivers(registry):
    return build_default_drivers(registry)


def _cli_skill(script, source=SkillSource.CORE, permissions=("tools.exec",), timeout_ms=0):
    return Skill(
        id="py_copy",
        name="Py Copy",
        version="1",
        input_types=["txt"],
        driver="cli",
        executor=ExecutorSpec(
            type="cli",
            command=sys.executable,
            args=["-c", script, "{{input}}", "{{output}}"],
            timeout_ms=timeout_ms,
        ),
        permissions=list(permissions),
        source=source,
    )


class TestDriverRegistry:
    def test_unknown_tag(self):
        with pytest.raises(UnknownDriverError):
            DriverRegistry().get("nope")

    def test_catalog_is_fully_covered(self, registry, drivers):
        drivers.check_catalog(registry.list_all())

    def test_catalog_with_unknown_driver(self, drivers):
        skill = Skill(id="x", name="X", version="1", driver="video3d")
        with pytest.raises(UnknownDriverError):
            drivers.check_catalog([skill])


class TestImageDriver:
    @pytest.mark.asyncio
    async def test_resize_keeps_aspect(self, registry, drivers, make_png, tmp_path):
        src = Path(make_png(size=(640, 480)))
        out = tmp_path / "out.png"
        await drivers.get("image").transform(src, out, registry.get("resize"), {"width": 320})
        with Image.open(out) as img:
            assert img.size == (320, 240)

    @pytest.mark.asyncio
    async def test_grayscale(self, registry, drivers, make_png, tmp_path):
        out = tmp_path / "gray.png"
        await drivers.get("image").transform(Path(make_png()), out, registry.get("grayscale"), {})
        with Image.open(out) as img:
            assert img.mode == "L"

    @pytest.mark.asyncio
    async def test_rotate_quarter_turn(self, registry, drivers, make_png, tmp_path):
        out = tmp_path / "rot.png"
        await drivers.get("image").transform(
            Path(make_png(size=(64, 32))), out, registry.get("rotate"), {"angle": "90"}
        )
        with Image.open(out) as img:
            assert img.size == (32, 64)

    @pytest.mark.asyncio
    async def test_convert_to_jpeg(self, registry, drivers, make_png, tmp_path):
        skill = registry.get("convert_to_jpeg")
        assert drivers.get("image").output_extension(skill, "png") == "jpg"
        out = tmp_path / "photo.jpg"
        await drivers.get("image").transform(Path(make_png()), out, skill, {"quality": 90})
        with Image.open(out) as img:
            assert img.format == "JPEG"

    @pytest.mark.asyncio
    async def test_deterministic(self, registry, drivers, make_png, tmp_path):
        src = Path(make_png())
        a, b = tmp_path / "a.png", tmp_path / "b.png"
        for out in (a, b):
            await drivers.get("image").transform(src, out, registry.get("blur"), {"radius": 3})
        assert a.read_bytes() == b.read_bytes()

    @pytest.mark.asyncio
    async def test_unsupported_handler(self, drivers, make_png, tmp_path):
        skill = Skill(id="sharpen_more", name="Sharpen", version="1", driver="image")
        with pytest.raises(DriverExecutionError):
            await drivers.get("image").transform(Path(make_png()), tmp_path / "o.png", skill, {})


class TestPipelineDriver:
    @pytest.mark.asyncio
    async def test_web_optimize(self, registry, drivers, make_png, tmp_path):
        skill = registry.get("web_optimize")
        pipeline = drivers.get("pipeline")
        assert pipeline.output_extension(skill, "png") == "jpg"

        out = tmp_path / "web.jpg"
        await pipeline.transform(
            Path(make_png(size=(800, 400))), out, skill, {"width": 400, "quality": 70}
        )
        with Image.open(out) as img:
            assert img.format == "JPEG"
            assert img.size == (400, 200)
        # Intermediates are cleaned up.
        assert sorted(p.name for p in tmp_path.iterdir()) == ["images", "web.jpg"]

    @pytest.mark.asyncio
    async def test_step_param_out_of_range(self, registry, drivers, make_png, tmp_path):
        with pytest.raises(DriverExecutionError):
            await drivers.get("pipeline").transform(
                Path(make_png()), tmp_path / "o.jpg", registry.get("web_optimize"), {"width": 0, "quality": 80}
            )


class TestCLIDriver:
    def test_render_argument(self):
        rendered = render_argument(
            "scale={{width}}:-1,loop={{loop}}",
            Path("in.mp4"),
            Path("out.gif"),
            {"width": 320, "loop": True},
        )
        assert rendered == "scale=320:-1,loop=true"

    @pytest.mark.asyncio
    async def test_runs_command(self, tmp_path):
        src = tmp_path / "in.txt"
        src.write_text("hello")
        out = tmp_path / "out.txt"
        await CLIDriver().transform(src, out, _cli_skill(COPY_SCRIPT), {})
        assert out.read_text() == "hello"

    @pytest.mark.asyncio
    async def test_nonzero_exit_carries_stderr(self, tmp_path):
        src = tmp_path / "in.txt"
        src.write_text("hello")
        script = "import sys; sys.stderr.write('boom'); sys.exit(3)"
        with pytest.raises(DriverExecutionError) as exc_info:
            await CLIDriver().transform(src, tmp_path / "o.txt", _cli_skill(script), {})
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path):
        src = tmp_path / "in.txt"
        src.write_text("hello")
        skill = _cli_skill("import time; time.sleep(10)", timeout_ms=200)
        with pytest.raises(DriverExecutionError) as exc_info:
            await CLIDriver().transform(src, tmp_path / "o.txt", skill, {})
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_requires_exec_permission(self, tmp_path):
        with pytest.raises(DriverExecutionError):
            await CLIDriver().transform(
                tmp_path / "in.txt", tmp_path / "o.txt", _cli_skill(COPY_SCRIPT, permissions=()), {}
            )

    @pytest.mark.asyncio
    async def test_community_command_must_be_allowed(self, tmp_path):
        skill = _cli_skill(COPY_SCRIPT, source=SkillSource.COMMUNITY)
        with pytest.raises(DriverExecutionError) as exc_info:
            await CLIDriver().transform(tmp_path / "in.txt", tmp_path / "o.txt", skill, {})
        assert "tools.exec.any" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_community_with_exec_any(self, tmp_path):
        src = tmp_path / "in.txt"
        src.write_text("data")
        skill = _cli_skill(
            COPY_SCRIPT,
            source=SkillSource.COMMUNITY,
            permissions=("tools.exec", "tools.exec.any"),
        )
        await CLIDriver().transform(src, tmp_path / "o.txt", skill, {})
        assert (tmp_path / "o.txt").read_text() == "data"
