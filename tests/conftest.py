import pytest

from PIL import Image

from filesmith.config import Settings
from filesmith.drivers.base import BaseDriver, DriverRegistry
from filesmith.engine.models import SessionSnapshot
from filesmith.engine.service import SkillEngine, build_engine
from filesmith.engine.session import SessionManager
from filesmith.engine.workspace import Workspace
from filesmith.skills.models import ParamDef, ParamType, Skill
from filesmith.skills.registry import SkillRegistry
from filesmith.storage.settings import SettingsStore
from filesmith.storage.trust import TrustStore


class StampDriver(BaseDriver):
    """Deterministic test driver: appends ``|<skill>:<params>`` to the input."""

    driver_id = "stamp"

    def __init__(self):
        self.calls = []
        self.fail_on = set()

    async def transform(self, input_path, output_path, skill, params):
        self.calls.append(skill.id)
        if skill.id in self.fail_on:
            raise RuntimeError(f"{skill.id} exploded")
        suffix = "|" + skill.id + ":" + ",".join(f"{k}={params[k]}" for k in sorted(params))
        output_path.write_bytes(input_path.read_bytes() + suffix.encode())


def _stamp_skill(skill_id, input_types=("txt",), output_type="", params=()):
    return Skill(
        id=skill_id,
        name=skill_id.replace("_", " ").title(),
        version="1.0.0",
        input_types=list(input_types),
        output_type=output_type,
        params=list(params),
        driver="stamp",
        category="test",
    )


STAMP_SKILLS = [
    _stamp_skill(
        "tag",
        input_types=("txt", "md"),
        params=[ParamDef(name="label", type=ParamType.STRING, default="x")],
    ),
    _stamp_skill(
        "shout",
        input_types=("txt", "md"),
        params=[ParamDef(name="times", type=ParamType.NUMBER, default=1, min=1, max=5)],
    ),
    _stamp_skill("to_markdown", input_types=("txt",), output_type="md"),
    _stamp_skill("only_md", input_types=("md",)),
    _stamp_skill(
        "needs_level",
        params=[ParamDef(name="level", type=ParamType.NUMBER, min=0, max=10)],
    ),
    Skill(
        id="switch_to_per_file",
        name="Per-File Mode",
        version="1.0.0",
        input_types=["*"],
        output_type="none",
        driver="meta",
        is_meta=True,
    ),
    Skill(
        id="set_naming_pattern",
        name="Set Naming Pattern",
        version="1.0.0",
        input_types=["*"],
        output_type="none",
        driver="meta",
        is_meta=True,
        params=[ParamDef(name="pattern", type=ParamType.STRING, default="{name}_{skill}.{ext}")],
    ),
]


@pytest.fixture
def stamp_driver():
    return StampDriver()


@pytest.fixture
def workspace_dir(tmp_path):
    return tmp_path / "workspace"


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "config"


@pytest.fixture
def make_engine(workspace_dir, config_dir, stamp_driver):
    """Engine over the in-memory stamp skills; pass ``skills`` to extend."""

    def _make(skills=(), max_parallel=4, output_folder=""):
        registry = SkillRegistry([*STAMP_SKILLS, *skills])
        drivers = DriverRegistry([stamp_driver])
        session = SessionManager(
            SessionSnapshot(output_folder=output_folder),
            SettingsStore(config_dir),
        )
        return SkillEngine(
            registry,
            drivers,
            Workspace(workspace_dir),
            session,
            trust=TrustStore(config_dir),
            max_parallel=max_parallel,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def text_files(tmp_path):
    src = tmp_path / "inbox"
    src.mkdir()
    paths = []
    for name, body in (("alpha.txt", "alpha"), ("beta.txt", "beta"), ("gamma.txt", "gamma")):
        p = src / name
        p.write_text(body)
        paths.append(str(p))
    return paths


@pytest.fixture
def settings(workspace_dir, config_dir):
    return Settings(
        workspace_dir=str(workspace_dir),
        config_dir=str(config_dir),
        skills_community_dir="",
        _env_file=None,
    )


@pytest.fixture
def catalog_engine(settings):
    """Engine over the bundled catalog with the real Pillow driver."""
    return build_engine(settings)


@pytest.fixture
def make_png(tmp_path):
    def _make(name="photo.png", size=(640, 480), color=(200, 30, 30)):
        folder = tmp_path / "images"
        folder.mkdir(exist_ok=True)
        path = folder / name
        Image.new("RGB", size, color).save(path, format="PNG")
        return str(path)

    return _make
