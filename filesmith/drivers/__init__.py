"""Transform drivers -- the pluggable implementations behind skills."""

from filesmith.drivers.base import META_DRIVER, BaseDriver, DriverRegistry
from filesmith.drivers.cli import CLIDriver
from filesmith.drivers.image import ImageDriver
from filesmith.drivers.pipeline import PipelineDriver
from filesmith.skills.registry import SkillRegistry


def build_default_drivers(
    registry: SkillRegistry,
    allowed_commands: list[str] | None = None,
    cli_timeout: float = 120.0,
) -> DriverRegistry:
    """Register the bundled ``image``, ``cli`` and ``pipeline`` drivers."""
    drivers = DriverRegistry()
    drivers.register(ImageDriver())
    if allowed_commands is None:
        drivers.register(CLIDriver(default_timeout=cli_timeout))
    else:
        drivers.register(CLIDriver(allowed_commands, default_timeout=cli_timeout))
    drivers.register(PipelineDriver(registry, drivers))
    return drivers


__all__ = [
    "META_DRIVER",
    "BaseDriver",
    "CLIDriver",
    "DriverRegistry",
    "ImageDriver",
    "PipelineDriver",
    "build_default_drivers",
]
