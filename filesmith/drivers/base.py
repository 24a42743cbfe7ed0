"""Transform driver contract and the tag -> driver registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from filesmith.skills.models import Skill
from filesmith.utils.exceptions import UnknownDriverError
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

# Skills with this driver tag are session actions run by the engine itself.
META_DRIVER = "meta"


class BaseDriver(ABC):
    """Base class every transform driver inherits from.

    A driver reads the artifact at ``input_path`` and writes exactly one new
    artifact to ``output_path``.  It must be deterministic for identical
    inputs and params, since removing a history entry replays every
    remaining step from the original file.  Drivers never touch the working
    file store.
    """

    driver_id: str = ""

    @abstractmethod
    async def transform(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
    ) -> None:
        """Produce ``output_path`` from ``input_path``.

        Raise :class:`DriverExecutionError` (or any exception, which the
        caller wraps) on failure.
        """
        ...

    def output_extension(self, skill: Skill, current_extension: str) -> str:
        """Extension of the artifact *skill* produces from *current_extension*."""
        return skill.output_extension(current_extension)


class DriverRegistry:
    """Maps driver tags to driver instances.

    Adding a driver never requires touching the executor; it only needs to
    be registered here under the tag skills reference.
    """

    def __init__(self, drivers: Iterable[BaseDriver] = ()) -> None:
        self._drivers: dict[str, BaseDriver] = {}
        for driver in drivers:
            self.register(driver)

    def register(self, driver: BaseDriver) -> None:
        if not driver.driver_id:
            raise ValueError(f"{type(driver).__name__} has no driver_id")
        self._drivers[driver.driver_id] = driver
        logger.debug("driver_registered", driver=driver.driver_id)

    def get(self, tag: str) -> BaseDriver:
        """Return the driver for *tag*.

        Raises :class:`UnknownDriverError`; an unknown tag is a configuration
        problem, not a per-request failure.
        """
        driver = self._drivers.get(tag)
        if driver is None:
            raise UnknownDriverError(tag)
        return driver

    def check_catalog(self, skills: Iterable[Skill]) -> None:
        """Fail fast if any catalog skill references an unregistered driver."""
        for skill in skills:
            if skill.driver == META_DRIVER:
                continue
            if skill.driver not in self._drivers:
                logger.error(
                    "catalog_driver_missing",
                    skill_id=skill.id,
                    driver=skill.driver,
                )
                raise UnknownDriverError(skill.driver)
        logger.info("catalog_validated", drivers=sorted(self._drivers))

    def tags(self) -> list[str]:
        return list(self._drivers)

    def __contains__(self, tag: str) -> bool:
        return tag in self._drivers
