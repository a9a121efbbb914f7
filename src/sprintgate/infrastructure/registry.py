"""
Reasoning engine lookup by configured name.

The built-in engines are always available. Other packages contribute engines
through the ``sprintgate.engines`` entry point group:

    [project.entry-points."sprintgate.engines"]
    MyEngine = "mypackage.engines:MyEngine"

A built-in name cannot be shadowed by an entry point.
"""

import logging
from collections.abc import Mapping
from importlib.metadata import entry_points
from typing import Any

from sprintgate.domain.exceptions import ConfigurationError
from sprintgate.domain.interfaces import ReasoningEngineInterface
from sprintgate.infrastructure.llm.cli import CliReasoningEngine
from sprintgate.infrastructure.llm.mock import MockReasoningEngine

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "sprintgate.engines"

BUILTIN_ENGINES: dict[str, type[ReasoningEngineInterface]] = {
    "CliReasoningEngine": CliReasoningEngine,
    "MockReasoningEngine": MockReasoningEngine,
}


def discover_engines(group: str = ENTRY_POINT_GROUP) -> dict[str, type[ReasoningEngineInterface]]:
    """Engine classes advertised under ``group``; broken entries are skipped with a warning."""
    found: dict[str, type[ReasoningEngineInterface]] = {}
    for ep in entry_points(group=group):
        try:
            engine_class = ep.load()
        except (ImportError, AttributeError) as e:
            logger.warning(f"Skipping engine '{ep.name}': cannot load {ep.value}: {e}")
            continue
        if not (
            isinstance(engine_class, type) and issubclass(engine_class, ReasoningEngineInterface)
        ):
            logger.warning(f"Skipping engine '{ep.name}': {ep.value} is not a reasoning engine")
            continue
        found[ep.name] = engine_class
    return found


class ReasoningEngineRegistry:
    """
    Engine classes by name.

    Example:
        engine = ReasoningEngineRegistry().create("CliReasoningEngine", {"timeout": 300})
    """

    def __init__(
        self,
        engines: Mapping[str, type[ReasoningEngineInterface]] | None = None,
        discover: bool = True,
    ):
        """
        Args:
            engines: Starting catalogue (default: the built-in engines)
            discover: Also load engines from the entry point group
        """
        self._engines: dict[str, type[ReasoningEngineInterface]] = {}
        if discover:
            self._engines.update(discover_engines())
        self._engines.update(BUILTIN_ENGINES if engines is None else engines)

    def register(self, name: str, engine_class: type[ReasoningEngineInterface]) -> None:
        self._engines[name] = engine_class

    def names(self) -> list[str]:
        return sorted(self._engines)

    def get(self, name: str) -> type[ReasoningEngineInterface] | None:
        return self._engines.get(name)

    def create(
        self, name: str, config: Mapping[str, Any] | None = None
    ) -> ReasoningEngineInterface:
        """
        Instantiate the engine registered as ``name``.

        Raises:
            ConfigurationError: If the name is unknown or ``config`` does not
                match the engine's constructor
        """
        engine_class = self._engines.get(name)
        if engine_class is None:
            available = ", ".join(self.names()) or "(none)"
            raise ConfigurationError(f"Unknown engine '{name}'. Available engines: {available}")
        try:
            return engine_class(**dict(config or {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration for engine '{name}': {e}") from e
