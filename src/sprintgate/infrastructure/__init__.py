"""
Infrastructure layer for SprintGate.

Contains adapters for external concerns (reasoning engines, persistence,
configuration files, engine registry).
"""

from sprintgate.infrastructure.config import (
    DEFAULT_CONFIG_FILE,
    SprintGateConfig,
    load_config,
    load_project_state,
    parse_config,
    parse_project_state,
)
from sprintgate.infrastructure.llm import CliReasoningEngine, MockReasoningEngine
from sprintgate.infrastructure.persistence import (
    FilesystemPipelineEventStore,
    InMemoryDocumentStore,
    InMemoryPipelineEventStore,
)
from sprintgate.infrastructure.registry import ReasoningEngineRegistry

__all__ = [
    # Persistence
    "InMemoryDocumentStore",
    "InMemoryPipelineEventStore",
    "FilesystemPipelineEventStore",
    # Reasoning engines
    "CliReasoningEngine",
    "MockReasoningEngine",
    # Registry
    "ReasoningEngineRegistry",
    # Configuration
    "DEFAULT_CONFIG_FILE",
    "SprintGateConfig",
    "load_config",
    "parse_config",
    "load_project_state",
    "parse_project_state",
]
