"""
Reasoning engine adapters.
"""

from sprintgate.infrastructure.llm.cli import CliReasoningEngine, CliReasoningEngineConfig
from sprintgate.infrastructure.llm.mock import MockReasoningEngine

__all__ = [
    "CliReasoningEngine",
    "CliReasoningEngineConfig",
    "MockReasoningEngine",
]
