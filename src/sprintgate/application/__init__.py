"""
Application layer for SprintGate.

Contains the stateful services that coordinate domain objects: the shard
cache and the pipeline orchestrator.
"""

from sprintgate.application.event_emitter import PipelineEventEmitter
from sprintgate.application.orchestrator import (
    PipelineOrchestrator,
    format_orchestration_result,
)
from sprintgate.application.shard_cache import DEFAULT_TOKEN_BUDGET, ShardCache

__all__ = [
    "DEFAULT_TOKEN_BUDGET",
    "PipelineEventEmitter",
    "PipelineOrchestrator",
    "ShardCache",
    "format_orchestration_result",
]
