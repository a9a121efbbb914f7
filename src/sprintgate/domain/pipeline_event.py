"""Pipeline run trace models."""

from dataclasses import dataclass
from enum import Enum


class PipelineEventType(str, Enum):
    """Types of pipeline run events."""

    STAGE_START = "STAGE_START"
    STAGE_PASS = "STAGE_PASS"
    STAGE_BLOCKED = "STAGE_BLOCKED"
    GATE_OVERRIDDEN = "GATE_OVERRIDDEN"
    RUN_COMPLETE = "RUN_COMPLETE"


@dataclass(frozen=True)
class PipelineEvent:
    """Single pipeline state transition.

    Captures the stage, the agent that handled it and, for gate events,
    the gate and its verdict.
    """

    event_id: str
    event_type: PipelineEventType
    run_id: str
    pipeline: str
    stage_index: int
    command: str = ""
    agent_id: str | None = None
    gate_name: str | None = None
    verdict: str | None = None  # "PASS", "FAIL", "OVERRIDDEN"
    summary: str = ""
    created_at: str = ""  # ISO 8601
