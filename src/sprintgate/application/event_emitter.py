"""Pipeline event emission service."""

import uuid
from datetime import datetime, timezone

from sprintgate.domain.interfaces import PipelineEventStoreInterface
from sprintgate.domain.models import GateReport, Stage
from sprintgate.domain.pipeline_event import PipelineEvent, PipelineEventType


class PipelineEventEmitter:
    """Emits pipeline events to a store.

    Provides convenience methods for emitting the events of one run,
    handling ID generation and timestamps.
    """

    def __init__(
        self, event_store: PipelineEventStoreInterface, run_id: str, pipeline: str
    ) -> None:
        self._store = event_store
        self._run_id = run_id
        self._pipeline = pipeline

    def _emit(self, event_type: PipelineEventType, stage_index: int, **fields) -> str:
        return self._store.store_event(
            PipelineEvent(
                event_id=str(uuid.uuid4()),
                event_type=event_type,
                run_id=self._run_id,
                pipeline=self._pipeline,
                stage_index=stage_index,
                created_at=self._now(),
                **fields,
            )
        )

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def stage_start(self, index: int, stage: Stage, agent_id: str | None) -> None:
        """Emit STAGE_START when a stage begins."""
        self._emit(
            PipelineEventType.STAGE_START,
            index,
            command=stage.command,
            agent_id=agent_id,
        )

    def stage_pass(self, index: int, stage: Stage, agent_id: str | None) -> None:
        """Emit STAGE_PASS when every required gate passed or was overridden."""
        self._emit(
            PipelineEventType.STAGE_PASS,
            index,
            command=stage.command,
            agent_id=agent_id,
            verdict="PASS",
        )

    def stage_blocked(
        self, index: int, stage: Stage, agent_id: str | None, reasons: tuple[str, ...]
    ) -> None:
        """Emit STAGE_BLOCKED with the blocking reasons."""
        self._emit(
            PipelineEventType.STAGE_BLOCKED,
            index,
            command=stage.command,
            agent_id=agent_id,
            verdict="FAIL",
            summary="; ".join(reasons)[:500],
        )

    def gates_overridden(self, index: int, stage: Stage, report: GateReport) -> None:
        """Emit one GATE_OVERRIDDEN per failing gate let through by an override."""
        for result in report.overridden:
            self._emit(
                PipelineEventType.GATE_OVERRIDDEN,
                index,
                command=stage.command,
                gate_name=result.gate,
                verdict="OVERRIDDEN",
                summary="; ".join(result.reasons)[:500],
            )

    def run_complete(self, index: int) -> None:
        """Emit RUN_COMPLETE after the last stage passed."""
        self._emit(PipelineEventType.RUN_COMPLETE, index, verdict="PASS")
