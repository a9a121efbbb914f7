"""Pipeline event store implementations."""

import json
import threading
from pathlib import Path
from typing import Any

from sprintgate.domain.interfaces import PipelineEventStoreInterface
from sprintgate.domain.pipeline_event import PipelineEvent, PipelineEventType


class InMemoryPipelineEventStore(PipelineEventStoreInterface):
    """In-memory implementation for testing."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[PipelineEvent] = []

    def store_event(self, event: PipelineEvent) -> str:
        with self._lock:
            self._events.append(event)
        return event.event_id

    def get_events(
        self, run_id: str, event_type: PipelineEventType | None = None
    ) -> list[PipelineEvent]:
        with self._lock:
            return [
                e
                for e in self._events
                if e.run_id == run_id and (event_type is None or e.event_type == event_type)
            ]


class FilesystemPipelineEventStore(PipelineEventStoreInterface):
    """Filesystem implementation storing each run's events as JSONL."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.events_dir = base_path / "events"
        self.events_dir.mkdir(parents=True, exist_ok=True)

    def _get_run_file(self, run_id: str) -> Path:
        return self.events_dir / f"{run_id}.jsonl"

    def store_event(self, event: PipelineEvent) -> str:
        path = self._get_run_file(event.run_id)
        with open(path, "a") as f:
            f.write(json.dumps(self._event_to_dict(event)) + "\n")
        return event.event_id

    def get_events(
        self, run_id: str, event_type: PipelineEventType | None = None
    ) -> list[PipelineEvent]:
        path = self._get_run_file(run_id)
        if not path.exists():
            return []
        events: list[PipelineEvent] = []
        with open(path) as f:
            for line in f:
                event = self._dict_to_event(json.loads(line))
                if event_type and event.event_type != event_type:
                    continue
                events.append(event)
        return events

    def _event_to_dict(self, event: PipelineEvent) -> dict[str, Any]:
        """Serialize event to dict."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "run_id": event.run_id,
            "pipeline": event.pipeline,
            "stage_index": event.stage_index,
            "command": event.command,
            "agent_id": event.agent_id,
            "gate_name": event.gate_name,
            "verdict": event.verdict,
            "summary": event.summary,
            "created_at": event.created_at,
        }

    def _dict_to_event(self, data: dict[str, Any]) -> PipelineEvent:
        """Deserialize dict to event."""
        return PipelineEvent(
            event_id=data["event_id"],
            event_type=PipelineEventType(data["event_type"]),
            run_id=data["run_id"],
            pipeline=data["pipeline"],
            stage_index=data["stage_index"],
            command=data.get("command", ""),
            agent_id=data.get("agent_id"),
            gate_name=data.get("gate_name"),
            verdict=data.get("verdict"),
            summary=data.get("summary", ""),
            created_at=data.get("created_at", ""),
        )
