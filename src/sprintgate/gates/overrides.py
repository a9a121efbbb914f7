"""
Per-task gate override ledger.

Records which gates a user explicitly overrode for a task, so the next
pipeline invocation can pass them to the gate engine. Safe for concurrent
use across tasks.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class GateOverrideLedger:
    """Thread-safe map of task id to overridden gate names."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._overrides: dict[str, list[str]] = {}

    def override_gate(self, task_id: str, gate_name: str) -> None:
        """Record an override; recording the same gate twice is a no-op."""
        with self._lock:
            gates = self._overrides.setdefault(task_id, [])
            if gate_name not in gates:
                gates.append(gate_name)
        logger.info(f"Override recorded: task={task_id} gate={gate_name}")

    def is_gate_overridden(self, task_id: str, gate_name: str) -> bool:
        with self._lock:
            return gate_name in self._overrides.get(task_id, ())

    def overrides_for(self, task_id: str) -> tuple[str, ...]:
        """Overridden gates of a task, in the order they were recorded."""
        with self._lock:
            return tuple(self._overrides.get(task_id, ()))

    def clear(self, task_id: str | None = None) -> None:
        """Forget the overrides of one task, or of every task."""
        with self._lock:
            if task_id is None:
                self._overrides.clear()
            else:
                self._overrides.pop(task_id, None)
