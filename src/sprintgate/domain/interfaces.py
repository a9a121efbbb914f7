"""
Domain interfaces (Ports) for SprintGate.

These abstract base classes define the contracts external collaborators
must satisfy. The core never talks to a network or a database directly;
it calls these ports and treats every call as fallible.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sprintgate.domain.models import (
        GateResult,
        ProjectDocument,
        ProjectState,
        Stage,
    )
    from sprintgate.domain.pipeline_event import PipelineEvent


class ReasoningEngineInterface(ABC):
    """
    Port for the external reasoning engine.

    Accepts one assembled instruction string and returns free-form text.
    The core does not parse the output beyond what gates read from the
    recorded state.
    """

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Run one instruction payload.

        Args:
            prompt: The fully assembled role-scoped instructions

        Returns:
            The engine's text output

        Raises:
            ReasoningEngineError: If the engine cannot produce an output
        """
        pass


class GateInterface(ABC):
    """
    Port for stage exit checks.

    Gates are pure functions of a state snapshot: same state, same result.
    """

    name: str = "gate"

    @abstractmethod
    def check(self, state: "ProjectState") -> "GateResult":
        """
        Evaluate the gate.

        Args:
            state: Project/sprint snapshot after the stage ran

        Returns:
            GateResult with passed=True/False and reasons on failure
        """
        pass


class DocumentSourceInterface(ABC):
    """
    Port for reading project documents from persistence.

    Used by the shard cache to fill a project lazily.
    """

    @abstractmethod
    def get_documents(self, project_id: str) -> list["ProjectDocument"]:
        """
        Load every shardable document of a project.

        Args:
            project_id: Project key

        Returns:
            Documents in a stable order (empty list if none)
        """
        pass

    @abstractmethod
    def get_revision(self, project_id: str) -> str:
        """
        Opaque token that changes whenever a project's documents change.

        Args:
            project_id: Project key

        Returns:
            Revision token (any string; compared for equality only)
        """
        pass


class StateRecorderInterface(ABC):
    """
    Port for writing a stage result back to persistence.

    Returns the refreshed snapshot the stage gates will evaluate.
    """

    @abstractmethod
    def record(
        self, state: "ProjectState", stage: "Stage", output: str
    ) -> "ProjectState":
        """
        Persist a stage output.

        Args:
            state: Snapshot before the stage
            stage: The stage that produced the output
            output: Reasoning engine output

        Returns:
            The updated snapshot
        """
        pass


class PipelineEventStoreInterface(ABC):
    """Port for pipeline run trace persistence."""

    @abstractmethod
    def store_event(self, event: "PipelineEvent") -> str:
        """
        Append an event.

        Args:
            event: The event to store

        Returns:
            The event_id
        """
        pass

    @abstractmethod
    def get_events(self, run_id: str) -> list["PipelineEvent"]:
        """
        Events of one run, oldest first.

        Args:
            run_id: Pipeline run identifier

        Returns:
            List of events (empty if the run is unknown)
        """
        pass
