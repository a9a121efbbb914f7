"""
Persistence adapters for documents and pipeline traces.
"""

from sprintgate.infrastructure.persistence.events import (
    FilesystemPipelineEventStore,
    InMemoryPipelineEventStore,
)
from sprintgate.infrastructure.persistence.memory import InMemoryDocumentStore

__all__ = [
    "InMemoryDocumentStore",
    "InMemoryPipelineEventStore",
    "FilesystemPipelineEventStore",
]
