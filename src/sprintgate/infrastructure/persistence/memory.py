"""
In-memory document store.

Thread-safe implementation of DocumentSourceInterface, suitable for tests and
single-process use.
"""

import threading

from sprintgate.domain.interfaces import DocumentSourceInterface
from sprintgate.domain.models import ProjectDocument


class InMemoryDocumentStore(DocumentSourceInterface):
    """Project documents held in a dict, with a per-project revision counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, dict[str, ProjectDocument]] = {}
        self._revisions: dict[str, int] = {}

    def put_document(self, project_id: str, document: ProjectDocument) -> None:
        """Add or replace a document (keeps its position when replaced)."""
        with self._lock:
            self._documents.setdefault(project_id, {})[document.document_id] = document
            self._revisions[project_id] = self._revisions.get(project_id, 0) + 1

    def remove_document(self, project_id: str, document_id: str) -> bool:
        """Remove a document; returns whether it existed."""
        with self._lock:
            removed = self._documents.get(project_id, {}).pop(document_id, None)
            if removed is None:
                return False
            self._revisions[project_id] = self._revisions.get(project_id, 0) + 1
            return True

    def get_documents(self, project_id: str) -> list[ProjectDocument]:
        with self._lock:
            return list(self._documents.get(project_id, {}).values())

    def get_revision(self, project_id: str) -> str:
        with self._lock:
            return str(self._revisions.get(project_id, 0))
