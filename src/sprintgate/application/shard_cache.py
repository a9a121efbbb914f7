"""
ShardCache: per-project cache of document shards and derived task contexts.

Projects are filled lazily from a DocumentSourceInterface and re-read when the
source reports a new revision. Each project has its own lock plus a
generation counter; no lock is held while the source is called, and a fill
that raced with an invalidation is returned to its caller but never stored.
"""

import logging
import threading
from dataclasses import dataclass, field

from sprintgate.domain.interfaces import DocumentSourceInterface
from sprintgate.domain.models import (
    CrossRef,
    DocumentShard,
    MemoryFact,
    ProjectDocument,
    Retrospective,
    ShardedDocument,
    TaskRecord,
    TocEntry,
)
from sprintgate.domain.sharding import (
    analysis_document,
    build_budgeted_context,
    document_toc,
    find_related_documents,
    memory_facts_document,
    query_keywords,
    resolve_shard_refs,
    retro_document,
    shard_document_content,
    shard_matches,
    shards_by_title,
)

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_BUDGET = 3000


@dataclass
class _ProjectEntry:
    """Mutable cache slot of one project. Guarded by ``lock``."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    documents: dict[str, ShardedDocument] = field(default_factory=dict)
    contexts: dict[tuple[str, int], str] = field(default_factory=dict)
    filled: bool = False
    source_revision: str | None = None  # None until filled from the source
    generation: int = 0

    def reset(self) -> None:
        self.documents.clear()
        self.contexts.clear()
        self.filled = False
        self.source_revision = None
        self.generation += 1


class ShardCache:
    """
    Thread-safe shard cache keyed by project.

    Example:
        cache = ShardCache(source=InMemoryDocumentStore())
        shards = cache.get_document_shards("proj-1")
        context = cache.build_task_context("proj-1", task)
    """

    def __init__(
        self,
        source: DocumentSourceInterface | None = None,
        token_budget: int = DEFAULT_TOKEN_BUDGET,
    ):
        """
        Args:
            source: Document collaborator for lazy fills (None: only
                documents added through shard_document are served)
            token_budget: Default budget of build_task_context
        """
        self._source = source
        self._token_budget = token_budget
        self._projects: dict[str, _ProjectEntry] = {}
        self._map_lock = threading.Lock()

    @property
    def token_budget(self) -> int:
        return self._token_budget

    def _entry(self, project_id: str) -> _ProjectEntry:
        with self._map_lock:
            entry = self._projects.get(project_id)
            if entry is None:
                entry = self._projects[project_id] = _ProjectEntry()
            return entry

    # =========================================================================
    # Shards
    # =========================================================================

    def shard_document(self, project_id: str, document: ProjectDocument) -> ShardedDocument:
        """
        Shard ``document`` and store it, replacing any earlier shard set of
        the same document id. Derived contexts of the project are dropped.
        """
        sharded = shard_document_content(document)
        entry = self._entry(project_id)
        with entry.lock:
            entry.documents[document.document_id] = sharded
            entry.contexts.clear()
            entry.filled = True
            entry.generation += 1
        logger.debug(
            f"Sharded {document.document_id} for {project_id}: {len(sharded.shards)} shards"
        )
        return sharded

    def get_documents(self, project_id: str) -> list[ShardedDocument]:
        """Sharded documents of a project, filling from the source if needed."""
        documents, _ = self._load(project_id)
        return documents

    def get_document_shards(self, project_id: str) -> list[DocumentShard]:
        """All shards of a project's documents, in document then source order."""
        return [s for doc in self.get_documents(project_id) for s in doc.shards]

    def get_relevant_shards(self, project_id: str, query: str) -> list[DocumentShard]:
        """Shards whose title or content contains a query keyword, source order kept."""
        keywords = query_keywords(query)
        if not keywords:
            return []
        return [s for s in self.get_document_shards(project_id) if shard_matches(s, keywords)]

    def shard_retro(self, project_id: str, retro: Retrospective) -> ShardedDocument:
        """Store a sprint retrospective as the project's ``retro-<sprint>`` document."""
        return self.shard_document(project_id, retro_document(retro))

    def shard_memory_facts(
        self, project_id: str, facts: list[MemoryFact]
    ) -> ShardedDocument | None:
        """Store remembered facts, one section per category; None without facts."""
        document = memory_facts_document(facts, project_id)
        if document is None:
            return None
        return self.shard_document(project_id, document)

    def shard_analysis(
        self, project_id: str, document_id: str, title: str, content: str
    ) -> ShardedDocument:
        """Store the output of an analysis stage."""
        return self.shard_document(project_id, analysis_document(document_id, title, content))

    # =========================================================================
    # Lookup and cross-references
    # =========================================================================

    def get_document(self, project_id: str, document_id: str) -> ShardedDocument | None:
        for document in self.get_documents(project_id):
            if document.document.document_id == document_id:
                return document
        return None

    def get_shards_by_title(
        self, project_id: str, document_id: str, titles: list[str]
    ) -> list[DocumentShard]:
        """Named sections of one document, in source order."""
        document = self.get_document(project_id, document_id)
        return shards_by_title(document, titles) if document else []

    def get_document_toc(self, project_id: str, document_id: str) -> list[TocEntry]:
        """Table of contents of one document ([] when unknown)."""
        document = self.get_document(project_id, document_id)
        return document_toc(document) if document else []

    def resolve_shard_refs(
        self, project_id: str, document_id: str, shard: DocumentShard
    ) -> list[DocumentShard]:
        """Sections of the same document that ``shard`` refers to."""
        document = self.get_document(project_id, document_id)
        return resolve_shard_refs(shard, document) if document else []

    def find_related_documents(self, project_id: str, document_id: str) -> list[CrossRef]:
        """Sections of the project's other documents overlapping ``document_id``."""
        documents = self.get_documents(project_id)
        document = next((d for d in documents if d.document.document_id == document_id), None)
        if document is None:
            return []
        return find_related_documents(document, documents)

    def _load(self, project_id: str) -> tuple[list[ShardedDocument], int]:
        """Current documents and the generation they belong to."""
        entry = self._entry(project_id)
        with entry.lock:
            filled = entry.filled
            known_revision = entry.source_revision
            generation = entry.generation
            documents = list(entry.documents.values())

        if self._source is None:
            return documents, generation
        if filled and known_revision is None:
            # Populated through shard_document only
            return documents, generation

        revision = self._source.get_revision(project_id)
        if filled and revision == known_revision:
            return documents, generation

        if filled:
            logger.info(f"Documents of {project_id} changed, reloading shards")
        sharded = [shard_document_content(d) for d in self._source.get_documents(project_id)]

        with entry.lock:
            if entry.generation != generation:
                logger.debug(f"Fill of {project_id} raced with an update, not stored")
                return sharded, -1
            entry.documents = {d.document.document_id: d for d in sharded}
            entry.contexts.clear()
            entry.filled = True
            entry.source_revision = revision
            entry.generation += 1
            generation = entry.generation

        logger.debug(f"Filled {project_id}: {len(sharded)} document(s)")
        return sharded, generation

    # =========================================================================
    # Task context
    # =========================================================================

    def build_task_context(
        self,
        project_id: str,
        task: TaskRecord | str,
        token_budget: int | None = None,
    ) -> str:
        """
        Context block of the shards relevant to ``task``.

        The whole rendered block, headers included, stays within the budget.
        Relevant shards are taken in source order; the first shard that does
        not fit is cut to the room left, nothing after it is included, and
        the block ends with the truncation marker.

        Args:
            project_id: Project key
            task: Task record (its title is the query) or a raw query
            token_budget: Token cap (defaults to the cache's budget)

        Returns:
            The context text ("" when nothing is relevant)
        """
        budget = self._token_budget if token_budget is None else token_budget
        query = task if isinstance(task, str) else task.title
        key = (query, budget)

        documents, generation = self._load(project_id)
        entry = self._entry(project_id)
        with entry.lock:
            cached = entry.contexts.get(key)
            if cached is not None and entry.generation == generation:
                return cached

        result = self._render_context(documents, query_keywords(query), budget)

        with entry.lock:
            if entry.generation == generation:
                entry.contexts[key] = result
        return result

    def _render_context(
        self, documents: list[ShardedDocument], keywords: tuple[str, ...], budget: int
    ) -> str:
        if not keywords:
            return ""

        sections = [
            (
                f"{doc.document.doc_type.value.upper()} {doc.document.title}",
                [s for s in doc.shards if shard_matches(s, keywords)],
            )
            for doc in documents
        ]
        return build_budgeted_context(sections, budget)

    # =========================================================================
    # Invalidation
    # =========================================================================

    def invalidate_project_cache(self, project_id: str) -> None:
        """Drop every shard and context of one project."""
        with self._map_lock:
            entry = self._projects.get(project_id)
        if entry is None:
            return
        with entry.lock:
            entry.reset()
        logger.info(f"Invalidated shard cache for {project_id}")

    def clear_context_cache(self) -> None:
        """Drop every cached project."""
        with self._map_lock:
            entries = list(self._projects.values())
        for entry in entries:
            with entry.lock:
                entry.reset()
        logger.info("Cleared shard cache")
