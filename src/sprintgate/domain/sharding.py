"""
Document sharding: split markdown documents into heading-delimited sections.

Everything here is pure; the per-project cache that stores shards lives in
``sprintgate.application.shard_cache``.
"""

import hashlib
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import replace

from sprintgate.domain.models import (
    CrossRef,
    DocumentShard,
    DocumentType,
    MemoryFact,
    ProjectDocument,
    Retrospective,
    ShardedDocument,
    TocEntry,
)

PREAMBLE_TITLE = "Preambule"

# Headings at this level or above open a new shard; deeper ones stay as content.
MAX_SHARD_HEADING_LEVEL = 4

HEADING_PATTERN = re.compile(r"^(#{1,%d})\s+(.+)" % MAX_SHARD_HEADING_LEVEL)

TRUNCATION_MARKER = "[... truncated ...]"

CHARS_PER_TOKEN = 4

MAX_CROSS_REFS_SHOWN = 10


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def split_into_sections(text: str) -> list[DocumentShard]:
    """
    Split a markdown document into ordered shards.

    Each shard keeps its heading line. Text before the first heading becomes
    a ``PREAMBLE_TITLE`` shard; sections with no content are dropped.

    Args:
        text: Markdown source

    Returns:
        Shards in source order (``order`` is 0-based and contiguous)
    """
    sections: list[tuple[str, int, str]] = []
    title = PREAMBLE_TITLE
    level = 0
    lines: list[str] = []

    def flush() -> None:
        content = "\n".join(lines).strip()
        if content:
            sections.append((title, level, content))

    for line in text.split("\n"):
        match = HEADING_PATTERN.match(line)
        if match:
            flush()
            title = match.group(2).strip()
            level = len(match.group(1))
            lines = [line]
        else:
            lines.append(line)
    flush()

    return [
        DocumentShard(
            title=section_title,
            content=content,
            order=index,
            level=section_level,
            token_estimate=estimate_tokens(content),
        )
        for index, (section_title, section_level, content) in enumerate(sections)
    ]


def extract_refs(shard: DocumentShard, shards: Sequence[DocumentShard]) -> tuple[str, ...]:
    """Titles of the other shards whose title appears in ``shard``'s content."""
    content = shard.content.lower()
    refs: list[str] = []
    for other in shards:
        if other.order == shard.order or other.title in refs:
            continue
        if other.title.lower() in content:
            refs.append(other.title)
    return tuple(refs)


def content_revision(content: str) -> str:
    """SHA-256 of a document's content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def shard_document_content(document: ProjectDocument) -> ShardedDocument:
    """Shard a document and resolve cross-references between its sections."""
    shards = split_into_sections(document.content)
    shards = [replace(s, refs=extract_refs(s, shards)) for s in shards]
    return ShardedDocument(
        document=document,
        shards=tuple(shards),
        revision=content_revision(document.content),
    )


# =============================================================================
# LOOKUP
# =============================================================================


def shards_by_title(document: ShardedDocument, titles: Iterable[str]) -> list[DocumentShard]:
    """Shards whose title is one of ``titles``, in source order."""
    wanted = set(titles)
    return [s for s in document.shards if s.title in wanted]


def document_toc(document: ShardedDocument) -> list[TocEntry]:
    """Section titles with their position and size, without content."""
    return [TocEntry(title=s.title, index=s.order, tokens=s.token_estimate) for s in document.shards]


def resolve_shard_refs(shard: DocumentShard, document: ShardedDocument) -> list[DocumentShard]:
    """Sections of ``document`` that ``shard`` refers to."""
    if not shard.refs:
        return []
    return shards_by_title(document, shard.refs)


def find_related_documents(
    document: ShardedDocument, others: Iterable[ShardedDocument]
) -> list[CrossRef]:
    """
    Sections of other documents that overlap ``document``.

    A section scores one point per reference to one of ``document``'s
    section titles, and two more when its own title is one of them.
    Sections scoring zero are left out.

    Returns:
        Overlapping sections, highest score first (ties keep source order)
    """
    titles = {t.lower() for t in document.sections}
    related: list[CrossRef] = []

    for other in others:
        if other.document.document_id == document.document.document_id:
            continue
        for shard in other.shards:
            score = sum(1 for ref in shard.refs if ref.lower() in titles)
            if shard.title.lower() in titles:
                score += 2
            if score > 0:
                related.append(
                    CrossRef(
                        document_id=other.document.document_id,
                        doc_type=other.document.doc_type,
                        section_title=shard.title,
                        overlap_score=score,
                    )
                )

    return sorted(related, key=lambda r: r.overlap_score, reverse=True)


# =============================================================================
# DERIVED DOCUMENTS
# =============================================================================


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def retro_document(retro: Retrospective) -> ProjectDocument:
    """Retrospective rendered as a shardable document, one section per topic."""
    sections = []
    if retro.what_worked:
        sections.append(f"## What worked\n{_bullets(retro.what_worked)}")
    if retro.what_didnt:
        sections.append(f"## What did not work\n{_bullets(retro.what_didnt)}")
    if retro.patterns_detected:
        sections.append(f"## Patterns detected\n{_bullets(retro.patterns_detected)}")
    if retro.actions_proposed:
        actions = (f"[{a.priority}] {a.action}" for a in retro.actions_proposed)
        sections.append(f"## Proposed actions\n{_bullets(actions)}")
    if retro.raw_analysis:
        sections.append(f"## Detailed analysis\n{retro.raw_analysis}")

    content = "\n\n".join([f"# Retro {retro.sprint_id}", *sections])
    return ProjectDocument(
        document_id=f"retro-{retro.sprint_id}",
        title=f"Retro Sprint {retro.sprint_id}",
        content=content,
        doc_type=DocumentType.RETRO,
    )


def memory_facts_document(
    facts: Iterable[MemoryFact], project_id: str | None = None
) -> ProjectDocument | None:
    """Facts grouped into one section per category; None when there are no facts."""
    groups: dict[str, list[str]] = {}
    for fact in facts:
        groups.setdefault(fact.category or "general", []).append(fact.content)
    if not groups:
        return None

    sections = [f"## {category}\n{_bullets(items)}" for category, items in groups.items()]
    return ProjectDocument(
        document_id=f"memory-facts-{project_id or 'global'}",
        title="Memory Facts",
        content="\n\n".join(["# Memory Facts", *sections]),
        doc_type=DocumentType.MEMORY,
    )


def analysis_document(document_id: str, title: str, content: str) -> ProjectDocument:
    """Output of an analysis stage (e.g. /patterns) as a shardable document."""
    return ProjectDocument(
        document_id=document_id,
        title=title,
        content=content,
        doc_type=DocumentType.ANALYSIS,
    )


# =============================================================================
# RELEVANCE
# =============================================================================


def query_keywords(text: str) -> tuple[str, ...]:
    """Lower-cased words longer than two characters, first occurrence order."""
    seen: dict[str, None] = {}
    for word in text.lower().split():
        if len(word) > 2:
            seen.setdefault(word, None)
    return tuple(seen)


def shard_matches(shard: DocumentShard, keywords: Iterable[str]) -> bool:
    """Whether the shard's title or content contains any keyword."""
    title = shard.title.lower()
    content = shard.content.lower()
    return any(k in title or k in content for k in keywords)


def build_budgeted_context(
    sections: Iterable[tuple[str, Sequence[DocumentShard]]], token_budget: int
) -> str:
    """
    Render ``(document title, shards)`` pairs within ``token_budget``.

    Everything rendered counts against the budget: document headers, section
    headers and the truncation marker. When the shards do not all fit, whole
    shards are kept in source order, the first one that does not fit is cut
    to the room left, and the text ends with ``TRUNCATION_MARKER``. If not
    even the marker fits, the result is empty.

    Args:
        sections: Document titles with their relevant shards, in source order
        token_budget: Token cap of the rendered text

    Returns:
        The context text; its ``estimate_tokens`` never exceeds the budget
    """
    limit = token_budget * CHARS_PER_TOKEN
    blocks = [(title, list(shards)) for title, shards in sections if shards]

    full = _render_blocks(blocks)
    if len(full) <= limit:
        return full

    # Room for "\n" + marker is kept free while whole shards are added
    reserved = limit - len(TRUNCATION_MARKER) - 1
    kept: list[tuple[str, list[DocumentShard]]] = []
    for title, shards in blocks:
        kept.append((title, []))
        for shard in shards:
            kept[-1][1].append(shard)
            if len(_render_blocks(kept)) <= reserved:
                continue
            kept[-1][1].pop()
            return _render_cut(kept, shard, limit)

    return _render_blocks(kept)


def _render_blocks(blocks: Sequence[tuple[str, Sequence[DocumentShard]]]) -> str:
    return "\n\n".join(
        build_sharded_context(shards, title) for title, shards in blocks if shards
    )


def _render_cut(
    kept: list[tuple[str, list[DocumentShard]]], shard: DocumentShard, limit: int
) -> str:
    """Render ``kept`` plus ``shard`` cut to the room left, or plus the marker alone."""
    kept[-1][1].append(replace(shard, content=TRUNCATION_MARKER))
    room = limit - len(_render_blocks(kept)) - 1
    kept[-1][1].pop()

    cut = shard.content[:room].rstrip() if room > 0 else ""
    if cut:
        content = f"{cut}\n{TRUNCATION_MARKER}"
        kept[-1][1].append(
            replace(shard, content=content, token_estimate=estimate_tokens(content))
        )
        return _render_blocks(kept)

    text = _render_blocks(kept)
    if text:
        return f"{text}\n{TRUNCATION_MARKER}"
    return TRUNCATION_MARKER if len(TRUNCATION_MARKER) <= limit else ""


# =============================================================================
# FORMATTING
# =============================================================================


def build_sharded_context(shards: Sequence[DocumentShard], title: str) -> str:
    """Render shards as a titled context block; empty input renders ``""``."""
    if not shards:
        return ""

    parts = [f"DOCUMENT: {title}", ""]
    for shard in shards:
        parts.append(f"--- {shard.title} (section {shard.order + 1}) ---")
        parts.append(shard.content)
        parts.append("")

    return "\n".join(parts).strip()


def format_shard_overview(document: ShardedDocument) -> str:
    """Section listing of a sharded document."""
    lines = [
        f"{document.document.title} ({document.document.doc_type.value.upper()})",
        f"{len(document.shards)} sections | ~{document.total_tokens} tokens",
        "",
        "Sections:",
    ]
    for index, title in enumerate(document.sections, start=1):
        lines.append(f"  {index}. {title}")
    return "\n".join(lines)


def format_cross_refs(refs: Sequence[CrossRef]) -> str:
    """Notifier text for related sections (at most ten shown)."""
    if not refs:
        return "No cross-references found."

    lines = ["Cross-references:", ""]
    for ref in refs[:MAX_CROSS_REFS_SHOWN]:
        lines.append(
            f"  {ref.doc_type.value.upper()} [{ref.document_id[:8]}] > "
            f"{ref.section_title} (score: {ref.overlap_score})"
        )
    return "\n".join(lines)
