"""Tests for markdown sharding and context rendering."""

import pytest

from sprintgate.domain.models import (
    DocumentShard,
    DocumentType,
    MemoryFact,
    ProjectDocument,
    RetroAction,
    Retrospective,
    TocEntry,
)
from sprintgate.domain.sharding import (
    PREAMBLE_TITLE,
    TRUNCATION_MARKER,
    analysis_document,
    build_budgeted_context,
    build_sharded_context,
    document_toc,
    estimate_tokens,
    find_related_documents,
    format_cross_refs,
    format_shard_overview,
    memory_facts_document,
    query_keywords,
    resolve_shard_refs,
    retro_document,
    shard_document_content,
    shards_by_title,
    split_into_sections,
)


def _shard(title: str, content: str, order: int) -> DocumentShard:
    return DocumentShard(
        title=title, content=content, order=order, token_estimate=estimate_tokens(content)
    )


class TestSplitIntoSections:
    """Heading-based splitting."""

    def test_three_sections(self, sample_markdown: str) -> None:
        """Title and both sections become shards in order."""
        shards = split_into_sections(sample_markdown)

        assert [s.title for s in shards] == ["Title", "Section One", "Section Two"]
        assert [s.order for s in shards] == [0, 1, 2]
        assert shards[0].content == "# Title\nPreamble content"
        assert shards[2].content.endswith("More content")

    def test_no_headings_gives_preamble(self) -> None:
        """Plain text is one preamble shard."""
        shards = split_into_sections("Just plain text\nNo headings here")

        assert len(shards) == 1
        assert shards[0].title == PREAMBLE_TITLE
        assert shards[0].level == 0
        assert shards[0].content == "Just plain text\nNo headings here"

    def test_text_before_first_heading(self) -> None:
        """Leading text becomes a preamble before the first heading."""
        shards = split_into_sections("intro\n## First\nbody")

        assert [s.title for s in shards] == [PREAMBLE_TITLE, "First"]
        assert shards[1].level == 2

    def test_deep_headings_stay_content(self) -> None:
        """Level 5 headings do not open a shard."""
        shards = split_into_sections("#### Four\ntext\n##### Five\nmore")

        assert [s.title for s in shards] == ["Four"]
        assert "##### Five" in shards[0].content

    def test_empty_document(self) -> None:
        assert split_into_sections("") == []

    def test_token_estimate(self) -> None:
        """Estimates round up at four characters per token."""
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2


class TestShardDocument:
    """Document-level sharding."""

    def test_revision_and_refs(self) -> None:
        """Sections mentioning another section's title reference it."""
        document = ProjectDocument(
            document_id="d1",
            title="Design",
            content="# Storage\nKeys live here.\n\n# Api\nReads from Storage.",
        )

        sharded = shard_document_content(document)

        assert sharded.sections == ("Storage", "Api")
        assert sharded.shards[1].refs == ("Storage",)
        assert sharded.shards[0].refs == ()
        assert len(sharded.revision) == 64

    def test_same_content_same_revision(self, sample_markdown: str) -> None:
        a = ProjectDocument(document_id="a", title="A", content=sample_markdown)
        b = ProjectDocument(document_id="b", title="B", content=sample_markdown)

        assert shard_document_content(a).revision == shard_document_content(b).revision


class TestSplitRoundTrip:
    """Shards cover the whole document."""

    @pytest.mark.parametrize(
        "text",
        [
            "# Webshop\nOverview.\n\n## Login\nEmail and password.\n\n## Billing\nMonthly.",
            "intro text\n\n# First\nbody\n\n#### Deep\nstill a shard",
        ],
    )
    def test_concatenation_rebuilds_document(self, text: str) -> None:
        """Blank-line separated sections join back to the source text."""
        shards = split_into_sections(text)

        assert "\n\n".join(s.content for s in shards) == text

    def test_sample_document_rebuilds(self, sample_markdown: str) -> None:
        shards = split_into_sections(sample_markdown)

        assert "\n\n".join(s.content for s in shards) == sample_markdown

    def test_no_text_lost(self) -> None:
        """Irregular spacing aside, every character lands in some shard."""
        text = "\n\nintro\n\n\n# One\n\nbody\n##### five\n\n\n## Two\n  indented\n"

        shards = split_into_sections(text)

        assert "".join("".join(s.content for s in shards).split()) == "".join(text.split())


class TestBudget:
    """Rendering within a token budget."""

    def test_all_fit(self) -> None:
        shards = [_shard("A", "a" * 40, 0), _shard("B", "b" * 40, 1)]

        text = build_budgeted_context([("T", shards)], 1000)

        assert text == build_sharded_context(shards, "T")
        assert TRUNCATION_MARKER not in text

    def test_first_overflow_is_cut(self) -> None:
        """The overflowing shard is cut to the room left; later shards are dropped."""
        a = _shard("A", "a" * 40, 0)
        shards = [a, _shard("B", "b" * 80, 1), _shard("C", "c", 2)]

        text = build_budgeted_context([("T", shards)], 35)

        assert text == (
            build_sharded_context([a], "T")
            + "\n\n--- B (section 2) ---\n"
            + "b" * 21
            + "\n"
            + TRUNCATION_MARKER
        )
        assert len(text) == 35 * 4
        assert "--- C" not in text

    def test_headers_count_against_budget(self) -> None:
        """Shard content alone would fit; the rendered headers do not."""
        shards = [_shard("A", "a" * 30, 0), _shard("B", "b" * 30, 1)]

        text = build_budgeted_context([("T", shards)], 20)

        assert estimate_tokens(text) <= 20
        assert text.endswith(TRUNCATION_MARKER)

    def test_later_documents_dropped_with_marker(self) -> None:
        first = [_shard("A", "a" * 10, 0)]
        second = [_shard("B", "b" * 200, 0)]

        text = build_budgeted_context([("One", first), ("Two", second)], 20)

        assert text.startswith("DOCUMENT: One")
        assert "DOCUMENT: Two" not in text
        assert text.endswith(TRUNCATION_MARKER)
        assert len(text) <= 80

    def test_only_marker_fits(self) -> None:
        shards = [_shard("A", "a" * 200, 0)]

        assert build_budgeted_context([("T", shards)], 5) == TRUNCATION_MARKER

    def test_nothing_fits(self) -> None:
        """Below the marker's own size the context is empty."""
        shards = [_shard("A", "a" * 200, 0)]

        assert build_budgeted_context([("T", shards)], 4) == ""

    def test_documents_without_shards_are_skipped(self) -> None:
        assert build_budgeted_context([("T", [])], 100) == ""


class TestFormatting:
    """Context and overview rendering."""

    def test_build_sharded_context(self) -> None:
        """Shards render under the document title with 1-based section numbers."""
        text = build_sharded_context([_shard("Login", "## Login\nEmail", 1)], "PRD Shop")

        assert text == "DOCUMENT: PRD Shop\n\n--- Login (section 2) ---\n## Login\nEmail"

    def test_empty_context(self) -> None:
        assert build_sharded_context([], "PRD Shop") == ""

    def test_query_keywords(self) -> None:
        """Short words are dropped and duplicates removed."""
        assert query_keywords("Add a Login to the login page") == ("add", "login", "the", "page")

    def test_shard_overview(self, sample_markdown: str) -> None:
        document = ProjectDocument(
            document_id="d1",
            title="Shop",
            content=sample_markdown,
            doc_type=DocumentType.ARCHITECTURE,
        )

        text = format_shard_overview(shard_document_content(document))

        assert text.startswith("Shop (ARCHITECTURE)\n3 sections | ~")
        assert "  1. Title" in text
        assert "  3. Section Two" in text


@pytest.fixture
def design() -> ProjectDocument:
    return ProjectDocument(
        document_id="design",
        title="Design",
        content=(
            "# Storage\nKeys live here.\n\n"
            "# Api\nReads from Storage.\n\n"
            "# Auth\nThe Api checks tokens against Storage."
        ),
        doc_type=DocumentType.ARCHITECTURE,
    )


class TestLookup:
    """Section lookup inside one document."""

    def test_shards_by_title_keeps_source_order(self, design: ProjectDocument) -> None:
        sharded = shard_document_content(design)

        shards = shards_by_title(sharded, ["Auth", "Storage", "Missing"])

        assert [s.title for s in shards] == ["Storage", "Auth"]

    def test_document_toc(self, design: ProjectDocument) -> None:
        sharded = shard_document_content(design)

        toc = document_toc(sharded)

        assert [(e.title, e.index) for e in toc] == [("Storage", 0), ("Api", 1), ("Auth", 2)]
        assert toc[0] == TocEntry("Storage", 0, sharded.shards[0].token_estimate)

    def test_resolve_shard_refs(self, design: ProjectDocument) -> None:
        sharded = shard_document_content(design)
        auth = sharded.shards[2]

        assert [s.title for s in resolve_shard_refs(auth, sharded)] == ["Storage", "Api"]
        assert resolve_shard_refs(sharded.shards[0], sharded) == []


class TestCrossReferences:
    """Overlap between documents."""

    def test_related_sections_scored(self, design: ProjectDocument) -> None:
        """A shared title scores two, each reference to a shared title one more."""
        sharded = shard_document_content(design)
        story = shard_document_content(
            ProjectDocument(
                document_id="story-42",
                title="Story",
                content="# Api\nExpose keys.\n\n# Tests\nCover the Api.\n\n# Notes\nNone.",
                doc_type=DocumentType.STORY,
            )
        )

        refs = find_related_documents(sharded, [sharded, story])

        assert [(r.section_title, r.overlap_score) for r in refs] == [("Api", 2), ("Tests", 1)]
        assert refs[0].document_id == "story-42"
        assert refs[0].doc_type is DocumentType.STORY

    def test_same_document_is_skipped(self, design: ProjectDocument) -> None:
        sharded = shard_document_content(design)

        assert find_related_documents(sharded, [sharded]) == []

    def test_format_cross_refs(self, design: ProjectDocument) -> None:
        sharded = shard_document_content(design)
        other = shard_document_content(
            ProjectDocument(document_id="prd-login-2024", title="PRD", content="# Auth\nSSO")
        )

        text = format_cross_refs(find_related_documents(sharded, [other]))

        assert text == "Cross-references:\n\n  PRD [prd-logi] > Auth (score: 2)"

    def test_format_without_refs(self) -> None:
        assert format_cross_refs([]) == "No cross-references found."


class TestDerivedDocuments:
    """Retros, memory facts and analyses rendered as documents."""

    def test_retro_document(self) -> None:
        retro = Retrospective(
            sprint_id="S-3",
            what_worked=("Pairing",),
            what_didnt=("Late reviews",),
            actions_proposed=(RetroAction("Review daily", priority="high"),),
        )

        document = retro_document(retro)

        assert document.document_id == "retro-S-3"
        assert document.title == "Retro Sprint S-3"
        assert document.doc_type is DocumentType.RETRO
        assert document.content == (
            "# Retro S-3\n\n"
            "## What worked\n- Pairing\n\n"
            "## What did not work\n- Late reviews\n\n"
            "## Proposed actions\n- [high] Review daily"
        )

    def test_empty_retro_has_heading_only(self) -> None:
        document = retro_document(Retrospective(sprint_id="S-4"))

        assert shard_document_content(document).sections == ("Retro S-4",)

    def test_memory_facts_grouped_by_category(self) -> None:
        facts = [
            MemoryFact("Uses Postgres", category="stack"),
            MemoryFact("Deploys on Fridays"),
            MemoryFact("Python 3.12", category="stack"),
        ]

        document = memory_facts_document(facts, "proj-1")

        assert document.document_id == "memory-facts-proj-1"
        assert document.doc_type is DocumentType.MEMORY
        sharded = shard_document_content(document)
        assert sharded.sections == ("Memory Facts", "stack", "general")
        assert sharded.shards[1].content == "## stack\n- Uses Postgres\n- Python 3.12"

    def test_memory_facts_without_project(self) -> None:
        document = memory_facts_document([MemoryFact("x")])

        assert document.document_id == "memory-facts-global"

    def test_no_memory_facts(self) -> None:
        assert memory_facts_document([]) is None

    def test_analysis_document(self) -> None:
        document = analysis_document("patterns-1", "Patterns", "# Findings\nRetries")

        assert document.doc_type is DocumentType.ANALYSIS
        assert shard_document_content(document).sections == ("Findings",)
