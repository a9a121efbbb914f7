"""Shared pytest fixtures for sprintgate tests."""

import json

import pytest

from sprintgate.domain.models import (
    DocumentType,
    PrdRecord,
    PrdStatus,
    ProjectDocument,
    ProjectState,
    Subtask,
    TaskRecord,
)

SAMPLE_MARKDOWN = (
    "# Title\nPreamble content\n\n"
    "## Section One\nContent of section one\n\n"
    "## Section Two\nContent of section two\nMore content"
)

COMPLETE_PRD = (
    "# Objective\nLet users sign in with email.\n\n"
    "# Scope\nLogin page and session handling.\n\n"
    "# Success Criteria\n95% of logins succeed on first try."
)


@pytest.fixture
def sample_markdown() -> str:
    """Markdown document with a title and two sections."""
    return SAMPLE_MARKDOWN


@pytest.fixture
def sample_task() -> TaskRecord:
    """Task with priority, acceptance criteria and one pending subtask."""
    return TaskRecord(
        task_id="T-1",
        title="Build login page",
        description="Email and password form",
        priority=1,
        acceptance_criteria="AC-1: the form validates the email",
        subtasks=(
            Subtask("Create component", done=False, ac_mapping="AC-1"),
            Subtask("Add tests", done=True),
        ),
        project="Webshop",
        sprint_id="S-3",
    )


@pytest.fixture
def done_task() -> TaskRecord:
    """Task whose every subtask is done."""
    return TaskRecord(
        task_id="T-2",
        title="Build login page",
        description="Email and password form with validation",
        priority=2,
        acceptance_criteria="AC-1: the form validates the email",
        subtasks=(
            Subtask("Create component", done=True, ac_mapping="AC-1"),
            Subtask("Add tests", done=True),
        ),
    )


@pytest.fixture
def approved_prd() -> PrdRecord:
    """Approved PRD with objective, scope and success criteria."""
    return PrdRecord(
        prd_id="prd-1",
        title="Login",
        status=PrdStatus.APPROVED,
        content=COMPLETE_PRD,
    )


@pytest.fixture
def ready_state(done_task: TaskRecord, approved_prd: PrdRecord) -> ProjectState:
    """State in which every gate of the default pipeline can pass."""
    return ProjectState(project_id="proj-1", task=done_task, prds=(approved_prd,))


@pytest.fixture
def review_output() -> str:
    """QA output that passes the review gate."""
    return json.dumps(
        {
            "score": 85,
            "findings": [
                {
                    "severity": "minor",
                    "description": "Missing docstring",
                    "suggestion": "Document the handler",
                }
            ],
            "summary": "Solid implementation",
        }
    )


@pytest.fixture
def default_responses(review_output: str) -> list[str]:
    """One engine output per stage of the default pipeline."""
    return [
        "ANALYSIS: feasible",
        "PRD drafted",
        "DESIGN: one component",
        "Story prepared",
        "Implemented login form",
        review_output,
        "Retro: went well",
    ]


@pytest.fixture
def login_document() -> ProjectDocument:
    """PRD document with sections about login and billing."""
    return ProjectDocument(
        document_id="prd-login",
        title="Webshop PRD",
        content=(
            "# Webshop\nOverview of the shop.\n\n"
            "## Login\nUsers sign in with email and password.\n\n"
            "## Billing\nInvoices are sent monthly.\n\n"
            "## Login Errors\nShow a message when the password is wrong."
        ),
        doc_type=DocumentType.PRD,
    )
