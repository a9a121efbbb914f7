"""Tests for the state snapshot and result models."""

from sprintgate.domain.models import ProjectState, TaskRecord


def _state() -> ProjectState:
    return ProjectState(project_id="proj-1", task=TaskRecord("T-1", "Login"))


class TestWithOutput:
    """Recording stage outputs on a snapshot."""

    def test_appends_new_command(self) -> None:
        state = _state().with_output("analysis", "a").with_output("prd", "b")

        assert state.outputs == (("analysis", "a"), ("prd", "b"))

    def test_rerun_replaces_in_place(self) -> None:
        """A command recorded again keeps its position and a single entry."""
        state = (
            _state()
            .with_output("analysis", "a")
            .with_output("prd", "draft")
            .with_output("prd", "final")
        )

        assert state.outputs == (("analysis", "a"), ("prd", "final"))
        assert state.output_for("prd") == "final"

    def test_original_unchanged(self) -> None:
        original = _state().with_output("prd", "draft")

        original.with_output("prd", "final")

        assert original.output_for("prd") == "draft"

    def test_missing_output(self) -> None:
        assert _state().output_for("exec") is None
