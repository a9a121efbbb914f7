"""Tests for the sprintgate command-line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from sprintgate import __version__
from sprintgate.cli import cli, parse_subtask
from sprintgate.domain.agents import BMAD_AGENTS


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner working in an empty directory (no sprintgate.json)."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def task_file(tmp_path: Path) -> Path:
    """Task file in which every gate of the default pipeline can pass."""
    path = tmp_path / "task.json"
    path.write_text(
        json.dumps(
            {
                "project_id": "proj-1",
                "task": {
                    "task_id": "T-1",
                    "title": "Build login page",
                    "description": "Email and password form with validation",
                    "acceptance_criteria": "AC-1: validate email",
                    "subtasks": [{"title": "Create component", "done": True}],
                },
                "prds": [
                    {
                        "prd_id": "prd-1",
                        "title": "Login",
                        "status": "approved",
                        "content": "# Objective\nx\n# Scope\ny\n# Success Criteria\nz",
                    }
                ],
            }
        )
    )
    return path


def _responses(tmp_path: Path, outputs: list[str]) -> Path:
    path = tmp_path / "responses.json"
    path.write_text(json.dumps(outputs))
    return path


class TestListing:
    """agents and pipelines commands."""

    def test_agents_lists_every_agent(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["agents"])

        assert result.exit_code == 0
        for agent in BMAD_AGENTS:
            assert agent.name in result.output

    def test_agents_plain(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["agents", "--plain"])

        assert result.exit_code == 0
        assert result.output.startswith("BMAD AGENTS")
        assert "/exec -> 💻 Amelia (Developer Agent)" in result.output

    def test_pipelines(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["pipelines"])

        assert result.exit_code == 0
        for name in ("default", "quick", "review"):
            assert name in result.output

    def test_custom_pipeline_from_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "sprintgate.json"
        config.write_text(json.dumps({"pipelines": {"hotfix": [{"command": "exec"}]}}))

        result = runner.invoke(cli, ["pipelines"])

        assert result.exit_code == 0
        assert "hotfix" in result.output

    def test_invalid_config_exits(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["--config", str(tmp_path / "missing.json"), "agents"])

        assert result.exit_code == 2
        assert "Config file not found" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert __version__ in result.output


class TestShard:
    def test_overview_and_query(
        self, runner: CliRunner, tmp_path: Path, sample_markdown: str
    ) -> None:
        document = tmp_path / "notes.md"
        document.write_text(sample_markdown)

        result = runner.invoke(cli, ["shard", str(document), "--query", "section one"])

        assert result.exit_code == 0
        assert "3 sections" in result.output
        assert "3. Section Two" in result.output
        assert "--- Section One (section 2) ---" in result.output


class TestPrompt:
    def test_exec_prompt(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli,
            [
                "prompt",
                "exec",
                "--title",
                "Build login",
                "--priority",
                "1",
                "--subtask",
                "Create component (AC: AC-1)",
                "--subtask",
                "[x] Add tests",
            ],
        )

        assert result.exit_code == 0
        assert result.output.startswith("You are Amelia, Developer Agent")
        assert "PRIORITY: P1" in result.output
        assert "[ ] Create component (AC: AC-1)" in result.output
        assert "[x] Add tests" in result.output

    def test_unmapped_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["prompt", "deploy"])

        assert result.exit_code == 1
        assert "No agent handles command" in result.output

    def test_parse_subtask(self) -> None:
        subtask = parse_subtask("[X] Wire API (AC: AC-2)")

        assert subtask.title == "Wire API"
        assert subtask.done is True
        assert subtask.ac_mapping == "AC-2"


class TestRun:
    def test_quick_pipeline_completes(
        self, runner: CliRunner, tmp_path: Path, task_file: Path
    ) -> None:
        responses = _responses(tmp_path, ["Story", "Implemented", "Reviewed"])
        events = tmp_path / "trace"

        result = runner.invoke(
            cli,
            [
                "run",
                str(task_file),
                "--pipeline",
                "quick",
                "--responses",
                str(responses),
                "--events-dir",
                str(events),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "PIPELINE quick: COMPLETED" in result.output
        assert len(list((events / "events").glob("*.jsonl"))) == 1

    def test_blocked_run_exits_non_zero(
        self, runner: CliRunner, tmp_path: Path, task_file: Path
    ) -> None:
        data = json.loads(task_file.read_text())
        data["prds"] = []
        task_file.write_text(json.dumps(data))
        responses = _responses(tmp_path, ["a"] * 7)

        result = runner.invoke(cli, ["run", str(task_file), "--responses", str(responses)])

        assert result.exit_code == 1
        assert "PIPELINE default: BLOCKED" in result.output
        assert "Blocked at stage 2/7 (/prd)" in result.output

    def test_override_unblocks(self, runner: CliRunner, tmp_path: Path, task_file: Path) -> None:
        data = json.loads(task_file.read_text())
        data["prds"] = []
        task_file.write_text(json.dumps(data))
        review = json.dumps({"score": 90, "findings": [], "summary": "ok"})
        responses = _responses(tmp_path, ["a", "b", "c", "d", "e", review, "g"])

        result = runner.invoke(
            cli,
            ["run", str(task_file), "--responses", str(responses), "--override", "prd_approved"],
        )

        assert result.exit_code == 0, result.output
        assert "overridden: prd_approved" in result.output

    def test_unknown_pipeline(self, runner: CliRunner, task_file: Path) -> None:
        result = runner.invoke(cli, ["run", str(task_file), "--pipeline", "nightly"])

        assert result.exit_code == 2
        assert "Unknown pipeline" in result.output

    def test_invalid_task_file(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "task.json"
        path.write_text(json.dumps({"project_id": "p"}))

        result = runner.invoke(cli, ["run", str(path)])

        assert result.exit_code == 2

    def test_malformed_responses_file(
        self, runner: CliRunner, tmp_path: Path, task_file: Path
    ) -> None:
        responses = tmp_path / "responses.json"
        responses.write_text("[\"unterminated")

        result = runner.invoke(cli, ["run", str(task_file), "--responses", str(responses)])

        assert result.exit_code == 2
        assert "--responses" in result.output
        assert "is not valid JSON" in result.output

    def test_responses_must_be_list_of_strings(
        self, runner: CliRunner, tmp_path: Path, task_file: Path
    ) -> None:
        responses = tmp_path / "responses.json"
        responses.write_text(json.dumps({"story": "done"}))

        result = runner.invoke(cli, ["run", str(task_file), "--responses", str(responses)])

        assert result.exit_code == 2
        assert "must hold a JSON list of strings" in result.output

    def test_unknown_engine(self, runner: CliRunner, tmp_path: Path, task_file: Path) -> None:
        (tmp_path / "sprintgate.json").write_text(json.dumps({"engine": {"name": "Oracle"}}))

        result = runner.invoke(cli, ["run", str(task_file)])

        assert result.exit_code == 2
        assert "Unknown engine 'Oracle'" in result.output
