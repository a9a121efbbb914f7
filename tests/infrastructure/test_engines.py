"""Tests for reasoning engine adapters and the engine registry."""

import subprocess
from importlib.metadata import EntryPoint
from unittest.mock import patch

import pytest

from sprintgate.domain.exceptions import ConfigurationError, ReasoningEngineError
from sprintgate.domain.interfaces import ReasoningEngineInterface
from sprintgate.infrastructure import (
    CliReasoningEngine,
    MockReasoningEngine,
    ReasoningEngineRegistry,
)
from sprintgate.infrastructure.llm.cli import CliReasoningEngineConfig
from sprintgate.infrastructure.registry import ENTRY_POINT_GROUP as GROUP
from sprintgate.infrastructure.registry import discover_engines


class TestMockReasoningEngine:
    """Canned responses in order."""

    def test_returns_responses_in_order(self) -> None:
        engine = MockReasoningEngine(["first", "second"])

        assert engine.complete("p1") == "first"
        assert engine.complete("p2") == "second"
        assert engine.call_count == 2
        assert engine.prompts == ["p1", "p2"]

    def test_exhausted_raises(self) -> None:
        engine = MockReasoningEngine(["only"])
        engine.complete("p1")

        with pytest.raises(ReasoningEngineError, match="exhausted"):
            engine.complete("p2")

    def test_reset(self) -> None:
        engine = MockReasoningEngine(["only"])
        engine.complete("p1")

        engine.reset()

        assert engine.call_count == 0
        assert engine.complete("p2") == "only"


class TestCliReasoningEngine:
    """Subprocess-backed engine."""

    def test_build_args(self) -> None:
        engine = CliReasoningEngine(command="claude", extra_args=("--model", "opus"))

        assert engine.build_args("hello") == [
            "claude",
            "-p",
            "hello",
            "--output-format",
            "text",
            "--model",
            "opus",
        ]

    def test_typed_config(self) -> None:
        engine = CliReasoningEngine(CliReasoningEngineConfig(command="agent", output_format="json"))

        assert engine.build_args("x")[:1] == ["agent"]
        assert "json" in engine.build_args("x")

    def test_unknown_config_field_rejected(self) -> None:
        with pytest.raises(TypeError):
            CliReasoningEngine(model="gpt")

    def test_missing_binary(self) -> None:
        engine = CliReasoningEngine(command="definitely-not-installed-binary")

        with pytest.raises(ReasoningEngineError, match="Command not found"):
            engine.complete("hello")

    def test_success_returns_stdout(self) -> None:
        engine = CliReasoningEngine(command="claude")
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=" done \n", stderr="")

        with (
            patch("sprintgate.infrastructure.llm.cli.shutil.which", return_value="/bin/claude"),
            patch("sprintgate.infrastructure.llm.cli.subprocess.run", return_value=completed) as run,
        ):
            assert engine.complete("hello") == "done"

        assert run.call_args.kwargs["timeout"] == 600.0

    def test_non_zero_exit(self) -> None:
        engine = CliReasoningEngine(command="claude")
        failed = subprocess.CompletedProcess(args=[], returncode=2, stdout="partial", stderr="boom")

        with (
            patch("sprintgate.infrastructure.llm.cli.shutil.which", return_value="/bin/claude"),
            patch("sprintgate.infrastructure.llm.cli.subprocess.run", return_value=failed),
            pytest.raises(ReasoningEngineError, match="claude failed: boom") as exc_info,
        ):
            engine.complete("hello")

        assert exc_info.value.output == "partial"

    def test_timeout(self) -> None:
        engine = CliReasoningEngine(command="claude", timeout=1.0)

        with (
            patch("sprintgate.infrastructure.llm.cli.shutil.which", return_value="/bin/claude"),
            patch(
                "sprintgate.infrastructure.llm.cli.subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="claude", timeout=1.0),
            ),
            pytest.raises(ReasoningEngineError, match="timed out after 1.0s"),
        ):
            engine.complete("hello")


class TestReasoningEngineRegistry:
    """Engine lookup by configured name."""

    def test_builtins_available(self) -> None:
        registry = ReasoningEngineRegistry(discover=False)

        assert registry.names() == ["CliReasoningEngine", "MockReasoningEngine"]
        assert registry.get("CliReasoningEngine") is CliReasoningEngine

    def test_create_with_config(self) -> None:
        engine = ReasoningEngineRegistry(discover=False).create(
            "MockReasoningEngine", {"responses": ["ok"]}
        )

        assert isinstance(engine, ReasoningEngineInterface)
        assert engine.complete("p") == "ok"

    def test_register(self) -> None:
        registry = ReasoningEngineRegistry(engines={}, discover=False)

        registry.register("Mock", MockReasoningEngine)

        assert registry.names() == ["Mock"]
        assert isinstance(registry.create("Mock", {"responses": []}), MockReasoningEngine)

    def test_unknown_engine(self) -> None:
        registry = ReasoningEngineRegistry(discover=False)

        assert registry.get("NonExistentEngine") is None
        with pytest.raises(ConfigurationError, match="Unknown engine 'NonExistentEngine'") as exc:
            registry.create("NonExistentEngine")

        assert "Available engines: CliReasoningEngine, MockReasoningEngine" in str(exc.value)

    def test_bad_config_is_configuration_error(self) -> None:
        registry = ReasoningEngineRegistry(discover=False)

        with pytest.raises(ConfigurationError, match="Invalid configuration for engine 'Cli"):
            registry.create("CliReasoningEngine", {"not_a_field": 1})

    def test_discovered_engines(self) -> None:
        """Entry points extend the catalogue; broken ones are skipped."""
        advertised = [
            EntryPoint("Canned", "sprintgate.infrastructure.llm.mock:MockReasoningEngine", GROUP),
            EntryPoint("Missing", "sprintgate_no_such_module:Engine", GROUP),
            EntryPoint("Typo", "sprintgate.infrastructure.llm.mock:MockEngine", GROUP),
            EntryPoint("NotAnEngine", "sprintgate.domain.models:Stage", GROUP),
        ]

        with patch("sprintgate.infrastructure.registry.entry_points", return_value=advertised):
            found = discover_engines()
            registry = ReasoningEngineRegistry()

        assert found == {"Canned": MockReasoningEngine}
        assert "Canned" in registry.names()
        assert "Missing" not in registry.names()

    def test_entry_point_cannot_shadow_builtin(self) -> None:
        advertised = [
            EntryPoint(
                "CliReasoningEngine",
                "sprintgate.infrastructure.llm.mock:MockReasoningEngine",
                GROUP,
            ),
        ]

        with patch("sprintgate.infrastructure.registry.entry_points", return_value=advertised):
            registry = ReasoningEngineRegistry()

        assert registry.get("CliReasoningEngine") is CliReasoningEngine
