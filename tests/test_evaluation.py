"""Tests for toolchat/core/evaluation.py — StructuredOutputTester."""

import pytest

from toolchat.core.evaluation import DEFAULT_SCENARIOS, StructuredOutputTester
from toolchat.core.models import DetectionMethod, ToolDescriptor

TOOLS = [ToolDescriptor(name="add", description="Add two numbers")]


class TestStructuredOutputTester:

    def test_classifies_each_provider(self, make_provider):
        tester = StructuredOutputTester(
            {
                "json": make_provider('{"tool": "add", "arguments": {"a": 15, "b": 27}}'),
                "prose": make_provider("I will use tool: add"),
                "plain": make_provider("42"),
            },
            TOOLS,
        )
        results = {r.provider: r for r in tester.run_all("Add 15 and 27")}

        assert results["json"].detection.detection_method == DetectionMethod.JSON_PARSING
        assert results["json"].detection.tool_call_request.arguments == {"a": 15, "b": 27}
        assert results["prose"].detection.detection_method == DetectionMethod.TEXT_ANALYSIS
        assert results["plain"].detection.is_tool_call is False
        assert all(r.ok for r in results.values())

    def test_prompt_includes_catalog(self, make_provider):
        provider = make_provider("ok")
        tester = StructuredOutputTester({"p": provider}, TOOLS)
        tester.test_scenario("p", "Add 1 and 2")

        system, user = provider.seen[0]
        assert system.role == "system"
        assert "Tool: add" in system.content
        assert user.content == "Add 1 and 2"

    def test_failure_recorded(self, make_provider, provider_error):
        tester = StructuredOutputTester(
            {"down": make_provider(provider_error), "up": make_provider("hi")},
            TOOLS,
        )
        results = tester.run_all("hello")

        assert [r.provider for r in results] == ["down", "up"]
        assert results[0].ok is False
        assert "500" in results[0].error
        assert results[0].detection is None
        assert results[1].ok

    def test_unknown_provider(self):
        tester = StructuredOutputTester({}, TOOLS)
        with pytest.raises(KeyError):
            tester.test_scenario("missing", "hi")

    def test_default_scenarios_include_a_non_tool_query(self):
        assert "Tell me a joke" in DEFAULT_SCENARIOS
