"""Tests for toolchat/core/detection.py — tool-call detection from model text."""

import json

import pytest

from toolchat.core.detection import (
    NotJson,
    ToolCallCandidate,
    WrongShape,
    detect_from_structured_text,
    detect_from_text_patterns,
    detect_tool_call,
    scrape_arguments,
    validate_candidate,
)
from toolchat.core.models import DetectionMethod, DetectionResult, ToolCallRequest


# ──────────────────────────────────────────────
# End-to-end scenarios
# ──────────────────────────────────────────────

class TestScenarios:

    def test_json_tool_call(self):
        text = '{"tool":"echo","arguments":{"message":"Hello World"}}'
        result = detect_tool_call(text)
        assert result.is_tool_call is True
        assert result.detection_method == DetectionMethod.JSON_PARSING
        assert result.tool_call_request.tool_name == "echo"
        assert result.tool_call_request.arguments == {"message": "Hello World"}
        assert result.raw_response == text

    def test_text_pattern_tool_call(self):
        result = detect_tool_call("I will use tool: add to calculate the sum")
        assert result.is_tool_call is True
        assert result.detection_method == DetectionMethod.TEXT_ANALYSIS
        assert result.tool_call_request.tool_name == "add"

    def test_plain_answer(self):
        result = detect_tool_call("The weather is sunny today.")
        assert result.is_tool_call is False
        assert result.tool_call_request is None
        assert result.detection_method == DetectionMethod.JSON_PARSING


# ──────────────────────────────────────────────
# JSON parsing
# ──────────────────────────────────────────────

class TestStructuredText:

    def test_serialized_object(self):
        text = json.dumps({"tool": "echo", "arguments": {"message": "test"}})
        result = detect_from_structured_text(text)
        assert result.is_tool_call
        assert result.tool_call_request == ToolCallRequest("echo", {"message": "test"})

    def test_embedded_in_prose(self):
        text = 'Here is the tool call: {"tool": "add", "arguments": {"a": 5, "b": 3}} for you'
        result = detect_tool_call(text)
        assert result.is_tool_call
        assert result.detection_method == DetectionMethod.JSON_PARSING
        assert result.tool_call_request.arguments == {"a": 5, "b": 3}
        assert result.raw_response == text

    def test_multiline_json(self):
        text = """{
    "tool": "multiply",
    "arguments": {
        "x": 8,
        "y": 9
    }
}"""
        result = detect_tool_call(text)
        assert result.is_tool_call
        assert result.tool_call_request.tool_name == "multiply"

    def test_surrounding_whitespace_kept_in_raw_response(self):
        text = '\n  {"tool": "echo", "arguments": {}}  \n'
        result = detect_tool_call(text)
        assert result.is_tool_call
        assert result.raw_response == text

    def test_extra_fields_ignored(self):
        text = '{"tool": "echo", "arguments": {"message": "hi"}, "reason": "user asked"}'
        result = detect_tool_call(text)
        assert result.is_tool_call
        assert result.tool_call_request.arguments == {"message": "hi"}

    def test_empty_arguments(self):
        result = detect_tool_call('{"tool": "list_files", "arguments": {}}')
        assert result.is_tool_call
        assert result.tool_call_request.arguments == {}

    def test_nested_argument_values_preserved(self):
        text = '{"tool": "query", "arguments": {"filter": {"tags": ["a", "b"]}, "limit": 10, "exact": true}}'
        result = detect_tool_call(text)
        assert result.tool_call_request.arguments == {
            "filter": {"tags": ["a", "b"]},
            "limit": 10,
            "exact": True,
        }

    def test_object_without_tool_fields(self):
        result = detect_from_structured_text(json.dumps({"message": "hello", "type": "greeting"}))
        assert result.is_tool_call is False

    def test_plain_text(self):
        result = detect_from_structured_text("This is just a normal response")
        assert result.is_tool_call is False
        assert result.detection_method == DetectionMethod.JSON_PARSING


# ──────────────────────────────────────────────
# Shape contract
# ──────────────────────────────────────────────

class TestShapeRejection:

    @pytest.mark.parametrize("arguments", ['"hello"', "5", "[1, 2]", "null", "true"])
    def test_non_object_arguments_rejected(self, arguments):
        text = '{"tool": "echo", "arguments": %s}' % arguments
        result = detect_tool_call(text)
        assert result.is_tool_call is False
        assert result.tool_call_request is None

    @pytest.mark.parametrize("tool", ["5", "null", '["echo"]', '{"name": "echo"}'])
    def test_non_string_tool_rejected(self, tool):
        result = detect_tool_call('{"tool": %s, "arguments": {}}' % tool)
        assert result.is_tool_call is False

    def test_missing_arguments_field(self):
        assert detect_tool_call('{"tool": "echo"}').is_tool_call is False

    def test_array_wrapped_object_found_by_span(self):
        # Top level is an array, but the outermost {...} span is a valid call
        result = detect_tool_call('[{"tool": "echo", "arguments": {}}]')
        assert result.is_tool_call is True
        assert result.detection_method == DetectionMethod.JSON_PARSING

    def test_validate_candidate_variants(self):
        assert isinstance(validate_candidate("not json"), NotJson)
        assert isinstance(validate_candidate("[1, 2]"), WrongShape)
        assert isinstance(validate_candidate('{"tool": "x", "arguments": []}'), WrongShape)
        assert validate_candidate('{"tool": "x", "arguments": {"k": 1}}') == ToolCallCandidate("x", {"k": 1})


# ──────────────────────────────────────────────
# Malformed input never raises
# ──────────────────────────────────────────────

class TestMalformed:

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "{",
        "}",
        "{}",
        '{"tool": "echo", "arguments": {',
        '{"tool": "echo", "arguments": {"a": 1}',
        "{'tool': 'echo', 'arguments': {}}",
        "{" * 500,
        "Some prose { with braces } and more { text }",
    ])
    def test_no_exception(self, text):
        result = detect_tool_call(text)
        assert isinstance(result, DetectionResult)
        assert result.raw_response == text

    def test_two_objects_span_is_greedy(self):
        # First "{" to last "}" covers both objects and does not parse
        text = 'first {"a": 1} then {"tool": "x", "arguments": {}}'
        result = detect_from_structured_text(text)
        assert result.is_tool_call is False


# ──────────────────────────────────────────────
# Text patterns
# ──────────────────────────────────────────────

class TestTextPatterns:

    def test_bracket_tag(self):
        result = detect_from_text_patterns("Let me help with [tool: echo]")
        assert result.is_tool_call
        assert result.tool_call_request.tool_name == "echo"

    def test_call_tool_phrase(self):
        result = detect_tool_call("I will call tool: fallback_tool to help")
        assert result.detection_method == DetectionMethod.TEXT_ANALYSIS
        assert result.tool_call_request.tool_name == "fallback_tool"

    def test_invoke_the_tool_phrase(self):
        result = detect_tool_call("I'll invoke the tool get-weather now")
        assert result.tool_call_request.tool_name == "get-weather"

    def test_case_insensitive(self):
        result = detect_tool_call("USE TOOL: Echo")
        assert result.is_tool_call
        assert result.tool_call_request.tool_name == "Echo"

    def test_name_stops_at_non_ascii_letter(self):
        # U+212A KELVIN SIGN folds to "k" under IGNORECASE
        result = detect_tool_call("use tool: echo\u212a")
        assert result.tool_call_request.tool_name == "echo"

    def test_name_must_start_with_ascii_letter(self):
        # U+017F LATIN SMALL LETTER LONG S folds to "s" under IGNORECASE
        assert detect_tool_call("call tool: \u017fearch").is_tool_call is False

    def test_no_pattern(self):
        result = detect_from_text_patterns("This is a simple answer to your question")
        assert result.is_tool_call is False
        assert result.detection_method == DetectionMethod.TEXT_ANALYSIS

    def test_tools_word_alone_does_not_match(self):
        assert detect_tool_call("I have no tools for that.").is_tool_call is False

    def test_arguments_scraped(self):
        result = detect_tool_call("Using tool: add with value: 5, other: 10")
        assert result.is_tool_call
        assert result.tool_call_request.tool_name == "add"
        assert isinstance(result.tool_call_request.arguments, dict)
        assert result.tool_call_request.arguments["other"] == "10"

    def test_scrape_arguments_strips_quotes_and_space(self):
        assert scrape_arguments('message: "Hello World"\ncount: 3 ') == {
            "message": "Hello World",
            "count": "3",
        }


# ──────────────────────────────────────────────
# Precedence and purity
# ──────────────────────────────────────────────

class TestPrecedence:

    def test_json_beats_text_pattern(self):
        result = detect_tool_call('Using tool: wrong {"tool": "correct", "arguments": {}}')
        assert result.is_tool_call
        assert result.tool_call_request.tool_name == "correct"
        assert result.detection_method == DetectionMethod.JSON_PARSING

    def test_invalid_json_falls_back_to_text(self):
        result = detect_tool_call('use tool: echo {"tool": "echo", "arguments": "oops"}')
        assert result.detection_method == DetectionMethod.TEXT_ANALYSIS
        assert result.tool_call_request.tool_name == "echo"

    @pytest.mark.parametrize("text", [
        '{"tool":"echo","arguments":{"message":"Hello World"}}',
        "I will use tool: add to calculate the sum",
        "The weather is sunny today.",
        "{broken",
    ])
    def test_deterministic(self, text):
        assert detect_tool_call(text) == detect_tool_call(text)


# ──────────────────────────────────────────────
# DetectionResult invariant
# ──────────────────────────────────────────────

class TestDetectionResult:

    def test_positive_requires_request(self):
        with pytest.raises(ValueError):
            DetectionResult(is_tool_call=True, raw_response="x", detection_method=DetectionMethod.JSON_PARSING)

    def test_negative_forbids_request(self):
        with pytest.raises(ValueError):
            DetectionResult(
                is_tool_call=False,
                raw_response="x",
                detection_method=DetectionMethod.JSON_PARSING,
                tool_call_request=ToolCallRequest("echo", {}),
            )

    def test_method_values(self):
        assert DetectionMethod.JSON_PARSING.value == "json-parsing"
        assert DetectionMethod.TEXT_ANALYSIS.value == "text-analysis"
        assert DetectionMethod.NATIVE_TOOL_CALL.value == "native-tool-call"
