"""
Tool-call detection from plain model output.

Models are told to answer with {"tool": ..., "arguments": {...}} when they
want a tool, but in practice they wrap it in prose, drop the JSON, or just
name the tool. Detection runs in a fixed order:

1. JSON parsing - the whole trimmed response, then the outermost {...} span
2. Text patterns - "use tool: NAME", "tool: NAME", "[tool: NAME]"
3. Nothing found (negative result tagged json-parsing)

Everything here is pure: no I/O, no state, and parse failures never escape.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .models import DetectionMethod, DetectionResult, ToolCallRequest

# Wire shape shared with the system prompt (see prompts.py)
TOOL_FIELD = "tool"
ARGUMENTS_FIELD = "arguments"

# Greedy: first "{" to last "}"
_EMBEDDED_JSON = re.compile(r"\{.*\}", re.DOTALL)


# === Parsed candidates ===

@dataclass(frozen=True)
class NotJson:
    """Text did not parse as JSON at all."""
    error: str


@dataclass(frozen=True)
class WrongShape:
    """Valid JSON, but not {"tool": str, "arguments": object}."""
    reason: str


@dataclass(frozen=True)
class ToolCallCandidate:
    """Valid tool-call JSON."""
    name: str
    arguments: Dict[str, Any]


ParsedCandidate = Union[NotJson, WrongShape, ToolCallCandidate]


def validate_candidate(text: str) -> ParsedCandidate:
    """Parse text as JSON and check it against the tool-call wire shape."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError, RecursionError) as e:
        return NotJson(str(e))

    if not isinstance(parsed, dict):
        return WrongShape(f"top level is {type(parsed).__name__}, not an object")
    if TOOL_FIELD not in parsed or ARGUMENTS_FIELD not in parsed:
        return WrongShape(f"missing '{TOOL_FIELD}' or '{ARGUMENTS_FIELD}'")

    tool = parsed[TOOL_FIELD]
    arguments = parsed[ARGUMENTS_FIELD]
    if not isinstance(tool, str):
        return WrongShape(f"'{TOOL_FIELD}' is {type(tool).__name__}, not a string")
    if not isinstance(arguments, dict):
        return WrongShape(f"'{ARGUMENTS_FIELD}' is {type(arguments).__name__}, not an object")

    return ToolCallCandidate(name=tool, arguments=arguments)


def detect_from_structured_text(text: str) -> DetectionResult:
    """Detect a tool call from JSON: the whole response first, then the embedded {...} span."""
    candidate = validate_candidate(text.strip())

    if not isinstance(candidate, ToolCallCandidate):
        match = _EMBEDDED_JSON.search(text)
        if match:
            candidate = validate_candidate(match.group(0))

    if isinstance(candidate, ToolCallCandidate):
        return DetectionResult.positive(
            text,
            DetectionMethod.JSON_PARSING,
            ToolCallRequest(tool_name=candidate.name, arguments=candidate.arguments),
        )
    return DetectionResult.negative(text, DetectionMethod.JSON_PARSING)


# === Text patterns ===

@dataclass(frozen=True)
class TextPatternRule:
    """A named surface pattern whose first group is the tool name."""
    name: str
    pattern: re.Pattern


# Tool names are plain ASCII letters, underscore or hyphen. The group is
# case-sensitive so IGNORECASE cannot fold in characters like U+212A.
_NAME = r"((?-i:[a-zA-Z_-]+))"

TEXT_PATTERN_RULES: List[TextPatternRule] = [
    TextPatternRule("use-tool", re.compile(r"(?:use|call|invoke)\s+(?:the\s+)?tool[:\s]+" + _NAME, re.IGNORECASE)),
    TextPatternRule("tool-label", re.compile(r"tool[:\s]+" + _NAME, re.IGNORECASE)),
    TextPatternRule("bracket-tag", re.compile(r"\[tool:\s*" + _NAME + r"\]", re.IGNORECASE)),
]

# key: value, value optionally quoted, ending at a comma, closing brace or newline
_ARGUMENT_PATTERN = re.compile(r"""([a-zA-Z_]+):\s*["']?([^"',}\n]+)["']?""")


def scrape_arguments(text: str) -> Dict[str, str]:
    """Best-effort key: value scraping. Untyped and unvalidated."""
    args: Dict[str, str] = {}
    for match in _ARGUMENT_PATTERN.finditer(text):
        args[match.group(1)] = match.group(2).strip()
    return args


def detect_from_text_patterns(text: str) -> DetectionResult:
    """Detect a tool call from prose that names a tool without valid JSON."""
    for rule in TEXT_PATTERN_RULES:
        match = rule.pattern.search(text)
        if match and match.group(1):
            return DetectionResult.positive(
                text,
                DetectionMethod.TEXT_ANALYSIS,
                ToolCallRequest(tool_name=match.group(1), arguments=scrape_arguments(text)),
            )
    return DetectionResult.negative(text, DetectionMethod.TEXT_ANALYSIS)


def detect_tool_call(text: str) -> DetectionResult:
    """Classify a model response: JSON first, then text patterns, else no tool call."""
    result = detect_from_structured_text(text)
    if result.is_tool_call:
        return result

    result = detect_from_text_patterns(text)
    if result.is_tool_call:
        return result

    return DetectionResult.negative(text, DetectionMethod.JSON_PARSING)
