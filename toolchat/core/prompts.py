"""System prompt rendering for prompt-based tool calling."""

import json
from typing import List

from .detection import ARGUMENTS_FIELD, TOOL_FIELD
from .models import ToolDescriptor

# Example rendered from the same field names detection.py parses
TOOL_CALL_EXAMPLE = json.dumps(
    {TOOL_FIELD: "tool-name", ARGUMENTS_FIELD: {"argument-name": "value"}},
    indent=4,
)


def describe_tool(tool: ToolDescriptor) -> str:
    """Render one tool as prompt text."""
    lines = [
        f"Tool: {tool.name}",
        f"Description: {tool.description or 'No description'}",
        "Arguments:",
    ]
    for arg in tool.arguments:
        line = f"- {arg.name}: {arg.description or 'No description'}"
        if arg.required:
            line += " (required)"
        lines.append(line)
    return "\n".join(lines)


def build_system_prompt(tools: List[ToolDescriptor]) -> str:
    """Build the session's system message from the tool catalog."""
    tool_descriptions = "\n".join(describe_tool(t) for t in tools) if tools else "(no tools available)"

    lines = [
        "You are a helpful assistant with access to these tools:",
        "",
        tool_descriptions,
        "",
        "Choose the appropriate tool based on the user's question. If no tool is needed, reply directly.",
        "",
        "IMPORTANT: When you need to use a tool, you must ONLY respond with the exact JSON object format below, nothing else:",
        TOOL_CALL_EXAMPLE,
        "",
        "After receiving a tool's response:",
        "1. Transform the raw data into a natural, conversational response",
        "2. Keep responses concise but informative",
        "3. Focus on the most relevant information",
        "4. Use appropriate context from the user's question",
        "5. Avoid simply repeating the raw data",
        "",
        "Please use only the tools that are explicitly defined above.",
    ]
    return "\n".join(lines)
