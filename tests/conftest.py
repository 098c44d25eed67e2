"""Shared fakes: in-memory tool connections, scripted providers and UIs."""

from typing import Any, Dict, List

import pytest

from toolchat.core.models import ToolDescriptor
from toolchat.errors import ProviderError, ToolExecutionError


class FakeConnection:
    """A tool server held in memory."""

    def __init__(self, name: str, tools: Dict[str, Any] = None, fail_close: bool = False):
        # tools: name -> result payload, or an Exception to raise
        self.name = name
        self.tools = tools or {}
        self.fail_close = fail_close
        self.calls: List[tuple] = []
        self.close_count = 0
        self.list_count = 0

    async def list_tools(self) -> List[ToolDescriptor]:
        self.list_count += 1
        return [
            ToolDescriptor(
                name=tool,
                description=f"{tool} tool",
                input_schema={
                    "type": "object",
                    "properties": {"message": {"type": "string", "description": "Text to use"}},
                    "required": ["message"],
                },
            )
            for tool in self.tools
        ]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        self.calls.append((name, arguments))
        outcome = self.tools[name]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self):
        self.close_count += 1
        if self.fail_close:
            raise RuntimeError(f"{self.name} refused to close")


class ScriptedProvider:
    """generate_response returns queued replies; queued exceptions are raised."""

    name = "scripted"
    model = "scripted-model"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.seen: List[list] = []

    def generate_response(self, messages) -> str:
        self.seen.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class ScriptedUI:
    """read_line yields queued lines; an exception in the queue is raised; empty queue means EOF."""

    def __init__(self, *lines, on_read=None):
        self.lines = list(lines)
        self.on_read = on_read
        self.replies: List[str] = []
        self.errors: List[str] = []
        self.tool_lines: List[tuple] = []

    async def read_line(self) -> str:
        if self.on_read:
            self.on_read()
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line

    def print_assistant(self, message: str):
        self.replies.append(message)

    def print_error(self, message: str):
        self.errors.append(message)

    def print_tool(self, message: str, success: bool = True):
        self.tool_lines.append((message, success))


@pytest.fixture
def echo_connection():
    return FakeConnection("echo-server", {"echo": "Echo: test"})


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def make_provider():
    return ScriptedProvider


@pytest.fixture
def make_ui():
    return ScriptedUI


@pytest.fixture
def provider_error():
    return ProviderError("groq API error: 500", details="Internal Server Error", provider="groq", status_code=500)


@pytest.fixture
def tool_error():
    return ToolExecutionError("division by zero", tool_name="divide")
