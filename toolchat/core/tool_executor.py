"""
Tool executor with progress events.

Routes a detected ToolCallRequest to the server that owns the tool and
turns every outcome (success, unknown tool, failure) into the text that
goes back into the transcript. Failures never propagate; cancellation does.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ..errors import ToolExecutionError
from .models import ToolCallRequest
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events emitted during tool execution."""
    TOOL_START = "tool_start"
    TOOL_COMPLETE = "tool_complete"
    TOOL_ERROR = "tool_error"


@dataclass
class ToolResult:
    """Result of a single tool execution."""
    tool_name: str
    args: dict
    message: str  # transcript text
    duration: float
    success: bool
    server: Optional[str] = None
    payload: Any = None
    error: Optional[str] = None


@dataclass
class ToolEvent:
    """Event emitted during tool execution."""
    event_type: EventType
    tool_name: str
    args: dict = field(default_factory=dict)
    server: Optional[str] = None
    result: Optional[str] = None
    duration: Optional[float] = None
    success: bool = True
    display: str = ""


def serialize_payload(payload: Any) -> str:
    """Render a tool result payload as text."""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def format_args(args: dict, limit: int = 60) -> str:
    text = ", ".join(f"{k}={v!r}" for k, v in args.items())
    return text if len(text) <= limit else text[:limit - 3] + "..."


class ToolExecutor:
    """
    Executes one tool call against the registry.

    Usage:
        executor = ToolExecutor(registry)
        executor.on_tool_start(lambda e: print(f"Starting {e.tool_name}"))
        executor.on_tool_complete(lambda e: print(f"Done {e.tool_name}"))
        result = await executor.execute(request)
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry
        self._on_start: Optional[Callable] = None
        self._on_complete: Optional[Callable] = None

    def on_tool_start(self, callback: Callable[[ToolEvent], Any]):
        """Register callback for tool start events."""
        self._on_start = callback

    def on_tool_complete(self, callback: Callable[[ToolEvent], Any]):
        """Register callback for tool completion events, failed ones included."""
        self._on_complete = callback

    async def _emit(self, callback: Optional[Callable], event: ToolEvent):
        if not callback:
            return
        result = callback(event)
        if asyncio.iscoroutine(result):
            await result

    async def _emit_done(self, result: ToolResult):
        event = ToolEvent(
            event_type=EventType.TOOL_COMPLETE if result.success else EventType.TOOL_ERROR,
            tool_name=result.tool_name,
            args=result.args,
            server=result.server,
            result=result.message,
            duration=result.duration,
            success=result.success,
            display=f"{result.tool_name}({format_args(result.args)})",
        )
        await self._emit(self._on_complete, event)

    async def execute(self, request: ToolCallRequest) -> ToolResult:
        """Execute a detected tool call and describe the outcome for the transcript."""
        tool_name = request.tool_name
        args = dict(request.arguments)
        start = time.time()

        entry = self.registry.find(tool_name)
        if entry is None:
            logger.info("No server provides tool %r", tool_name)
            result = ToolResult(
                tool_name=tool_name,
                args=args,
                message=f"No server found with tool: {tool_name}",
                duration=time.time() - start,
                success=False,
                error="unknown tool",
            )
            await self._emit_done(result)
            return result

        await self._emit(self._on_start, ToolEvent(
            event_type=EventType.TOOL_START,
            tool_name=tool_name,
            args=args,
            server=entry.server,
            display=f"{tool_name}({format_args(args)})",
        ))
        logger.info("Executing tool %s on %s with arguments %s", tool_name, entry.server, json.dumps(args, default=str))

        try:
            payload = await entry.connection.call_tool(tool_name, args)
        except ToolExecutionError as e:
            error = str(e)
        except Exception as e:
            error = str(e) or type(e).__name__
        else:
            duration = time.time() - start
            logger.info("Tool %s completed in %.2fs", tool_name, duration)
            result = ToolResult(
                tool_name=tool_name,
                args=args,
                message=f"Tool execution result: {serialize_payload(payload)}",
                duration=duration,
                success=True,
                server=entry.server,
                payload=payload,
            )
            await self._emit_done(result)
            return result

        logger.warning("Tool %s failed: %s", tool_name, error)
        result = ToolResult(
            tool_name=tool_name,
            args=args,
            message=f"Error executing tool: {error}",
            duration=time.time() - start,
            success=False,
            server=entry.server,
            error=error,
        )
        await self._emit_done(result)
        return result
