"""Core: tool-call detection and the conversation session."""

from .detection import detect_from_structured_text, detect_from_text_patterns, detect_tool_call
from .models import DetectionMethod, DetectionResult, Message, ToolArgument, ToolCallRequest, ToolDescriptor
from .registry import ToolConnection, ToolRegistry
from .session import ChatSession, SessionState

__all__ = [
    "ChatSession",
    "DetectionMethod",
    "DetectionResult",
    "Message",
    "SessionState",
    "ToolArgument",
    "ToolCallRequest",
    "ToolConnection",
    "ToolDescriptor",
    "ToolRegistry",
    "detect_from_structured_text",
    "detect_from_text_patterns",
    "detect_tool_call",
]
