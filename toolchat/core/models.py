"""Shared data model: messages, tool descriptors, detection results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    """A chat message."""
    role: str  # "system", "user", "assistant"
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Invalid message role: {self.role!r}. Expected one of {ROLES}")

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class ToolArgument:
    """One named parameter of a tool, as rendered into the system prompt."""
    name: str
    description: Optional[str] = None
    type: Optional[str] = None
    required: bool = False


@dataclass
class ToolDescriptor:
    """A tool offered by a server: name, description and JSON-schema arguments."""
    name: str
    description: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def arguments(self) -> List[ToolArgument]:
        """Arguments from the schema's properties, in schema order."""
        schema = self.input_schema if isinstance(self.input_schema, dict) else {}
        properties = schema.get("properties") or {}
        if not isinstance(properties, dict):
            return []
        required = schema.get("required") or []

        args = []
        for name, info in properties.items():
            info = info if isinstance(info, dict) else {}
            args.append(ToolArgument(
                name=name,
                description=info.get("description"),
                type=info.get("type") if isinstance(info.get("type"), str) else None,
                required=name in required,
            ))
        return args

    @classmethod
    def from_mcp(cls, tool: Any) -> "ToolDescriptor":
        """Convert an MCP Tool object."""
        schema = getattr(tool, "inputSchema", None)
        return cls(
            name=tool.name,
            description=getattr(tool, "description", None),
            input_schema=dict(schema) if isinstance(schema, dict) else {},
        )


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call recovered from model output."""
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


class DetectionMethod(str, Enum):
    """Which strategy produced a detection outcome."""
    JSON_PARSING = "json-parsing"
    TEXT_ANALYSIS = "text-analysis"
    NATIVE_TOOL_CALL = "native-tool-call"  # reserved, nothing produces it


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of classifying one model response.

    tool_call_request is present if and only if is_tool_call is true, and
    raw_response is always the verbatim input.
    """
    is_tool_call: bool
    raw_response: str
    detection_method: DetectionMethod
    tool_call_request: Optional[ToolCallRequest] = None

    def __post_init__(self):
        if self.is_tool_call != (self.tool_call_request is not None):
            raise ValueError("tool_call_request must be present exactly when is_tool_call is true")

    @classmethod
    def positive(cls, raw_response: str, method: DetectionMethod, request: ToolCallRequest) -> "DetectionResult":
        return cls(
            is_tool_call=True,
            raw_response=raw_response,
            detection_method=method,
            tool_call_request=request,
        )

    @classmethod
    def negative(cls, raw_response: str, method: DetectionMethod = DetectionMethod.JSON_PARSING) -> "DetectionResult":
        return cls(is_tool_call=False, raw_response=raw_response, detection_method=method)

    @property
    def tool_name(self) -> Optional[str]:
        return self.tool_call_request.tool_name if self.tool_call_request else None
