"""
Exception hierarchy for toolchat.

All exceptions inherit from ToolchatError and carry:
- message: Human-readable error message
- details: Optional additional context
- context: Additional key-value pairs for debugging

Only ConfigError and ServerConnectionError are fatal, and only at startup.
ProviderError and ToolExecutionError are recovered inside a session turn.
"""

from typing import Any, Optional


class ToolchatError(Exception):
    """Base exception for all toolchat errors."""

    def __init__(self, message: str, details: Optional[str] = None, **context: Any):
        self.message = message
        self.details = details
        self.context = context if context else None
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "context": self.context,
        }


class ConfigError(ToolchatError):
    """Malformed or incomplete server/session configuration."""

    def __init__(self, message: str, details: Optional[str] = None, path: Optional[str] = None, **context: Any):
        if path:
            context["path"] = str(path)
        super().__init__(message, details, **context)


class ServerConnectionError(ToolchatError):
    """A configured tool server could not be started or initialized."""

    def __init__(self, message: str, details: Optional[str] = None, server: Optional[str] = None, **context: Any):
        self.server = server
        if server:
            context["server"] = server
        super().__init__(message, details, **context)


class ProviderError(ToolchatError):
    """Model call failed (non-success status or transport failure)."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        self.provider = provider
        self.status_code = status_code
        if provider:
            context["provider"] = provider
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, details, **context)


class ToolExecutionError(ToolchatError):
    """Tool invocation failed or the tool reported an error result."""

    def __init__(self, message: str, details: Optional[str] = None, tool_name: Optional[str] = None, **context: Any):
        self.tool_name = tool_name
        if tool_name:
            context["tool_name"] = tool_name
        super().__init__(message, details, **context)
