"""
Tool registry: which connected server executes which tool.

Built once per session by scanning connections in configuration order.
When two servers offer the same tool name the first one wins; the
collision is recorded and logged (or rejected in strict mode).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from ..errors import ConfigError
from .models import ToolDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolConnection(Protocol):
    """What the session needs from a tool-providing server."""

    name: str

    async def list_tools(self) -> List[ToolDescriptor]: ...

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any: ...

    async def close(self) -> None: ...


@dataclass
class RegisteredTool:
    descriptor: ToolDescriptor
    server: str
    connection: ToolConnection


class ToolRegistry:
    """Read-only view from tool name to owning connection."""

    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}
        self.collisions: Dict[str, List[str]] = {}  # tool name -> every server offering it

    @classmethod
    async def discover(cls, connections: Mapping[str, ToolConnection], strict: bool = False) -> "ToolRegistry":
        """Fetch every catalog, one server at a time, in mapping order."""
        registry = cls()
        for server, connection in connections.items():
            tools = await connection.list_tools()
            registry.register(server, connection, tools)
            logger.debug("Server %s offers %d tool(s)", server, len(tools))

        if strict and registry.collisions:
            details = "; ".join(f"{name}: {', '.join(servers)}" for name, servers in registry.collisions.items())
            raise ConfigError("Tool names must be unique across servers", details=details)
        return registry

    def register(self, server: str, connection: ToolConnection, tools: List[ToolDescriptor]):
        for tool in tools:
            existing = self._tools.get(tool.name)
            if existing is None:
                self._tools[tool.name] = RegisteredTool(tool, server, connection)
                continue
            servers = self.collisions.setdefault(tool.name, [existing.server])
            servers.append(server)
            logger.warning(
                "Duplicate tool %r from server %r (already from %r); using %r",
                tool.name, server, existing.server, existing.server,
            )

    def find(self, tool_name: str) -> Optional[RegisteredTool]:
        return self._tools.get(tool_name)

    @property
    def tools(self) -> List[ToolDescriptor]:
        """Catalog snapshot, one entry per distinct name."""
        return [entry.descriptor for entry in self._tools.values()]

    def server_for(self, tool_name: str) -> Optional[str]:
        entry = self._tools.get(tool_name)
        return entry.server if entry else None

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
