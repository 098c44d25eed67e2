"""Tool-providing servers (MCP over stdio)."""

from .connection import MCPConnection, close_all, connect_all

__all__ = ["MCPConnection", "close_all", "connect_all"]
