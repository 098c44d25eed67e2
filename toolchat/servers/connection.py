"""
MCP server connections over stdio.

Each connection keeps its stdio transport and ClientSession open inside a
dedicated lifecycle task, so the context managers are entered and exited
by the same task; close() just signals that task and waits for it.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Mapping, Optional

from ..config import ServerConfig, ServersConfig
from ..core.models import ToolDescriptor
from ..errors import ServerConnectionError, ToolExecutionError

logger = logging.getLogger(__name__)

DEFAULT_INIT_TIMEOUT = 30.0
CLIENT_NAME = "toolchat"


def _import_mcp():
    """Lazily import mcp client components.

    Returns:
        (stdio_client, StdioServerParameters, ClientSession)
    """
    from mcp import ClientSession
    from mcp.client.stdio import StdioServerParameters, stdio_client
    return stdio_client, StdioServerParameters, ClientSession


def _result_text(result: Any) -> str:
    parts = []
    for item in getattr(result, "content", None) or []:
        parts.append(item.text if hasattr(item, "text") else str(item))
    return "\n".join(parts)


class MCPConnection:
    """One MCP server launched as a subprocess and spoken to over stdio."""

    def __init__(self, config: ServerConfig, init_timeout: float = DEFAULT_INIT_TIMEOUT):
        self.name = config.name
        self.config = config
        self.init_timeout = init_timeout
        self._session = None
        self._task: Optional[asyncio.Task] = None
        self._closing: Optional[asyncio.Event] = None
        self._tools: Optional[List[ToolDescriptor]] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self):
        """Start the server and complete the MCP handshake."""
        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        ready: asyncio.Future = loop.create_future()
        self._closing = asyncio.Event()
        self._task = asyncio.create_task(self._lifecycle(ready), name=f"mcp-{self.name}")
        try:
            await ready
        except Exception as e:
            await self._wait_lifecycle()
            raise ServerConnectionError(
                f"Failed to start server '{self.name}'", details=str(e) or type(e).__name__, server=self.name
            ) from e
        logger.info("Connected to server %s", self.name)

    async def _lifecycle(self, ready: asyncio.Future):
        stdio_client, StdioServerParameters, ClientSession = _import_mcp()
        params = StdioServerParameters(
            command=self.config.command,
            args=self.config.args,
            env=self.config.env,
            cwd=self.config.cwd,
        )
        try:
            async with AsyncExitStack() as stack:
                read_stream, write_stream = await stack.enter_async_context(stdio_client(params))
                session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
                await asyncio.wait_for(session.initialize(), timeout=self.init_timeout)
                self._session = session
                ready.set_result(None)
                await self._closing.wait()
        except Exception as e:
            if not ready.done():
                ready.set_exception(e)
            else:
                raise
        finally:
            self._session = None

    async def _wait_lifecycle(self):
        task, self._task = self._task, None
        if task is not None:
            await task

    def _require_session(self):
        if self._session is None:
            raise ServerConnectionError(f"Server '{self.name}' is not connected", server=self.name)
        return self._session

    async def list_tools(self) -> List[ToolDescriptor]:
        """Tool catalog, fetched once per connection."""
        if self._tools is None:
            response = await self._require_session().list_tools()
            self._tools = [ToolDescriptor.from_mcp(t) for t in response.tools]
        return list(self._tools)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        """Invoke a tool; returns the JSON-ready result payload."""
        try:
            result = await self._require_session().call_tool(name, arguments)
        except ServerConnectionError as e:
            raise ToolExecutionError(str(e), tool_name=name) from e
        except Exception as e:
            raise ToolExecutionError(str(e) or type(e).__name__, tool_name=name) from e

        if getattr(result, "isError", False):
            raise ToolExecutionError(_result_text(result) or "Tool reported an error", tool_name=name)
        return result.model_dump(mode="json", exclude_none=True)

    async def close(self):
        """Stop the server. Errors from the transport shutdown propagate to the caller."""
        if self._task is None:
            return
        self._closing.set()
        await self._wait_lifecycle()
        logger.debug("Closed server %s", self.name)


async def connect_all(config: ServersConfig, init_timeout: float = DEFAULT_INIT_TIMEOUT) -> Dict[str, MCPConnection]:
    """Connect to every configured server concurrently; keeps config order.

    If any server fails, the ones that did start are closed before the
    error is raised.
    """
    connections = {
        name: MCPConnection(server, init_timeout=init_timeout)
        for name, server in config.servers.items()
    }
    results = await asyncio.gather(
        *(conn.connect() for conn in connections.values()),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        await close_all(connections)
        first = failures[0]
        if isinstance(first, ServerConnectionError):
            raise first
        raise ServerConnectionError("Failed to start servers", details=str(first)) from first

    return connections


async def close_all(connections: Mapping[str, MCPConnection]):
    """Close every connection, continuing past failures."""
    for name, connection in connections.items():
        try:
            await connection.close()
        except Exception as e:
            logger.warning("Warning during cleanup of server %s: %s", name, e)
