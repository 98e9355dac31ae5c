"""Long-lived MCP client with reconnect-on-closed-resource.

Usage:
    config = MCPConfig(name="files", transport=PipeTransportConfig("npx", ("-y", "server-files")))
    async with MCPClient(config) as client:
        tools = await client.list_tools()
        result = await client.call_tool("read_file", {"path": "README.md"})

The connection is opened lazily. Transport context managers hold anyio cancel
scopes, which are bound to the task that entered them, so each connection is
opened and closed by a dedicated task. Any task may then use, replace or
close the client; a lock keeps one connection attempt in flight at a time.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any

import anyio
import httpx
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamable_http_client
from mcp.shared.exceptions import McpError
from mcp.types import (
    CONNECTION_CLOSED,
    INVALID_REQUEST,
    CreateMessageRequestParams,
    CreateMessageResult,
    ErrorData,
)
from mcp.types import Tool as MCPToolSpec
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from agentcore.platform.constants import USER_AGENT
from agentcore.platform.observability import get_logger
from agentcore.tools.mcp.config import MCPConfig, PipeTransportConfig
from agentcore.tools.mcp.exceptions import (
    MCPClientError,
    MCPConnectionError,
    MCPResourceClosedError,
    MCPTimeoutError,
    MCPToolExecutionError,
)
from agentcore.tools.mcp.sampling import MCPSamplingHandler

logger = get_logger(__name__)


def is_resource_closed(exc: BaseException) -> bool:
    """Whether an exception means the underlying connection is gone."""
    if isinstance(
        exc,
        (MCPResourceClosedError, anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream),
    ):
        return True
    if isinstance(exc, McpError) and exc.error.code == CONNECTION_CLOSED:
        return True
    if isinstance(exc, BaseExceptionGroup):
        return any(is_resource_closed(inner) for inner in exc.exceptions)
    return False


class MCPClient:
    """MCP client over a stdio pipe or streamable HTTP.

    Calls that fail because the connection was closed are retried after
    tearing the connection down and opening a new one, up to
    `config.retry.max_retries` times. Other failures are not retried.
    """

    def __init__(self, config: MCPConfig, sampling_handler: MCPSamplingHandler | None = None) -> None:
        """Initialize the MCP client.

        Args:
            config: Server and transport configuration
            sampling_handler: Optional handler for server-initiated sampling requests
        """
        self.config = config
        self._sampling_handler = sampling_handler
        self._session: ClientSession | None = None
        self._connection: asyncio.Task[None] | None = None
        self._disconnect_event: asyncio.Event | None = None
        self._lock = asyncio.Lock()
        self._is_closing = False

    def __repr__(self) -> str:
        """Obfuscate sensitive fields in string representation."""
        transport = self.config.transport
        if isinstance(transport, PipeTransportConfig):
            env_repr = "<obfuscated>" if transport.env else "None"
            target = f"command={transport.command!r}, env={env_repr}"
        else:
            headers_repr = "<obfuscated>" if transport.headers else "None"
            target = f"url={transport.url!r}, headers={headers_repr}"
        return f"MCPClient(name={self.config.name!r}, {target}, timeout={self.config.timeout})"

    async def __aenter__(self) -> "MCPClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_closing(self) -> bool:
        return self._is_closing

    def is_connected(self) -> bool:
        return self._session is not None and not self._is_closing

    def set_sampling_handler(self, handler: MCPSamplingHandler) -> None:
        """Serve future sampling requests with `handler`; takes effect immediately."""
        self._sampling_handler = handler

    def remove_sampling_handler(self) -> None:
        self._sampling_handler = None

    async def initialize(self) -> ClientSession:
        """Open the connection if it is not open yet.

        Concurrent callers share one connection attempt.

        Returns:
            The live client session

        Raises:
            MCPResourceClosedError: If the client is closing
            MCPTimeoutError: If the handshake does not finish within `config.timeout`
            MCPConnectionError: If the transport or handshake fails
        """
        self._raise_if_closing()
        async with self._lock:
            self._raise_if_closing()
            if self._session is not None:
                return self._session
            return await self._open()

    async def reinitialize(self, stale: ClientSession | None = None) -> ClientSession:
        """Tear down the connection, ignoring close errors, and open a new one.

        Args:
            stale: Session the caller found closed. If another caller has already
                   replaced it, the replacement is returned without reconnecting.
        """
        self._raise_if_closing()
        async with self._lock:
            self._raise_if_closing()
            if stale is not None and self._session is not None and self._session is not stale:
                return self._session
            logger.info("mcp_reinitializing", server=self.name)
            await self._disconnect()
            return await self._open()

    async def close(self) -> None:
        """Shut the client down for good; later `initialize()` calls fail fast."""
        if self._is_closing:
            return
        self._is_closing = True
        async with self._lock:
            await self._disconnect()
        logger.info("mcp_closed", server=self.name)

    async def list_tools(self) -> list[MCPToolSpec]:
        """Fetch all tools the server exposes, following pagination cursors.

        Raises:
            MCPClientError: If listing fails after retries
        """

        async def list_all(session: ClientSession) -> list[MCPToolSpec]:
            tools: list[MCPToolSpec] = []
            cursor: str | None = None
            while True:
                response = await session.list_tools(cursor=cursor) if cursor else await session.list_tools()
                tools.extend(response.tools)
                cursor = response.nextCursor
                if not cursor:
                    return tools

        return await self._with_reinitialize("list_tools", list_all)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Call a tool on the MCP server and return the parsed response.

        Args:
            name: Name of the tool to invoke
            arguments: Dictionary of arguments to pass to the tool

        Returns:
            Parsed tool result (JSON decoded if possible, otherwise raw text)

        Raises:
            MCPResourceClosedError: If the connection stays closed after all retries
            MCPToolExecutionError: If the server reports a failure
        """

        async def call(session: ClientSession) -> Any:
            result = await session.call_tool(name, arguments)
            if result.isError:
                raise MCPToolExecutionError(name, self._error_text(result), server=self.name)
            return self._parse_result(result)

        return await self._with_reinitialize(name, call)

    async def _with_reinitialize(self, operation: str, call: Callable[[ClientSession], Awaitable[Any]]) -> Any:
        retry = self.config.retry
        session: ClientSession | None = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(retry.max_retries + 1),
            wait=wait_exponential(multiplier=retry.initial_delay, max=retry.max_delay),
            retry=retry_if_exception(lambda e: isinstance(e, MCPResourceClosedError) and not self._is_closing),
            before_sleep=lambda retry_state: self._log_retry(operation, retry_state),
            reraise=True,
        ):
            with attempt:
                if session is None:
                    session = await self.initialize()
                else:
                    session = await self.reinitialize(stale=session)
                try:
                    return await call(session)
                except MCPClientError:
                    raise
                except Exception as e:
                    if is_resource_closed(e):
                        raise MCPResourceClosedError(str(e) or "Connection closed", server=self.name) from e
                    raise MCPToolExecutionError(operation, str(e), server=self.name) from e

    async def _open(self) -> ClientSession:
        ready: asyncio.Future[ClientSession] = asyncio.get_running_loop().create_future()
        disconnect = asyncio.Event()
        task = asyncio.create_task(self._hold_connection(ready, disconnect), name=f"mcp-connection-{self.name}")
        try:
            session = await asyncio.shield(ready)
        except TimeoutError as e:
            await self._stop(task, disconnect)
            raise MCPTimeoutError(self.config.timeout or 0.0, server=self.name) from e
        except Exception as e:
            await self._stop(task, disconnect)
            raise MCPConnectionError(str(e) or type(e).__name__, server=self.name) from e
        except asyncio.CancelledError:
            task.cancel()
            raise

        self._session = session
        self._connection = task
        self._disconnect_event = disconnect
        logger.info("mcp_connected", server=self.name, mode=self.config.transport.mode)
        return session

    async def _hold_connection(self, ready: asyncio.Future[ClientSession], disconnect: asyncio.Event) -> None:
        """Own one connection from handshake to shutdown.

        The session, or the connect error, is delivered through `ready`; the
        connection closes once `disconnect` is set. Runs as its own task, so the
        transport's cancel scopes are entered and exited by the same task.
        """
        async with AsyncExitStack() as exit_stack:
            try:
                if self.config.timeout is None:
                    session = await self._connect(exit_stack)
                else:
                    async with asyncio.timeout(self.config.timeout):
                        session = await self._connect(exit_stack)
            except Exception as e:
                if not ready.done():
                    ready.set_exception(e)
                return
            if ready.done():
                return
            ready.set_result(session)
            await disconnect.wait()

    async def _connect(self, exit_stack: AsyncExitStack) -> ClientSession:
        transport = self.config.transport
        if isinstance(transport, PipeTransportConfig):
            params = StdioServerParameters(
                command=transport.command,
                args=list(transport.args),
                env=transport.env,
                cwd=transport.cwd,
            )
            read_stream, write_stream = await exit_stack.enter_async_context(stdio_client(params))
        else:
            http_client = await exit_stack.enter_async_context(
                httpx.AsyncClient(
                    headers=(transport.headers or {}) | {"user-agent": USER_AGENT},
                    timeout=httpx.Timeout(
                        connect=transport.connect_timeout,
                        read=transport.sse_read_timeout,
                        write=transport.connect_timeout,
                        pool=transport.connect_timeout,
                    ),
                )
            )
            read_stream, write_stream, _ = await exit_stack.enter_async_context(
                streamable_http_client(url=transport.url, http_client=http_client)
            )

        session = await exit_stack.enter_async_context(
            ClientSession(
                read_stream,
                write_stream,
                read_timeout_seconds=timedelta(seconds=self.config.read_timeout),
                sampling_callback=self._sampling_callback,
            )
        )
        await session.initialize()
        return session

    async def _sampling_callback(
        self, context: Any, params: CreateMessageRequestParams
    ) -> CreateMessageResult | ErrorData:
        if self._sampling_handler is None:
            return ErrorData(code=INVALID_REQUEST, message="Sampling is not supported by this client")
        return await self._sampling_handler.handle_sampling_request(params)

    def _raise_if_closing(self) -> None:
        if self._is_closing:
            raise MCPResourceClosedError("Cannot initialize a client that is closing", server=self.name)

    async def _disconnect(self) -> None:
        task, disconnect = self._connection, self._disconnect_event
        self._session = None
        self._connection = None
        self._disconnect_event = None
        if task is not None and disconnect is not None:
            await self._stop(task, disconnect)

    async def _stop(self, task: asyncio.Task[None], disconnect: asyncio.Event) -> None:
        disconnect.set()
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            logger.warning("mcp_cleanup_failed", server=self.name, error=str(task.exception()))

    def _log_retry(self, operation: str, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "mcp_resource_closed_retrying",
            server=self.name,
            operation=operation,
            attempt=retry_state.attempt_number,
            error=str(exc) if exc else None,
        )

    @staticmethod
    def _error_text(result: Any) -> str:
        texts = [getattr(item, "text", None) for item in result.content or []]
        return "; ".join(text for text in texts if text) or "Tool reported an error"

    def _parse_result(self, result: Any) -> Any:
        """Parse tool result, attempting JSON decode.

        Args:
            result: Raw result from MCP tool call with content array

        Returns:
            Parsed content - single item if one result, list if multiple, None if empty
        """
        if not result.content:
            return None
        if len(result.content) == 1:
            return self._parse_content(result.content[0])
        return [self._parse_content(item) for item in result.content]

    def _parse_content(self, content: Any) -> Any:
        """Parse a single content item from tool output.

        Args:
            content: Content object with optional text attribute

        Returns:
            JSON-decoded dict/list if valid JSON, otherwise the raw text string
        """
        text = getattr(content, "text", None) or str(content)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
