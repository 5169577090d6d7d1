"""Minimal Chrome DevTools Protocol client over a WebSocket.

One ``CdpTransport`` wraps one socket to one leased browser. Commands are
multiplexed: each gets a fresh id from a monotonic counter and a future in
the pending map; the reader task resolves futures by id. A command whose
response does not arrive within the timeout is dropped from the pending map
and surfaces ``TransportTimeoutError``. No command is retried here.

On connect the transport attaches to a page target (flatten mode) and tags
every later command with that target's session id so it routes to the page
rather than the browser root.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from rebootbot.browser.errors import (
    ProtocolError,
    TransportClosedError,
    TransportError,
    TransportTimeoutError,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any], str | None], Awaitable[None] | None]

DEFAULT_COMMAND_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 20.0

# Sentinel: "use the attached page target", distinct from an explicit None (browser root).
_ATTACHED = object()


@dataclass
class ProtocolCommand:
    """One outbound protocol command."""

    id: int
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None

    def to_message(self) -> str:
        message: dict[str, Any] = {"id": self.id, "method": self.method, "params": self.params}
        if self.session_id:
            message["sessionId"] = self.session_id
        return json.dumps(message)


@dataclass
class _PendingCommand:
    method: str
    future: asyncio.Future


class CdpTransport:
    """Command/response correlation over a single WebSocket.

    Use ``CdpTransport.connect(endpoint)`` for a live socket. The constructor
    accepts anything with ``send_str``, ``close`` and async iteration over
    aiohttp-style messages, which is how tests drive it.
    """

    def __init__(
        self,
        ws: Any,
        *,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        owned_http: aiohttp.ClientSession | None = None,
    ) -> None:
        self._ws = ws
        self._command_timeout = command_timeout
        self._owned_http = owned_http
        self._ids = itertools.count(1)
        self._pending: dict[int, _PendingCommand] = {}
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._reader: asyncio.Task | None = None
        self._closed = False
        self.target_session_id: str | None = None
        self.target_id: str | None = None

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        *,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        http: aiohttp.ClientSession | None = None,
    ) -> CdpTransport:
        """Open the socket, attach to a page target and enable event domains.

        Raises:
            TransportError: socket could not be opened.
            TransportTimeoutError: attach/enable handshake exceeded
                ``connect_timeout`` after the socket opened.
        """
        logger.info("Connecting to remote browser via WebSocket...")
        owned_http = None
        if http is None:
            http = owned_http = aiohttp.ClientSession()

        try:
            ws = await asyncio.wait_for(
                http.ws_connect(endpoint, max_msg_size=0), timeout=connect_timeout
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            if owned_http is not None:
                await owned_http.close()
            raise TransportError(f"Protocol WebSocket connection failed: {e}") from e

        transport = cls(ws, command_timeout=command_timeout, owned_http=owned_http)
        transport.open()
        try:
            await asyncio.wait_for(transport.initialize(), timeout=connect_timeout)
        except asyncio.TimeoutError:
            await transport.close()
            raise TransportTimeoutError("connect handshake", connect_timeout) from None
        except BaseException:
            await transport.close()
            raise

        logger.info("Protocol transport connected and initialized")
        return transport

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start the reader task. Safe to call more than once."""
        if self._reader is None:
            self._reader = asyncio.create_task(self._read_loop(), name="cdp-transport-reader")

    async def initialize(self) -> None:
        """Attach to the first page target (creating one if needed)."""
        result = await self.send("Target.getTargets", session_id=None)
        targets = result.get("targetInfos") or []
        logger.debug(
            "Targets: %s",
            ", ".join(f"{t.get('type')}:{t.get('targetId')}" for t in targets),
        )
        page = next((t for t in targets if t.get("type") == "page"), None)

        if page is not None:
            target_id = page["targetId"]
        else:
            created = await self.send(
                "Target.createTarget", {"url": "about:blank"}, session_id=None
            )
            target_id = created["targetId"]
            logger.info("Created new page target %s", target_id)

        attached = await self.send(
            "Target.attachToTarget",
            {"targetId": target_id, "flatten": True},
            session_id=None,
        )
        self.target_id = target_id
        self.target_session_id = attached["sessionId"]
        logger.info("Attached to page target (session: %s)", self.target_session_id)

        await self.send("Page.enable")
        await self.send("Runtime.enable")

    async def close(self) -> None:
        """Close the socket and fail anything still pending. Idempotent."""
        if self._closed:
            return
        self._closed = True

        try:
            await self._ws.close()
        except Exception as e:
            logger.debug("Error closing protocol socket: %s", e)

        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except (asyncio.CancelledError, Exception):
                pass

        self._fail_pending(TransportClosedError("Transport closed"))

        if self._owned_http is not None:
            await self._owned_http.close()
            self._owned_http = None

    async def __aenter__(self) -> CdpTransport:
        self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_ids(self) -> set[int]:
        """Ids of commands awaiting a response."""
        return set(self._pending)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        session_id: Any = _ATTACHED,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send one command and await its correlated result.

        Args:
            method: Protocol method, e.g. ``Runtime.evaluate``.
            params: Parameter payload.
            session_id: Target session to route to. Defaults to the attached
                page; pass None to address the browser root.
            timeout: Override the per-command timeout in seconds.

        Raises:
            TransportTimeoutError: no response within the timeout.
            TransportClosedError: socket closed before the response.
            ProtocolError: the browser answered with an error object.
        """
        if self._closed:
            raise TransportClosedError(f"Transport closed; cannot send {method}")

        timeout = self._command_timeout if timeout is None else timeout
        command = ProtocolCommand(
            id=next(self._ids),
            method=method,
            params=params or {},
            session_id=self.target_session_id if session_id is _ATTACHED else session_id,
        )
        future = asyncio.get_running_loop().create_future()
        self._pending[command.id] = _PendingCommand(method=method, future=future)

        try:
            try:
                await self._ws.send_str(command.to_message())
            except (ConnectionError, aiohttp.ClientError) as e:
                raise TransportClosedError(f"Send failed for {method}: {e}") from e
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Protocol command timed out: %s (id=%s)", method, command.id)
            raise TransportTimeoutError(method, timeout) from None
        finally:
            self._pending.pop(command.id, None)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        """Register a handler for an unsolicited protocol event."""
        self._handlers[event].append(handler)

    # ------------------------------------------------------------------
    # Reader
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        try:
            async for message in self._ws:
                if message.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(message.data)
                elif message.type == aiohttp.WSMsgType.BINARY:
                    self._dispatch(message.data.decode("utf-8", errors="replace"))
                elif message.type == aiohttp.WSMsgType.ERROR:
                    logger.error("Protocol WebSocket error: %s", message.data)
                    break
                else:
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Protocol reader failed: %s", e)
        finally:
            self._fail_pending(TransportClosedError("Protocol socket closed"))

    def _dispatch(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except ValueError as e:
            logger.error("Protocol parse error: %s", e)
            return
        if not isinstance(message, dict):
            return

        command_id = message.get("id")
        if command_id is not None:
            pending = self._pending.pop(command_id, None)
            if pending is None or pending.future.done():
                logger.debug("Dropping response for unknown or expired id %s", command_id)
                return
            if "error" in message:
                pending.future.set_exception(ProtocolError(pending.method, message["error"]))
            else:
                pending.future.set_result(message.get("result") or {})
            return

        method = message.get("method")
        if method:
            self._emit(method, message.get("params") or {}, message.get("sessionId"))

    def _emit(self, method: str, params: dict[str, Any], session_id: str | None) -> None:
        for handler in list(self._handlers.get(method, ())):
            try:
                outcome = handler(params, session_id)
                if asyncio.iscoroutine(outcome):
                    task = asyncio.ensure_future(outcome)
                    task.add_done_callback(_log_handler_failure)
            except Exception as e:
                logger.warning("Event handler for %s failed: %s", method, e)

    def _fail_pending(self, error: TransportError) -> None:
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            if not entry.future.done():
                entry.future.set_exception(error)


def _log_handler_failure(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Async event handler failed: %s", exc)
