"""Page automation primitives built on ``CdpTransport.send``.

Navigation waits are heuristic: the dashboard is a single-page app with no
reliable readiness event over the protocol, so ``navigate`` sleeps a fixed
settle delay and callers that need an element use ``wait_for`` afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from rebootbot.browser import scripts
from rebootbot.browser.errors import (
    ElementNotFoundError,
    EvaluationError,
    TransportClosedError,
    TransportError,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

DEFAULT_SETTLE_MS = 8000
POLL_INTERVAL_MS = 500


class CommandSender(Protocol):
    """The slice of the transport the primitives need."""

    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]: ...


class Page:
    """Automation primitives for the attached page target.

    Args:
        transport: Connected transport (or any object with a compatible ``send``).
        settle_ms: Base delay after every navigation.
        poll_interval_ms: Spacing between ``wait_for`` probes.
        sleep: Awaitable sleep taking seconds; injected by tests.
    """

    def __init__(
        self,
        transport: CommandSender,
        *,
        settle_ms: int = DEFAULT_SETTLE_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._settle_ms = settle_ms
        self._poll_interval_ms = poll_interval_ms
        self._sleep = sleep

    async def sleep(self, ms: int) -> None:
        if ms > 0:
            await self._sleep(ms / 1000)

    async def navigate(self, url: str, extra_wait_ms: int = 0) -> None:
        """Navigate, then wait the base settle delay plus ``extra_wait_ms``."""
        logger.info("Navigating to: %s", url)
        result = await self._transport.send("Page.navigate", {"url": url})
        if result.get("errorText"):
            # Proceed anyway; the caller's next wait_for decides whether the page is usable.
            logger.warning("Navigation to %s reported: %s", url, result["errorText"])
        await self.sleep(self._settle_ms + extra_wait_ms)

    async def reload(self, extra_wait_ms: int = 0) -> None:
        await self._transport.send("Page.reload", {"ignoreCache": False})
        await self.sleep(extra_wait_ms)

    async def evaluate(self, expression: str) -> Any:
        """Evaluate an expression in the page, awaiting promises.

        Raises:
            ElementNotFoundError: a primitive script reported a missing element.
            EvaluationError: the expression threw inside the page.
        """
        result = await self._transport.send(
            "Runtime.evaluate",
            {"expression": expression, "awaitPromise": True, "returnByValue": True},
        )
        details = result.get("exceptionDetails")
        if details:
            exception = details.get("exception") or {}
            description = exception.get("description") or details.get("text") or "Unknown error"
            if "Element not found" in description:
                raise ElementNotFoundError(description)
            raise EvaluationError(description)
        return (result.get("result") or {}).get("value")

    async def call(self, function_source: str, *args: Any) -> Any:
        """Invoke a fixed page function with JSON-encoded arguments."""
        return await self.evaluate(scripts.call(function_source, *args))

    async def exists(self, selector: str) -> bool:
        return bool(await self.call(scripts.SELECTOR_EXISTS, selector))

    async def wait_for(self, selector: str, timeout_ms: int = 10000) -> bool:
        """Poll for ``selector`` until present or ``timeout_ms`` elapses.

        Returns False on timeout instead of raising. A probe that throws
        (page mid-navigation) counts as "not yet".
        """
        attempts = max(1, math.ceil(timeout_ms / self._poll_interval_ms))
        for attempt in range(attempts):
            try:
                if await self.exists(selector):
                    return True
            except TransportClosedError:
                raise
            except TransportError as e:
                logger.debug("wait_for probe failed for %s: %s", selector, e)
            if attempt < attempts - 1:
                await self.sleep(self._poll_interval_ms)
        logger.info("Selector not found within %sms: %s", timeout_ms, selector)
        return False

    async def fill(self, selector: str, value: str) -> None:
        """Set an input's value via its native setter and fire input/change.

        Raises:
            ElementNotFoundError: nothing matches ``selector``.
        """
        await self.call(scripts.FILL_INPUT, selector, value)

    async def click(self, selector: str) -> bool:
        """Click the first match. A missing element is a no-op returning False."""
        return bool(await self.call(scripts.CLICK, selector))

    async def click_text(self, selector: str, texts: Sequence[str]) -> bool:
        """Click the first ``selector`` match whose text contains any of ``texts``."""
        return bool(await self.call(scripts.CLICK_BY_TEXT, selector, list(texts)))

    async def press_enter(self, selector: str) -> bool:
        return bool(await self.call(scripts.PRESS_ENTER, selector))

    async def fill_first(self, selectors: Sequence[str], value: str) -> str:
        """Fill the first candidate selector that exists.

        Candidates are tried in order; a later one is only tried when the
        previous raised. Returns the selector that was filled.

        Raises:
            ElementNotFoundError: no candidate matched.
        """
        return await self.first_match(selectors, lambda selector: self.fill(selector, value))

    async def click_first(self, selectors: Sequence[str]) -> str | None:
        """Click the first candidate that exists; None when none did."""
        for selector in selectors:
            if await self.click(selector):
                return selector
        return None

    async def first_match(
        self,
        selectors: Sequence[str],
        action: Callable[[str], Awaitable[Any]],
    ) -> str:
        """Run ``action`` against each candidate until one does not raise."""
        failures: list[str] = []
        for selector in selectors:
            try:
                await action(selector)
                return selector
            except EvaluationError as e:
                failures.append(e.description)
        raise ElementNotFoundError(
            "Element not found: " + (", ".join(selectors) or "<no candidates>")
            + (f" ({failures[-1]})" if failures else "")
        )

    async def url(self) -> str:
        return str(await self.call(scripts.LOCATION_HREF) or "")

    async def title(self) -> str:
        return str(await self.call(scripts.DOCUMENT_TITLE) or "")

    async def text(self, selector: str) -> str | None:
        return await self.call(scripts.TEXT_CONTENT, selector)

    async def attribute(self, selector: str, name: str) -> str | None:
        return await self.call(scripts.ATTRIBUTE, selector, name)

    async def anchors(self, selector: str) -> list[dict[str, Any]]:
        return list(await self.call(scripts.ANCHORS, selector) or [])

    async def html_snippet(self, limit: int = 1000) -> str:
        return str(await self.call(scripts.BODY_HTML_SNIPPET, limit) or "")
