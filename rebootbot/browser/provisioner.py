"""Cloud browser session provisioning.

Leases a remote browser from the provider's HTTP API and releases it again.
Leased sessions are a paid resource, so a session that comes back without a
usable transport endpoint is deleted before the error is raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from rebootbot.browser.errors import ProvisioningError
from rebootbot.models.domain import BrowserSession
from rebootbot.observability import trace_event

if TYPE_CHECKING:
    from rebootbot.config import AutomationConfig

logger = logging.getLogger(__name__)

RELEASE_HISTORY = 1024


@dataclass(frozen=True)
class BrowserProfile:
    """Fingerprint and lifetime settings sent with create-session."""

    browsers: list[str] = field(default_factory=lambda: ["chrome"])
    devices: list[str] = field(default_factory=lambda: ["desktop"])
    operating_systems: list[str] = field(default_factory=lambda: ["windows"])
    keep_alive: bool = True
    timeout_seconds: int = 300

    @classmethod
    def from_config(cls, config: AutomationConfig) -> BrowserProfile:
        return cls(
            browsers=list(config.browser_fingerprint_browsers),
            devices=list(config.browser_fingerprint_devices),
            operating_systems=list(config.browser_fingerprint_operating_systems),
            keep_alive=config.browser_keep_alive,
            timeout_seconds=config.browser_session_timeout_seconds,
        )

    def to_payload(self, project_id: str) -> dict[str, Any]:
        return {
            "projectId": project_id,
            "browserSettings": {
                "fingerprint": {
                    "browsers": self.browsers,
                    "devices": self.devices,
                    "operatingSystems": self.operating_systems,
                },
            },
            "keepAlive": self.keep_alive,
            "timeout": self.timeout_seconds,
        }


class SessionProvisioner:
    """Acquire/release remote browser sessions.

    Args:
        config: Automation configuration (API URL, key, project, profile).
        http: Optional shared aiohttp session. When omitted the provisioner
            creates and owns one, closed by ``close()``.
        release_history: How many released session ids are remembered for
            idempotent release.
    """

    def __init__(
        self,
        config: AutomationConfig,
        *,
        http: aiohttp.ClientSession | None = None,
        release_history: int = RELEASE_HISTORY,
    ) -> None:
        self._api_url = config.browser_api_url.rstrip("/")
        self._api_key = config.browser_api_key or ""
        self._project_id = config.browser_project_id or ""
        self._replay_url_template = config.replay_url_template
        self._default_profile = BrowserProfile.from_config(config)
        self._http = http
        self._owns_http = http is None
        self._released: set[str] = set()
        self._release_order: deque[str] = deque()
        self._release_history = release_history

    def _client(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))
        return self._http

    def replay_url(self, session_id: str) -> str:
        """Diagnostic replay reference for a session."""
        return self._replay_url_template.format(session_id=session_id)

    async def acquire(self, profile: BrowserProfile | None = None) -> BrowserSession:
        """Lease a new remote browser session.

        Raises:
            ProvisioningError: provider unreachable, non-2xx response, or no
                usable transport endpoint in the response.
        """
        if not self._api_key or not self._project_id:
            raise ProvisioningError("Browser provider credentials not configured")

        profile = profile or self._default_profile
        logger.info("Creating remote browser session...")

        try:
            async with self._client().post(
                f"{self._api_url}/sessions",
                json=profile.to_payload(self._project_id),
                headers={"X-BB-API-Key": self._api_key, "Content-Type": "application/json"},
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(
                        "Session creation failed: status=%s body=%s", response.status, body[:500]
                    )
                    raise ProvisioningError(
                        f"Failed to create browser session: {response.status}"
                    )
                payload = await response.json()
        except aiohttp.ClientError as e:
            raise ProvisioningError(f"Browser provider unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProvisioningError("Browser provider request timed out") from e

        if not isinstance(payload, dict) or not payload.get("id"):
            raise ProvisioningError("Browser provider returned no session id")

        session = BrowserSession(
            id=str(payload["id"]),
            status=payload.get("status"),
            connect_url=payload.get("connectUrl"),
            debugger_url=payload.get("debuggerUrl"),
        )

        if not session.connect_url:
            await self.release(session)
            raise ProvisioningError(
                f"No connectUrl returned for session {session.id}; cannot open transport",
                session_id=session.id,
            )

        logger.info("Remote browser session created: %s", session.id)
        trace_event("browser.session.acquired", browser_session_id=session.id)
        return session

    async def release(self, session: BrowserSession) -> None:
        """Delete a session at the provider.

        Idempotent for recently released ids. Never raises: a failed release is logged
        so it cannot mask the pipeline's real outcome.
        """
        if session.id in self._released:
            return
        self._remember_release(session.id)

        logger.info("Releasing remote browser session: %s", session.id)
        try:
            async with self._client().delete(
                f"{self._api_url}/sessions/{session.id}",
                headers={"X-BB-API-Key": self._api_key},
            ) as response:
                if response.status >= 400:
                    logger.warning(
                        "Session release returned status %s for %s", response.status, session.id
                    )
                    trace_event(
                        "browser.session.release_failed",
                        browser_session_id=session.id,
                        status=response.status,
                    )
                    return
        except Exception as e:
            logger.warning("Error releasing browser session %s: %s", session.id, e)
            trace_event(
                "browser.session.release_failed",
                browser_session_id=session.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        trace_event("browser.session.released", browser_session_id=session.id)

    def _remember_release(self, session_id: str) -> None:
        # Only recent ids are kept; the pipeline releases each lease once.
        if len(self._release_order) >= self._release_history:
            self._released.discard(self._release_order.popleft())
        self._release_order.append(session_id)
        self._released.add(session_id)

    async def close(self) -> None:
        """Close the owned HTTP session, if any."""
        if self._owns_http and self._http is not None:
            await self._http.close()
            self._http = None
