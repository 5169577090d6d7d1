"""Collaborator interfaces used by the pipeline, plus HTTP clients for the
downstream analysis and notification functions.

The pipeline depends only on the Protocols; the DAOs and the
``Functions*`` clients are the production implementations.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from rebootbot.models.domain import ActivityLogEntry, Player

logger = logging.getLogger(__name__)


class PlayerStore(Protocol):
    async def get(self, player_id: str) -> Player | None: ...

    async def set_remote_athlete_id(self, player_id: str, remote_athlete_id: str) -> bool: ...


class ActivityLog(Protocol):
    async def create(
        self,
        action: str,
        description: str,
        player_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityLogEntry: ...

    async def get_recent(
        self, limit: int = 50, action: str | None = None
    ) -> list[ActivityLogEntry]: ...


class AnalysisProcessor(Protocol):
    async def process_session(
        self,
        export_reference: str,
        remote_session_id: str,
        remote_player_id: str | None,
        player_id: str | None,
    ) -> dict[str, Any]: ...


class Notifier(Protocol):
    async def notify(
        self,
        callback: str,
        player_id: str | None,
        scores: dict[str, Any] | None,
        remote_session_id: str | None,
        is_whatsapp: bool = False,
    ) -> None: ...


class AnalysisError(Exception):
    """Raised when the analysis function rejects or cannot process a session."""

    pass


class NotificationError(Exception):
    """Raised when the notification function call fails."""

    pass


class _FunctionsClient:
    """Shared plumbing for calls to the hosted functions endpoint."""

    def __init__(
        self,
        base_url: str | None,
        service_key: str | None,
        *,
        http: aiohttp.ClientSession | None = None,
        timeout_seconds: float = 60,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._service_key = service_key or ""
        self._http = http
        self._owns_http = http is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._service_key)

    def _client(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    async def _post(self, function_name: str, payload: dict[str, Any]) -> tuple[int, Any]:
        async with self._client().post(
            f"{self._base_url}/{function_name}",
            json=payload,
            headers={
                "Authorization": f"Bearer {self._service_key}",
                "Content-Type": "application/json",
            },
        ) as response:
            try:
                body: Any = await response.json(content_type=None)
            except ValueError:
                body = await response.text()
            return response.status, body

    async def close(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.close()
            self._http = None


class FunctionsAnalysisClient(_FunctionsClient):
    """Hands exported session data to the ``process-reboot-session`` function."""

    FUNCTION = "process-reboot-session"

    async def process_session(
        self,
        export_reference: str,
        remote_session_id: str,
        remote_player_id: str | None,
        player_id: str | None,
    ) -> dict[str, Any]:
        """Trigger analysis of an exported session.

        Returns:
            The function's JSON response (typically includes ``scores``).

        Raises:
            AnalysisError: not configured, unreachable, or non-2xx response.
        """
        if not self.configured:
            raise AnalysisError("Analysis function not configured")

        payload = {
            "session_id": remote_session_id,
            "org_player_id": remote_player_id,
            "player_id": player_id,
            "export_url": export_reference,
        }
        logger.info("Requesting analysis for remote session %s", remote_session_id)
        try:
            status, body = await self._post(self.FUNCTION, payload)
        except aiohttp.ClientError as e:
            raise AnalysisError(f"Analysis function unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            raise AnalysisError("Analysis function timed out") from e

        if status >= 300:
            raise AnalysisError(f"Analysis function returned {status}: {str(body)[:300]}")
        return body if isinstance(body, dict) else {"response": body}


class FunctionsNotifier(_FunctionsClient):
    """Sends the analysis-complete message through ``send-analysis-complete``."""

    FUNCTION = "send-analysis-complete"

    async def notify(
        self,
        callback: str,
        player_id: str | None,
        scores: dict[str, Any] | None,
        remote_session_id: str | None,
        is_whatsapp: bool = False,
    ) -> None:
        """Raises:
        NotificationError: not configured, unreachable, or non-2xx response.
        """
        if not self.configured:
            raise NotificationError("Notification function not configured")

        payload = {
            "player_id": player_id,
            "phone": callback,
            "is_whatsapp": is_whatsapp,
            "scores": scores,
            "session_id": remote_session_id,
        }
        try:
            status, body = await self._post(self.FUNCTION, payload)
        except aiohttp.ClientError as e:
            raise NotificationError(f"Notification function unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            raise NotificationError("Notification function timed out") from e

        if status >= 300:
            raise NotificationError(f"Notification function returned {status}: {str(body)[:300]}")
        logger.info("Analysis-complete notification sent for player %s", player_id)
