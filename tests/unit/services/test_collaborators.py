"""Tests for the downstream functions clients."""

import asyncio

import aiohttp
import pytest

from rebootbot.services.collaborators import (
    AnalysisError,
    FunctionsAnalysisClient,
    FunctionsNotifier,
    NotificationError,
)

BASE_URL = "https://project.functions.test/functions/v1"


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def json(self, content_type=None):
        if isinstance(self._body, str):
            raise ValueError("not json")
        return self._body

    async def text(self):
        return str(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(200, {"success": True})
        self.error = error
        self.requests = []

    def post(self, url, json=None, headers=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response


class TestFunctionsAnalysisClient:
    @pytest.mark.asyncio
    async def test_posts_session_payload(self):
        http = FakeHttp(FakeResponse(200, {"success": True, "scores": {"brain": 61}}))
        client = FunctionsAnalysisClient(BASE_URL + "/", "service-key", http=http)

        result = await client.process_session(
            "https://dash.test/exports/s1.csv", "s1", "abc-123", "p-1"
        )

        assert result["scores"] == {"brain": 61}
        [request] = http.requests
        assert request["url"] == BASE_URL + "/process-reboot-session"
        assert request["headers"]["Authorization"] == "Bearer service-key"
        assert request["json"] == {
            "session_id": "s1",
            "org_player_id": "abc-123",
            "player_id": "p-1",
            "export_url": "https://dash.test/exports/s1.csv",
        }

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = FunctionsAnalysisClient(None, None, http=FakeHttp())
        assert not client.configured
        with pytest.raises(AnalysisError, match="not configured"):
            await client.process_session("ref", "s1", None, None)

    @pytest.mark.asyncio
    async def test_error_status(self):
        http = FakeHttp(FakeResponse(500, "upstream exploded"))
        client = FunctionsAnalysisClient(BASE_URL, "key", http=http)

        with pytest.raises(AnalysisError, match="returned 500: upstream exploded"):
            await client.process_session("ref", "s1", None, None)

    @pytest.mark.asyncio
    async def test_unreachable(self):
        http = FakeHttp(error=aiohttp.ClientConnectionError("refused"))
        client = FunctionsAnalysisClient(BASE_URL, "key", http=http)

        with pytest.raises(AnalysisError, match="unreachable"):
            await client.process_session("ref", "s1", None, None)

    @pytest.mark.asyncio
    async def test_timeout_raises_analysis_error(self):
        http = FakeHttp(error=asyncio.TimeoutError())
        client = FunctionsAnalysisClient(BASE_URL, "key", http=http)

        with pytest.raises(AnalysisError, match="timed out"):
            await client.process_session("ref", "s1", None, None)

    @pytest.mark.asyncio
    async def test_non_object_body_is_wrapped(self):
        http = FakeHttp(FakeResponse(200, "queued"))
        client = FunctionsAnalysisClient(BASE_URL, "key", http=http)

        assert await client.process_session("ref", "s1", None, None) == {"response": "queued"}


class TestFunctionsNotifier:
    @pytest.mark.asyncio
    async def test_posts_notification(self):
        http = FakeHttp()
        notifier = FunctionsNotifier(BASE_URL, "key", http=http)

        await notifier.notify("+15555550100", "p-1", {"brain": 61}, "s1", is_whatsapp=True)

        [request] = http.requests
        assert request["url"] == BASE_URL + "/send-analysis-complete"
        assert request["json"] == {
            "player_id": "p-1",
            "phone": "+15555550100",
            "is_whatsapp": True,
            "scores": {"brain": 61},
            "session_id": "s1",
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        notifier = FunctionsNotifier(BASE_URL, "key", http=FakeHttp(FakeResponse(403, "denied")))
        with pytest.raises(NotificationError, match="403"):
            await notifier.notify("+1555", None, None, None)

    @pytest.mark.asyncio
    async def test_timeout_raises_notification_error(self):
        http = FakeHttp(error=asyncio.TimeoutError())
        notifier = FunctionsNotifier(BASE_URL, "key", http=http)
        with pytest.raises(NotificationError, match="timed out"):
            await notifier.notify("+1555", None, None, None)

    @pytest.mark.asyncio
    async def test_close_leaves_shared_session_open(self):
        http = FakeHttp()
        notifier = FunctionsNotifier(BASE_URL, "key", http=http)
        await notifier.close()
        await notifier.notify("+1555", None, None, None)
        assert len(http.requests) == 1
