"""Unit tests for remote browser session provisioning."""

import asyncio
from typing import Any

import aiohttp
import pytest

from rebootbot.browser.errors import ProvisioningError
from rebootbot.browser.provisioner import BrowserProfile, SessionProvisioner
from rebootbot.config import AutomationConfig
from rebootbot.models.domain import BrowserSession


class FakeResponse:
    def __init__(self, status: int, body: Any = None):
        self.status = status
        self._body = body

    async def json(self):
        return self._body

    async def text(self):
        return str(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeHttp:
    """Records requests; answers from per-verb queues."""

    def __init__(self, *, post=None, delete=None, delete_error: Exception | None = None):
        self.post_response = post or FakeResponse(
            201, {"id": "bb-1", "status": "RUNNING", "connectUrl": "wss://connect.test/bb-1"}
        )
        self.delete_response = delete or FakeResponse(204)
        self.delete_error = delete_error
        self.posts: list[dict] = []
        self.deletes: list[str] = []

    def post(self, url, json=None, headers=None):
        self.posts.append({"url": url, "json": json, "headers": headers})
        return self.post_response

    def delete(self, url, headers=None):
        self.deletes.append(url)
        if self.delete_error is not None:
            raise self.delete_error
        return self.delete_response


def _config(**overrides) -> AutomationConfig:
    values = {
        "browser_api_url": "https://api.browser.test/v1",
        "browser_api_key": "bb_test_key",
        "browser_project_id": "proj-1",
    }
    values.update(overrides)
    return AutomationConfig(**values)


class TestBrowserProfile:
    def test_payload_shape(self):
        payload = BrowserProfile().to_payload("proj-1")
        assert payload == {
            "projectId": "proj-1",
            "browserSettings": {
                "fingerprint": {
                    "browsers": ["chrome"],
                    "devices": ["desktop"],
                    "operatingSystems": ["windows"],
                },
            },
            "keepAlive": True,
            "timeout": 300,
        }

    def test_from_config(self):
        profile = BrowserProfile.from_config(
            _config(browser_session_timeout_seconds=600, browser_keep_alive=False)
        )
        assert profile.timeout_seconds == 600
        assert profile.keep_alive is False


class TestAcquire:
    @pytest.mark.asyncio
    async def test_acquire_returns_session(self):
        http = FakeHttp()
        provisioner = SessionProvisioner(_config(), http=http)

        session = await provisioner.acquire()

        assert session.id == "bb-1"
        assert session.connect_url == "wss://connect.test/bb-1"
        request = http.posts[0]
        assert request["url"] == "https://api.browser.test/v1/sessions"
        assert request["headers"]["X-BB-API-Key"] == "bb_test_key"
        assert request["json"]["projectId"] == "proj-1"

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_without_a_request(self):
        http = FakeHttp()
        provisioner = SessionProvisioner(_config(browser_api_key=None), http=http)

        with pytest.raises(ProvisioningError, match="not configured"):
            await provisioner.acquire()
        assert http.posts == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        http = FakeHttp(post=FakeResponse(401, "unauthorized"))
        provisioner = SessionProvisioner(_config(), http=http)

        with pytest.raises(ProvisioningError, match="401"):
            await provisioner.acquire()

    @pytest.mark.asyncio
    async def test_missing_connect_url_releases_before_raising(self):
        http = FakeHttp(post=FakeResponse(201, {"id": "bb-9", "status": "RUNNING"}))
        provisioner = SessionProvisioner(_config(), http=http)

        with pytest.raises(ProvisioningError) as exc_info:
            await provisioner.acquire()

        assert exc_info.value.session_id == "bb-9"
        assert http.deletes == ["https://api.browser.test/v1/sessions/bb-9"]

    @pytest.mark.asyncio
    async def test_unreachable_provider_raises(self):
        class Unreachable(FakeHttp):
            def post(self, url, json=None, headers=None):
                raise aiohttp.ClientConnectionError("connection refused")

        provisioner = SessionProvisioner(_config(), http=Unreachable())
        with pytest.raises(ProvisioningError, match="unreachable"):
            await provisioner.acquire()

    @pytest.mark.asyncio
    async def test_provider_timeout_raises_provisioning_error(self):
        class HungResponse(FakeResponse):
            async def json(self):
                raise asyncio.TimeoutError()

        http = FakeHttp(post=HungResponse(201))
        provisioner = SessionProvisioner(_config(), http=http)

        with pytest.raises(ProvisioningError, match="timed out"):
            await provisioner.acquire()
        assert http.deletes == []


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_is_idempotent(self):
        http = FakeHttp()
        provisioner = SessionProvisioner(_config(), http=http)
        session = BrowserSession(id="bb-1")

        await provisioner.release(session)
        await provisioner.release(session)

        assert http.deletes == ["https://api.browser.test/v1/sessions/bb-1"]

    @pytest.mark.asyncio
    async def test_release_history_is_bounded(self):
        http = FakeHttp()
        provisioner = SessionProvisioner(_config(), http=http, release_history=2)

        for session_id in ("bb-1", "bb-2", "bb-3"):
            await provisioner.release(BrowserSession(id=session_id))
        await provisioner.release(BrowserSession(id="bb-3"))

        assert len(http.deletes) == 3
        assert len(provisioner._released) == 2
        assert "bb-1" not in provisioner._released

    @pytest.mark.asyncio
    async def test_release_never_raises(self):
        http = FakeHttp(delete_error=aiohttp.ClientConnectionError("reset"))
        provisioner = SessionProvisioner(_config(), http=http)

        await provisioner.release(BrowserSession(id="bb-2"))

        assert len(http.deletes) == 1

    @pytest.mark.asyncio
    async def test_release_error_status_is_swallowed(self):
        http = FakeHttp(delete=FakeResponse(500, "oops"))
        provisioner = SessionProvisioner(_config(), http=http)
        await provisioner.release(BrowserSession(id="bb-3"))

    def test_replay_url(self):
        provisioner = SessionProvisioner(
            _config(replay_url_template="https://replay.test/{session_id}"), http=FakeHttp()
        )
        assert provisioner.replay_url("bb-7") == "https://replay.test/bb-7"
