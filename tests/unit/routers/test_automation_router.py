"""Tests for the automation HTTP API."""

from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fakes import FakeActivityLog
from rebootbot.models.domain import ActivityLogEntry, AutomationRequest, PipelineResult
from rebootbot.routers import create_automation_router, create_health_router
from rebootbot.services.activity_log_service import ActivityLogService


class StubPipeline:
    def __init__(self, result: PipelineResult):
        self.result = result
        self.requests: list[AutomationRequest] = []

    async def run(self, request: AutomationRequest) -> PipelineResult:
        self.requests.append(request)
        return self.result


def _client(result: PipelineResult, activity_log=None) -> tuple[TestClient, StubPipeline]:
    pipeline = StubPipeline(result)
    app = FastAPI()
    app.include_router(create_health_router())
    app.include_router(create_automation_router(pipeline, activity_log=activity_log))
    return TestClient(app), pipeline


SUCCESS = PipelineResult(
    success=True,
    message="Successfully logged into dashboard",
    browser_session_id="bb-1",
    replay_url="https://replay.test/bb-1",
)
FAILURE = PipelineResult(
    success=False,
    message="Login form not detected",
    errors=["Login form not detected"],
    error_type="AuthenticationError",
    browser_session_id="bb-2",
)


class TestRunAutomation:
    def test_success_is_200_camel_case(self):
        client, pipeline = _client(SUCCESS)

        response = client.post("/automation", json={"action": "test_login"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["browserSessionId"] == "bb-1"
        assert body["replayUrl"] == "https://replay.test/bb-1"
        assert pipeline.requests[0].action == "test_login"

    def test_handled_failure_is_400(self):
        client, _ = _client(FAILURE)

        response = client.post("/automation", json={"action": "test_login"})

        assert response.status_code == 400
        body = response.json()
        assert body["errorType"] == "AuthenticationError"
        assert body["errors"] == ["Login form not detected"]

    def test_snake_and_camel_case_inputs(self):
        client, pipeline = _client(SUCCESS)

        client.post(
            "/automation",
            json={"action": "full_pipeline", "player_id": "p-1", "videoUrl": "https://v.test/a.mp4"},
        )

        request = pipeline.requests[0]
        assert request.player_id == "p-1"
        assert request.video_url == "https://v.test/a.mp4"

    @pytest.mark.parametrize("payload", [{}, {"action": "delete_everything"}])
    def test_malformed_request_is_422(self, payload):
        client, pipeline = _client(SUCCESS)

        response = client.post("/automation", json=payload)

        assert response.status_code == 422
        assert pipeline.requests == []


class TestActivity:
    def test_activity_endpoint_absent_without_service(self):
        client, _ = _client(SUCCESS)
        assert client.get("/automation/activity").status_code in (404, 405)

    def test_recent_activity(self):
        log = FakeActivityLog()
        log.entries = [
            _entry(1, "browser_test_login", "Successfully logged into dashboard"),
            _entry(2, "browser_find_player", "Found player Jane Doe"),
        ]
        client, _ = _client(SUCCESS, activity_log=ActivityLogService(log))

        response = client.get("/automation/activity", params={"action": "test_login"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["entries"][0]["action"] == "browser_test_login"
        assert "createdAt" in body["entries"][0]


class TestHealth:
    def test_health(self):
        client, _ = _client(SUCCESS)
        assert client.get("/health").json() == {"status": "ok"}


def _entry(entry_id, action, description):
    return ActivityLogEntry(
        id=entry_id, action=action, description=description, created_at=datetime(2026, 10, 1)
    )
