"""Pydantic domain models.

These models cross service boundaries: the HTTP router, the pipeline
orchestrator and the DAO layer. SQLAlchemy ORM objects never leave the
DAO layer - DAOs convert to these models.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from rebootbot.enums import AutomationAction
from rebootbot.models.base import JsonModel


class BrowserSession(JsonModel):
    """A leased remote browser instance.

    Owned by exactly one pipeline run and released exactly once.
    """

    id: str
    status: str | None = None
    connect_url: str | None = None
    debugger_url: str | None = None


class Player(JsonModel):
    """Local player record.

    ``remote_athlete_id`` is the dashboard's athlete identifier, filled in
    after the first successful resolution so later runs skip the search.
    """

    id: str
    name: str
    email: str | None = None
    remote_athlete_id: str | None = None
    created_at: datetime
    updated_at: datetime


class ActivityLogEntry(JsonModel):
    """One row of the automation activity log."""

    id: int | None = None
    action: str
    description: str
    player_id: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime


class AutomationRequest(JsonModel):
    """Inbound automation request."""

    action: AutomationAction
    player_id: str | None = None
    player_name: str | None = None
    player_email: str | None = None
    reboot_player_id: str | None = None
    video_url: str | None = None
    video_storage_path: str | None = None
    session_id: str | None = None
    remote_session_id: str | None = None
    callback_phone: str | None = None
    is_whatsapp: bool = False


class PipelineResult(JsonModel):
    """Uniform outcome envelope returned by every pipeline invocation."""

    success: bool
    message: str
    data: dict[str, Any] | None = None
    errors: list[str] = Field(default_factory=list)
    error_type: str | None = None
    browser_session_id: str | None = None
    replay_url: str | None = None
