"""Activity log business logic.

Every automation run is recorded once, success or failure. Recording is
best-effort: a failing write is logged and never changes the run's result.
"""

import logging

from rebootbot.enums import LogSeverity
from rebootbot.models.domain import ActivityLogEntry, PipelineResult
from rebootbot.services.collaborators import ActivityLog

ACTION_PREFIX = "browser_"


def activity_action(action: str) -> str:
    return f"{ACTION_PREFIX}{action}"


def build_metadata(result: PipelineResult) -> dict:
    """Diagnostic metadata stored alongside the outcome message."""
    return {
        "success": result.success,
        "browser_session_id": result.browser_session_id,
        "replay_url": result.replay_url,
        "errors": list(result.errors),
        "error_type": result.error_type,
    }


class ActivityLogService:
    """Records automation runs through the activity log collaborator."""

    def __init__(self, activity_log: ActivityLog) -> None:
        self.activity_log = activity_log
        self.logger = logging.getLogger("rebootbot.activity")

    async def record_run(
        self,
        action: str,
        result: PipelineResult,
        player_id: str | None = None,
    ) -> ActivityLogEntry | None:
        """Write one row for a finished run.

        Returns:
            The created entry, or None if the write failed.
        """
        name = activity_action(action)
        severity = LogSeverity.INFO if result.success else LogSeverity.WARNING
        getattr(self.logger, severity.value)("%s: %s", name, result.message)

        try:
            return await self.activity_log.create(
                action=name,
                description=result.message,
                player_id=player_id,
                metadata=build_metadata(result),
            )
        except Exception as e:
            self.logger.error("Failed to write activity log for %s: %s", name, e)
            return None

    async def get_recent(self, limit: int = 50, action: str | None = None) -> list[ActivityLogEntry]:
        """Most recent runs first; ``action`` is the bare action name."""
        return await self.activity_log.get_recent(
            limit=limit, action=activity_action(action) if action else None
        )
