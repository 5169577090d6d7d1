"""Automation API endpoints.

Routers handle HTTP concerns only - all orchestration is delegated to
AutomationPipeline.
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from rebootbot.enums import AutomationAction
from rebootbot.models.base import JsonModel
from rebootbot.models.domain import ActivityLogEntry, AutomationRequest

if TYPE_CHECKING:
    from rebootbot.services.activity_log_service import ActivityLogService
    from rebootbot.services.pipeline_service import AutomationPipeline


class ActivityListResponse(JsonModel):
    """Recent automation runs."""

    entries: list[ActivityLogEntry]
    total: int


def create_automation_router(
    pipeline: "AutomationPipeline",
    *,
    activity_log: "ActivityLogService | None" = None,
) -> APIRouter:
    """Create the automation router with injected services.

    Args:
        pipeline: Orchestrator that runs each request.
        activity_log: Optional service backing ``GET /automation/activity``.

    Returns:
        APIRouter with automation endpoints configured.
    """
    router = APIRouter(prefix="/automation", tags=["automation"])

    @router.post("")
    async def run_automation(request: AutomationRequest) -> JSONResponse:
        """Run one automation action.

        Returns the PipelineResult as camelCase JSON: 200 when the run
        succeeded, 400 when it ended in a handled failure.
        """
        result = await pipeline.run(request)
        return JSONResponse(
            status_code=200 if result.success else 400,
            content=result.model_dump(by_alias=True),
        )

    if activity_log is not None:

        @router.get("/activity", response_model=ActivityListResponse)
        async def recent_activity(
            limit: int = Query(default=50, ge=1, le=500),
            action: AutomationAction | None = None,
        ) -> ActivityListResponse:
            """List recent runs, newest first."""
            entries = await activity_log.get_recent(
                limit=limit, action=action.value if action else None
            )
            return ActivityListResponse(entries=entries, total=len(entries))

    return router


def create_health_router() -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health")
    async def health_check() -> dict:
        """Liveness probe."""
        return {"status": "ok"}

    return router
