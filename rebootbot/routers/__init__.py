"""HTTP routers package."""

from .automation_router import (
    ActivityListResponse,
    create_automation_router,
    create_health_router,
)

__all__ = [
    "ActivityListResponse",
    "create_automation_router",
    "create_health_router",
]
