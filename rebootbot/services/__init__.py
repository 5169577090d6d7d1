"""Business logic services package."""

from .activity_log_service import ActivityLogService
from .collaborators import (
    ActivityLog,
    AnalysisError,
    AnalysisProcessor,
    FunctionsAnalysisClient,
    FunctionsNotifier,
    NotificationError,
    Notifier,
    PlayerStore,
)
from .pipeline_service import AutomationPipeline

__all__ = [
    "ActivityLog",
    "ActivityLogService",
    "AnalysisError",
    "AnalysisProcessor",
    "AutomationPipeline",
    "FunctionsAnalysisClient",
    "FunctionsNotifier",
    "NotificationError",
    "Notifier",
    "PlayerStore",
]
