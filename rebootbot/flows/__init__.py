"""Dashboard flow steps: login, player resolution, upload/poll/export, reports."""

from rebootbot.flows.base import FlowTiming, StepResult
from rebootbot.flows.login import DashboardCredentials, LoginFlow, LoginResult
from rebootbot.flows.players import (
    PlayerCreateResult,
    PlayerFlow,
    PlayerSearchResult,
    ResolutionResult,
)
from rebootbot.flows.reports import ReportsFlow, ReportsResult, SessionRow
from rebootbot.flows.upload import ExportResult, ProcessingResult, UploadFlow, UploadResult

__all__ = [
    "DashboardCredentials",
    "ExportResult",
    "FlowTiming",
    "LoginFlow",
    "LoginResult",
    "PlayerCreateResult",
    "PlayerFlow",
    "PlayerSearchResult",
    "ProcessingResult",
    "ReportsFlow",
    "ReportsResult",
    "ResolutionResult",
    "SessionRow",
    "StepResult",
    "UploadFlow",
    "UploadResult",
]
