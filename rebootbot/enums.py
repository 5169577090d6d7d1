"""StrEnum definitions for type-safe constants."""

from enum import StrEnum


class AutomationAction(StrEnum):
    """Actions accepted by the automation endpoint."""

    UPLOAD_VIDEO = "upload_video"
    CREATE_PLAYER = "create_player"
    DOWNLOAD_DATA = "download_data"
    FULL_PIPELINE = "full_pipeline"
    TEST_LOGIN = "test_login"
    FIND_PLAYER = "find_player"
    PULL_REPORTS = "pull_reports"


class JobStatus(StrEnum):
    """Lifecycle of a remote processing job on the dashboard."""

    UPLOADING = "uploading"
    UPLOAD_FAILED = "upload_failed"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class LogSeverity(StrEnum):
    """Log severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
