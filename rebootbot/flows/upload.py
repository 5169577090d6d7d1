"""Video upload, processing poll and CSV export.

Job lifecycle: Uploading -> Processing -> {Complete, Failed, TimedOut}, with
Uploading able to end early as UploadFailed. TimedOut is distinct from
Failed: the dashboard may still finish the job after we stop watching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urljoin

from rebootbot.browser import scripts
from rebootbot.browser.errors import (
    EvaluationError,
    ExtractionError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    UploadError,
)
from rebootbot.browser.page import Page
from rebootbot.enums import JobStatus
from rebootbot.flows import selectors
from rebootbot.flows.base import FlowTiming, StepResult

logger = logging.getLogger(__name__)


@dataclass
class UploadResult(StepResult):
    status: JobStatus = JobStatus.UPLOADING
    job_id: str | None = None


@dataclass
class ProcessingResult(StepResult):
    status: JobStatus = JobStatus.PROCESSING
    attempts: int = 0
    last_status_text: str | None = None


@dataclass
class ExportResult(StepResult):
    download_url: str | None = None


def classify_status(text: str | None) -> JobStatus:
    """Map the dashboard's status label to a job state."""
    lowered = (text or "").lower()
    if "complete" in lowered or "processed" in lowered:
        return JobStatus.COMPLETE
    if "failed" in lowered or "error" in lowered:
        return JobStatus.FAILED
    return JobStatus.PROCESSING


class UploadFlow:
    """Upload a swing video for a remote athlete and follow its job."""

    def __init__(self, page: Page, *, dashboard_url: str, timing: FlowTiming | None = None) -> None:
        self._page = page
        self._base_url = dashboard_url.rstrip("/")
        self._timing = timing or FlowTiming()

    async def upload(self, remote_athlete_id: str, video_url: str) -> UploadResult:
        page, timing = self._page, self._timing
        logger.info("Uploading video for athlete %s", remote_athlete_id)
        await page.navigate(self._base_url + selectors.upload_path(remote_athlete_id))

        if not await page.wait_for(selectors.UPLOAD_AREA, timing.upload_interface_timeout_ms):
            return self._upload_failure("Upload interface not found")

        try:
            info = await page.call(
                scripts.INJECT_FILE_FROM_URL,
                selectors.FILE_INPUT,
                video_url,
                selectors.UPLOAD_FILENAME,
                selectors.UPLOAD_MIME_TYPE,
            )
        except EvaluationError as e:
            return self._upload_failure(f"Video injection failed: {e.description}")
        logger.info("Injected video file: %s", info)

        if not await page.wait_for(selectors.UPLOAD_COMPLETE, timing.upload_timeout_ms):
            seconds = timing.upload_timeout_ms // 1000
            return self._upload_failure(f"Upload did not complete within {seconds}s")

        url = await page.url()
        job_id = selectors.extract_remote_session_id(url)
        if not job_id:
            return self._upload_failure(f"Upload finished but no session id in URL ({url})")

        logger.info("Upload complete, remote session %s", job_id)
        return UploadResult(
            ok=True, message="Video uploaded", status=JobStatus.PROCESSING, job_id=job_id
        )

    async def wait_for_processing(self, job_id: str) -> ProcessingResult:
        """Poll the job's status label until terminal or attempts run out."""
        page, timing = self._page, self._timing
        await page.navigate(self._base_url + selectors.session_path(job_id))

        text: str | None = None
        for attempt in range(1, timing.max_poll_attempts + 1):
            text = await self._read_status()
            status = classify_status(text)
            logger.info(
                "Processing status (attempt %d/%d): %s", attempt, timing.max_poll_attempts, text
            )

            if status is JobStatus.COMPLETE:
                return ProcessingResult(
                    ok=True,
                    message="Processing complete",
                    status=status,
                    attempts=attempt,
                    last_status_text=text,
                )
            if status is JobStatus.FAILED:
                message = f"Processing failed: {text}"
                return ProcessingResult(
                    ok=False,
                    message=message,
                    error=ProcessingFailedError(message),
                    status=status,
                    attempts=attempt,
                    last_status_text=text,
                )

            if attempt < timing.max_poll_attempts:
                await page.sleep(int(timing.poll_interval_seconds * 1000))
                await page.reload()

        message = f"Processing timeout after {timing.max_poll_attempts} attempts"
        return ProcessingResult(
            ok=False,
            message=message,
            error=ProcessingTimeoutError(message),
            status=JobStatus.TIMED_OUT,
            attempts=timing.max_poll_attempts,
            last_status_text=text,
        )

    async def export_csv(self) -> ExportResult:
        """Drive the export UI on the current session page and return the CSV link."""
        page, timing = self._page, self._timing

        clicked = await page.click_first(selectors.EXPORT_BUTTONS) or await page.click_text(
            "button, a", selectors.EXPORT_BUTTON_TEXTS
        )
        if not clicked:
            return self._export_failure("Export button not found")

        if not await page.wait_for(selectors.EXPORT_OPTIONS, timing.export_options_timeout_ms):
            return self._export_failure("Export options did not appear")

        if not await page.click_first(selectors.CSV_OPTIONS):
            await page.click_text("button, label, li", selectors.CSV_OPTION_TEXTS)
        await page.sleep(timing.export_pause_ms)

        href = None
        for selector in selectors.DOWNLOAD_LINKS:
            href = await page.attribute(selector, "href")
            if href:
                break
        if not href:
            return self._export_failure("No export download link found")

        download_url = urljoin(await page.url(), href)
        logger.info("Export download link: %s", download_url)
        return ExportResult(ok=True, message="Export ready", download_url=download_url)

    async def _read_status(self) -> str | None:
        await self._page.wait_for(
            ", ".join(selectors.SESSION_STATUS), self._timing.status_render_timeout_ms
        )
        for selector in selectors.SESSION_STATUS:
            text = await self._page.text(selector)
            if text:
                return text
        return None

    @staticmethod
    def _upload_failure(message: str) -> UploadResult:
        return UploadResult(
            ok=False, message=message, error=UploadError(message), status=JobStatus.UPLOAD_FAILED
        )

    @staticmethod
    def _export_failure(message: str) -> ExportResult:
        return ExportResult(ok=False, message=message, error=ExtractionError(message))
