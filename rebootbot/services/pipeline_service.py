"""Automation pipeline orchestrator.

One run = one leased browser session and one protocol transport, both
released on every exit path. Flow steps report expected failures as values;
the orchestrator stops at the first failing step and folds its message,
error type and the session's replay link into the PipelineResult. Anything
unexpected is caught once, here, and converted into the same shape.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rebootbot.browser.errors import (
    ConfigurationError,
    InvalidRequestError,
    ProvisioningError,
    ResolutionError,
)
from rebootbot.browser.page import DEFAULT_SETTLE_MS, Page
from rebootbot.browser.provisioner import SessionProvisioner
from rebootbot.browser.transport import CdpTransport
from rebootbot.enums import AutomationAction
from rebootbot.flows.base import FlowTiming, StepResult
from rebootbot.flows.login import DashboardCredentials, LoginFlow
from rebootbot.flows.players import PlayerFlow
from rebootbot.flows.reports import ReportsFlow
from rebootbot.flows.upload import UploadFlow
from rebootbot.models.domain import AutomationRequest, BrowserSession, PipelineResult
from rebootbot.observability import log_step_error, run_context, trace_event
from rebootbot.services.activity_log_service import ActivityLogService
from rebootbot.services.collaborators import (
    AnalysisError,
    AnalysisProcessor,
    Notifier,
    PlayerStore,
)

if TYPE_CHECKING:
    from rebootbot.config import AutomationConfig

logger = logging.getLogger(__name__)

TransportFactory = Callable[[BrowserSession], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class _Job:
    """Validated request plus whatever the player store knew."""

    action: AutomationAction
    player_id: str | None
    player_name: str | None
    player_email: str | None
    remote_player_id: str | None
    video_url: str | None
    remote_session_id: str | None
    callback: str | None
    is_whatsapp: bool


@dataclass
class _Run:
    """Accumulates diagnostics for the result of one run."""

    run_id: str
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    browser_session_id: str | None = None
    replay_url: str | None = None

    def succeeded(self, message: str, **data: Any) -> PipelineResult:
        self.data.update(data)
        return PipelineResult(
            success=True,
            message=message,
            data=dict(self.data) or None,
            errors=list(self.errors),
            browser_session_id=self.browser_session_id,
            replay_url=self.replay_url,
        )

    def failed(
        self,
        message: str,
        error: BaseException | None = None,
        *,
        detail: str | None = None,
    ) -> PipelineResult:
        self.errors.append(detail or message)
        return PipelineResult(
            success=False,
            message=message,
            data=dict(self.data) or None,
            errors=list(self.errors),
            error_type=type(error).__name__ if error is not None else None,
            browser_session_id=self.browser_session_id,
            replay_url=self.replay_url,
        )

    def step_failed(self, step: StepResult) -> PipelineResult:
        return self.failed(step.message, step.error)


class AutomationPipeline:
    """Runs automation actions against the dashboard.

    Args:
        provisioner: Leases and releases remote browser sessions.
        credentials: Dashboard login, passed in explicitly.
        dashboard_url: Dashboard base URL.
        player_store: Local player lookup and remote-id persistence.
        activity_log: Records one row per run.
        analysis: Downstream analysis collaborator.
        notifier: Downstream notification collaborator.
        timing: Flow waits and polling bounds.
        connect_transport: Opens a transport for a leased session; defaults
            to ``CdpTransport.connect`` on the session's connect URL.
        settle_ms: Base delay after each navigation.
        sleep: Awaitable sleep (seconds); tests inject a no-op.
    """

    def __init__(
        self,
        *,
        provisioner: SessionProvisioner,
        credentials: DashboardCredentials,
        dashboard_url: str,
        player_store: PlayerStore | None = None,
        activity_log: ActivityLogService | None = None,
        analysis: AnalysisProcessor | None = None,
        notifier: Notifier | None = None,
        timing: FlowTiming | None = None,
        connect_transport: TransportFactory | None = None,
        settle_ms: int = DEFAULT_SETTLE_MS,
        sleep: Sleep = asyncio.sleep,
        command_timeout: float = 30.0,
        connect_timeout: float = 20.0,
    ) -> None:
        self._provisioner = provisioner
        self._credentials = credentials
        self._dashboard_url = dashboard_url.rstrip("/")
        self._players = player_store
        self._activity = activity_log
        self._analysis = analysis
        self._notifier = notifier
        self._timing = timing or FlowTiming()
        self._connect_transport = connect_transport or self._default_connect
        self._settle_ms = settle_ms
        self._sleep = sleep
        self._command_timeout = command_timeout
        self._connect_timeout = connect_timeout

        self._handlers: dict[AutomationAction, Callable[..., Awaitable[PipelineResult]]] = {
            AutomationAction.TEST_LOGIN: self._test_login,
            AutomationAction.FIND_PLAYER: self._find_player,
            AutomationAction.CREATE_PLAYER: self._create_player,
            AutomationAction.UPLOAD_VIDEO: self._upload_video,
            AutomationAction.DOWNLOAD_DATA: self._download_data,
            AutomationAction.FULL_PIPELINE: self._full_pipeline,
            AutomationAction.PULL_REPORTS: self._pull_reports,
        }

    @classmethod
    def from_config(
        cls,
        config: AutomationConfig,
        *,
        provisioner: SessionProvisioner,
        player_store: PlayerStore | None = None,
        activity_log: ActivityLogService | None = None,
        analysis: AnalysisProcessor | None = None,
        notifier: Notifier | None = None,
    ) -> AutomationPipeline:
        return cls(
            provisioner=provisioner,
            credentials=config.dashboard_credentials(),
            dashboard_url=config.dashboard_url,
            player_store=player_store,
            activity_log=activity_log,
            analysis=analysis,
            notifier=notifier,
            timing=FlowTiming.from_config(config),
            settle_ms=config.navigation_settle_ms,
            command_timeout=config.command_timeout_seconds,
            connect_timeout=config.connect_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self, request: AutomationRequest) -> PipelineResult:
        """Execute one request. Never raises; always returns a PipelineResult."""
        with run_context(actor_id=request.player_id) as run_id:
            run = _Run(run_id=run_id)
            trace_event("pipeline.start", action=request.action.value, player_id=request.player_id)
            try:
                result = await self._execute(request, run)
            except ProvisioningError as e:
                if e.session_id and run.browser_session_id is None:
                    run.browser_session_id = e.session_id
                    run.replay_url = self._provisioner.replay_url(e.session_id)
                logger.error("Browser provisioning failed: %s", e)
                trace_event("pipeline.error", error=str(e), error_type=type(e).__name__)
                result = run.failed("Browser session could not be started", e, detail=str(e))
            except Exception as e:
                logger.exception("Pipeline %s failed unexpectedly", request.action.value)
                trace_event("pipeline.error", error=str(e), error_type=type(e).__name__)
                result = run.failed("Pipeline failed", e, detail=str(e) or type(e).__name__)

            if self._activity is not None:
                await self._activity.record_run(request.action.value, result, request.player_id)

            trace_event(
                "pipeline.end",
                action=request.action.value,
                success=result.success,
                message=result.message,
                error_type=result.error_type,
                browser_session_id=result.browser_session_id,
            )
            return result

    async def _execute(self, request: AutomationRequest, run: _Run) -> PipelineResult:
        if not self._credentials.configured:
            error = ConfigurationError("Dashboard credentials not configured")
            return run.failed(str(error), error)

        job = await self._prepare(request)
        if isinstance(job, InvalidRequestError):
            return run.failed(str(job), job)

        handler = self._handlers[job.action]
        async with self._browser(run) as page:
            return await handler(page, job, run)

    async def _prepare(self, request: AutomationRequest) -> _Job | InvalidRequestError:
        """Fill in player details from the store and check the action's inputs.

        Runs before any session is leased.
        """
        name, email = request.player_name, request.player_email
        remote_player_id = request.reboot_player_id

        if request.player_id and self._players is not None and (not name or not remote_player_id):
            player = await self._players.get(request.player_id)
            if player is not None:
                name = name or player.name
                email = email or player.email
                remote_player_id = remote_player_id or player.remote_athlete_id

        action = request.action
        if action in (AutomationAction.FIND_PLAYER, AutomationAction.CREATE_PLAYER) and not name:
            return InvalidRequestError("Player name required")
        if action in (
            AutomationAction.UPLOAD_VIDEO,
            AutomationAction.FULL_PIPELINE,
            AutomationAction.PULL_REPORTS,
        ) and not (name or remote_player_id):
            return InvalidRequestError("Player name required")
        needs_video = action in (AutomationAction.UPLOAD_VIDEO, AutomationAction.FULL_PIPELINE)
        if needs_video and not request.video_url:
            return InvalidRequestError("Video URL required")
        if action is AutomationAction.DOWNLOAD_DATA and not request.remote_session_id:
            return InvalidRequestError("Remote session id required")

        return _Job(
            action=action,
            player_id=request.player_id,
            player_name=name,
            player_email=email,
            remote_player_id=remote_player_id,
            video_url=request.video_url,
            remote_session_id=request.remote_session_id,
            callback=request.callback_phone,
            is_whatsapp=request.is_whatsapp,
        )

    # ------------------------------------------------------------------
    # Browser scope
    # ------------------------------------------------------------------

    async def _default_connect(self, session: BrowserSession) -> CdpTransport:
        return await CdpTransport.connect(
            session.connect_url,
            command_timeout=self._command_timeout,
            connect_timeout=self._connect_timeout,
        )

    @asynccontextmanager
    async def _browser(self, run: _Run) -> AsyncIterator[Page]:
        """Lease a session, open a transport, and release both on exit."""
        session = await self._provisioner.acquire()
        run.browser_session_id = session.id
        run.replay_url = self._provisioner.replay_url(session.id)
        logger.info("Browser session %s (replay: %s)", session.id, run.replay_url)

        transport = None
        try:
            transport = await self._connect_transport(session)
            yield Page(transport, settle_ms=self._settle_ms, sleep=self._sleep)
        finally:
            if transport is not None:
                try:
                    await transport.close()
                except Exception as e:
                    logger.warning("Error closing transport for %s: %s", session.id, e)
            await self._provisioner.release(session)

    def _record_step(self, run: _Run, name: str, result: StepResult) -> None:
        trace_event(
            "pipeline.step",
            step=name,
            ok=result.ok,
            message=result.message,
            error_type=result.error_type,
        )
        if not result.ok:
            log_step_error(
                name,
                result.error or result.message,
                run_id=run.run_id,
                extra={"browser_session_id": run.browser_session_id},
            )

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    async def _login(self, page: Page, run: _Run) -> StepResult:
        flow = LoginFlow(
            page,
            dashboard_url=self._dashboard_url,
            credentials=self._credentials,
            timing=self._timing,
        )
        result = await flow.run()
        self._record_step(run, "login", result)
        return result

    async def _resolve(
        self, page: Page, job: _Job, run: _Run, *, create_if_missing: bool = True
    ) -> StepResult | None:
        """Make sure ``job.remote_player_id`` is set. Returns a failed step or None."""
        if job.remote_player_id:
            logger.info("Using known remote athlete id %s", job.remote_player_id)
            run.data["remote_player_id"] = job.remote_player_id
            return None

        players = PlayerFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)
        result = await players.resolve(
            job.player_name or "", job.player_email, create_if_missing=create_if_missing
        )
        self._record_step(run, "resolve_player", result)
        if not result.ok:
            return result

        job.remote_player_id = result.remote_id
        run.data["remote_player_id"] = result.remote_id
        run.data["player_created"] = result.created
        await self._persist_remote_id(job, run)
        return None

    async def _persist_remote_id(self, job: _Job, run: _Run) -> None:
        if not (job.player_id and job.remote_player_id and self._players is not None):
            return
        try:
            updated = await self._players.set_remote_athlete_id(job.player_id, job.remote_player_id)
        except Exception as e:
            logger.error("Failed to persist remote athlete id for %s: %s", job.player_id, e)
            run.errors.append(f"Could not save remote athlete id: {e}")
            return
        if not updated:
            logger.warning("Player %s not in local store; remote id not saved", job.player_id)

    async def _process_and_hand_off(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        """Poll the remote job, export it, then run analysis and notification."""
        remote_session_id = job.remote_session_id or ""
        run.data["remote_session_id"] = remote_session_id
        upload = UploadFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)

        processing = await upload.wait_for_processing(remote_session_id)
        self._record_step(run, "processing", processing)
        run.data["processing_status"] = processing.status.value
        run.data["processing_attempts"] = processing.attempts
        if not processing.ok:
            return run.step_failed(processing)

        export = await upload.export_csv()
        self._record_step(run, "export", export)
        if not export.ok:
            return run.step_failed(export)
        run.data["export_url"] = export.download_url

        if self._analysis is None:
            return run.succeeded("Session data exported")

        try:
            analysis = await self._analysis.process_session(
                export.download_url or "",
                remote_session_id,
                job.remote_player_id,
                job.player_id,
            )
        except AnalysisError as e:
            log_step_error("analysis", e, run_id=run.run_id)
            return run.failed("Analysis failed", e, detail=str(e))
        run.data["analysis"] = analysis

        if job.callback and self._notifier is not None:
            try:
                await self._notifier.notify(
                    job.callback,
                    job.player_id,
                    analysis.get("scores"),
                    remote_session_id,
                    job.is_whatsapp,
                )
                run.data["notified"] = True
            except Exception as e:
                logger.warning("Notification for %s failed: %s", job.player_id, e)
                run.errors.append(f"Notification failed: {e}")
                run.data["notified"] = False

        return run.succeeded("Video processed and scores calculated")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _test_login(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)
        return run.succeeded("Successfully logged into dashboard", url=login.url)

    async def _find_player(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)

        players = PlayerFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)
        search = await players.find_player(job.player_name or "")
        self._record_step(run, "find_player", search)
        if not search.ok:
            return run.step_failed(search)

        run.data.update(exists=search.exists, remote_player_id=search.remote_id)
        if not search.exists:
            return run.failed(search.message, ResolutionError(search.message))

        job.remote_player_id = search.remote_id
        await self._persist_remote_id(job, run)
        return run.succeeded(search.message)

    async def _create_player(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)

        failure = await self._resolve(page, job, run)
        if failure is not None:
            return run.step_failed(failure)
        if run.data.get("player_created"):
            return run.succeeded("Player created on dashboard")
        return run.succeeded("Player already exists on dashboard")

    async def _upload_video(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)

        failure = await self._resolve(page, job, run)
        if failure is not None:
            return run.step_failed(failure)

        upload = UploadFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)
        uploaded = await upload.upload(job.remote_player_id or "", job.video_url or "")
        self._record_step(run, "upload", uploaded)
        if not uploaded.ok:
            return run.step_failed(uploaded)

        return run.succeeded(
            "Video uploaded, waiting for dashboard processing",
            remote_session_id=uploaded.job_id,
            processing_status=uploaded.status.value,
        )

    async def _download_data(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)
        if job.remote_player_id:
            run.data["remote_player_id"] = job.remote_player_id
        return await self._process_and_hand_off(page, job, run)

    async def _full_pipeline(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)

        failure = await self._resolve(page, job, run)
        if failure is not None:
            return run.step_failed(failure)

        upload = UploadFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)
        uploaded = await upload.upload(job.remote_player_id or "", job.video_url or "")
        self._record_step(run, "upload", uploaded)
        if not uploaded.ok:
            return run.step_failed(uploaded)

        job.remote_session_id = uploaded.job_id
        return await self._process_and_hand_off(page, job, run)

    async def _pull_reports(self, page: Page, job: _Job, run: _Run) -> PipelineResult:
        login = await self._login(page, run)
        if not login.ok:
            return run.step_failed(login)

        failure = await self._resolve(page, job, run, create_if_missing=False)
        if failure is not None:
            return run.step_failed(failure)

        reports = ReportsFlow(page, dashboard_url=self._dashboard_url, timing=self._timing)
        pulled = await reports.pull(job.remote_player_id or "")
        self._record_step(run, "pull_reports", pulled)
        run.data.update(
            page_title=pulled.page_title,
            page_url=pulled.page_url,
            session_links=pulled.session_links,
        )
        if not pulled.ok:
            return run.step_failed(pulled)

        return run.succeeded(
            pulled.message,
            sessions=[row.to_dict() for row in pulled.rows],
        )

