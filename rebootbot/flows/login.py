"""Dashboard login.

States: NotAuthenticated -> FormDetected | FormNotFound. A missing form is
not necessarily a failure: if the browser was redirected away from the login
path the session is already authenticated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rebootbot.browser.errors import AuthenticationError, ElementNotFoundError
from rebootbot.browser.page import Page
from rebootbot.flows import selectors
from rebootbot.flows.base import FlowTiming, StepResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardCredentials:
    """Dashboard login, passed in explicitly rather than read from the environment."""

    email: str
    password: str

    def __repr__(self) -> str:
        return f"DashboardCredentials(email={self.email!r}, password='***')"

    @property
    def configured(self) -> bool:
        return bool(self.email and self.password)


@dataclass
class LoginResult(StepResult):
    url: str | None = None
    already_authenticated: bool = False


class LoginFlow:
    """Authenticate the attached page against the dashboard."""

    def __init__(
        self,
        page: Page,
        *,
        dashboard_url: str,
        credentials: DashboardCredentials,
        timing: FlowTiming | None = None,
    ) -> None:
        self._page = page
        self._base_url = dashboard_url.rstrip("/")
        self._credentials = credentials
        self._timing = timing or FlowTiming()

    async def run(self) -> LoginResult:
        page, timing = self._page, self._timing
        await page.navigate(self._base_url + selectors.LOGIN_PATH, timing.login_navigate_extra_ms)

        form_found = await page.wait_for(
            ", ".join(selectors.EMAIL_INPUTS), timing.login_form_timeout_ms
        )
        if not form_found:
            url = await page.url()
            if selectors.LOGIN_PATH not in url:
                logger.info("No login form and not on login path; session already authenticated")
                return LoginResult(
                    ok=True,
                    message="Already authenticated",
                    url=url,
                    already_authenticated=True,
                )
            logger.warning("Login form not detected at %s", url)
            logger.debug("Page snippet: %s", await page.html_snippet(500))
            return self._failure("Login form not detected", url)

        try:
            await page.fill_first(selectors.EMAIL_INPUTS, self._credentials.email)
            await page.sleep(timing.field_pause_ms)
            await page.fill_first(selectors.PASSWORD_INPUTS, self._credentials.password)
            await page.sleep(timing.field_pause_ms)
        except ElementNotFoundError as e:
            return self._failure(f"Login form incomplete: {e.description}", await page.url())

        await self._submit()
        await page.sleep(timing.login_settle_ms)

        url = await page.url()
        logger.info("Post-login URL: %s", url)
        if selectors.LOGIN_PATH in url:
            return self._failure("Login failed: still on login page after submission", url)

        return LoginResult(ok=True, message="Logged in", url=url)

    async def _submit(self) -> None:
        clicked = await self._page.click_first(selectors.SUBMIT_BUTTONS)
        if clicked:
            logger.debug("Submitted login via %s", clicked)
            return
        logger.info("No submit button found; pressing Enter on password field")
        await self._page.press_enter(selectors.PASSWORD_INPUTS[0])

    @staticmethod
    def _failure(message: str, url: str | None) -> LoginResult:
        return LoginResult(ok=False, message=message, error=AuthenticationError(message), url=url)
