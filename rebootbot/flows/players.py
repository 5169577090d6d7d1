"""Player resolution on the dashboard: search, create, resolve."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from rebootbot.browser.errors import ElementNotFoundError, ResolutionError
from rebootbot.browser.page import Page
from rebootbot.flows import selectors
from rebootbot.flows.base import FlowTiming, StepResult

logger = logging.getLogger(__name__)


@dataclass
class PlayerSearchResult(StepResult):
    exists: bool = False
    remote_id: str | None = None


@dataclass
class PlayerCreateResult(StepResult):
    created: bool = False
    remote_id: str | None = None


@dataclass
class ResolutionResult(StepResult):
    remote_id: str | None = None
    created: bool = False


def match_athlete(anchors: list[dict[str, Any]], name: str) -> str | None:
    """Return the remote id of the first anchor whose text contains ``name``.

    Matching is case-insensitive substring; anchors whose href carries no
    recognisable id are skipped.
    """
    needle = name.strip().lower()
    if not needle:
        return None
    for anchor in anchors:
        text = str(anchor.get("text") or "").lower()
        if needle not in text:
            continue
        remote_id = selectors.extract_remote_athlete_id(anchor.get("href"))
        if remote_id:
            return remote_id
    return None


class PlayerFlow:
    """Find or create athletes on the dashboard."""

    def __init__(self, page: Page, *, dashboard_url: str, timing: FlowTiming | None = None) -> None:
        self._page = page
        self._base_url = dashboard_url.rstrip("/")
        self._timing = timing or FlowTiming()

    async def find_player(self, name: str) -> PlayerSearchResult:
        """Search the athletes listing for ``name``.

        Not found is a successful search with ``exists=False``.
        """
        page, timing = self._page, self._timing
        logger.info("Searching for player: %s", name)
        await page.navigate(self._base_url + selectors.ATHLETES_PATH)
        await page.wait_for(selectors.ATHLETES_LIST, timing.listing_timeout_ms)

        try:
            used = await page.fill_first(selectors.SEARCH_INPUTS, name)
            logger.debug("Typed name into %s", used)
            await page.sleep(timing.search_filter_wait_ms)
        except ElementNotFoundError:
            logger.info("No search box on athletes listing; scanning full list")

        anchors = await page.anchors(selectors.ATHLETE_LINKS)
        remote_id = match_athlete(anchors, name)
        if remote_id:
            logger.info("Found player %s: %s", name, remote_id)
            return PlayerSearchResult(
                ok=True, message=f"Found player {name}", exists=True, remote_id=remote_id
            )
        logger.info("Player %s not found among %d links", name, len(anchors))
        return PlayerSearchResult(ok=True, message=f"Player {name} not found", exists=False)

    async def create_player(self, name: str, email: str | None = None) -> PlayerCreateResult:
        """Fill and submit the new-athlete form, then read the id from the URL."""
        page, timing = self._page, self._timing
        logger.info("Creating player: %s", name)
        await page.navigate(self._base_url + selectors.NEW_ATHLETE_PATH)

        try:
            await page.fill_first(selectors.NAME_INPUTS, name)
        except ElementNotFoundError as e:
            message = f"New athlete form not found: {e.description}"
            return PlayerCreateResult(ok=False, message=message, error=ResolutionError(message))

        if email:
            try:
                await page.fill_first(selectors.CREATE_EMAIL_INPUTS, email)
            except ElementNotFoundError:
                logger.info("No email field on new athlete form; continuing without it")

        submitted = await page.click_first(selectors.SUBMIT_BUTTONS[:1])
        if not submitted and not await page.click_text("button", selectors.CREATE_BUTTON_TEXTS):
            message = "New athlete form has no submit button"
            return PlayerCreateResult(ok=False, message=message, error=ResolutionError(message))

        await page.sleep(timing.create_settle_ms)
        url = await page.url()
        remote_id = selectors.extract_remote_athlete_id(url)
        if not remote_id:
            message = f"Player creation did not navigate to an athlete page (at {url})"
            return PlayerCreateResult(ok=False, message=message, error=ResolutionError(message))

        logger.info("Created player %s: %s", name, remote_id)
        return PlayerCreateResult(
            ok=True, message=f"Created player {name}", created=True, remote_id=remote_id
        )

    async def resolve(
        self,
        name: str,
        email: str | None = None,
        *,
        create_if_missing: bool = True,
    ) -> ResolutionResult:
        """Search, then create only when the search reports not-found."""
        search = await self.find_player(name)
        if not search.ok:
            return ResolutionResult(ok=False, message=search.message, error=search.error)
        if search.exists:
            return ResolutionResult(ok=True, message=search.message, remote_id=search.remote_id)

        if not create_if_missing:
            message = f"Player {name} not found on dashboard"
            return ResolutionResult(ok=False, message=message, error=ResolutionError(message))

        created = await self.create_player(name, email)
        if not created.ok:
            return ResolutionResult(ok=False, message=created.message, error=created.error)
        return ResolutionResult(
            ok=True, message=created.message, remote_id=created.remote_id, created=True
        )
