"""Read-only extraction of a player's existing dashboard sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from rebootbot.browser import scripts
from rebootbot.browser.errors import ExtractionError
from rebootbot.browser.page import Page
from rebootbot.flows import selectors
from rebootbot.flows.base import FlowTiming, StepResult

logger = logging.getLogger(__name__)

ROW_TEXT_LIMIT = 200


@dataclass
class SessionRow:
    text: str
    date: str | None = None
    session_id: str | None = None
    href: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "session_id": self.session_id,
            "href": self.href,
            "text": self.text,
        }


@dataclass
class ReportsResult(StepResult):
    rows: list[SessionRow] = field(default_factory=list)
    session_links: list[dict[str, Any]] = field(default_factory=list)
    page_title: str | None = None
    page_url: str | None = None
    body_snippet: str | None = None


def parse_session_rows(raw_rows: list[dict[str, Any]], limit: int) -> list[SessionRow]:
    """Keep rows that carry a date-like substring or a session link.

    The date is matched on the full row text; only the kept text is clipped.
    Duplicate rows (nested containers repeating the same text) collapse to
    the first occurrence.
    """
    rows: list[SessionRow] = []
    seen: set[tuple[str | None, str | None]] = set()
    for raw in raw_rows:
        full_text = str(raw.get("text") or "")
        href = raw.get("href")
        date_match = selectors.DATE_TEXT.search(full_text)
        date = date_match.group(1) if date_match else None
        session_id = selectors.extract_remote_session_id(href)
        if not date and not session_id:
            continue
        text = full_text[:ROW_TEXT_LIMIT]
        key = (date, session_id) if session_id else (date, text)
        if key in seen:
            continue
        seen.add(key)
        rows.append(SessionRow(text=text, date=date, session_id=session_id, href=href))
        if len(rows) >= limit:
            break
    return rows


class ReportsFlow:
    """Scrape session rows from a player's page without changing anything."""

    def __init__(self, page: Page, *, dashboard_url: str, timing: FlowTiming | None = None) -> None:
        self._page = page
        self._base_url = dashboard_url.rstrip("/")
        self._timing = timing or FlowTiming()

    async def pull(self, remote_athlete_id: str) -> ReportsResult:
        page = self._page
        url = self._base_url + selectors.player_path(remote_athlete_id)
        logger.info("Pulling reports from %s", url)
        await page.navigate(url, self._timing.reports_extra_wait_ms)

        raw = await page.call(
            scripts.COLLECT_SESSION_ROWS,
            selectors.SESSION_ROWS,
            selectors.SESSION_LINKS,
            selectors.MAX_REPORT_ROWS,
        ) or {}

        rows = parse_session_rows(raw.get("rows") or [], selectors.MAX_REPORT_ROWS)
        links = list(raw.get("sessionLinks") or [])
        logger.info("Extracted %d session rows and %d session links", len(rows), len(links))

        common = {
            "session_links": links,
            "page_title": raw.get("title"),
            "page_url": raw.get("url"),
            "body_snippet": raw.get("bodySnippet"),
        }
        if not rows:
            message = "No session data found on player page"
            return ReportsResult(ok=False, message=message, error=ExtractionError(message), **common)
        return ReportsResult(ok=True, message=f"Extracted {len(rows)} sessions", rows=rows, **common)
