"""Dashboard selector catalogue.

Each tuple is an ordered fallback chain: the first candidate that matches
wins. Paths are relative to the dashboard base URL.
"""

import re

LOGIN_PATH = "/login"
ATHLETES_PATH = "/athletes"
NEW_ATHLETE_PATH = "/athletes/new"


def upload_path(remote_athlete_id: str) -> str:
    return f"/athlete/{remote_athlete_id}/upload"


def session_path(remote_session_id: str) -> str:
    return f"/session/{remote_session_id}"


def player_path(remote_athlete_id: str) -> str:
    return f"/player/{remote_athlete_id}"


# Login
EMAIL_INPUTS = ('input[type="email"]', 'input[name="email"]', 'input[placeholder*="email"]')
PASSWORD_INPUTS = ('input[type="password"]',)
SUBMIT_BUTTONS = ('button[type="submit"]', "button:last-of-type")

# Athletes
ATHLETES_LIST = '[data-testid="athletes-list"], .athletes-list, table'
SEARCH_INPUTS = (
    'input[type="search"]',
    'input[placeholder*="search"]',
    'input[placeholder*="Search"]',
)
ATHLETE_LINKS = 'a[href*="/athlete/"], a[href*="/player/"]'
NAME_INPUTS = ('input[name="name"]', 'input[placeholder*="name"]', 'input[id*="name"]')
CREATE_EMAIL_INPUTS = ('input[name="email"]', 'input[type="email"]')
CREATE_BUTTON_TEXTS = ("create", "save", "add")

# Upload
UPLOAD_AREA = 'input[type="file"], .dropzone, [data-testid="upload-area"]'
FILE_INPUT = 'input[type="file"]'
UPLOAD_COMPLETE = '.upload-complete, .success, [data-status="complete"]'
UPLOAD_FILENAME = "swing.mp4"
UPLOAD_MIME_TYPE = "video/mp4"

# Processing and export
SESSION_STATUS = ('[data-testid="session-status"]', ".session-status")
EXPORT_BUTTONS = ('a[href*="export"]', '[data-testid="export-button"]')
EXPORT_BUTTON_TEXTS = ("export", "download")
EXPORT_OPTIONS = '.export-options, .download-options, [data-testid="export-modal"]'
CSV_OPTIONS = ('input[value="csv"]', '[data-format="csv"]')
CSV_OPTION_TEXTS = ("csv",)
DOWNLOAD_LINKS = ("a[download]", 'a[href*=".csv"]')

# Reports
SESSION_ROWS = 'tr, [class*="session"], [class*="Session"], li'
SESSION_LINKS = 'a[href*="/session/"]'
MAX_REPORT_ROWS = 30

REMOTE_ATHLETE_ID = re.compile(r"/(?:athlete|player)/([a-f0-9-]+)", re.IGNORECASE)
REMOTE_SESSION_ID = re.compile(r"/session/([a-f0-9-]+)", re.IGNORECASE)
DATE_TEXT = re.compile(
    r"(\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2}|[A-Z][a-z]{2,8} \d{1,2},? \d{4})"
)


def extract_remote_athlete_id(href: str | None) -> str | None:
    if not href:
        return None
    match = REMOTE_ATHLETE_ID.search(href)
    return match.group(1) if match else None


def extract_remote_session_id(href: str | None) -> str | None:
    if not href:
        return None
    match = REMOTE_SESSION_ID.search(href)
    return match.group(1) if match else None
