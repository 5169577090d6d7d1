"""Redaction helpers that keep credentials and PII out of logs.

Targets what this service actually handles: dashboard login credentials,
provider API keys, functions service keys (JWTs), and signed transport
endpoints. Structure of dicts/lists is preserved; large values are truncated.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_REPLACEMENT = "[REDACTED]"
_TRUNC_SUFFIX = "…(truncated)"

_SECRET_KEY_RE = re.compile(
    r"(^|_|-)(password|passwd|pwd|secret|token|api[_-]?key|service[_-]?key|"
    r"signing[_-]?key|authorization|connect[_-]?url)($|_|-)",
    flags=re.IGNORECASE,
)

_SENSITIVE_VALUE_RES: list[re.Pattern[str]] = [
    # Emails
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    # Bearer tokens
    re.compile(r"\bBearer\s+[A-Za-z0-9._\-]+", flags=re.IGNORECASE),
    # JWTs (service role keys)
    re.compile(r"\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"),
    # Provider API keys
    re.compile(r"\bbb_(?:live|test)_[A-Za-z0-9_\-]{8,}\b"),
    # Signed endpoint query parameters
    re.compile(r"(?:signingKey|apiKey|token)=[^&\s\"']+", flags=re.IGNORECASE),
    # Generic 'key=value' patterns
    re.compile(r"\b(?:password|passwd|pwd)\s*[:=]\s*\S+", flags=re.IGNORECASE),
    re.compile(r"\b(?:api[_-]?key|apikey|x-bb-api-key)\s*[:=]\s*\S+", flags=re.IGNORECASE),
    re.compile(r"\b(?:secret|service[_-]?key)\s*[:=]\s*\S+", flags=re.IGNORECASE),
]


def _looks_sensitive_key(key: str) -> bool:
    return bool(_SECRET_KEY_RE.search(key))


def redact_text(text: str, *, max_chars: int = 4000) -> str:
    """Redact sensitive substrings in a text blob and truncate."""
    if text is None:
        return text

    out = text
    for rx in _SENSITIVE_VALUE_RES:
        out = rx.sub(_REPLACEMENT, out)

    if max_chars and len(out) > max_chars:
        out = out[:max_chars] + _TRUNC_SUFFIX
    return out


def sanitize(obj: Any, *, max_depth: int = 6, max_chars: int = 4000) -> Any:
    """Sanitize an object for logging.

    - Dict keys that look like secrets are redacted.
    - String values are scanned for sensitive substrings.
    - Deep structures are truncated by depth.
    """
    if max_depth <= 0:
        return "…"

    if obj is None or isinstance(obj, (int, float, bool)):
        return obj

    if isinstance(obj, bytes):
        return f"<bytes:{len(obj)}>"

    if isinstance(obj, str):
        return redact_text(obj, max_chars=max_chars)

    if isinstance(obj, Mapping):
        out: dict[str, Any] = {}
        for key, value in obj.items():
            name = str(key)
            if _looks_sensitive_key(name):
                out[name] = _REPLACEMENT
            else:
                out[name] = sanitize(value, max_depth=max_depth - 1, max_chars=max_chars)
        return out

    if isinstance(obj, Sequence):
        items = list(obj)
        if len(items) > 50:
            items = items[:50]
            items.append("…")
        return [sanitize(v, max_depth=max_depth - 1, max_chars=max_chars) for v in items]

    return redact_text(str(obj), max_chars=max_chars)
