"""Exception taxonomy for the browser automation engine.

Transport and provisioning errors are raised. The flow-level kinds are
normally returned as values on step results (``StepResult.error``) and only
raised by callers that want exception-style control flow.
"""

from __future__ import annotations


class AutomationError(Exception):
    """Base class for every automation failure."""

    pass


class ProvisioningError(AutomationError):
    """Raised when the browser provider is unreachable or returns no endpoint.

    ``session_id`` is set when the provider did lease a session (already
    released again) so the caller can still surface its replay reference.
    """

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class TransportError(AutomationError):
    """Base class for protocol transport failures."""

    pass


class TransportTimeoutError(TransportError):
    """Raised when a command's correlated response never arrives."""

    def __init__(self, method: str, timeout: float) -> None:
        super().__init__(f"Protocol timeout after {timeout:g}s: {method}")
        self.method = method
        self.timeout = timeout


class TransportClosedError(TransportError):
    """Raised when the socket closes while commands are in flight."""

    pass


class ProtocolError(TransportError):
    """Raised when the browser answers a command with an error object."""

    def __init__(self, method: str, error: dict) -> None:
        message = error.get("message") if isinstance(error, dict) else None
        super().__init__(f"{method} failed: {message or error}")
        self.method = method
        self.error = error


class EvaluationError(TransportError):
    """Raised when a script throws inside the page.

    ``description`` is the page's own exception description.
    """

    def __init__(self, description: str) -> None:
        super().__init__(f"Eval: {description}")
        self.description = description


class ElementNotFoundError(EvaluationError):
    """Raised when a primitive targets a selector that matches nothing."""

    pass


class AuthenticationError(AutomationError):
    """Login form undetectable, or still on the login path after submit."""

    pass


class ResolutionError(AutomationError):
    """Player neither found nor creatable on the dashboard."""

    pass


class UploadError(AutomationError):
    """Upload interface missing or no completion marker within the bound."""

    pass


class ProcessingTimeoutError(AutomationError):
    """Status polling exhausted without a terminal status."""

    pass


class ProcessingFailedError(AutomationError):
    """The dashboard reported that processing failed."""

    pass


class ExtractionError(AutomationError):
    """Export or scrape produced no usable session data."""

    pass


class ConfigurationError(AutomationError):
    """Required settings (credentials, provider keys) are missing."""

    pass


class InvalidRequestError(AutomationError):
    """The request lacks what its action needs (player name, video URL...)."""

    pass
