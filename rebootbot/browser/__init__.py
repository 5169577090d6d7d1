"""Remote browser layer: provider sessions, protocol transport, page primitives."""

from rebootbot.browser.errors import (
    AuthenticationError,
    AutomationError,
    ConfigurationError,
    ElementNotFoundError,
    EvaluationError,
    ExtractionError,
    InvalidRequestError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    ProtocolError,
    ProvisioningError,
    ResolutionError,
    TransportClosedError,
    TransportError,
    TransportTimeoutError,
    UploadError,
)
from rebootbot.browser.page import Page
from rebootbot.browser.provisioner import BrowserProfile, SessionProvisioner
from rebootbot.browser.transport import CdpTransport, ProtocolCommand

__all__ = [
    "AuthenticationError",
    "AutomationError",
    "BrowserProfile",
    "CdpTransport",
    "ConfigurationError",
    "ElementNotFoundError",
    "EvaluationError",
    "ExtractionError",
    "InvalidRequestError",
    "Page",
    "ProcessingFailedError",
    "ProcessingTimeoutError",
    "ProtocolCommand",
    "ProtocolError",
    "ProvisioningError",
    "ResolutionError",
    "SessionProvisioner",
    "TransportClosedError",
    "TransportError",
    "TransportTimeoutError",
    "UploadError",
]
