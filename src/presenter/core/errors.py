"""Error taxonomy for content resolution and presentation.

Every failure reaching the presentation pipeline is one of the kinds below.
The backend gateway converts transport and HTTP failures before they leave it.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of failure kinds."""

    UNMAPPED = "unmapped"
    UPSTREAM = "upstream"
    SERVICE_UNAVAILABLE = "service_unavailable"
    RENDER = "render"


class PresenterError(Exception):
    """Base class for failures that map to an HTTP status."""

    kind: ErrorKind
    status_code: int = 500

    @property
    def status_message(self) -> str:
        """Short human message for the response status."""
        if self.status_code == 404:
            return "Required resource not found"
        return "Upstream server error"


class UnmappedError(PresenterError):
    """No routing entry covers the presented URL."""

    kind = ErrorKind.UNMAPPED
    status_code = 404

    def __init__(self, presented_url: str) -> None:
        super().__init__(f"Unable to locate content ID for [{presented_url}]")
        self.presented_url = presented_url


class UpstreamError(PresenterError):
    """A backend service answered with a non-success status.

    Attributes:
        status_code: Status returned by the backend
        body: Parsed JSON body when possible, raw text otherwise
    """

    kind = ErrorKind.UPSTREAM

    def __init__(self, status_code: int, body: Any, message: str | None = None) -> None:
        super().__init__(message or f"Upstream responded with status {status_code}")
        self.status_code = status_code
        self.body = body


class ServiceUnavailableError(PresenterError):
    """A backend service could not be reached."""

    kind = ErrorKind.SERVICE_UNAVAILABLE
    status_code = 503

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Unable to reach [{url}]: {type(cause).__name__}")
        self.url = url
        self.cause = cause


class RenderError(PresenterError):
    """A layout failed to compile or render."""

    kind = ErrorKind.RENDER
    status_code = 500
