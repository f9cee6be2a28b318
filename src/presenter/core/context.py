"""Per-request context.

A RequestContext is created when a request enters the presenter and dropped
when its response completes. Pipeline stages and backend calls write their
scratch data (timings, fetched documents, current stage) onto it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from aiohttp import web

from presenter.core.types import URLPath

if TYPE_CHECKING:
    from presenter.core.pipeline import PipelineStage


@dataclass
class RequestContext:
    """State owned by a single request.

    Attributes:
        request_host: Host the request arrived on (after any presented-host override)
        request_path: Raw request path
        domain: Site domain used for routing
        path: Presented path within the site, always starting with "/"
        revision_id: Revision being served in staging mode
    """

    request_host: str
    request_path: str
    domain: str
    path: URLPath
    revision_id: str | None = None
    staging: bool = False
    request: web.Request | None = None
    timings: dict[str, float] = field(default_factory=dict)
    stage: PipelineStage | None = None
    content: dict[str, Any] | None = None

    @classmethod
    def create(
        cls,
        host: str,
        path: str,
        *,
        staging: bool = False,
        request: web.Request | None = None,
    ) -> RequestContext:
        """Build a context from a host and request path.

        In staging mode the path is expected to look like
        ``/<revision>/<domain>/<rest>``; the revision and domain are split off
        and the remainder becomes the presented path. Shorter staging paths fall
        back to the request host with no revision.
        """
        path = path if path.startswith("/") else f"/{path}"
        if not staging:
            return cls(
                request_host=host,
                request_path=path,
                domain=host,
                path=URLPath(path),
                request=request,
            )

        parts = path.split("/", 3)
        # ["", revision, domain, rest...]
        if len(parts) < 3 or not parts[1] or not parts[2]:
            return cls(
                request_host=host,
                request_path=path,
                domain=host,
                path=URLPath(path),
                staging=True,
                request=request,
            )

        rest = parts[3] if len(parts) > 3 else ""
        return cls(
            request_host=host,
            request_path=path,
            domain=parts[2],
            path=URLPath(f"/{rest}"),
            revision_id=parts[1],
            staging=True,
            request=request,
        )

    @classmethod
    def from_request(
        cls,
        request: web.Request,
        *,
        presented_url_domain: str | None = None,
        staging: bool = False,
    ) -> RequestContext:
        """Build a context for an aiohttp request.

        The configured presented domain takes precedence over the Host header.
        """
        host = presented_url_domain or request.url.host or ""
        return cls.create(host, request.path, staging=staging, request=request)

    def host(self) -> str:
        """Domain used to select the routing table entry."""
        return self.domain

    def presented_path(self) -> URLPath:
        """Path within the site, starting with "/"."""
        return self.path

    def record_timing(self, name: str, seconds: float) -> None:
        """Store a duration measurement in milliseconds."""
        self.timings[name] = round(seconds * 1000, 3)
