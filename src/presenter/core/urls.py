"""URL construction for presented pages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from presenter.core.context import RequestContext

if TYPE_CHECKING:
    from presenter.core.routing import ContentRouter


class UrlBuilder:
    """Builds absolute site URLs from presented paths.

    Outside staging mode the URL points at the mapped domain. In staging mode
    paths already carry their revision and domain segments, so URLs point at
    the host the request arrived on.
    """

    def __init__(self, *, proto: str = "https", staging_mode: bool = False) -> None:
        self._proto = proto
        self._staging_mode = staging_mode

    @property
    def proto(self) -> str:
        return self._proto

    def site_url(self, context: RequestContext, path: str, domain: str | None = None) -> str:
        """Build an absolute URL for a site path.

        Args:
            context: Current request context
            path: Site path starting with "/"
            domain: Target domain, defaults to the request's domain

        Returns:
            Absolute URL (e.g., "https://example.com/guide/intro/")
        """
        path = path if path.startswith("/") else f"/{path}"
        if self._staging_mode:
            host = context.request_host
        else:
            host = domain or context.host()
        return f"{self._proto}://{host}{path}"

    def presented_url(self, context: RequestContext) -> str:
        """Build the presented URL of the current request."""
        if self._staging_mode:
            return f"{self._proto}://{context.request_host}{context.request_path}"
        return f"{self._proto}://{context.host()}{context.presented_path()}"


class UrlHelper:
    """Request-bound URL helper exposed to templates as ``deconst.url``."""

    def __init__(
        self,
        builder: UrlBuilder,
        router: ContentRouter,
        context: RequestContext,
    ) -> None:
        self._builder = builder
        self._router = router
        self._context = context

    def site_url(self, path: str, domain: str | None = None) -> str:
        return self._builder.site_url(self._context, path, domain)

    def presented_url(self, content_id: str, cross_domain: bool = False) -> str | None:
        return self._router.get_presented_url(self._context, content_id, cross_domain)
