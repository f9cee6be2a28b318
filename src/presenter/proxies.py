"""Proxy dispatch for domains with proxy routes.

Requests on a domain whose path starts with a configured proxy prefix are
streamed to the upstream and the upstream's response is streamed back,
bypassing the presentation pipeline.
"""

import logging

import httpx
from aiohttp import web
from aiohttp.typedefs import Handler

from presenter.core.routing import ContentRouter

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Recomputed by the transport for the outgoing request
_REQUEST_EXCLUDED_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}

_BUFFERED_EXCLUDED_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}


class ProxyDispatcher:
    """Forwards proxied paths to their upstreams."""

    def __init__(
        self,
        router: ContentRouter,
        client: httpx.AsyncClient,
        *,
        presented_url_domain: str | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            router: Router owning the current proxy table
            client: httpx AsyncClient used for upstream requests
            presented_url_domain: Host override, matched instead of the Host header
        """
        self._router = router
        self._client = client
        self._presented_url_domain = presented_url_domain

    def match(self, host: str, path: str) -> tuple[str, str] | None:
        """Find the proxy route for a request.

        Args:
            host: Request domain
            path: Request path

        Returns:
            (prefix, upstream) for the longest matching prefix, or None
        """
        domain = self._router.table.get(host)
        if domain is None or not domain.proxy:
            return None

        matches = [prefix for prefix in domain.proxy if path.startswith(prefix)]
        if not matches:
            return None

        prefix = max(matches, key=lambda p: (len(p), p))
        return prefix, domain.proxy[prefix]

    @web.middleware
    async def middleware(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        host = self._presented_url_domain or request.url.host or ""
        route = self.match(host, request.path)
        if route is None:
            return await handler(request)

        prefix, upstream = route
        suffix = request.raw_path[len(prefix) :]
        return await self.forward(request, upstream + suffix)

    async def forward(self, request: web.Request, url: str) -> web.StreamResponse:
        """Stream a request to an upstream URL and stream its response back."""
        logger.debug(f"Proxy request: [{url}]")

        headers = [
            (name, value)
            for name, value in request.headers.items()
            if name.lower() not in _REQUEST_EXCLUDED_HEADERS
        ]
        body = request.content.iter_any() if request.can_read_body else None

        upstream_request = self._client.build_request(
            request.method,
            url,
            headers=headers,
            content=body,
        )
        try:
            upstream = await self._client.send(upstream_request, stream=True)
        except httpx.RequestError as e:
            logger.error(f"Proxy upstream [{url}] unreachable: {type(e).__name__}")
            raise web.HTTPBadGateway(text=f"Unable to reach upstream for {request.path}") from e

        try:
            # Transports may hand back an already read body; only its decoded
            # form is left, so the encoding headers no longer describe it.
            buffered = upstream.is_stream_consumed
            excluded = _BUFFERED_EXCLUDED_HEADERS if buffered else HOP_BY_HOP_HEADERS

            response = web.StreamResponse(
                status=upstream.status_code,
                reason=upstream.reason_phrase or None,
            )
            for name, value in upstream.headers.multi_items():
                if name.lower() not in excluded:
                    response.headers.add(name, value)

            if buffered:
                content = upstream.content
                response.content_length = len(content)
                await response.prepare(request)
                await response.write(content)
            else:
                await response.prepare(request)
                async for chunk in upstream.aiter_raw():
                    await response.write(chunk)
            await response.write_eof()
        finally:
            await upstream.aclose()

        return response
