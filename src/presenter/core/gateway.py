"""HTTP gateway to the mapping, content, and layout services.

Every call builds its target URL from a configured base, issues a GET, and
classifies the response. Callers only ever see PresenterError subclasses:

- transport failures (refused, timeout, DNS) -> ServiceUnavailableError
- unreadable responses (bad encoding, redirect loops) -> UpstreamError 502
- non-success statuses -> UpstreamError with the parsed body
- search and control SHA treat 404 as an empty result

Each call records its duration on the request context.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from presenter.core.context import RequestContext
from presenter.core.errors import ServiceUnavailableError, UnmappedError, UpstreamError
from presenter.core.routing import ContentRouter
from presenter.core.types import (
    UNMAPPED,
    ContentID,
    EmptyEnvelope,
    MappedContent,
    Resolution,
    Unmapped,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 10


@dataclass
class SearchResults:
    """Search response with results filtered to presentable pages."""

    total: int
    pages: int
    results: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"total": self.total, "pages": self.pages, "results": self.results}


def empty_envelope() -> dict[str, Any]:
    """Content document served for null-base prefixes."""
    return {"envelope": {"title": "", "body": ""}}


def encode_segment(value: object) -> str:
    """Percent-encode a single URL path segment, including slashes."""
    return quote(str(value), safe="!~*'()")


def service_url(base: str, *segments: str) -> str:
    """Join a service base URL with already-encoded path segments."""
    return "/".join([base.rstrip("/"), *(segment.strip("/") for segment in segments)])


class BackendGateway:
    """Async client for the presenter's backend services."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        router: ContentRouter,
        content_service_url: str,
        layout_service_url: str,
        mapping_service_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize gateway.

        Args:
            client: Shared httpx AsyncClient
            router: Router used to locate presented URLs for search results
            content_service_url: Content service base URL
            layout_service_url: Layout service base URL
            mapping_service_url: Mapping service base URL, None to disable lookups
            timeout: Per-call timeout in seconds
        """
        self._client = client
        self._router = router
        self.content_service_url = content_service_url
        self.layout_service_url = layout_service_url
        self.mapping_service_url = mapping_service_url
        self._timeout = timeout

    @property
    def has_mapping_service(self) -> bool:
        return self.mapping_service_url is not None

    async def get_mapping(self, context: RequestContext, presented_url: str) -> Resolution:
        """Ask the mapping service which content ID is presented at a URL.

        Returns:
            MappedContent, or UNMAPPED if the service has no mapping (404)
            or no mapping service is configured

        Raises:
            UpstreamError: For any other non-success status
            ServiceUnavailableError: If the service cannot be reached
        """
        if self.mapping_service_url is None:
            return UNMAPPED

        url = service_url(self.mapping_service_url, "at", encode_segment(presented_url))
        logger.debug(f"Mapping service request: [{url}]")

        response = await self._get(context, url, "mapping_request")
        if response.status_code == 404:
            return UNMAPPED
        if not response.is_success:
            raise _upstream_error(
                response, f"No mapping found for presented URL [{presented_url}]"
            )

        content_id = self._json(response, url).get("content-id")
        if not isinstance(content_id, str):
            raise UpstreamError(502, response.text, f"Malformed mapping response from [{url}]")

        logger.debug(f"Mapping service response: success => [{content_id}]")
        return MappedContent(ContentID(content_id))

    async def get_content(
        self,
        context: RequestContext,
        resolution: Resolution,
        *,
        ignore_errors: bool = False,
    ) -> dict[str, Any] | None:
        """Fetch the content document for a resolution.

        UNMAPPED fails with a 404 and EMPTY_ENVELOPE returns an empty document,
        both without a network call.

        Args:
            context: Request context
            resolution: Result of forward resolution
            ignore_errors: Return None instead of failing when the service is unreachable

        Returns:
            Content document, or None for an ignored transport failure

        Raises:
            UnmappedError: If the resolution is UNMAPPED
            UpstreamError: If the service returns a non-success status
            ServiceUnavailableError: If the service cannot be reached
        """
        if isinstance(resolution, Unmapped):
            raise UnmappedError(context.presented_path())
        if isinstance(resolution, EmptyEnvelope):
            return empty_envelope()

        content_id = resolution.content_id
        url = service_url(self.content_service_url, "content", encode_segment(content_id))
        logger.debug(f"Content service request: [{url}]")

        try:
            response = await self._get(context, url, "content_request")
        except ServiceUnavailableError:
            if ignore_errors:
                logger.debug(f"Ignoring unreachable content service for [{content_id}]")
                return None
            raise

        if not response.is_success:
            raise _upstream_error(response, f"No content found for content ID [{content_id}]")

        document = self._json(response, url)
        logger.debug(
            f"Content service request: successful in {context.timings['content_request']}ms"
        )
        return document

    async def get_assets(self, context: RequestContext) -> dict[str, Any]:
        """Fetch the asset manifest."""
        url = service_url(self.content_service_url, "assets")
        logger.debug("Content service request: requesting assets")

        response = await self._get(context, url, "asset_request")
        if not response.is_success:
            raise _upstream_error(response, "Unable to fetch asset manifest")

        return self._json(response, url)

    async def search(
        self,
        context: RequestContext,
        query: str,
        *,
        page_number: int | None = None,
        per_page: int | None = None,
        categories: str | list[str] | None = None,
    ) -> SearchResults:
        """Run a full-text search.

        Results whose content IDs have no presented URL on the request's
        domain are dropped. A 404 from older content services is an empty
        result.

        Args:
            context: Request context
            query: Search terms
            page_number: 1-based results page
            per_page: Results per page (default 10 for the page count)
            categories: Category filter

        Returns:
            SearchResults with a ``url`` on each kept result
        """
        url = service_url(self.content_service_url, "search")
        params: dict[str, Any] = {"q": query}
        if page_number is not None:
            params["pageNumber"] = page_number
        if per_page is not None:
            params["perPage"] = per_page
        if categories is not None:
            params["categories"] = categories

        logger.debug(f"Content service request: performing search [{url}] {params}")

        response = await self._get(context, url, "search_request", params=params)
        if response.status_code == 404:
            return SearchResults(total=0, pages=0, results=[])
        if not response.is_success:
            raise _upstream_error(response, "Search request failed")

        document = self._json(response, url)
        raw_results = document.get("results") or []
        try:
            total = int(document.get("total") or 0)
        except (TypeError, ValueError) as e:
            raise UpstreamError(502, response.text, f"Invalid search total from [{url}]") from e
        if not isinstance(raw_results, list) or not all(
            isinstance(each, dict) for each in raw_results
        ):
            raise UpstreamError(502, response.text, f"Invalid search results from [{url}]")

        logger.debug(f"Content service request: search returned {len(raw_results)} result(s)")

        results = []
        for each in raw_results:
            presented = self._router.get_presented_url(context, str(each.get("contentID", "")))
            if presented is None:
                continue
            results.append({**each, "url": presented})

        pages = math.ceil(total / (per_page or DEFAULT_PER_PAGE))
        return SearchResults(total=total, pages=pages, results=results)

    async def get_control_sha(self, context: RequestContext) -> str | None:
        """Fetch the SHA of the deployed control repository.

        Returns:
            SHA string, or None if the service doesn't report one
        """
        url = service_url(self.content_service_url, "control")
        logger.debug(f"Content service request: control repository SHA [{url}]")

        response = await self._get(context, url, "control_sha_request")
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise _upstream_error(response, "Unable to fetch control repository SHA")

        return self._json(response, url).get("sha")

    async def get_layout(
        self,
        context: RequestContext,
        presented_url: str,
        layout_key: str,
    ) -> str:
        """Fetch the layout template source for a presented URL."""
        url = service_url(
            self.layout_service_url,
            encode_segment(presented_url),
            encode_segment(layout_key),
        )
        logger.debug(f"Layout service request: [{url}]")

        response = await self._get(context, url, "layout_request")
        if not response.is_success:
            raise _upstream_error(
                response, f"No layout found for presented URL [{presented_url}]"
            )
        return response.text

    async def get_error_layout(
        self,
        context: RequestContext,
        presented_url: str,
        status_code: int,
    ) -> str:
        """Fetch the custom error page template for a status code."""
        url = service_url(
            self.layout_service_url,
            "error",
            encode_segment(presented_url),
            str(status_code),
        )
        logger.debug(f"Error layout page request: [{url}]")

        response = await self._get(context, url, "error_layout_request")
        if not response.is_success:
            raise _upstream_error(response, f"No error layout page for url [{url}]")
        return response.text

    async def _get(
        self,
        context: RequestContext,
        url: str,
        timing: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        try:
            return await self._client.get(url, params=params, timeout=self._timeout)
        except httpx.TransportError as e:
            raise ServiceUnavailableError(url, e) from e
        except httpx.RequestError as e:
            # Reached the service but could not read its response (e.g. bad encoding)
            raise UpstreamError(502, str(e), f"Unreadable response from [{url}]") from e
        finally:
            context.record_timing(timing, time.perf_counter() - start)

    def _json(self, response: httpx.Response, url: str) -> dict[str, Any]:
        try:
            document = response.json()
        except ValueError as e:
            raise UpstreamError(502, response.text, f"Invalid JSON from [{url}]") from e
        if not isinstance(document, dict):
            raise UpstreamError(502, response.text, f"Unexpected JSON document from [{url}]")
        return document


def _upstream_error(response: httpx.Response, message: str) -> UpstreamError:
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text or "Empty response"
    return UpstreamError(response.status_code, body, message)
