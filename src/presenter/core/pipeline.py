"""Presentation pipeline.

Assembles the response for a presented URL:

    Resolving -> Fetching -> PostProcessing -> Rendering -> Responded

Any failure moves the request to ErrorFallback, which renders a custom error
layout for the failure's status code, or a fixed page if that is unavailable.
The response status always comes from the original failure.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from presenter.core.context import RequestContext
from presenter.core.errors import PresenterError
from presenter.core.gateway import BackendGateway
from presenter.core.routing import ContentRouter
from presenter.core.templates import Layout, TemplateRenderer
from presenter.core.types import Resolution, Unmapped

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT_KEY = "default"

FALLBACK_PAGE = (
    "<!DOCTYPE html>"
    "<html>"
    "<head>"
    '<meta charset="utf-8">'
    "<title>Rendered by Deconst</title>"
    "</head>"
    "<body>"
    "<h1>Whoops</h1>"
    "<p>It looks like you asked for a page that we don't have!</p>"
    "</body>"
    "</html>"
)


class PipelineStage(Enum):
    """Stages a request moves through."""

    RESOLVING = "resolving"
    FETCHING = "fetching"
    POST_PROCESSING = "post_processing"
    RENDERING = "rendering"
    RESPONDED = "responded"
    ERROR_FALLBACK = "error_fallback"


@dataclass
class ContentDocument:
    """Content merged with its related results and layout, ready to render."""

    envelope: dict[str, Any]
    results: dict[str, Any]
    layout: Layout
    presented_url: str = ""
    has_next_or_previous: bool = False

    def template_data(self) -> dict[str, Any]:
        """Top-level variables for the layout."""
        return {
            "envelope": self.envelope,
            "results": self.results,
            "presented_url": self.presented_url,
            "has_next_or_previous": self.has_next_or_previous,
        }


@dataclass(frozen=True)
class PresentedPage:
    """Final pipeline output."""

    status: int
    body: str


class PresentationPipeline:
    """Resolves, fetches, and renders a page for a request."""

    def __init__(
        self,
        router: ContentRouter,
        gateway: BackendGateway,
        renderer: TemplateRenderer,
    ) -> None:
        self._router = router
        self._gateway = gateway
        self._renderer = renderer

    async def present(self, context: RequestContext) -> PresentedPage:
        """Produce the page for a request.

        Never raises PresenterError: failures become error pages.
        """
        presented = self._router.url_builder.presented_url(context)
        logger.debug(f"Handling presented URL [{presented}]")

        try:
            context.stage = PipelineStage.RESOLVING
            resolution = await self._resolve(context, presented)

            context.stage = PipelineStage.FETCHING
            content_doc = await self._gateway.get_content(context, resolution)
            if content_doc is None:
                content_doc = {}
            context.content = content_doc

            context.stage = PipelineStage.POST_PROCESSING
            document = await self._postprocess(context, presented, content_doc)

            context.stage = PipelineStage.RENDERING
            html = self._render(presented, document)
        except PresenterError as e:
            return await self._error_fallback(context, presented, e)

        context.stage = PipelineStage.RESPONDED
        return PresentedPage(status=200, body=html)

    async def _resolve(self, context: RequestContext, presented: str) -> Resolution:
        resolution = self._router.forward_resolve(context)
        if isinstance(resolution, Unmapped) and self._gateway.has_mapping_service:
            resolution = await self._gateway.get_mapping(context, presented)
        logger.debug(f"Resolved [{presented}] to [{resolution}]")
        return resolution

    async def _postprocess(
        self,
        context: RequestContext,
        presented: str,
        content_doc: dict[str, Any],
    ) -> ContentDocument:
        """Resolve related content and fetch the layout concurrently.

        The first failure propagates immediately; the other call is cancelled
        if it is still running.
        """
        related = asyncio.ensure_future(self._resolve_related(context, content_doc))
        layout = asyncio.ensure_future(self._fetch_layout(context, presented, content_doc))

        try:
            results, compiled = await asyncio.gather(related, layout)
        except BaseException:
            related.cancel()
            layout.cancel()
            raise

        return ContentDocument(
            envelope=_envelope(content_doc),
            results=results,
            layout=compiled,
        )

    async def _resolve_related(
        self,
        context: RequestContext,
        content_doc: dict[str, Any],
    ) -> dict[str, Any]:
        """Resolve query results embedded in the content document.

        Content documents carry no queries yet, so there is nothing to resolve.
        """
        return {}

    async def _fetch_layout(
        self,
        context: RequestContext,
        presented: str,
        content_doc: dict[str, Any],
    ) -> Layout:
        layout_key = _envelope(content_doc).get("layout_key") or DEFAULT_LAYOUT_KEY
        source = await self._gateway.get_layout(context, presented, layout_key)
        return self._renderer.compile(source, context, content=content_doc)

    def _render(self, presented: str, document: ContentDocument) -> str:
        envelope = document.envelope
        document.presented_url = presented
        document.has_next_or_previous = bool(envelope.get("next") or envelope.get("previous"))
        return document.layout.render(document.template_data())

    async def _error_fallback(
        self,
        context: RequestContext,
        presented: str,
        error: PresenterError,
    ) -> PresentedPage:
        failed_stage = context.stage
        context.stage = PipelineStage.ERROR_FALLBACK

        code = error.status_code or 500
        failed_at = failed_stage.value if failed_stage else "unknown"
        logger.info(f"{error.status_message}: [{code}] {error} (stage: {failed_at})")

        try:
            source = await self._gateway.get_error_layout(context, presented, code)
            body = self._renderer.compile(source, context).render()
        except PresenterError as layout_error:
            logger.error(
                f"Unable to retrieve custom error layout for HTTP status [{code}]: {layout_error}"
            )
            body = FALLBACK_PAGE

        return PresentedPage(status=code, body=body)


def _envelope(content_doc: dict[str, Any]) -> dict[str, Any]:
    envelope = content_doc.get("envelope")
    return envelope if isinstance(envelope, dict) else {}
