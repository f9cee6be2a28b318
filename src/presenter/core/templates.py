"""Layout compilation and rendering.

Layouts arrive from the layout service as template source. They are compiled
per request and rendered with the document fields at the top level plus a
``deconst`` namespace:

    deconst.env         process environment
    deconst.content     content document being presented
    deconst.assets      asset manifest
    deconst.addenda     auxiliary documents
    deconst.url         URL helper (site_url, presented_url)
    deconst.context     request context
    deconst.request     aiohttp request, if any
    deconst.is_staging  staging mode flag
"""

import os
import time
from collections.abc import Mapping
from typing import Any

import jinja2

from presenter.core.context import RequestContext
from presenter.core.errors import RenderError
from presenter.core.routing import ContentRouter
from presenter.core.urls import UrlHelper


class Layout:
    """A compiled layout bound to one request."""

    def __init__(
        self,
        template: jinja2.Template,
        namespace: dict[str, Any],
        context: RequestContext,
    ) -> None:
        self._template = template
        self._namespace = namespace
        self._context = context

    def render(self, data: Mapping[str, Any] | None = None) -> str:
        """Render the layout.

        Args:
            data: Top-level template variables

        Returns:
            Rendered text

        Raises:
            RenderError: If the template fails while rendering
        """
        variables = dict(data or {})
        variables["deconst"] = self._namespace

        start = time.perf_counter()
        try:
            return self._template.render(variables)
        except Exception as e:
            raise RenderError(f"Unable to render layout: {e}") from e
        finally:
            self._context.record_timing("template_render", time.perf_counter() - start)


class TemplateRenderer:
    """Compiles layout sources into request-bound Layouts."""

    def __init__(
        self,
        router: ContentRouter,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize renderer.

        Args:
            router: Router backing ``deconst.url``
            environ: Variables exposed as ``deconst.env`` (default: os.environ)
        """
        self._router = router
        self._environ = environ if environ is not None else os.environ
        # Layouts and content bodies are trusted HTML from the backend services.
        self._env = jinja2.Environment(
            autoescape=False,
            undefined=jinja2.ChainableUndefined,
        )

    def compile(
        self,
        source: str,
        context: RequestContext,
        *,
        content: Mapping[str, Any] | None = None,
        assets: Mapping[str, Any] | None = None,
        addenda: Mapping[str, Any] | None = None,
    ) -> Layout:
        """Compile layout source for a request.

        Raises:
            RenderError: If the source is not a valid template
        """
        try:
            template = self._env.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            raise RenderError(f"Invalid layout template: {e}") from e

        return Layout(template, self._namespace(context, content, assets, addenda), context)

    def _namespace(
        self,
        context: RequestContext,
        content: Mapping[str, Any] | None,
        assets: Mapping[str, Any] | None,
        addenda: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        content_data = dict(content or {})
        if assets:
            # Older layouts read deconst.content.assets
            content_data["assets"] = assets

        return {
            "env": self._environ,
            "content": content_data,
            "assets": assets or {},
            "addenda": addenda or {},
            "url": UrlHelper(self._router.url_builder, self._router, context),
            "context": context,
            "request": context.request,
            "is_staging": self._router.staging_mode,
        }
