"""Presented page endpoint.

Every path not claimed by another route is presented through the pipeline.
"""

import logging

from aiohttp import web

from presenter.app_keys import config_key, pipeline_key
from presenter.core.context import RequestContext

logger = logging.getLogger(__name__)


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/{path:.*}", present_page),
    ]


async def present_page(request: web.Request) -> web.Response:
    config = request.app[config_key]
    pipeline = request.app[pipeline_key]

    context = RequestContext.from_request(
        request,
        presented_url_domain=config.presenter.presented_url_domain,
        staging=config.presenter.staging_mode,
    )
    page = await pipeline.present(context)

    logger.debug(
        f"{request.method} {request.path} -> {page.status} "
        f"(stage: {context.stage.value if context.stage else 'none'}, timings: {context.timings})"
    )

    return web.Response(
        text=page.body,
        status=page.status,
        content_type="text/html",
        charset="utf-8",
    )
