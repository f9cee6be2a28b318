"""aiohttp server for the presenter.

Application factory and route registration.
"""

import logging

import httpx
from aiohttp import web

from presenter.api.control import create_control_routes
from presenter.api.pages import create_pages_routes
from presenter.api.search import create_search_routes
from presenter.app_keys import (
    config_key,
    gateway_key,
    http_client_key,
    pipeline_key,
    reloader_key,
    router_key,
)
from presenter.config import Config
from presenter.core.gateway import BackendGateway
from presenter.core.pipeline import PresentationPipeline
from presenter.core.routing import ContentRouter, RoutingTable
from presenter.core.templates import TemplateRenderer
from presenter.core.urls import UrlBuilder
from presenter.live.reload import RoutingReloader
from presenter.proxies import ProxyDispatcher

logger = logging.getLogger(__name__)


def create_app(
    config: Config,
    *,
    routing_table: RoutingTable | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        routing_table: Initial routing table; loaded from routing.content_map if None
        http_client: Client for backend and proxy calls; one is created (and
            closed on cleanup) if None

    Returns:
        Configured aiohttp application

    Raises:
        FileNotFoundError: If the configured routing file doesn't exist
        ValueError: If the routing file is invalid
    """
    staging_mode = config.presenter.staging_mode
    router = ContentRouter(
        staging_mode=staging_mode,
        url_builder=UrlBuilder(
            proto=config.presenter.presented_url_proto,
            staging_mode=staging_mode,
        ),
    )

    reloader = None
    if config.routing.content_map is not None:
        reloader = RoutingReloader(config.routing.content_map, router)

    if routing_table is not None:
        router.reload(routing_table)
    elif reloader is not None:
        reloader.reload()

    owns_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=config.services.timeout)

    gateway = BackendGateway(
        http_client,
        router=router,
        content_service_url=config.services.content_service_url,
        layout_service_url=config.services.layout_service_url,
        mapping_service_url=config.services.mapping_service_url,
        timeout=config.services.timeout,
    )
    pipeline = PresentationPipeline(router, gateway, TemplateRenderer(router))
    dispatcher = ProxyDispatcher(
        router,
        http_client,
        presented_url_domain=config.presenter.presented_url_domain,
    )

    app = web.Application(middlewares=[dispatcher.middleware])

    app[config_key] = config
    app[router_key] = router
    app[gateway_key] = gateway
    app[pipeline_key] = pipeline
    app[http_client_key] = http_client

    # Control routes (must be registered first to take precedence over presented pages)
    app.router.add_routes(create_control_routes())
    app.router.add_routes(create_search_routes())

    if reloader is not None:
        app[reloader_key] = reloader
        if config.routing.watch:
            app.on_startup.append(_start_routing_watch)
            app.on_cleanup.append(_stop_routing_watch)

    if owns_client:
        app.on_cleanup.append(_close_http_client)

    # Presented pages - must be last to catch all remaining routes
    app.router.add_routes(create_pages_routes())

    return app


async def _start_routing_watch(app: web.Application) -> None:
    """Start watching the routing file on application startup."""
    await app[reloader_key].start()


async def _stop_routing_watch(app: web.Application) -> None:
    """Stop watching the routing file on application cleanup."""
    await app[reloader_key].stop()


async def _close_http_client(app: web.Application) -> None:
    """Close the backend client on application cleanup."""
    await app[http_client_key].aclose()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(app, host=config.server.host, port=config.server.port)
