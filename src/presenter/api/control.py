"""Control API endpoints.

Reports deployment state and reloads the routing table.
"""

import logging

from aiohttp import web

from presenter.api import api_context
from presenter.app_keys import config_key, gateway_key, reloader_key, router_key
from presenter.core.errors import PresenterError

logger = logging.getLogger(__name__)


def create_control_routes() -> list[web.RouteDef]:
    return [
        web.get("/_api/control", get_control),
        web.get("/_api/assets", get_assets),
        web.post("/_api/reload", post_reload),
    ]


async def get_control(request: web.Request) -> web.Response:
    config = request.app[config_key]
    gateway = request.app[gateway_key]
    router = request.app[router_key]

    try:
        sha = await gateway.get_control_sha(api_context(request))
    except PresenterError as e:
        return web.json_response({"error": str(e)}, status=e.status_code)

    return web.json_response(
        {
            "sha": sha,
            "domains": sorted(router.table.domains),
            "staging": config.presenter.staging_mode,
        }
    )


async def get_assets(request: web.Request) -> web.Response:
    gateway = request.app[gateway_key]

    try:
        assets = await gateway.get_assets(api_context(request))
    except PresenterError as e:
        return web.json_response({"error": str(e)}, status=e.status_code)

    return web.json_response(assets)


async def post_reload(request: web.Request) -> web.Response:
    reloader = request.app.get(reloader_key)
    if reloader is None:
        return web.json_response({"error": "No routing file configured"}, status=409)

    try:
        table = reloader.reload()
    except FileNotFoundError:
        return web.json_response(
            {"error": "Routing file not found", "path": str(reloader.content_map)},
            status=404,
        )
    except ValueError as e:
        logger.error(f"Routing reload rejected: {e}")
        return web.json_response({"error": str(e)}, status=400)

    return web.json_response({"domains": sorted(table.domains)})
