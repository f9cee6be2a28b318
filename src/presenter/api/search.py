"""Search API endpoint."""

from aiohttp import web

from presenter.api import api_context
from presenter.app_keys import gateway_key
from presenter.core.errors import PresenterError


def create_search_routes() -> list[web.RouteDef]:
    return [web.get("/_api/search", get_search)]


async def get_search(request: web.Request) -> web.Response:
    gateway = request.app[gateway_key]

    query = request.query.get("q", "")
    try:
        page_number = _optional_int(request, "pageNumber")
        per_page = _optional_int(request, "perPage")
    except ValueError as e:
        return web.json_response({"error": str(e)}, status=400)

    categories = request.query.getall("categories", None)

    context = api_context(request)
    try:
        results = await gateway.search(
            context,
            query,
            page_number=page_number,
            per_page=per_page,
            categories=categories,
        )
    except PresenterError as e:
        return web.json_response({"error": str(e)}, status=e.status_code)

    return web.json_response(results.to_dict())


def _optional_int(request: web.Request, name: str) -> int | None:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None
    if value < 1:
        raise ValueError(f"{name} must be positive")
    return value
