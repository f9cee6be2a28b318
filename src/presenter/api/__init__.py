"""HTTP endpoints."""

from aiohttp import web

from presenter.app_keys import config_key
from presenter.core.context import RequestContext


def api_context(request: web.Request) -> RequestContext:
    """Context for auxiliary endpoints, rooted at the request's domain."""
    config = request.app[config_key]
    host = config.presenter.presented_url_domain or request.url.host or ""
    return RequestContext.create(host, "/", request=request)
