"""Application keys for type-safe app configuration access."""

import httpx
from aiohttp import web

from presenter.config import Config
from presenter.core.gateway import BackendGateway
from presenter.core.pipeline import PresentationPipeline
from presenter.core.routing import ContentRouter
from presenter.live.reload import RoutingReloader

config_key = web.AppKey("config", Config)
router_key = web.AppKey("router", ContentRouter)
gateway_key = web.AppKey("gateway", BackendGateway)
pipeline_key = web.AppKey("pipeline", PresentationPipeline)
http_client_key = web.AppKey("http_client", httpx.AsyncClient)
reloader_key = web.AppKey("routing_reloader", RoutingReloader)
