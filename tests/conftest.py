"""Shared test fixtures."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from presenter.config import Config, PresenterConfig, ServicesConfig
from presenter.core.gateway import encode_segment, service_url
from presenter.core.routing import RoutingTable

CONTENT_URL = "http://content.test"
LAYOUT_URL = "http://layout.test"
MAPPING_URL = "http://mapping.test"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]

ROUTES: dict[str, Any] = {
    "example.com": {
        "content": {
            "/guide": "proj/guide",
            "/docs": "projA",
            "/docs/v2": "projB",
            "/empty": None,
        },
        "proxy": {
            "/api": "http://upstream.test/v1",
        },
    },
    "other.example.com": {
        "content": {
            "/": "proj/guide",
        },
    },
}


class FakeBackend:
    """In-memory stand-in for the backend services.

    Routes are keyed by URL without the query string. Unregistered URLs
    answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, handler: Handler) -> None:
        self._routes[url] = handler

    def respond(self, url: str, status: int = 200, **kwargs: Any) -> None:
        self.add(url, lambda request: httpx.Response(status, **kwargs))

    def content(self, content_id: str, status: int = 200, **kwargs: Any) -> None:
        self.respond(
            service_url(CONTENT_URL, "content", encode_segment(content_id)), status, **kwargs
        )

    def layout(self, presented_url: str, layout_key: str, source: str, status: int = 200) -> None:
        self.respond(
            service_url(LAYOUT_URL, encode_segment(presented_url), encode_segment(layout_key)),
            status,
            text=source,
        )

    def error_layout(self, presented_url: str, code: int, source: str, status: int = 200) -> None:
        self.respond(
            service_url(LAYOUT_URL, "error", encode_segment(presented_url), str(code)),
            status,
            text=source,
        )

    def mapping(self, presented_url: str, status: int = 200, **kwargs: Any) -> None:
        self.respond(service_url(MAPPING_URL, "at", encode_segment(presented_url)), status, **kwargs)

    def urls(self) -> list[str]:
        return [_route_key(request.url) for request in self.requests]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(_route_key(request.url))
        if handler is None:
            return httpx.Response(404, text="Not found")
        response = handler(request)
        if isinstance(response, httpx.Response):
            return response
        return await response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


def _route_key(url: httpx.URL) -> str:
    raw_path = url.raw_path.decode("ascii").split("?", 1)[0]
    return f"{url.scheme}://{url.host}{raw_path}"


@pytest.fixture
def routing_table() -> RoutingTable:
    return RoutingTable.from_dict(ROUTES)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Create a test configuration pointing at the fake backend.

    Presented URLs use example.com regardless of the test client's host.
    """
    return Config(
        services=ServicesConfig(
            content_service_url=CONTENT_URL,
            layout_service_url=LAYOUT_URL,
            mapping_service_url=None,
            timeout=5.0,
        ),
        presenter=PresenterConfig(presented_url_domain="example.com"),
    )
