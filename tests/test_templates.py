"""Tests for layout rendering."""

import pytest
from presenter.core.context import RequestContext
from presenter.core.errors import ErrorKind, RenderError
from presenter.core.routing import ContentRouter, RoutingTable
from presenter.core.templates import TemplateRenderer


@pytest.fixture
def renderer(routing_table: RoutingTable) -> TemplateRenderer:
    return TemplateRenderer(ContentRouter(routing_table), environ={"SITE_NAME": "Example"})


@pytest.fixture
def context() -> RequestContext:
    return RequestContext.create("example.com", "/guide/intro")


class TestCompile:
    """Tests for TemplateRenderer.compile()."""

    def test__data__renders_at_top_level(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Document fields are top-level template variables."""
        layout = renderer.compile("<h1>{{ envelope.title }}</h1>", context)

        assert layout.render({"envelope": {"title": "Intro"}}) == "<h1>Intro</h1>"

    def test__html__is_not_escaped(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Content bodies are trusted HTML."""
        layout = renderer.compile("{{ envelope.body }}", context)

        assert layout.render({"envelope": {"body": "<p>Hi</p>"}}) == "<p>Hi</p>"

    def test__namespace__exposes_environment_and_staging(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """deconst.env and deconst.is_staging are available."""
        layout = renderer.compile("{{ deconst.env.SITE_NAME }}:{{ deconst.is_staging }}", context)

        assert layout.render() == "Example:False"

    def test__namespace__exposes_content_assets_and_addenda(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Content, assets, and addenda are reachable under deconst."""
        layout = renderer.compile(
            "{{ deconst.content.envelope.title }}|{{ deconst.assets['site.css'] }}|"
            "{{ deconst.content.assets['site.css'] }}|{{ deconst.addenda.banner }}",
            context,
            content={"envelope": {"title": "Intro"}},
            assets={"site.css": "/a/site.css"},
            addenda={"banner": "Hello"},
        )

        assert layout.render() == "Intro|/a/site.css|/a/site.css|Hello"

    def test__url_helper__builds_urls(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """deconst.url builds site URLs and presented URLs."""
        layout = renderer.compile(
            "{{ deconst.url.site_url('/about/') }}|{{ deconst.url.presented_url('proj/guide/x') }}",
            context,
        )

        assert layout.render() == "https://example.com/about/|https://example.com/guide/x/"

    def test__missing_values__render_empty(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Undefined lookups render as empty strings."""
        layout = renderer.compile("[{{ envelope.missing.deeper }}]", context)

        assert layout.render({"envelope": {}}) == "[]"

    def test__syntax_error__raises_render_error(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Invalid templates fail at compile time."""
        with pytest.raises(RenderError) as excinfo:
            renderer.compile("{% for %}", context)

        assert excinfo.value.kind is ErrorKind.RENDER
        assert excinfo.value.status_code == 500

    def test__runtime_error__raises_render_error(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Failures while rendering become RenderError."""
        layout = renderer.compile("{{ 1 // 0 }}", context)

        with pytest.raises(RenderError):
            layout.render()

    def test__render__records_timing(
        self, renderer: TemplateRenderer, context: RequestContext
    ) -> None:
        """Render duration is recorded on the context."""
        renderer.compile("x", context).render()

        assert "template_render" in context.timings
