"""Tests for request contexts."""

from presenter.core.context import RequestContext


class TestCreate:
    """Tests for RequestContext.create()."""

    def test__regular_mode__uses_host_and_path(self) -> None:
        """Outside staging the request host is the domain."""
        context = RequestContext.create("example.com", "/guide/intro")

        assert context.host() == "example.com"
        assert context.presented_path() == "/guide/intro"
        assert context.revision_id is None

    def test__missing_leading_slash__is_added(self) -> None:
        """Presented paths always start with a slash."""
        context = RequestContext.create("example.com", "guide")

        assert context.presented_path() == "/guide"

    def test__staging_mode__splits_revision_and_domain(self) -> None:
        """Staging paths carry revision and domain segments."""
        context = RequestContext.create(
            "staging.test", "/build-42/example.com/guide/intro", staging=True
        )

        assert context.revision_id == "build-42"
        assert context.host() == "example.com"
        assert context.presented_path() == "/guide/intro"
        assert context.request_host == "staging.test"

    def test__staging_site_root__is_slash(self) -> None:
        """A staging path ending at the domain presents the root."""
        context = RequestContext.create("staging.test", "/build-42/example.com", staging=True)

        assert context.host() == "example.com"
        assert context.presented_path() == "/"

    def test__short_staging_path__keeps_request_host(self) -> None:
        """Staging paths without a domain segment have no revision."""
        context = RequestContext.create("staging.test", "/build-42", staging=True)

        assert context.revision_id is None
        assert context.host() == "staging.test"
        assert context.presented_path() == "/build-42"


class TestRecordTiming:
    """Tests for RequestContext.record_timing()."""

    def test__seconds__stored_as_milliseconds(self) -> None:
        """Durations are recorded in milliseconds."""
        context = RequestContext.create("example.com", "/")

        context.record_timing("content_request", 0.25)

        assert context.timings == {"content_request": 250.0}
