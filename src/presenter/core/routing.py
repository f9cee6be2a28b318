"""Content routing between presented URLs and content IDs.

The routing table maps each domain to its content prefixes and proxy
prefixes. ContentRouter resolves in both directions over the current table:

- forward: presented path -> content ID (longest matching prefix wins)
- reverse: content ID -> every (domain, prefix) pair that presents it

The table is immutable. Reloading swaps the router's reference, so an
operation in flight keeps reading the table it started with.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from presenter.core import revision
from presenter.core.context import RequestContext
from presenter.core.types import (
    EMPTY_ENVELOPE,
    UNMAPPED,
    ContentID,
    MappedContent,
    Resolution,
)
from presenter.core.urls import UrlBuilder

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, str | None] = MappingProxyType({})


@dataclass(frozen=True)
class DomainConfig:
    """Routes defined for one domain.

    A content base of None marks a prefix that serves an empty document at
    its exact root.
    """

    content: Mapping[str, str | None] = field(default_factory=lambda: MappingProxyType({}))
    proxy: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ContentMapping:
    """A content ID translated back into presented URL space."""

    domain: str
    base_path: str
    base_content_id: str
    path: str


@dataclass(frozen=True)
class ProxyRoute:
    """Proxy prefixes configured for a site."""

    site: str
    proxy: Mapping[str, str]


class RoutingTable:
    """Immutable routing table keyed by domain."""

    __slots__ = ("_domains",)

    def __init__(self, domains: Mapping[str, DomainConfig] | None = None) -> None:
        self._domains: Mapping[str, DomainConfig] = MappingProxyType(dict(domains or {}))

    @classmethod
    def from_dict(cls, data: object) -> RoutingTable:
        """Build a table from its JSON-compatible representation.

        Args:
            data: ``{domain: {"content": {prefix: base|null}, "proxy": {prefix: url}}}``

        Returns:
            RoutingTable instance

        Raises:
            ValueError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Routing table must be a dictionary")

        domains: dict[str, DomainConfig] = {}
        for domain, section in data.items():
            if not isinstance(section, dict):
                raise ValueError(f"Routing entry for {domain!r} must be a dictionary")
            content = cls._parse_prefixes(domain, "content", section.get("content"), nullable=True)
            proxy = cls._parse_prefixes(domain, "proxy", section.get("proxy"), nullable=False)
            domains[domain] = DomainConfig(
                content=MappingProxyType(content),
                proxy=MappingProxyType(proxy),
            )
        return cls(domains)

    @classmethod
    def _parse_prefixes(
        cls,
        domain: str,
        name: str,
        data: object,
        *,
        nullable: bool,
    ) -> dict:
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{domain}.{name} must be a dictionary")

        prefixes: dict = {}
        for prefix, target in data.items():
            if not prefix.startswith("/"):
                raise ValueError(f"{domain}.{name} prefix must start with '/': {prefix!r}")
            if target is None and nullable:
                prefixes[prefix] = None
                continue
            if not isinstance(target, str):
                raise ValueError(f"{domain}.{name}[{prefix!r}] must be a string")
            prefixes[prefix] = target
        return prefixes

    @classmethod
    def load(cls, path: Path) -> RoutingTable:
        """Load a routing table from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid JSON or has an invalid structure
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid routing file {path}: {e}") from e
        return cls.from_dict(data)

    @property
    def domains(self) -> Mapping[str, DomainConfig]:
        return self._domains

    def get(self, domain: str) -> DomainConfig | None:
        return self._domains.get(domain)

    def __contains__(self, domain: object) -> bool:
        return domain in self._domains

    def __len__(self) -> int:
        return len(self._domains)


def slash_join(*parts: str) -> str:
    """Join path fragments with single slashes.

    Leading and trailing slashes are stripped from each fragment and empty
    fragments are dropped. The result has no leading or trailing slash.
    """
    stripped = (part.strip("/") for part in parts)
    return "/".join(part for part in stripped if part)


class ContentRouter:
    """Resolves between presented URLs and content IDs.

    Owns the current RoutingTable. Readers take a single reference to the
    table per operation; ``reload`` replaces that reference.
    """

    def __init__(
        self,
        table: RoutingTable | None = None,
        *,
        staging_mode: bool = False,
        url_builder: UrlBuilder | None = None,
    ) -> None:
        """Initialize router.

        Args:
            table: Initial routing table (empty if None)
            staging_mode: Apply revision segments to content IDs and paths
            url_builder: Builds presented URLs from reverse mappings
        """
        self._table = table if table is not None else RoutingTable()
        self._staging_mode = staging_mode
        self._url_builder = url_builder or UrlBuilder(staging_mode=staging_mode)

    @property
    def table(self) -> RoutingTable:
        return self._table

    @property
    def staging_mode(self) -> bool:
        return self._staging_mode

    @property
    def url_builder(self) -> UrlBuilder:
        return self._url_builder

    def reload(self, table: RoutingTable) -> None:
        """Replace the routing table."""
        self._table = table
        logger.info(f"Routing table reloaded: {len(table)} domain(s)")

    def is_known_domain(self, domain: str) -> bool:
        return domain in self._table

    def forward_resolve(self, context: RequestContext, path: str | None = None) -> Resolution:
        """Resolve a presented path to a content ID.

        The longest prefix the path starts with wins. Prefixes of equal length
        are ordered lexicographically so the choice never depends on table order.

        Args:
            context: Request context supplying the domain and revision
            path: Path to resolve, defaults to the context's presented path

        Returns:
            UNMAPPED, EMPTY_ENVELOPE, or MappedContent
        """
        url_path = path if path is not None else context.presented_path()
        content_map = _domain_content_map(self._table, context.host())

        matches = [prefix for prefix in content_map if url_path.startswith(prefix)]
        if not matches:
            return UNMAPPED

        prefix = max(matches, key=lambda p: (len(p), p))
        base = content_map[prefix]
        after_prefix = url_path[len(prefix) :]

        if base is None:
            return EMPTY_ENVELOPE if after_prefix in ("", "/") else UNMAPPED

        content_id = slash_join(base, after_prefix)
        if self._staging_mode:
            content_id = revision.apply_to_content_id(context.revision_id, content_id)

        return MappedContent(ContentID(content_id))

    def get_content_prefix(self, context: RequestContext) -> str | None:
        """Return the last prefix occurring anywhere in the presented path.

        Unlike forward resolution this is a substring match, and the last
        matching prefix in table order wins.
        """
        url_path = context.presented_path()
        content_map = _domain_content_map(self._table, context.host())

        prefix_match = None
        for prefix in content_map:
            if prefix in url_path:
                prefix_match = prefix
        return prefix_match

    def reverse_resolve(
        self,
        content_id: str,
        domain: str | None = None,
        only_first: bool = False,
    ) -> Iterator[ContentMapping]:
        """Translate a content ID into presented paths.

        Yields one ContentMapping per (domain, prefix) whose base occurs in the
        content ID. Ordering follows table order; the same path may appear for
        several domains.

        Args:
            content_id: Content ID to translate
            domain: Restrict to this domain, all domains if None
            only_first: Stop after the first match in each domain

        Yields:
            ContentMapping records
        """
        table = self._table
        revision_id: str | None = None

        if self._staging_mode:
            extracted = revision.from_content_id(content_id)
            revision_id = extracted.revision_id
            content_id = extracted.content_id
            logger.debug(
                f"Using content ID without revision to locate presented path: "
                f"{content_id} (revision {revision_id})"
            )

        if not content_id.endswith("/"):
            content_id = f"{content_id}/"

        domains = [domain] if domain else list(table.domains)

        for candidate in domains:
            for base_path, base_content_id in _domain_content_map(table, candidate).items():
                if base_content_id is None:
                    continue
                if not base_content_id.endswith("/"):
                    base_content_id = f"{base_content_id}/"
                if base_content_id not in content_id:
                    continue

                sub_path = "/" + content_id.partition(base_content_id)[2]

                if self._staging_mode:
                    base_content_id = revision.apply_to_content_id(revision_id, base_content_id)
                    base_path = revision.apply_to_path(revision_id, candidate, base_path)

                site_path = "/" + slash_join(base_path, sub_path)
                if not site_path.endswith("/"):
                    site_path = f"{site_path}/"

                yield ContentMapping(
                    domain=candidate,
                    base_path=base_path,
                    base_content_id=base_content_id,
                    path=site_path,
                )

                if only_first:
                    break

    def get_presented_url(
        self,
        context: RequestContext,
        content_id: str,
        cross_domain: bool = False,
    ) -> str | None:
        """Return the first presented URL for a content ID, or None.

        Args:
            context: Request context
            content_id: Content ID to locate
            cross_domain: Search every domain instead of the request's own
        """
        if cross_domain:
            mappings = self.reverse_resolve(content_id)
        else:
            mappings = self.reverse_resolve(content_id, context.host(), only_first=True)

        urls = [
            self._url_builder.site_url(context, mapping.path, mapping.domain)
            for mapping in mappings
        ]
        return urls[0] if urls else None

    def get_proxies(self, context: RequestContext) -> ProxyRoute:
        """Proxy prefixes for the request's domain."""
        domain = context.host()
        config = self._table.get(domain)
        proxy = config.proxy if config is not None else MappingProxyType({})
        return ProxyRoute(site=domain, proxy=proxy)

    def get_all_proxies(self) -> list[ProxyRoute]:
        """Proxy prefixes for every domain that defines any."""
        return [
            ProxyRoute(site=site, proxy=config.proxy)
            for site, config in self._table.domains.items()
            if config.proxy
        ]


def _domain_content_map(table: RoutingTable, domain: str) -> Mapping[str, str | None]:
    config = table.get(domain)
    if config is None:
        logger.warning(f"Content map has no content routes defined for domain {domain!r}")
        return _EMPTY
    return config.content
