"""Configuration management for the presenter.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "presenter.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class ServicesConfig:
    """Backend service configuration."""

    content_service_url: str = "http://localhost:9000"
    layout_service_url: str = "http://localhost:9001"
    mapping_service_url: str | None = None
    timeout: float = 10.0


@dataclass
class PresenterConfig:
    """Presentation configuration."""

    presented_url_domain: str | None = None
    presented_url_proto: str = "https"
    staging_mode: bool = False


@dataclass
class RoutingConfig:
    """Routing table configuration."""

    content_map: Path | None = None
    watch: bool = True


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    services: ServicesConfig = field(default_factory=ServicesConfig)
    presenter: PresenterConfig = field(default_factory=PresenterConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for presenter.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            services=cls._parse_services(data.get("services")),
            presenter=cls._parse_presenter(data.get("presenter")),
            routing=cls._parse_routing(data.get("routing"), config_dir),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_services(cls, data: object) -> ServicesConfig:
        """Parse services configuration section.

        Args:
            data: Raw services section data

        Returns:
            ServicesConfig instance
        """
        if data is None:
            return ServicesConfig()

        if not isinstance(data, dict):
            raise ValueError("services section must be a dictionary")

        defaults = ServicesConfig()

        content_url = data.get("content_service_url", defaults.content_service_url)
        if not isinstance(content_url, str):
            raise ValueError("services.content_service_url must be a string")

        layout_url = data.get("layout_service_url", defaults.layout_service_url)
        if not isinstance(layout_url, str):
            raise ValueError("services.layout_service_url must be a string")

        mapping_url = data.get("mapping_service_url")
        if mapping_url is not None and not isinstance(mapping_url, str):
            raise ValueError("services.mapping_service_url must be a string")

        timeout = data.get("timeout", defaults.timeout)
        if not isinstance(timeout, int | float) or isinstance(timeout, bool):
            raise ValueError("services.timeout must be a number")
        if timeout <= 0:
            raise ValueError("services.timeout must be positive")

        return ServicesConfig(
            content_service_url=content_url,
            layout_service_url=layout_url,
            mapping_service_url=mapping_url,
            timeout=float(timeout),
        )

    @classmethod
    def _parse_presenter(cls, data: object) -> PresenterConfig:
        """Parse presenter configuration section.

        Args:
            data: Raw presenter section data

        Returns:
            PresenterConfig instance
        """
        if data is None:
            return PresenterConfig()

        if not isinstance(data, dict):
            raise ValueError("presenter section must be a dictionary")

        domain = data.get("presented_url_domain")
        if domain is not None and not isinstance(domain, str):
            raise ValueError("presenter.presented_url_domain must be a string")

        proto = data.get("presented_url_proto", "https")
        if proto not in ("http", "https"):
            raise ValueError("presenter.presented_url_proto must be 'http' or 'https'")

        staging_mode = data.get("staging_mode", False)
        if not isinstance(staging_mode, bool):
            raise ValueError("presenter.staging_mode must be a boolean")

        return PresenterConfig(
            presented_url_domain=domain,
            presented_url_proto=proto,
            staging_mode=staging_mode,
        )

    @classmethod
    def _parse_routing(cls, data: object, config_dir: Path) -> RoutingConfig:
        """Parse routing configuration section.

        Args:
            data: Raw routing section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            RoutingConfig instance
        """
        if data is None:
            return RoutingConfig()

        if not isinstance(data, dict):
            raise ValueError("routing section must be a dictionary")

        content_map = data.get("content_map")
        if content_map is not None and not isinstance(content_map, str):
            raise ValueError("routing.content_map must be a string")

        watch = data.get("watch", True)
        if not isinstance(watch, bool):
            raise ValueError("routing.watch must be a boolean")

        return RoutingConfig(
            content_map=config_dir / content_map if content_map is not None else None,
            watch=watch,
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        content_service_url: str | None = None,
        layout_service_url: str | None = None,
        mapping_service_url: str | None = None,
        content_map: Path | None = None,
        staging_mode: bool | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        services = self.services
        if content_service_url is not None:
            services = replace(services, content_service_url=content_service_url)
        if layout_service_url is not None:
            services = replace(services, layout_service_url=layout_service_url)
        if mapping_service_url is not None:
            services = replace(services, mapping_service_url=mapping_service_url)

        routing = self.routing
        if content_map is not None:
            routing = replace(routing, content_map=content_map)

        presenter = self.presenter
        if staging_mode is not None:
            presenter = replace(presenter, staging_mode=staging_mode)

        return replace(
            self,
            server=server,
            services=services,
            presenter=presenter,
            routing=routing,
        )
