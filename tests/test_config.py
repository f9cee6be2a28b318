"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
from presenter.config import (
    Config,
    PresenterConfig,
    RoutingConfig,
    ServerConfig,
    ServicesConfig,
)


class TestConfigLoad:
    """Tests for Config.load()."""

    def test__explicit_path__loads_config(self, tmp_path: Path) -> None:
        """Load config from explicit path."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text("""
[server]
host = "0.0.0.0"
port = 3000

[services]
content_service_url = "http://content:8080"
layout_service_url = "http://layout:8080"
mapping_service_url = "http://mapping:8080"
timeout = 2.5

[presenter]
presented_url_domain = "docs.example.com"
presented_url_proto = "http"
staging_mode = true

[routing]
content_map = "config/content-map.json"
watch = false
""")

        config = Config.load(config_file)

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 3000
        assert config.services.content_service_url == "http://content:8080"
        assert config.services.layout_service_url == "http://layout:8080"
        assert config.services.mapping_service_url == "http://mapping:8080"
        assert config.services.timeout == 2.5
        assert config.presenter.presented_url_domain == "docs.example.com"
        assert config.presenter.presented_url_proto == "http"
        assert config.presenter.staging_mode is True
        assert config.routing.content_map == tmp_path / "config" / "content-map.json"
        assert config.routing.watch is False
        assert config.config_path == config_file

    def test__minimal_config__uses_defaults(self, tmp_path: Path) -> None:
        """Missing sections fall back to defaults."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text("")

        config = Config.load(config_file)

        assert config.server == ServerConfig()
        assert config.services == ServicesConfig()
        assert config.presenter == PresenterConfig()
        assert config.routing == RoutingConfig()
        assert config.services.mapping_service_url is None

    def test__missing_explicit_path__raises_error(self, tmp_path: Path) -> None:
        """Raise FileNotFoundError for a missing explicit path."""
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "missing.toml")

    def test__no_path_no_discovery__returns_defaults(self) -> None:
        """Return defaults when no config file is found."""
        with patch.object(Config, "_discover_config", return_value=None):
            config = Config.load()

        assert config.config_path is None
        assert config.routing.content_map is None

    def test__invalid_toml__raises_value_error(self, tmp_path: Path) -> None:
        """Malformed TOML is a configuration error."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text("[server\nport = 1")

        with pytest.raises(ValueError, match="Invalid TOML"):
            Config.load(config_file)


class TestConfigDiscovery:
    """Tests for config file discovery."""

    def test__config_in_current_dir__found(self, tmp_path: Path) -> None:
        """Find presenter.toml in the current directory."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text("")

        with patch("pathlib.Path.cwd", return_value=tmp_path):
            assert Config._discover_config() == config_file

    def test__config_in_parent_dir__found(self, tmp_path: Path) -> None:
        """Find presenter.toml in a parent directory."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text("")
        subdir = tmp_path / "a" / "b"
        subdir.mkdir(parents=True)

        with patch("pathlib.Path.cwd", return_value=subdir):
            assert Config._discover_config() == config_file


class TestConfigValidation:
    """Tests for section validation."""

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            ('server = "x"', "server section must be a dictionary"),
            ('[server]\nport = "80"', "server.port must be an integer"),
            ("[server]\nport = true", "server.port must be an integer"),
            ("[services]\ncontent_service_url = 1", "content_service_url must be a string"),
            ("[services]\ntimeout = 0", "services.timeout must be positive"),
            ('[services]\ntimeout = "1"', "services.timeout must be a number"),
            ('[presenter]\npresented_url_proto = "ftp"', "presented_url_proto must be"),
            ('[presenter]\nstaging_mode = "yes"', "staging_mode must be a boolean"),
            ("[routing]\ncontent_map = 1", "routing.content_map must be a string"),
            ('[routing]\nwatch = "no"', "routing.watch must be a boolean"),
        ],
    )
    def test__invalid_value__raises_value_error(
        self, tmp_path: Path, content: str, message: str
    ) -> None:
        """Reject wrongly typed values with a descriptive message."""
        config_file = tmp_path / "presenter.toml"
        config_file.write_text(content)

        with pytest.raises(ValueError, match=message):
            Config.load(config_file)


class TestWithOverrides:
    """Tests for Config.with_overrides()."""

    def test__overrides__replace_values(self, tmp_path: Path) -> None:
        """Non-None overrides replace configured values."""
        config = Config()

        result = config.with_overrides(
            host="0.0.0.0",
            port=9999,
            content_service_url="http://c",
            layout_service_url="http://l",
            mapping_service_url="http://m",
            content_map=tmp_path / "map.json",
            staging_mode=True,
        )

        assert result.server.host == "0.0.0.0"
        assert result.server.port == 9999
        assert result.services.content_service_url == "http://c"
        assert result.services.layout_service_url == "http://l"
        assert result.services.mapping_service_url == "http://m"
        assert result.routing.content_map == tmp_path / "map.json"
        assert result.presenter.staging_mode is True

    def test__no_overrides__keeps_values(self) -> None:
        """None values leave the configuration untouched."""
        config = Config(server=ServerConfig(host="h", port=1))

        result = config.with_overrides()

        assert result == config

    def test__original__is_not_modified(self) -> None:
        """Overrides return a new Config."""
        config = Config()

        config.with_overrides(port=1234, staging_mode=True)

        assert config.server.port == 8080
        assert config.presenter.staging_mode is False
