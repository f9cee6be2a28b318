"""CLI interface for the presenter.

Command-line tool for serving presented content and inspecting routing.
"""

import logging
import sys
from pathlib import Path

import click

from presenter.config import Config
from presenter.core.context import RequestContext
from presenter.core.routing import ContentRouter, RoutingTable


@click.group()
def cli() -> None:
    """Presenter - serve backend content under site URLs."""


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover presenter.toml)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--content-service-url",
    default=None,
    help="Content service base URL (overrides config)",
)
@click.option(
    "--layout-service-url",
    default=None,
    help="Layout service base URL (overrides config)",
)
@click.option(
    "--mapping-service-url",
    default=None,
    help="Mapping service base URL (overrides config)",
)
@click.option(
    "--content-map",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="JSON routing file (overrides config)",
)
@click.option(
    "--staging/--no-staging",
    default=None,
    help="Enable/disable staging mode (overrides config, default: disabled)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    content_service_url: str | None,
    layout_service_url: str | None,
    mapping_service_url: str | None,
    content_map: Path | None,
    staging: bool | None,
    verbose: bool,
) -> None:
    """Start the presenter server."""
    from presenter.server import run_server

    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        content_service_url=content_service_url,
        layout_service_url=layout_service_url,
        mapping_service_url=mapping_service_url,
        content_map=content_map,
        staging_mode=staging,
    )

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Content service: {config.services.content_service_url}")
    click.echo(f"Layout service: {config.services.layout_service_url}")
    if config.services.mapping_service_url:
        click.echo(f"Mapping service: {config.services.mapping_service_url}")
    if config.routing.content_map:
        click.echo(f"Routing file: {config.routing.content_map}")
    else:
        click.echo("Routing file: none (all paths unmapped)")
    if config.presenter.staging_mode:
        click.echo("Staging mode: enabled")

    try:
        run_server(config)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover presenter.toml)",
)
@click.option(
    "--content-map",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="JSON routing file (overrides config)",
)
@click.option(
    "--resolve",
    nargs=2,
    type=str,
    default=None,
    metavar="DOMAIN PATH",
    help="Show the content ID a presented path resolves to",
)
def routes(
    config_path: Path | None,
    content_map: Path | None,
    resolve: tuple[str, str] | None,
) -> None:
    """Show the routing table."""
    config = _load_config(config_path).with_overrides(content_map=content_map)
    routing_file = _require_routing_file(config)

    try:
        table = RoutingTable.load(routing_file)
    except (OSError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if resolve:
        domain, path = resolve
        router = ContentRouter(table, staging_mode=config.presenter.staging_mode)
        context = RequestContext.create(domain, path, staging=config.presenter.staging_mode)
        click.echo(f"{domain}{context.presented_path()} -> {router.forward_resolve(context)}")
        return

    for domain, domain_config in table.domains.items():
        click.echo(click.style(domain, bold=True))
        for prefix, base in domain_config.content.items():
            click.echo(f"  {prefix} -> {base if base is not None else '(empty)'}")
        for prefix, upstream in domain_config.proxy.items():
            click.echo(f"  {prefix} => proxy {upstream}")


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with error.

    Raises:
        SystemExit: If the configuration is invalid
    """
    try:
        return Config.load(config_path)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


def _require_routing_file(config: Config) -> Path:
    """Get the routing file or exit with error.

    Raises:
        SystemExit: If no routing file is configured
    """
    if config.routing.content_map is None:
        click.echo(
            click.style(
                "Error: routing file required (via --content-map or config)",
                fg="red",
            ),
            err=True,
        )
        click.echo("\nAdd the following to your presenter.toml:")
        click.echo("\n[routing]")
        click.echo('content_map = "content-map.json"')
        sys.exit(1)
    return config.routing.content_map
