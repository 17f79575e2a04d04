"""
WireGuard exporter entry point.

Usage:
    wireguard-exporter                              Serve metrics on :9586/metrics
    wireguard-exporter --mock --interval 5s         Simulated interfaces, no root needed
    wireguard-exporter --alias KEY:alice,KEY2:bob   Label peers with readable names
    wireguard-exporter show                         One-shot table of current peers
    wireguard-exporter status --url http://host:9586/metrics

Every option can also come from the environment, e.g.
WIREGUARD_EXPORTER_INTERVAL=30s or WIREGUARD_EXPORTER_ALIAS="KEY:alice KEY2:bob".
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import click

from wgexporter import __version__
from wgexporter.aliases import AliasResolver
from wgexporter.collector.base import DeviceProvider
from wgexporter.collector.mock_collector import MockCollector
from wgexporter.collector.wg_collector import WgCollector
from wgexporter.config import (
    DEFAULT_INTERVAL,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    DEFAULT_SCRAPE_TIMEOUT,
    ExporterConfig,
    parse_aliases,
    parse_duration,
)
from wgexporter.errors import ConfigError, ExporterError
from wgexporter.poller import Poller
from wgexporter.server import make_server, server_url
from wgexporter.sink import MetricSink
from wgexporter.snapshot import Snapshot


log = logging.getLogger("wgexporter")


class DurationType(click.ParamType):
    """Accepts "15s", "1m30s", "500ms" or plain seconds."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return parse_duration(value)
        except ConfigError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationType()


def build_provider(config: ExporterConfig) -> DeviceProvider:
    if config.mock:
        return MockCollector()
    return WgCollector(binary=config.wg_binary, timeout_seconds=config.fetch_timeout)


@click.group(invoke_without_command=True, context_settings={"auto_envvar_prefix": "WIREGUARD_EXPORTER"})
@click.version_option(version=__version__, prog_name="wireguard-exporter")
@click.option("--listen-address", default=DEFAULT_LISTEN_ADDRESS, show_default=True,
              help="Address to listen on for metrics server")
@click.option("--metrics-path", default=DEFAULT_METRICS_PATH, show_default=True,
              help="Path under which to expose metrics")
@click.option("--interval", type=DURATION, default=DEFAULT_INTERVAL, show_default=True,
              help="Interval between metric collections")
@click.option("--scrape-timeout", type=DURATION, default=DEFAULT_SCRAPE_TIMEOUT, show_default=True,
              help="Deadline for one device query (0 disables it)")
@click.option("--alias", "alias_entries", multiple=True,
              help="Comma-separated list of publicKey:alias entries (repeatable)")
@click.option("--wg-binary", default="wg", show_default=True, help="wireguard-tools binary to query")
@click.option("--mock", is_flag=True, default=False, help="Use simulated WireGuard interfaces")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.pass_context
def cli(ctx, listen_address: str, metrics_path: str, interval: float, scrape_timeout: float,
        alias_entries: tuple, wg_binary: str, mock: bool, verbose: bool):
    """WireGuard exporter - interface and peer metrics for Prometheus."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = ExporterConfig(
            listen_address=listen_address,
            metrics_path=metrics_path,
            interval=interval,
            scrape_timeout=scrape_timeout,
            aliases=parse_aliases(alias_entries),
            verbose=verbose,
            wg_binary=wg_binary,
            mock=mock,
        )
        host, port = config.host_port
    except ConfigError as e:
        raise click.UsageError(str(e))

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        run_exporter(config, host, port)


def run_exporter(config: ExporterConfig, host: str, port: int):
    resolver = AliasResolver(config.aliases)
    sink = MetricSink()
    poller = Poller(
        build_provider(config),
        sink,
        resolver,
        interval=config.interval,
        fetch_timeout=config.fetch_timeout,
    )

    try:
        server = make_server(host, port, sink.registry, config.metrics_path)
    except OSError as e:
        log.error("cannot start server on %s: %s", config.listen_address, e)
        raise SystemExit(1)

    log.info("WireGuard Exporter running on %s", server_url(server, config.metrics_path))
    log.info("Collection interval: %.1fs", config.interval)
    if len(resolver) > 0:
        log.info("Loaded %d peer aliases", len(resolver))

    poller.start()
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop(timeout=config.fetch_timeout or 5.0)
        server.server_close()


@cli.command()
@click.pass_context
def show(ctx):
    """Take a single snapshot and print every peer."""
    from rich.console import Console
    from rich.markup import escape
    from wgexporter.dashboard.terminal import build_peer_table, rows_from_snapshot

    config: ExporterConfig = ctx.obj["config"]
    provider = build_provider(config)

    try:
        provider.open()
        snapshot = Snapshot(devices=provider.devices())
    except ExporterError as e:
        raise click.ClickException(str(e))
    finally:
        provider.close()

    console = Console()
    if not snapshot.devices:
        console.print("\n[dim]No WireGuard interfaces found.[/dim]\n")
        return

    for dev in snapshot.devices:
        port = f", listening on {dev.listen_port}" if dev.listen_port else ""
        console.print(f"\n[bold]{escape(dev.name)}[/bold]  {len(dev.peers)} peers{port}")

    rows = rows_from_snapshot(snapshot, AliasResolver(config.aliases), datetime.now(timezone.utc))
    console.print(build_peer_table(rows, title=provider.name()))
    console.print()


@cli.command()
@click.option("--url", default=None, help="Metrics URL of a running exporter (default: this config's listen address)")
@click.option("--timeout", type=DURATION, default="5s", show_default=True, help="HTTP timeout")
@click.pass_context
def status(ctx, url: str, timeout: float):
    """Read a running exporter's metrics and print a peer summary."""
    import httpx
    from rich.console import Console
    from rich.markup import escape
    from wgexporter.dashboard.terminal import build_peer_table, parse_metrics, rows_from_metrics, summary_from_metrics

    config: ExporterConfig = ctx.obj["config"]
    if url is None:
        host, port = config.host_port
        host = host or "127.0.0.1"
        if ":" in host:
            host = f"[{host}]"
        url = f"http://{host}:{port}{config.metrics_path}"

    try:
        response = httpx.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise click.ClickException(f"cannot fetch {url}: {e}")

    try:
        families = parse_metrics(response.text)
    except ValueError as e:
        raise click.ClickException(f"cannot parse metrics from {url}: {e}")
    success, interfaces = summary_from_metrics(families)

    console = Console()
    if success is None:
        console.print(f"\n[bold red]{escape(url)} doesn't look like a WireGuard exporter.[/bold red]\n")
        raise SystemExit(1)

    state = "[bold green]OK[/bold green]" if success == 1 else "[bold red]FAILING[/bold red]"
    console.print(f"\nLast scrape: {state}   Interfaces: {int(interfaces or 0)}")
    console.print(build_peer_table(rows_from_metrics(families), title=url))
    console.print()


if __name__ == "__main__":
    cli()
