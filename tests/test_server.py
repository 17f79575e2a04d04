"""
Tests for the HTTP exposition endpoint.

Starts the server in a thread on a free port, runs one scrape against the
mock provider and reads the result back with httpx.
"""

import httpx

from wgexporter.aliases import AliasResolver
from wgexporter.collector.mock_collector import MockCollector
from wgexporter.dashboard.terminal import parse_metrics
from wgexporter.poller import Poller
from wgexporter.server import make_server, serve_in_thread, server_url
from wgexporter.sink import MetricSink


def _start(metrics_path="/metrics"):
    sink = MetricSink()
    poller = Poller(MockCollector(seed=7), sink, AliasResolver(), interval=60)
    poller.acquire()
    poller.scrape_once()

    server = make_server("127.0.0.1", 0, sink.registry, metrics_path)
    serve_in_thread(server)
    return server, poller


def test_metrics_endpoint_serves_prometheus_text():
    server, poller = _start()
    try:
        response = httpx.get(server_url(server), timeout=5)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

        families = parse_metrics(response.text)
        assert families["wireguard_scrape_success"].samples[0].value == 1
        assert families["wireguard_interfaces_total"].samples[0].value == 2
        assert families["wireguard_collector_up"].samples[0].value == 1
        assert len(families["wireguard_peers_total"].samples) == 2
        assert families["wireguard_peer_bytes_total"].type == "gauge"
    finally:
        server.shutdown()
        server.server_close()
        poller.stop()


def test_custom_metrics_path_and_landing_page():
    server, poller = _start("/wg-metrics")
    try:
        base = server_url(server, "")
        assert httpx.get(base + "/wg-metrics", timeout=5).status_code == 200

        landing = httpx.get(base + "/", timeout=5)
        assert landing.status_code == 200
        assert 'href="/wg-metrics"' in landing.text

        assert httpx.get(base + "/metrics", timeout=5).status_code == 404
    finally:
        server.shutdown()
        server.server_close()
        poller.stop()


def test_metrics_endpoint_negotiates_openmetrics_and_gzip():
    server, poller = _start()
    try:
        response = httpx.get(
            server_url(server),
            headers={
                "Accept": "application/openmetrics-text; version=1.0.0; charset=utf-8",
                "Accept-Encoding": "gzip",
            },
            timeout=5,
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/openmetrics-text")
        assert response.headers["content-encoding"] == "gzip"
        assert response.text.rstrip().endswith("# EOF")
        assert "wireguard_collector_up 1.0" in response.text
    finally:
        server.shutdown()
        server.server_close()
        poller.stop()
