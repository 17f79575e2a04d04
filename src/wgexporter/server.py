"""
HTTP exposition endpoint.

    GET <metrics path>  -> prometheus_client exposition of the sink's registry
                           (text or OpenMetrics by Accept, gzip by Accept-Encoding)
    GET /               -> small landing page linking to the metrics path
"""

from __future__ import annotations

import logging
import socket
import threading
from http.server import ThreadingHTTPServer

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import MetricsHandler

from wgexporter import __version__

log = logging.getLogger(__name__)

_LANDING_PAGE = """<html>
<head><title>WireGuard Exporter</title></head>
<body>
<h1>WireGuard Exporter</h1>
<p>Version {version}</p>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class _MetricsHandler(MetricsHandler):
    metrics_path: str = "/metrics"

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path == self.metrics_path:
            super().do_GET()
        elif path == "/":
            body = _LANDING_PAGE.format(version=__version__, path=self.metrics_path).encode()
            self._send(200, "text/html; charset=utf-8", body)
        else:
            self._send(404, "text/plain; charset=utf-8", b"not found\n")

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def make_server(
    host: str,
    port: int,
    registry: CollectorRegistry,
    metrics_path: str = "/metrics",
) -> ThreadingHTTPServer:
    """Bind (but don't start) the exposition server. Port 0 picks a free port."""
    handler = _MetricsHandler.factory(registry)
    handler.metrics_path = metrics_path
    server_cls = ThreadingHTTPServer
    if ":" in host:
        server_cls = type("MetricsServer6", (ThreadingHTTPServer,), {"address_family": socket.AF_INET6})
    server = server_cls((host, port), handler)
    server.daemon_threads = True
    return server


def serve_in_thread(server: ThreadingHTTPServer) -> threading.Thread:
    thread = threading.Thread(target=server.serve_forever, name="wg-http", daemon=True)
    thread.start()
    return thread


def server_url(server: ThreadingHTTPServer, metrics_path: str = "/metrics") -> str:
    host, port = server.server_address[:2]
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{port}{metrics_path}"

