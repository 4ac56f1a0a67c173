"""HTTP server exposing the metrics endpoint.

Every ``GET`` returns the full metrics text, whatever the path. Each
connection is handled on its own thread; the only state they share is the
exporter's metadata cache.
"""

from __future__ import annotations

import hmac
import logging
import signal
import socket
import sys
from collections.abc import Callable, Iterable
from socketserver import ThreadingMixIn
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST

from dockerprom.core.constants import GENERIC_ERROR_BODY
from dockerprom.exporter import ContainerMetricsExporter

logger = logging.getLogger(__name__)

TERMINATE_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGQUIT)

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGI server handling each connection on a daemon thread."""

    daemon_threads = True


class ThreadingWSGIServerV6(ThreadingWSGIServer):
    address_family = socket.AF_INET6


class _QuietHandler(WSGIRequestHandler):
    """Route wsgiref's per-request access log through logging at DEBUG."""

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(f"{self.address_string()} - {format % args}")


def make_metrics_app(
    exporter: ContainerMetricsExporter, basicauth_header: str | None = None
) -> WSGIApp:
    """Create the WSGI application serving ``exporter``'s metrics.

    Args:
        exporter: Exporter whose ``collect_metrics()`` is called per request
        basicauth_header: Expected ``Authorization`` header, or None for no auth
    """

    def app(environ, start_response):
        logger.debug(f"Got request for {environ.get('PATH_INFO', '/')}")

        if basicauth_header is not None:
            supplied = environ.get("HTTP_AUTHORIZATION")
            if supplied is None or not hmac.compare_digest(
                supplied.encode(), basicauth_header.encode()
            ):
                logger.debug("Basicauth failed")
                if supplied is None:
                    logger.debug("No Authorization header")
                start_response(
                    "401 Unauthorized",
                    [("WWW-Authenticate", "Basic"), ("Content-Length", "0")],
                )
                return [b""]

        try:
            body = exporter.collect_metrics().encode("utf-8")
        except Exception as e:
            logger.error(f"Failed getting metrics: {e}", exc_info=True)
            body = GENERIC_ERROR_BODY.encode("utf-8")
            start_response(
                "500 Internal Server Error",
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("Content-Length", str(len(body))),
                ],
            )
            return [body]

        start_response(
            "200 OK",
            [("Content-Type", CONTENT_TYPE_LATEST), ("Content-Length", str(len(body)))],
        )
        return [body]

    return app


def create_server(host: str, port: int, app: WSGIApp) -> WSGIServer:
    """Bind a threading WSGI server; IPv6 hosts get an IPv6 socket."""
    server_class = ThreadingWSGIServerV6 if ":" in host else ThreadingWSGIServer
    return make_server(host, port, app, server_class=server_class, handler_class=_QuietHandler)


def register_terminate_signals() -> None:
    """Exit with status 1 on SIGTERM/SIGINT/SIGQUIT; serve() closes the socket."""

    def _handle_signal(signum, frame):
        logger.error(f"Received signal {signal.Signals(signum).name}, terminating.")
        sys.exit(1)

    for sig in TERMINATE_SIGNALS:
        signal.signal(sig, _handle_signal)


def serve(
    exporter: ContainerMetricsExporter,
    host: str,
    port: int,
    basicauth_header: str | None = None,
) -> None:
    """Serve metrics until terminated by a signal."""
    server = create_server(host, port, make_metrics_app(exporter, basicauth_header))
    register_terminate_signals()
    if basicauth_header is not None:
        logger.info("HTTP Basic auth will be required")

    bound_host, bound_port = server.server_address[:2]
    logger.info(f"Listening on {bound_host}:{bound_port}...")
    try:
        server.serve_forever()
    finally:
        server.server_close()
