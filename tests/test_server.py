"""Tests for the metrics HTTP endpoint."""

import logging
import signal
from wsgiref.util import setup_testing_defaults

import pytest
from prometheus_client import CONTENT_TYPE_LATEST

from dockerprom.core.schemas import ExporterConfig
from dockerprom.server import (
    ThreadingWSGIServer,
    ThreadingWSGIServerV6,
    create_server,
    make_metrics_app,
    register_terminate_signals,
)

METRICS = "# HELP container_memory_usage Memory used by the container, in bytes\n"


class FakeExporter:
    """Stands in for ContainerMetricsExporter."""

    def __init__(self, output=METRICS, error=None):
        self.output = output
        self.error = error
        self.calls = 0

    def collect_metrics(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.output


def call_app(app, path="/", authorization=None):
    """Run one request through a WSGI app and return (status, headers, body)."""
    environ = {"PATH_INFO": path}
    if authorization is not None:
        environ["HTTP_AUTHORIZATION"] = authorization
    setup_testing_defaults(environ)

    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


class TestMetricsApp:
    """Tests for the WSGI application."""

    def test_serves_metrics(self):
        """Test a plain GET returns the rendered metrics."""
        status, headers, body = call_app(make_metrics_app(FakeExporter()))
        assert status == "200 OK"
        assert headers["Content-Type"] == CONTENT_TYPE_LATEST
        assert headers["Content-Length"] == str(len(METRICS))
        assert body.decode() == METRICS

    def test_any_path_serves_metrics(self):
        """Test that the path is ignored."""
        exporter = FakeExporter()
        status, _, body = call_app(make_metrics_app(exporter), path="/anything/else")
        assert status == "200 OK"
        assert body.decode() == METRICS
        assert exporter.calls == 1

    def test_collection_failure_is_500(self, caplog):
        """Test that a failing scrape returns the generic error body."""
        app = make_metrics_app(FakeExporter(error=RuntimeError("boom")))
        with caplog.at_level(logging.ERROR):
            status, _, body = call_app(app)
        assert status == "500 Internal Server Error"
        assert body == b"Error occured. Please see logs."
        assert "boom" in caplog.text


class TestBasicAuth:
    """Tests for HTTP Basic auth on the endpoint."""

    @pytest.fixture
    def header(self):
        return ExporterConfig(basicauth="prom:secret").basicauth_header

    def test_missing_header_is_401(self, header):
        """Test that requests without credentials are challenged."""
        exporter = FakeExporter()
        status, headers, body = call_app(make_metrics_app(exporter, header))
        assert status == "401 Unauthorized"
        assert headers["WWW-Authenticate"] == "Basic"
        assert body == b""
        assert exporter.calls == 0

    def test_wrong_credentials_are_401(self, header):
        """Test that wrong credentials are challenged."""
        wrong = ExporterConfig(basicauth="prom:wrong").basicauth_header
        status, _, _ = call_app(make_metrics_app(FakeExporter(), header), authorization=wrong)
        assert status == "401 Unauthorized"

    def test_correct_credentials(self, header):
        """Test that the right credentials get metrics."""
        status, _, body = call_app(make_metrics_app(FakeExporter(), header), authorization=header)
        assert status == "200 OK"
        assert body.decode() == METRICS


class TestServerSetup:
    """Tests for server construction and signal handling."""

    def test_ipv4_server(self):
        """Test binding an ephemeral IPv4 port."""
        server = create_server("127.0.0.1", 0, make_metrics_app(FakeExporter()))
        try:
            assert isinstance(server, ThreadingWSGIServer)
            assert not isinstance(server, ThreadingWSGIServerV6)
            assert server.server_address[1] > 0
        finally:
            server.server_close()

    def test_terminate_signals_exit_1(self, monkeypatch):
        """Test that termination signals exit with status 1."""
        installed = {}
        monkeypatch.setattr(signal, "signal", lambda sig, h: installed.setdefault(sig, h))

        register_terminate_signals()

        assert set(installed) == {signal.SIGTERM, signal.SIGINT, signal.SIGQUIT}
        with pytest.raises(SystemExit) as exc_info:
            installed[signal.SIGTERM](signal.SIGTERM, None)
        assert exc_info.value.code == 1
