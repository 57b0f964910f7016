"""Tests for health check and metrics endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from object_storage_operator.health import (
    create_combined_wsgi_app,
    mark_not_ready,
    mark_ready,
    start_http_server,
)


def environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


class TestCombinedApp:
    def test_healthz(self):
        start_response = MagicMock()

        body = b"".join(create_combined_wsgi_app()(environ("/healthz"), start_response))

        assert b'"status":"ok"' in body
        assert "200" in start_response.call_args[0][0]

    def test_readyz_before_startup(self):
        mark_not_ready()
        start_response = MagicMock()

        body = b"".join(create_combined_wsgi_app()(environ("/readyz"), start_response))

        assert b'"status":"starting"' in body
        assert "503" in start_response.call_args[0][0]

    def test_readyz_after_startup(self):
        mark_ready()
        try:
            start_response = MagicMock()

            body = b"".join(create_combined_wsgi_app()(environ("/readyz"), start_response))

            assert b'"status":"ready"' in body
            assert "200" in start_response.call_args[0][0]
        finally:
            mark_not_ready()

    def test_metrics_exposes_operator_counters(self):
        start_response = MagicMock()

        body = b"".join(create_combined_wsgi_app()(environ("/metrics"), start_response))

        assert b"object_storage_operator_reconcile_total" in body


class TestStartHttpServer:
    @patch("object_storage_operator.health.make_server")
    def test_serves_in_daemon_thread(self, mock_make_server):
        server = MagicMock()
        mock_make_server.return_value = server

        thread = start_http_server(9090)
        thread.join(timeout=1)

        assert mock_make_server.call_args.args[:2] == ("", 9090)
        assert thread.daemon is True
        server.serve_forever.assert_called_once()
