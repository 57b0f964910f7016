"""Tests for operator startup and shutdown handlers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest

from object_storage_operator import health, main
from object_storage_operator.utils.errors import ConfigurationError

ENV = {
    "MANAGEMENT_CLUSTER_NAME": "glippy",
    "MANAGEMENT_CLUSTER_NAMESPACE": "org-giantswarm",
    "MANAGEMENT_CLUSTER_PROVIDER": "capz",
    "MANAGEMENT_CLUSTER_REGION": "westeurope",
    "MANAGEMENT_CLUSTER_BASE_DOMAIN": "example.io",
}


def readyz_status() -> str:
    start_response = MagicMock()
    b"".join(
        health.create_combined_wsgi_app()(
            {"REQUEST_METHOD": "GET", "PATH_INFO": "/readyz", "SERVER_NAME": "localhost", "SERVER_PORT": "8080"},
            start_response,
        )
    )
    return start_response.call_args[0][0]


@pytest.fixture(autouse=True)
def reset_readiness():
    health.mark_not_ready()
    yield
    health.mark_not_ready()


@patch("object_storage_operator.main.structured_logging.setup_structured_logging")
@patch("object_storage_operator.main.health.start_http_server")
class TestStartup:
    def test_configures_settings_and_becomes_ready(self, mock_server, _logging, monkeypatch):
        for key, value in ENV.items():
            monkeypatch.setenv(key, value)
        monkeypatch.setenv("METRICS_PORT", "9090")
        settings = kopf.OperatorSettings()

        main.configure(settings=settings, logger=MagicMock())

        assert isinstance(settings.persistence.progress_storage, kopf.AnnotationsProgressStorage)
        assert settings.execution.max_workers == 4
        mock_server.assert_called_once_with(9090)
        assert readyz_status().startswith("200")

    def test_missing_configuration_stays_unready(self, mock_server, _logging, monkeypatch):
        for key in ENV:
            monkeypatch.delenv(key, raising=False)

        with pytest.raises(ConfigurationError):
            main.configure(settings=kopf.OperatorSettings(), logger=MagicMock())

        mock_server.assert_not_called()
        assert readyz_status().startswith("503")


class TestShutdown:
    def test_cleanup_reports_not_ready(self):
        health.mark_ready()

        main.shutdown(logger=MagicMock())

        assert readyz_status().startswith("503")
