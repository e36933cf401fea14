"""Tests for health check endpoint."""

from typing import Any

import pytest
from starlette.testclient import TestClient


class TestHealthCheck:
    """Tests for health check endpoint."""

    @pytest.fixture
    def client(self, deps) -> TestClient:
        """Create test client for HTTP server."""
        from winscout.server import create_server
        from winscout.state import set_deps

        set_deps(deps)
        server = create_server()
        app = server.http_app()
        return TestClient(app)

    def test_health_returns_ok(self, client: Any) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    def test_health_returns_plain_text(self, client: Any) -> None:
        response = client.get("/health")
        assert "text/plain" in response.headers["content-type"]
