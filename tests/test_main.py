"""Tests for main entry point."""

from unittest.mock import MagicMock, patch


class TestMain:
    """Tests for __main__ module."""

    def test_runs_with_stdio_by_default(self) -> None:
        mock_mcp = MagicMock()
        mock_deps = MagicMock()
        mock_deps.config.transport = "stdio"

        with patch("winscout.__main__.mcp", mock_mcp), \
             patch("winscout.__main__.get_deps", return_value=mock_deps):
            from winscout.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(transport="stdio")

    def test_runs_with_http_when_configured(self) -> None:
        mock_mcp = MagicMock()
        mock_deps = MagicMock()
        mock_deps.config.transport = "http"
        mock_deps.config.http_host = "0.0.0.0"
        mock_deps.config.http_port = 9000

        with patch("winscout.__main__.mcp", mock_mcp), \
             patch("winscout.__main__.get_deps", return_value=mock_deps):
            from winscout.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(transport="http", host="0.0.0.0", port=9000)
