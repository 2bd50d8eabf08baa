"""
Unit tests for the Gateway service, router and CLI.
"""

import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from shared.config import GatewayConfig
from service_gateway.app.main import CacheGatewayService, build_config, create_app, main, _parse_args


class TestCacheGatewayService:
    """Test cases for the HTTP surface of CacheGatewayService."""

    @pytest.fixture
    def upstream_calls(self):
        return []

    @pytest.fixture
    def config(self, tmp_path):
        return GatewayConfig(host="127.0.0.1", port=8080, cache_dir=tmp_path / "cache")

    @pytest.fixture
    def app(self, config, upstream_calls):
        """Create FastAPI app whose upstream serves every code as image bytes."""

        def handler(request: httpx.Request) -> httpx.Response:
            upstream_calls.append(request.url.path)
            return httpx.Response(200, content=f"image{request.url.path}".encode())

        return create_app(config, upstream_transport=httpx.MockTransport(handler))

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_cache_directory_created_at_startup(self, app, config):
        assert config.cache_dir.is_dir()

    def test_get_fetches_from_upstream(self, client, config, upstream_calls):
        response = client.get("/200")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content == b"image/200"
        assert upstream_calls == ["/200"]
        assert (config.cache_dir / "200.jpg").read_bytes() == b"image/200"

    def test_query_string_ignored(self, client, upstream_calls):
        response = client.get("/201?format=large")

        assert response.status_code == 200
        assert upstream_calls == ["/201"]

    def test_put_and_delete(self, client, config):
        put_response = client.put("/404", content=b"\x00\x01")
        assert put_response.status_code == 201
        assert put_response.text == "Created"
        assert put_response.headers["content-type"].startswith("text/plain")

        first = client.delete("/404")
        second = client.delete("/404")

        assert first.status_code == 200
        assert first.text == "OK"
        assert second.status_code == 404
        assert second.text == "Not Found"
        assert not (config.cache_dir / "404.jpg").exists()

    def test_put_empty_body(self, client, config):
        response = client.put("/500", content=b"")

        assert response.status_code == 400
        assert response.text == "Empty body"
        assert not (config.cache_dir / "500.jpg").exists()

    @pytest.mark.parametrize("method", ["POST", "PATCH", "OPTIONS"])
    def test_unsupported_method_on_valid_key(self, client, method):
        response = client.request(method, "/200")

        assert response.status_code == 405
        assert response.text == "Method not allowed"

    @pytest.mark.parametrize("path", ["/", "/abc", "/12a", "/docs", "/openapi.json", "/health", "/metrics"])
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "POST", "PATCH"])
    def test_invalid_key_is_not_found_for_every_method(self, client, path, method, upstream_calls):
        response = client.request(method, path, content=b"payload")

        assert response.status_code == 404
        assert response.text == "Not Found"
        assert upstream_calls == []

    def test_request_id_header_echoed(self, client):
        response = client.get("/abc", headers={"X-Request-ID": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/abc")
        assert response.headers["x-request-id"]

    @pytest.mark.parametrize("method", ["TRACE", "PROPFIND", "MKCOL"])
    def test_unrouted_method_on_invalid_key_is_not_found(self, client, method, upstream_calls):
        response = client.request(method, "/abc")

        assert response.status_code == 404
        assert response.text == "Not Found"
        assert response.headers["content-type"].startswith("text/plain")
        assert upstream_calls == []

    @pytest.mark.parametrize("method", ["TRACE", "PROPFIND", "MKCOL"])
    def test_unrouted_method_on_valid_key_is_not_allowed(self, client, method, config):
        response = client.request(method, "/200")

        assert response.status_code == 405
        assert response.text == "Method not allowed"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["x-request-id"]
        assert not (config.cache_dir / "200.jpg").exists()

    @pytest.mark.parametrize("path", ["/%32%30%30", "/%2F200", "/200%3Fx"])
    def test_percent_encoded_path_is_not_a_key(self, client, config, upstream_calls, path):
        """Keys come from the path as sent, not its decoded form."""
        response = client.get(path)

        assert response.status_code == 404
        assert response.text == "Not Found"
        assert upstream_calls == []
        assert list(config.cache_dir.iterdir()) == []

    def test_unexpected_error_still_answers_with_request_id(self, client, app):
        service = app.state.gateway_service
        service.operations.dispatch = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/200", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "boom" not in response.text
        assert response.headers["x-request-id"] == "req-500"
        assert service.metrics.get_sample_value(
            "http_requests_total", {"method": "GET", "status_code": "500"}
        ) == 1.0
        assert service.metrics.get_sample_value("errors_total", {"error_type": "unhandled"}) == 1.0

    def test_storage_failure_maps_to_500(self, client):
        with patch(
            "service_gateway.app.caching.cache_store.LocalCacheStore._write_atomic",
            side_effect=OSError("read-only file system"),
        ):
            response = client.put("/300", content=b"data")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "read-only" not in response.text

    def test_http_requests_are_counted(self, client, app):
        client.get("/abc")
        service = app.state.gateway_service

        assert service.metrics.get_sample_value(
            "http_requests_total", {"method": "GET", "status_code": "404"}
        ) == 1.0


class TestCli:
    """Test cases for the command line entry point."""

    def test_parse_required_options(self, tmp_path):
        args = _parse_args(["-h", "0.0.0.0", "-p", "9000", "-c", str(tmp_path)])

        assert args.host == "0.0.0.0"
        assert args.port == 9000
        assert args.cache == str(tmp_path)

    def test_missing_required_option_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            _parse_args(["-h", "127.0.0.1", "-p", "9000"])
        assert exc_info.value.code == 2

    def test_build_config_resolves_cache_relative_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        args = _parse_args(["--host", "127.0.0.1", "--port", "9000", "--cache", "cache"])

        config = build_config(args)

        assert config.cache_dir == (tmp_path / "cache").resolve()
        assert config.upstream_url == "https://http.cat"

    def test_build_config_optional_overrides(self, tmp_path):
        args = _parse_args([
            "-h", "127.0.0.1", "-p", "9000", "-c", str(tmp_path),
            "--upstream-url", "http://images.internal/",
            "--upstream-timeout", "2.5",
            "--metrics-port", "9100",
        ])

        config = build_config(args)

        assert config.upstream_url == "http://images.internal"
        assert config.upstream_timeout == 2.5
        assert config.metrics_port == 9100

    def test_main_rejects_invalid_port(self, tmp_path, capsys):
        exit_code = main(["-h", "127.0.0.1", "-p", "70000", "-c", str(tmp_path)])

        assert exit_code == 2
        assert "port" in capsys.readouterr().err

    def test_main_runs_service(self, tmp_path):
        with patch.object(CacheGatewayService, "run") as mock_run:
            exit_code = main(["-h", "127.0.0.1", "-p", "9000", "-c", str(tmp_path / "cache")])

        assert exit_code == 0
        mock_run.assert_called_once()
        assert (tmp_path / "cache").is_dir()
