"""Unit tests for exposed configuration."""

from microcks_devservice.exporter import config_prefix, export_config, url_key


class TestExportConfig:
    """Tests for export_config()."""

    def test_http_and_grpc_keys(self) -> None:
        exposed = export_config("default", "localhost", {"http": 8080, "grpc": 9090})

        assert exposed == {
            "microcks.default.http": "http://localhost:8080",
            "microcks.default.http.host": "localhost",
            "microcks.default.http.port": "8080",
            "microcks.default.grpc": "http://localhost:9090",
            "microcks.default.grpc.host": "localhost",
            "microcks.default.grpc.port": "9090",
        }

    def test_namespaced_by_service(self) -> None:
        exposed = export_config("orders", "microcks-orders-1", {"http": 8080})

        assert exposed["microcks.orders.http"] == "http://microcks-orders-1:8080"
        assert set(exposed) == {
            "microcks.orders.http",
            "microcks.orders.http.host",
            "microcks.orders.http.port",
        }

    def test_no_ports(self) -> None:
        assert export_config("default", "localhost", {}) == {}

    def test_key_helpers(self) -> None:
        assert config_prefix("default") == "microcks.default"
        assert url_key("default", "grpc") == "microcks.default.grpc"
