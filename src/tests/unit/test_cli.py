"""Tests for the CLI commands."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from microcks_devservice import cli
from microcks_devservice.config import Settings, get_settings
from microcks_devservice.errors import ArtifactScanError, DevServiceStartError
from microcks_devservice.models import LaunchMode, RunningDevService


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", MagicMock())
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def resources(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "orders-openapi.yaml").write_text("openapi: 3.0.0")
    (tmp_path / "orders.har").write_text("{}")
    (tmp_path / "notes.txt").write_text("ignored")
    monkeypatch.setenv("MICROCKS_DEVSERVICES_RESOURCE_DIRS", json.dumps([str(tmp_path)]))
    return tmp_path


class TestScanCommand:
    def test_lists_classified_artifacts(
        self, resources: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cli.main(["scan"])

        out = capsys.readouterr().out
        assert f"primary    {resources / 'orders-openapi.yaml'}" in out
        assert f"secondary  {resources / 'orders.har'}" in out
        assert "notes.txt" not in out

    def test_empty_dirs(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("MICROCKS_DEVSERVICES_RESOURCE_DIRS", json.dumps([str(tmp_path)]))

        cli.main(["scan"])

        assert capsys.readouterr().out == "No artifacts found\n"

    def test_scan_error_exits(
        self,
        resources: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(
            cli, "scan", MagicMock(side_effect=ArtifactScanError("Failed to scan resources"))
        )

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["scan"])

        assert exc_info.value.code == 1
        assert capsys.readouterr().err == "Error: Failed to scan resources\n"


class TestPrintServices:
    @pytest.fixture
    def services(self) -> list[RunningDevService]:
        return [
            RunningDevService(
                name="default",
                container_id="abc",
                config={
                    "microcks.default.http": "http://localhost:1",
                    "microcks.default.grpc": "http://localhost:2",
                },
            )
        ]

    def test_properties_format(
        self, services: list[RunningDevService], capsys: pytest.CaptureFixture[str]
    ) -> None:
        cli.print_services(services, as_json=False)

        assert capsys.readouterr().out.splitlines() == [
            "microcks.default.grpc=http://localhost:2",
            "microcks.default.http=http://localhost:1",
        ]

    def test_json_format(
        self, services: list[RunningDevService], capsys: pytest.CaptureFixture[str]
    ) -> None:
        cli.print_services(services, as_json=True)

        assert json.loads(capsys.readouterr().out)["microcks.default.http"] == "http://localhost:1"


class TestBuildContext:
    def test_context_from_settings(self, resources: Path) -> None:
        context = cli.build_context(Settings(), "test", shared_network=True)

        assert context.launch_mode == LaunchMode.TEST
        assert context.use_shared_network is True
        assert context.resource_dirs == [resources]


class TestUpCommand:
    def test_start_failure_exits(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        manager = MagicMock()
        manager.ensure_running = AsyncMock(side_effect=DevServiceStartError("image pull denied"))
        monkeypatch.setattr(cli, "MicrocksRuntime", MagicMock())
        monkeypatch.setattr(cli, "DevServicesManager", MagicMock(return_value=manager))
        close_docker = AsyncMock()
        monkeypatch.setattr(cli, "close_docker", close_docker)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["up"])

        assert exc_info.value.code == 1
        assert "image pull denied" in capsys.readouterr().err
        close_docker.assert_awaited_once()

    def test_nothing_started(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        manager = MagicMock()
        manager.ensure_running = AsyncMock(return_value=[])
        monkeypatch.setattr(cli, "MicrocksRuntime", MagicMock())
        monkeypatch.setattr(cli, "DevServicesManager", MagicMock(return_value=manager))
        monkeypatch.setattr(cli, "close_docker", AsyncMock())

        cli.main(["up", "--mode", "test"])

        assert "not started" in capsys.readouterr().err
