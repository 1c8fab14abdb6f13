"""Fixtures for unit tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from microcks_devservice.config import DockerConfig
from microcks_devservice.infra import (
    ContainerAPI,
    DockerClient,
    ImageAPI,
    NetworkAPI,
    SystemAPI,
)
from microcks_devservice.lifecycle import ManagedState, ShutdownRegistry
from microcks_devservice.models import LaunchContext, LaunchMode, ServiceConfiguration


@pytest.fixture
def docker_config() -> DockerConfig:
    """DockerConfig with a TCP host so no socket is needed."""
    return DockerConfig(
        host="tcp://docker.test:2375",
        shared_network="test-net",
        host_access=True,
        stop_timeout=5,
    )


@pytest.fixture
def mock_docker_client(docker_config: DockerConfig) -> MagicMock:
    """Mock DockerClient exposing config and host_ip."""
    client = MagicMock(spec=DockerClient)
    client.config = docker_config
    client.host_ip = "docker.test"
    return client


@pytest.fixture
def mock_container_api() -> AsyncMock:
    """Mock ContainerAPI for testing."""
    api = AsyncMock(spec=ContainerAPI)
    api.list = AsyncMock(return_value=[])
    api.inspect = AsyncMock(return_value=None)
    api.create = AsyncMock(return_value="c0ffee0000000000")
    api.start = AsyncMock()
    api.stop = AsyncMock()
    api.remove = AsyncMock()
    return api


@pytest.fixture
def mock_image_api() -> AsyncMock:
    """Mock ImageAPI for testing."""
    api = AsyncMock(spec=ImageAPI)
    api.ensure = AsyncMock()
    return api


@pytest.fixture
def mock_network_api() -> AsyncMock:
    """Mock NetworkAPI for testing."""
    api = AsyncMock(spec=NetworkAPI)
    api.ensure = AsyncMock()
    return api


@pytest.fixture
def mock_system_api() -> AsyncMock:
    """Mock SystemAPI reporting a reachable daemon."""
    api = AsyncMock(spec=SystemAPI)
    api.ping = AsyncMock(return_value=True)
    return api


@pytest.fixture
def managed_state() -> ManagedState:
    """Fresh state per test instead of the process-wide singleton."""
    return ManagedState()


@pytest.fixture
def shutdown_registry() -> ShutdownRegistry:
    return ShutdownRegistry()


@pytest.fixture
def service_config() -> ServiceConfiguration:
    return ServiceConfiguration(service_name="default", container_env={"MODE": "dev"})


@pytest.fixture
def dev_context() -> LaunchContext:
    return LaunchContext(launch_mode=LaunchMode.DEVELOPMENT)


@pytest.fixture
def running_inspect() -> dict:
    """Container inspect payload of a running Microcks container."""
    return {
        "Id": "c0ffee0000000000",
        "State": {"Running": True, "Status": "running"},
        "NetworkSettings": {
            "Ports": {
                "8080/tcp": [{"HostIp": "0.0.0.0", "HostPort": "32768"}],
                "9090/tcp": [{"HostIp": "0.0.0.0", "HostPort": "32769"}],
            }
        },
    }
