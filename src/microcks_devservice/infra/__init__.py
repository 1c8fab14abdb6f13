"""Infrastructure layer."""

from microcks_devservice.infra.docker import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HostConfig,
    ImageAPI,
    NetworkAPI,
    SystemAPI,
    close_docker,
    docker_host_ip,
    get_docker_client,
)

__all__ = [
    "ContainerAPI",
    "ContainerConfig",
    "DockerClient",
    "HostConfig",
    "ImageAPI",
    "NetworkAPI",
    "SystemAPI",
    "close_docker",
    "docker_host_ip",
    "get_docker_client",
]
