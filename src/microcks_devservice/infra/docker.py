"""Docker Engine API client.

Provides async Docker API access for containers, images and networks.
Supports both Unix socket and TCP connections.
"""

import json
import logging
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel

from microcks_devservice.config import DockerConfig, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================


class HostConfig(BaseModel):
    """Docker HostConfig for container creation."""

    network_mode: str = "bridge"
    publish_all_ports: bool = True
    extra_hosts: list[str] = []

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        result: dict = {
            "NetworkMode": self.network_mode,
            "PublishAllPorts": self.publish_all_ports,
        }
        if self.extra_hosts:
            result["ExtraHosts"] = self.extra_hosts
        return result


class ContainerConfig(BaseModel):
    """Docker container configuration for creation."""

    image: str
    name: str
    env: list[str] = []
    labels: dict[str, str] = {}
    exposed_ports: dict[str, dict] = {}
    host_config: HostConfig = HostConfig()
    network_aliases: list[str] = []

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API JSON format."""
        result: dict = {
            "Image": self.image,
            "ExposedPorts": self.exposed_ports,
            "HostConfig": self.host_config.to_api(),
        }
        if self.env:
            result["Env"] = self.env
        if self.labels:
            result["Labels"] = self.labels
        if self.network_aliases:
            result["NetworkingConfig"] = {
                "EndpointsConfig": {
                    self.host_config.network_mode: {"Aliases": self.network_aliases},
                },
            }
        return result


def docker_host_ip(docker_host: str) -> str:
    """Host name under which published container ports are reachable."""
    if docker_host.startswith(("tcp://", "http://", "https://")):
        return urlparse(docker_host).hostname or "localhost"
    return "localhost"


# =============================================================================
# Docker Client (Singleton)
# =============================================================================


class DockerClient:
    """Async Docker API client."""

    def __init__(self, config: DockerConfig | None = None) -> None:
        self._config = config or get_settings().docker
        self._host = self._config.host
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> DockerConfig:
        return self._config

    @property
    def host_ip(self) -> str:
        return docker_host_ip(self._host)

    def _create_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client."""
        timeout = self._config.api_timeout
        if self._host.startswith("unix://"):
            socket_path = self._host.replace("unix://", "")
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://localhost",
                timeout=timeout,
            )
        else:
            base_url = self._host
            if base_url.startswith("tcp://"):
                base_url = base_url.replace("tcp://", "http://")
            return httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


# Global singleton
_docker_client: DockerClient | None = None


def get_docker_client() -> DockerClient:
    """Get the global Docker client singleton."""
    global _docker_client
    if _docker_client is None:
        _docker_client = DockerClient()
    return _docker_client


async def close_docker() -> None:
    """Close the global Docker client."""
    global _docker_client
    if _docker_client:
        await _docker_client.close()
        _docker_client = None


# =============================================================================
# System API
# =============================================================================


class SystemAPI:
    """Docker daemon reachability."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def ping(self) -> bool:
        """Check that the Docker daemon answers."""
        try:
            client = await self._docker.get()
            resp = await client.get("/_ping")
        except httpx.HTTPError as e:
            logger.debug("Docker ping failed: %s", e)
            return False
        return resp.status_code == 200


# =============================================================================
# Container API
# =============================================================================


class ContainerAPI:
    """Docker Container API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def list(self, filters: dict | None = None, all: bool = False) -> list[dict]:
        """List containers (running only unless all=True)."""
        client = await self._docker.get()
        params: dict = {"all": "true" if all else "false"}
        if filters:
            params["filters"] = json.dumps(filters)
        resp = await client.get("/containers/json", params=params)
        resp.raise_for_status()
        return resp.json()

    async def inspect(self, container_id: str) -> dict | None:
        """Inspect a container."""
        client = await self._docker.get()
        resp = await client.get(f"/containers/{container_id}/json")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def create(self, config: ContainerConfig) -> str:
        """Create a container and return its id."""
        client = await self._docker.get()
        resp = await client.post(
            "/containers/create",
            params={"name": config.name},
            json=config.to_api(),
        )
        resp.raise_for_status()
        container_id = resp.json()["Id"]
        logger.info("Created container: %s (%s)", config.name, container_id[:12])
        return container_id

    async def start(self, container_id: str) -> None:
        """Start a container."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{container_id}/start")
        if resp.status_code not in (204, 304):
            resp.raise_for_status()
        logger.info("Started container: %s", container_id[:12])

    async def stop(self, container_id: str, timeout: int = 10) -> None:
        """Stop a container."""
        client = await self._docker.get()
        resp = await client.post(
            f"/containers/{container_id}/stop",
            params={"t": str(timeout)},
            timeout=timeout + self._docker.config.api_timeout,
        )
        if resp.status_code not in (204, 304, 404):
            resp.raise_for_status()
        logger.info("Stopped container: %s", container_id[:12])

    async def remove(self, container_id: str, force: bool = True) -> None:
        """Remove a container and its anonymous volumes."""
        client = await self._docker.get()
        resp = await client.delete(
            f"/containers/{container_id}",
            params={"force": "true" if force else "false", "v": "true"},
        )
        if resp.status_code == 404:
            logger.debug("Container not found: %s", container_id[:12])
            return
        resp.raise_for_status()
        logger.info("Removed container: %s", container_id[:12])


# =============================================================================
# Image API
# =============================================================================


class ImageAPI:
    """Docker Image API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def exists(self, image_ref: str) -> bool:
        """Check if image exists locally."""
        client = await self._docker.get()
        resp = await client.get(f"/images/{image_ref}/json")
        return resp.status_code == 200

    async def pull(self, image_ref: str) -> None:
        """Pull image from registry."""
        client = await self._docker.get()

        image, _, tag = image_ref.rpartition(":")
        if not image or "/" in tag:
            image, tag = image_ref, "latest"

        logger.info("Pulling image: %s:%s", image, tag)

        resp = await client.post(
            "/images/create",
            params={"fromImage": image, "tag": tag},
            timeout=self._docker.config.image_pull_timeout,
        )
        resp.raise_for_status()
        logger.info("Pulled image: %s:%s", image, tag)

    async def ensure(self, image_ref: str) -> None:
        """Ensure image exists locally, pull if not."""
        if not await self.exists(image_ref):
            await self.pull(image_ref)


# =============================================================================
# Network API
# =============================================================================


class NetworkAPI:
    """Docker Network API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def inspect(self, name: str) -> dict | None:
        """Inspect a network."""
        client = await self._docker.get()
        resp = await client.get(f"/networks/{name}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def ensure(self, name: str) -> None:
        """Create a bridge network if it does not exist (idempotent)."""
        if await self.inspect(name) is not None:
            return
        client = await self._docker.get()
        resp = await client.post(
            "/networks/create",
            json={"Name": name, "Driver": "bridge", "CheckDuplicate": True},
        )
        if resp.status_code == 409:
            logger.debug("Network already exists: %s", name)
            return
        resp.raise_for_status()
        logger.info("Created network: %s", name)
