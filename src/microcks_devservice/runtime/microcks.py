"""Microcks container runtime.

Starts Microcks "uber" containers through the Docker Engine API, waits for
readiness and uploads artifacts through the Microcks REST API.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

import httpx

from microcks_devservice.errors import (
    ArtifactImportError,
    DevServiceStartError,
    StartupTimeoutError,
)
from microcks_devservice.exporter import GRPC_PROTOCOL, HTTP_PROTOCOL
from microcks_devservice.infra import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HostConfig,
    ImageAPI,
    NetworkAPI,
    SystemAPI,
    get_docker_client,
)
from microcks_devservice.logging_schema import LogEvent
from microcks_devservice.models import LaunchContext, LaunchMode, ServiceConfiguration

logger = logging.getLogger(__name__)

MICROCKS_UBER_LATEST = "quay.io/microcks/microcks-uber:latest"
MICROCKS_HTTP_PORT = 8080
MICROCKS_GRPC_PORT = 9090

# Label put on development containers so other processes can reuse them.
DEV_SERVICE_LABEL = "microcks-dev-service"

DEFAULT_STARTUP_TIMEOUT = 60.0
READINESS_POLL_INTERVAL = 0.5
HEALTH_PATH = "/api/health"
UPLOAD_PATH = "/api/artifact/upload"
HOST_GATEWAY = "host.docker.internal:host-gateway"


def _parse_port_bindings(data: dict) -> dict[int, int]:
    """Extract {container port: host port} from container inspect data."""
    ports = data.get("NetworkSettings", {}).get("Ports") or {}
    mapped: dict[int, int] = {}
    for spec, bindings in ports.items():
        if not bindings:
            continue
        private, _, proto = spec.partition("/")
        if proto and proto != "tcp":
            continue
        mapped[int(private)] = int(bindings[0]["HostPort"])
    return mapped


class MicrocksContainer:
    """Handle on a Microcks container started by this process."""

    def __init__(
        self,
        container_id: str,
        host: str,
        ports: dict[int, int],
        containers: ContainerAPI,
        stop_timeout: int = 10,
        network_alias: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.container_id = container_id
        self.host = host
        self.network_alias = network_alias
        self._ports = ports
        self._containers = containers
        self._stop_timeout = stop_timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._closed = False

    def mapped_port(self, port: int) -> int:
        try:
            return self._ports[port]
        except KeyError:
            raise DevServiceStartError(
                f"Port {port} is not published by container {self.container_id[:12]}"
            ) from None

    @property
    def http_endpoint(self) -> str:
        return f"http://{self.host}:{self.mapped_port(MICROCKS_HTTP_PORT)}"

    @property
    def visible_host(self) -> str:
        return self.network_alias or self.host

    def exposed_ports(self) -> dict[str, int]:
        """Ports by protocol as seen from the visible host."""
        if self.network_alias:
            return {HTTP_PROTOCOL: MICROCKS_HTTP_PORT, GRPC_PROTOCOL: MICROCKS_GRPC_PORT}
        return {
            HTTP_PROTOCOL: self.mapped_port(MICROCKS_HTTP_PORT),
            GRPC_PROTOCOL: self.mapped_port(MICROCKS_GRPC_PORT),
        }

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.http_endpoint, transport=self._transport, timeout=30.0
            )
        return self._http

    async def wait_until_ready(self, poll_interval: float = READINESS_POLL_INTERVAL) -> None:
        """Poll the health endpoint until it answers 200.

        Raises:
            DevServiceStartError: The container stopped before becoming ready.
        """
        client = self._client()
        while True:
            try:
                resp = await client.get(HEALTH_PATH)
                if resp.status_code == 200:
                    return
            except httpx.HTTPError as e:
                logger.debug("Microcks not ready yet: %s", e)

            data = await self._containers.inspect(self.container_id)
            state = (data or {}).get("State", {})
            if not state.get("Running", False):
                raise DevServiceStartError(
                    f"Microcks container {self.container_id[:12]} exited "
                    f"({state.get('Status', 'removed')}) before becoming ready"
                )
            await asyncio.sleep(poll_interval)

    async def import_as_main_artifact(self, path: Path) -> None:
        await self._upload(path, main_artifact=True)

    async def import_as_secondary_artifact(self, path: Path) -> None:
        await self._upload(path, main_artifact=False)

    async def _upload(self, path: Path, main_artifact: bool) -> None:
        content = path.read_bytes()
        resp = await self._client().post(
            UPLOAD_PATH,
            params={"mainArtifact": "true" if main_artifact else "false"},
            files={"file": (path.name, content)},
        )
        if resp.status_code != 201:
            raise ArtifactImportError(
                str(path),
                f"Artifact has not been correctly imported (HTTP {resp.status_code})",
            )

    async def close_client(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def close(self) -> None:
        """Stop and remove the container (idempotent).

        The container is removed even if the graceful stop fails; it only
        counts as closed once the remove succeeded.
        """
        if self._closed:
            return
        await self.close_client()
        try:
            await self._containers.stop(self.container_id, timeout=self._stop_timeout)
        finally:
            await self._containers.remove(self.container_id, force=True)
            self._closed = True
        logger.info(
            "Microcks container removed",
            extra={"event": LogEvent.CONTAINER_REMOVED, "container": self.container_id[:12]},
        )


class MicrocksRuntime:
    """Container runtime collaborator backed by the Docker Engine API."""

    def __init__(
        self,
        docker: DockerClient | None = None,
        containers: ContainerAPI | None = None,
        images: ImageAPI | None = None,
        networks: NetworkAPI | None = None,
        system: SystemAPI | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._docker = docker or get_docker_client()
        self._containers = containers or ContainerAPI(self._docker)
        self._images = images or ImageAPI(self._docker)
        self._networks = networks or NetworkAPI(self._docker)
        self._system = system or SystemAPI(self._docker)
        self._transport = transport

    @property
    def host(self) -> str:
        return self._docker.host_ip

    @property
    def containers(self) -> ContainerAPI:
        return self._containers

    async def is_available(self) -> bool:
        return await self._system.ping()

    async def start(
        self, config: ServiceConfiguration, context: LaunchContext
    ) -> MicrocksContainer:
        """Create, start and wait for a Microcks container.

        The container is removed again if it does not become ready.

        Raises:
            StartupTimeoutError: Not ready within the startup timeout.
            DevServiceStartError: The container stopped or ports are missing.
            httpx.HTTPError: Docker API failure.
        """
        docker_config = self._docker.config
        image = config.image_name or MICROCKS_UBER_LATEST
        timeout = (
            config.startup_timeout.total_seconds()
            if config.startup_timeout is not None
            else DEFAULT_STARTUP_TIMEOUT
        )
        token = uuid.uuid4().hex[:8]

        labels: dict[str, str] = {}
        if context.launch_mode == LaunchMode.DEVELOPMENT:
            labels[DEV_SERVICE_LABEL] = config.service_name

        network_mode = "bridge"
        network_alias: str | None = None
        if context.use_shared_network:
            network_mode = docker_config.shared_network
            network_alias = f"microcks-{config.service_name}-{token}"
            await self._networks.ensure(network_mode)

        await self._images.ensure(image)

        container_config = ContainerConfig(
            image=image,
            name=f"microcks-devservice-{config.service_name}-{token}",
            env=[f"{key}={value}" for key, value in config.container_env.items()],
            labels=labels,
            exposed_ports={
                f"{MICROCKS_HTTP_PORT}/tcp": {},
                f"{MICROCKS_GRPC_PORT}/tcp": {},
            },
            host_config=HostConfig(
                network_mode=network_mode,
                extra_hosts=[HOST_GATEWAY] if docker_config.host_access else [],
            ),
            network_aliases=[network_alias] if network_alias else [],
        )

        container_id = await self._containers.create(container_config)
        logger.info(
            "Created Microcks container",
            extra={
                "event": LogEvent.CONTAINER_CREATED,
                "container": container_id[:12],
                "image": image,
                "service": config.service_name,
            },
        )

        container: MicrocksContainer | None = None
        try:
            async with asyncio.timeout(timeout):
                await self._containers.start(container_id)
                container = await self._attach(container_id, network_alias)
                await container.wait_until_ready()
        except TimeoutError as e:
            await self._discard(container_id, container)
            raise StartupTimeoutError(timeout) from e
        except (Exception, asyncio.CancelledError):
            await self._discard(container_id, container)
            raise

        logger.info(
            "Microcks container started",
            extra={
                "event": LogEvent.CONTAINER_STARTED,
                "container": container_id[:12],
                "endpoint": container.http_endpoint,
            },
        )
        return container

    async def _attach(self, container_id: str, network_alias: str | None) -> MicrocksContainer:
        data = await self._containers.inspect(container_id)
        if data is None:
            raise DevServiceStartError(f"Container {container_id[:12]} disappeared after start")
        return MicrocksContainer(
            container_id=container_id,
            host=self.host,
            ports=_parse_port_bindings(data),
            containers=self._containers,
            stop_timeout=self._docker.config.stop_timeout,
            network_alias=network_alias,
            transport=self._transport,
        )

    async def _discard(self, container_id: str, container: MicrocksContainer | None) -> None:
        try:
            if container is not None:
                await container.close_client()
            await self._containers.remove(container_id, force=True)
        except Exception:
            logger.warning(
                "Failed to remove Microcks container %s after failed start",
                container_id[:12],
                exc_info=True,
                extra={"event": LogEvent.DEVSERVICE_STOP_FAILED},
            )
