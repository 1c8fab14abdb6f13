"""Discovery of shared dev service containers started by other processes."""

import logging

import httpx

from microcks_devservice.infra import ContainerAPI
from microcks_devservice.logging_schema import LogEvent
from microcks_devservice.models import ContainerAddress, LaunchMode

logger = logging.getLogger(__name__)


class ContainerLocator:
    """Find a running container labelled for a service and publishing a port.

    Lookups are read-only. Only development launches look for shared
    containers, and only development containers carry the label, so test runs
    never attach to a dev-loop instance.
    """

    def __init__(self, label: str, port: int, containers: ContainerAPI, host: str) -> None:
        self._label = label
        self._port = port
        self._containers = containers
        self._host = host

    async def locate(
        self, service_name: str, shared: bool, launch_mode: LaunchMode
    ) -> ContainerAddress | None:
        if not shared or launch_mode != LaunchMode.DEVELOPMENT:
            return None

        try:
            containers = await self._containers.list(
                filters={
                    "label": [f"{self._label}={service_name}"],
                    "status": ["running"],
                }
            )
        except httpx.HTTPError as e:
            logger.warning("Failed to look up shared dev service containers: %s", e)
            return None

        for container in containers:
            for port in container.get("Ports", []):
                if port.get("PrivatePort") != self._port or not port.get("PublicPort"):
                    continue
                address = ContainerAddress(
                    id=container["Id"], host=self._host, port=port["PublicPort"]
                )
                logger.info(
                    "Dev Services container found: %s (%s). Connecting to: %s:%d",
                    address.id[:12],
                    container.get("Image", "unknown"),
                    address.host,
                    address.port,
                    extra={
                        "event": LogEvent.CONTAINER_LOCATED,
                        "container": address.id[:12],
                        "service": service_name,
                    },
                )
                return address
        return None
