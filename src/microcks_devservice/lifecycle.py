"""Dev service lifecycle management.

States: Absent -> Starting -> Running -> (Stopping -> Absent | Restarting -> Starting)

ensure_running() is called on every build/test cycle:
- Same configuration while running: the tracked services are returned as is.
- Changed configuration: tracked services are closed first, then new ones
  are started (never two owned instances of one service at a time).
- A shared container found by label is reused without import and is never
  closed by this process.

ManagedState is process-wide and every read or write happens under its lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import lru_cache

from microcks_devservice.artifacts import import_artifacts
from microcks_devservice.errors import DevServiceStartError
from microcks_devservice.exporter import GRPC_PROTOCOL, HTTP_PROTOCOL, export_config, url_key
from microcks_devservice.logging_schema import LogEvent
from microcks_devservice.models import (
    LaunchContext,
    LaunchMode,
    RunningDevService,
    ServiceConfiguration,
)
from microcks_devservice.runtime import (
    DEV_SERVICE_LABEL,
    MICROCKS_GRPC_PORT,
    MICROCKS_HTTP_PORT,
    ContainerLocator,
    MicrocksRuntime,
)

logger = logging.getLogger(__name__)

CloseTask = Callable[[], Awaitable[None]]


class ShutdownRegistry:
    """Close tasks run by the host when the process shuts down."""

    def __init__(self) -> None:
        self._tasks: list[CloseTask] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add_close_task(self, task: CloseTask) -> None:
        self._tasks.append(task)

    async def run(self) -> None:
        """Run and forget all close tasks, most recent first."""
        tasks, self._tasks = self._tasks, []
        for task in reversed(tasks):
            try:
                await task()
            except Exception:
                logger.error("Close task failed", exc_info=True)


@dataclass
class ManagedState:
    """Dev services tracked by this process and the config that produced them.

    devservices and captured_config are either both set or both None.
    """

    devservices: list[RunningDevService] | None = None
    captured_config: ServiceConfiguration | None = None
    hook_registered: bool = False
    _lock: asyncio.Lock | None = field(default=None, init=False, repr=False)
    _lock_loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)

    @property
    def lock(self) -> asyncio.Lock:
        """Lock for the running event loop.

        An asyncio.Lock binds to the loop it first waits on, so a new one is
        made when the state outlives its loop (a second asyncio.run).
        """
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @property
    def is_present(self) -> bool:
        return self.devservices is not None

    def capture(self, config: ServiceConfiguration, services: list[RunningDevService]) -> None:
        self.devservices = services
        self.captured_config = config

    def reset(self) -> None:
        self.devservices = None
        self.captured_config = None


@lru_cache
def get_managed_state() -> ManagedState:
    """Get the process-wide managed state."""
    return ManagedState()


@lru_cache
def get_shutdown_registry() -> ShutdownRegistry:
    """Get the process-wide shutdown registry."""
    return ShutdownRegistry()


async def _close_all(services: list[RunningDevService], message: str) -> None:
    for service in services:
        try:
            await service.close()
        except Exception:
            logger.error(
                message,
                exc_info=True,
                extra={
                    "event": LogEvent.DEVSERVICE_STOP_FAILED,
                    "container": service.container_id[:12],
                },
            )


class DevServicesManager:
    """Locate-or-start orchestration for the Microcks dev service."""

    def __init__(
        self,
        runtime: MicrocksRuntime,
        state: ManagedState | None = None,
        shutdown: ShutdownRegistry | None = None,
        http_locator: ContainerLocator | None = None,
        grpc_locator: ContainerLocator | None = None,
    ) -> None:
        self._runtime = runtime
        self._state = state if state is not None else get_managed_state()
        self._shutdown = shutdown if shutdown is not None else get_shutdown_registry()
        self._http_locator = http_locator or ContainerLocator(
            DEV_SERVICE_LABEL, MICROCKS_HTTP_PORT, runtime.containers, runtime.host
        )
        self._grpc_locator = grpc_locator or ContainerLocator(
            DEV_SERVICE_LABEL, MICROCKS_GRPC_PORT, runtime.containers, runtime.host
        )

    @property
    def state(self) -> ManagedState:
        return self._state

    async def ensure_running(
        self, config: ServiceConfiguration, context: LaunchContext
    ) -> list[RunningDevService]:
        """Return running dev services for config, starting them if needed.

        Raises:
            DevServiceStartError: No instance could be started.
        """
        if context.launch_mode == LaunchMode.NORMAL:
            logger.debug("Dev services are not started in normal launch mode")
            return []

        async with self._state.lock:
            state = self._state
            if state.devservices is not None:
                if config == state.captured_config:
                    return list(state.devservices)
                logger.info(
                    "Microcks dev service configuration changed, restarting",
                    extra={
                        "event": LogEvent.DEVSERVICE_RESTARTING,
                        "service": config.service_name,
                    },
                )
                await _close_all(state.devservices, "Failed to stop microcks container")
                state.reset()

            logger.info(
                "%sMicrocks Dev Services Starting",
                "(test) " if context.is_test else "",
                extra={"event": LogEvent.DEVSERVICE_STARTING, "service": config.service_name},
            )
            try:
                service = await self._start(config, context)
            except Exception as e:
                logger.error(
                    "Failed to start Microcks dev service '%s'",
                    config.service_name,
                    exc_info=True,
                    extra={"event": LogEvent.DEVSERVICE_START_FAILED},
                )
                if isinstance(e, DevServiceStartError):
                    raise
                raise DevServiceStartError(
                    f"Failed to start Microcks dev service '{config.service_name}': {e}"
                ) from e

            services = [service] if service is not None else []
            if service is not None:
                logger.info(
                    "The '%s' microcks container is ready on %s",
                    config.service_name,
                    service.config.get(url_key(config.service_name, HTTP_PROTOCOL)),
                    extra={
                        "event": LogEvent.DEVSERVICE_READY,
                        "container": service.container_id[:12],
                        "owned": service.is_owned,
                    },
                )
            state.capture(config, services)

            if not state.hook_registered:
                state.hook_registered = True
                self._shutdown.add_close_task(self._run_shutdown_hook)
                logger.debug(
                    "Registered dev services shutdown hook",
                    extra={"event": LogEvent.SHUTDOWN_HOOK_REGISTERED},
                )

            return list(services)

    async def shutdown(self) -> None:
        """Close tracked services and return to the absent state."""
        async with self._state.lock:
            if self._state.devservices:
                await _close_all(self._state.devservices, "Failed to stop microcks")
            self._state.reset()
        logger.info("Microcks dev services stopped", extra={"event": LogEvent.SHUTDOWN_COMPLETED})

    async def _run_shutdown_hook(self) -> None:
        """Close task run by the registry; the next start registers a new one."""
        await self.shutdown()
        async with self._state.lock:
            self._state.hook_registered = False

    async def _start(
        self, config: ServiceConfiguration, context: LaunchContext
    ) -> RunningDevService | None:
        if not config.enabled:
            logger.debug(
                "Not starting devservices for Microcks as it has been disabled in the config",
                extra={"event": LogEvent.DEVSERVICE_DISABLED},
            )
            return None

        if not await self._runtime.is_available():
            logger.warning(
                "Please configure a Microcks instance or get a working docker instance",
                extra={"event": LogEvent.RUNTIME_UNAVAILABLE},
            )
            return None

        located = await self._locate(config, context)
        if located is not None:
            return located

        container = await self._runtime.start(config, context)
        try:
            exposed = export_config(
                config.service_name, container.visible_host, container.exposed_ports()
            )
        except DevServiceStartError:
            await container.close()
            raise

        report = await import_artifacts(container, config.artifacts, context.resource_dirs)
        logger.info(
            "Loaded %d artifact(s) in microcks, %d failed",
            len(report.imported),
            len(report.failures),
            extra={
                "event": LogEvent.ARTIFACTS_LOADED,
                "service": config.service_name,
                "container": container.container_id[:12],
                "failed": len(report.failures),
            },
        )

        return RunningDevService(
            name=config.service_name,
            container_id=container.container_id,
            config=exposed,
            close_handle=container.close,
        )

    async def _locate(
        self, config: ServiceConfiguration, context: LaunchContext
    ) -> RunningDevService | None:
        """Reuse a shared container only if both protocol ports resolve."""
        http_address = await self._http_locator.locate(
            config.service_name, config.shared, context.launch_mode
        )
        if http_address is None:
            return None
        grpc_address = await self._grpc_locator.locate(
            config.service_name, config.shared, context.launch_mode
        )
        if grpc_address is None:
            logger.info(
                "Shared Microcks container %s has no gRPC port, starting a new one",
                http_address.id[:12],
            )
            return None

        logger.info(
            "Reusing shared Microcks container",
            extra={"event": LogEvent.DEVSERVICE_REUSED, "container": http_address.id[:12]},
        )
        return RunningDevService(
            name=config.service_name,
            container_id=http_address.id,
            config=export_config(
                config.service_name,
                http_address.host,
                {HTTP_PROTOCOL: http_address.port, GRPC_PROTOCOL: grpc_address.port},
            ),
        )
