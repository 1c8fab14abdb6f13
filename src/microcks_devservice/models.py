"""Dev service domain models."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_SERVICE_NAME = "default"


class LaunchMode(StrEnum):
    """How the host process was launched."""

    DEVELOPMENT = "development"
    TEST = "test"
    NORMAL = "normal"


class ArtifactsConfiguration(BaseModel):
    """Explicit artifacts to import, bypassing the resource scan."""

    primaries: list[str]
    secondaries: list[str] | None = None

    model_config = {"frozen": True}


class ServiceConfiguration(BaseModel):
    """Configuration of one logical Microcks dev service.

    Two values are compared by structural equality to decide whether the
    running instances must be restarted.
    """

    service_name: str = DEFAULT_SERVICE_NAME
    enabled: bool = True
    image_name: str | None = None
    shared: bool = True
    container_env: dict[str, str] = Field(default_factory=dict)
    startup_timeout: timedelta | None = None
    artifacts: ArtifactsConfiguration | None = None

    model_config = {"frozen": True}


class LaunchContext(BaseModel):
    """Per-invocation data supplied by the host, outside the restart comparison."""

    launch_mode: LaunchMode = LaunchMode.DEVELOPMENT
    use_shared_network: bool = False
    resource_dirs: list[Path] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def is_test(self) -> bool:
        return self.launch_mode == LaunchMode.TEST


class ContainerAddress(BaseModel):
    """Address of a discovered container port."""

    id: str
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


CloseHandle = Callable[[], Awaitable[None]]


@dataclass
class RunningDevService:
    """A dev service tracked by the lifecycle manager.

    The release handle is a capability: services started by this process close
    their container, located shared services carry no handle and closing them
    is a no-op.
    """

    name: str
    container_id: str
    config: dict[str, str]
    close_handle: CloseHandle | None = None
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def is_owned(self) -> bool:
        return self.close_handle is not None

    async def close(self) -> None:
        """Release the service (idempotent)."""
        if self._closed:
            return
        if self.close_handle is not None:
            await self.close_handle()
        self._closed = True
