"""Microcks dev service: ephemeral Microcks instances for development and tests."""

from microcks_devservice.lifecycle import (
    DevServicesManager,
    ManagedState,
    ShutdownRegistry,
    get_managed_state,
    get_shutdown_registry,
)
from microcks_devservice.models import (
    ArtifactsConfiguration,
    LaunchContext,
    LaunchMode,
    RunningDevService,
    ServiceConfiguration,
)

__version__ = "0.1.0"

__all__ = [
    "ArtifactsConfiguration",
    "DevServicesManager",
    "LaunchContext",
    "LaunchMode",
    "ManagedState",
    "RunningDevService",
    "ServiceConfiguration",
    "ShutdownRegistry",
    "get_managed_state",
    "get_shutdown_registry",
]
