"""Microcks container runtime and discovery."""

from microcks_devservice.runtime.locator import ContainerLocator
from microcks_devservice.runtime.microcks import (
    DEV_SERVICE_LABEL,
    MICROCKS_GRPC_PORT,
    MICROCKS_HTTP_PORT,
    MICROCKS_UBER_LATEST,
    MicrocksContainer,
    MicrocksRuntime,
)

__all__ = [
    "DEV_SERVICE_LABEL",
    "MICROCKS_GRPC_PORT",
    "MICROCKS_HTTP_PORT",
    "MICROCKS_UBER_LATEST",
    "ContainerLocator",
    "MicrocksContainer",
    "MicrocksRuntime",
]
