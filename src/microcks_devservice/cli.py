"""Microcks dev service CLI commands."""

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path

from microcks_devservice.artifacts import (
    PRIMARY_ARTIFACT_SUFFIXES,
    SECONDARY_ARTIFACT_SUFFIXES,
    classify,
    scan,
)
from microcks_devservice.config import Settings, get_settings
from microcks_devservice.devui import card_pages
from microcks_devservice.errors import ArtifactScanError, DevServiceStartError
from microcks_devservice.infra import close_docker
from microcks_devservice.lifecycle import DevServicesManager, get_shutdown_registry
from microcks_devservice.logging import setup_logging
from microcks_devservice.models import LaunchContext, LaunchMode, RunningDevService
from microcks_devservice.runtime import (
    DEV_SERVICE_LABEL,
    MICROCKS_GRPC_PORT,
    MICROCKS_HTTP_PORT,
    ContainerLocator,
    MicrocksRuntime,
)


def build_context(settings: Settings, mode: str, shared_network: bool = False) -> LaunchContext:
    """Launch context for a CLI invocation."""
    return LaunchContext(
        launch_mode=LaunchMode(mode),
        use_shared_network=shared_network,
        resource_dirs=[Path(d) for d in settings.devservices.resource_dirs],
    )


def print_services(services: list[RunningDevService], as_json: bool) -> None:
    """Print exposed configuration of running services."""
    exposed: dict[str, str] = {}
    for service in services:
        exposed.update(service.config)

    if as_json:
        print(json.dumps(exposed, indent=2, sort_keys=True))
        return

    for key in sorted(exposed):
        print(f"{key}={exposed[key]}")


async def wait_for_signal() -> None:
    """Block until SIGINT or SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    await stop.wait()


async def up(settings: Settings, mode: str, shared_network: bool, as_json: bool) -> None:
    """Start or reuse the dev service and keep it until interrupted."""
    manager = DevServicesManager(MicrocksRuntime())
    config = settings.devservices.to_service_configuration()
    context = build_context(settings, mode, shared_network)

    try:
        try:
            services = await manager.ensure_running(config, context)
        except DevServiceStartError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            sys.exit(1)

        if not services:
            print("Microcks dev service not started", file=sys.stderr)
            return

        print_services(services, as_json)
        for page in card_pages(services, context.launch_mode):
            print(f"{page.title}: {page.url}", file=sys.stderr)

        await wait_for_signal()
    finally:
        await get_shutdown_registry().run()
        await close_docker()


async def locate(settings: Settings) -> None:
    """Print the shared dev service address, if one is running."""
    runtime = MicrocksRuntime()
    service_name = settings.devservices.service_name
    try:
        for port in (MICROCKS_HTTP_PORT, MICROCKS_GRPC_PORT):
            locator = ContainerLocator(DEV_SERVICE_LABEL, port, runtime.containers, runtime.host)
            address = await locator.locate(service_name, True, LaunchMode.DEVELOPMENT)
            if address is None:
                print(f"No shared Microcks container found for '{service_name}'")
                sys.exit(1)
            print(f"{port}/tcp -> {address.host}:{address.port} ({address.id[:12]})")
    finally:
        await close_docker()


def list_artifacts(settings: Settings) -> None:
    """List artifacts found in the resource directories."""
    try:
        found = scan(
            settings.devservices.resource_dirs,
            PRIMARY_ARTIFACT_SUFFIXES + SECONDARY_ARTIFACT_SUFFIXES,
        )
    except ArtifactScanError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    if not found:
        print("No artifacts found")
        return

    print(f"{'Kind':<10} {'Path'}")
    print("-" * 60)
    for path in sorted(found):
        print(f"{classify(path).value:<10} {path}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Microcks dev service for local development and tests",
        prog="microcks-devservice",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # up command
    up_parser = subparsers.add_parser("up", help="Start or reuse the dev service")
    up_parser.add_argument(
        "--mode",
        choices=[LaunchMode.DEVELOPMENT.value, LaunchMode.TEST.value],
        default=LaunchMode.DEVELOPMENT.value,
        help="Launch mode (only development containers can be shared)",
    )
    up_parser.add_argument(
        "--shared-network",
        action="store_true",
        help="Join the shared dev services network",
    )
    up_parser.add_argument("--json", action="store_true", help="Print config as JSON")

    # locate command
    subparsers.add_parser("locate", help="Find a running shared dev service")

    # scan command
    subparsers.add_parser("scan", help="List artifacts that would be imported")

    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.logging)

    if args.command == "up":
        asyncio.run(up(settings, args.mode, args.shared_network, args.json))

    elif args.command == "locate":
        asyncio.run(locate(settings))

    elif args.command == "scan":
        list_artifacts(settings)


if __name__ == "__main__":
    main()
