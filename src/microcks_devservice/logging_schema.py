"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the dev service.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.CONTAINER_STARTED, ...})
    """

    # Dev service lifecycle
    DEVSERVICE_STARTING = "devservice_starting"
    DEVSERVICE_READY = "devservice_ready"
    DEVSERVICE_REUSED = "devservice_reused"
    DEVSERVICE_RESTARTING = "devservice_restarting"
    DEVSERVICE_DISABLED = "devservice_disabled"
    DEVSERVICE_START_FAILED = "devservice_start_failed"
    DEVSERVICE_STOP_FAILED = "devservice_stop_failed"
    SHUTDOWN_HOOK_REGISTERED = "shutdown_hook_registered"
    SHUTDOWN_COMPLETED = "shutdown_completed"

    # Container events
    CONTAINER_CREATED = "container_created"
    CONTAINER_STARTED = "container_started"
    CONTAINER_REMOVED = "container_removed"
    CONTAINER_LOCATED = "container_located"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"

    # Artifact events
    ARTIFACT_IMPORTED = "artifact_imported"
    ARTIFACT_IMPORT_FAILED = "artifact_import_failed"
    ARTIFACT_SCAN_FAILED = "artifact_scan_failed"
    ARTIFACTS_LOADED = "artifacts_loaded"
