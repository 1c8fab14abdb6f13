"""Dev service configuration using pydantic-settings.

Configuration hierarchy:
- DockerConfig: Container runtime settings
- DevServiceConfig: Microcks dev service settings (one logical service)
- LoggingConfig: Logging behavior
- Settings: Main config aggregating all sub-configs

Environment variable prefix: MICROCKS_
Example: MICROCKS_DEVSERVICES_SHARED=false
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from microcks_devservice.models import ArtifactsConfiguration, ServiceConfiguration


class DockerConfig(BaseSettings):
    """Docker runtime configuration."""

    model_config = SettingsConfigDict(env_prefix="MICROCKS_DOCKER_", populate_by_name=True)

    # Connection
    host: str = Field(
        default="unix:///var/run/docker.sock",
        validation_alias=AliasChoices("MICROCKS_DOCKER_HOST", "DOCKER_HOST"),
        description="Docker daemon socket or TCP address",
    )

    # Networking
    shared_network: str = Field(
        default="microcks-devservices",
        description="Network joined by dev services when a shared network is requested",
    )
    host_access: bool = Field(
        default=True,
        description="Map host.docker.internal to the host gateway inside the container",
    )

    # Timeouts
    api_timeout: float = Field(default=30.0, description="Docker API call timeout (seconds)")
    image_pull_timeout: float = Field(default=600.0, description="Image pull timeout (seconds)")
    stop_timeout: int = Field(default=10, description="Grace period before killing a container (seconds)")


class DevServiceConfig(BaseSettings):
    """Microcks dev service configuration.

    Flat environment-friendly view of ServiceConfiguration. Artifact lists are
    JSON encoded when given through the environment, e.g.
    MICROCKS_DEVSERVICES_ARTIFACTS_PRIMARIES='["api-openapi.yaml"]'.
    """

    model_config = SettingsConfigDict(env_prefix="MICROCKS_DEVSERVICES_")

    service_name: str = Field(default="default", description="Logical dev service name")
    enabled: bool = Field(default=True, description="Start the dev service at all")
    image_name: str | None = Field(default=None, description="Microcks image override")
    shared: bool = Field(default=True, description="Reuse a running shared instance")
    container_env: dict[str, str] = Field(default_factory=dict)
    startup_timeout: timedelta | None = Field(
        default=None,
        description="Readiness timeout; defaults to the runtime default",
    )

    # Explicit artifacts (disable scanning when primaries are set)
    artifacts_primaries: list[str] | None = None
    artifacts_secondaries: list[str] | None = None

    # Scanned when no explicit artifacts are configured
    resource_dirs: list[str] = Field(
        default=["resources", "tests/resources"],
        description="Project directories scanned for artifacts",
    )

    def to_service_configuration(self) -> ServiceConfiguration:
        """Build the immutable configuration compared across invocations."""
        artifacts = None
        if self.artifacts_primaries is not None:
            artifacts = ArtifactsConfiguration(
                primaries=self.artifacts_primaries,
                secondaries=self.artifacts_secondaries,
            )
        return ServiceConfiguration(
            service_name=self.service_name,
            enabled=self.enabled,
            image_name=self.image_name,
            shared=self.shared,
            container_env=self.container_env,
            startup_timeout=self.startup_timeout,
            artifacts=artifacts,
        )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats:
    - text: Human-readable for local development
    - json: Structured logging for CI log collection
    """

    model_config = SettingsConfigDict(env_prefix="MICROCKS_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="microcks-devservice", description="Service identifier in logs")


class Settings(BaseSettings):
    """Main configuration aggregating all sub-configs.

    Sub-configs use their own prefixes (MICROCKS_DOCKER_, MICROCKS_DEVSERVICES_, ...)
    """

    model_config = SettingsConfigDict(
        env_prefix="MICROCKS_",
        env_nested_delimiter="__",
    )

    docker: DockerConfig = Field(default_factory=DockerConfig)
    devservices: DevServiceConfig = Field(default_factory=DevServiceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
