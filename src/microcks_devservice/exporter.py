"""Connection properties published for a running Microcks dev service.

Key layout: microcks.<service>.<protocol>[.host|.port]
    microcks.default.http      = http://localhost:32768
    microcks.default.http.host = localhost
    microcks.default.http.port = 32768
"""

from collections.abc import Mapping

CONFIG_PREFIX = "microcks."
MICROCKS_SCHEME = "http://"

HTTP_PROTOCOL = "http"
GRPC_PROTOCOL = "grpc"


def config_prefix(service_name: str) -> str:
    return f"{CONFIG_PREFIX}{service_name}"


def url_key(service_name: str, protocol: str) -> str:
    return f"{config_prefix(service_name)}.{protocol}"


def export_config(
    service_name: str,
    visible_host: str,
    ports: Mapping[str, int],
) -> dict[str, str]:
    """Build the exposed configuration for every protocol port."""
    exposed: dict[str, str] = {}
    for protocol, port in ports.items():
        key = url_key(service_name, protocol)
        exposed[key] = f"{MICROCKS_SCHEME}{visible_host}:{port}"
        exposed[f"{key}.host"] = visible_host
        exposed[f"{key}.port"] = str(port)
    return exposed
