"""Developer UI link to the running Microcks console."""

from collections.abc import Mapping, Sequence

from pydantic import BaseModel

from microcks_devservice.exporter import HTTP_PROTOCOL, url_key
from microcks_devservice.models import DEFAULT_SERVICE_NAME, LaunchMode, RunningDevService

MICROCKS_UI_TITLE = "Microcks UI"
MICROCKS_UI_ICON = "font-awesome-solid:plug-circle-bolt"


class ExternalPage(BaseModel):
    """External page shown on the developer UI card."""

    title: str
    url: str
    icon: str = MICROCKS_UI_ICON
    is_html_content: bool = True

    model_config = {"frozen": True}


def link_for(exposed_config: Mapping[str, str]) -> ExternalPage | None:
    """Link to the default service's UI, if its URL was published."""
    url = exposed_config.get(url_key(DEFAULT_SERVICE_NAME, HTTP_PROTOCOL))
    if url is None:
        return None
    return ExternalPage(title=MICROCKS_UI_TITLE, url=url)


def card_pages(
    services: Sequence[RunningDevService], launch_mode: LaunchMode
) -> list[ExternalPage]:
    """Pages for the developer UI card (development launches only)."""
    if launch_mode != LaunchMode.DEVELOPMENT or not services:
        return []
    page = link_for(services[0].config)
    return [page] if page is not None else []
