"""Unit tests for ContainerLocator."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from microcks_devservice.infra import ContainerAPI
from microcks_devservice.models import LaunchMode
from microcks_devservice.runtime import DEV_SERVICE_LABEL, ContainerLocator


def _container(container_id: str, private: int, public: int | None) -> dict:
    port = {"PrivatePort": private, "Type": "tcp"}
    if public is not None:
        port.update({"IP": "0.0.0.0", "PublicPort": public})
    return {"Id": container_id, "Image": "quay.io/microcks/microcks-uber:latest", "Ports": [port]}


class TestContainerLocator:
    """Tests for ContainerLocator."""

    @pytest.fixture
    def locator(self, mock_container_api: AsyncMock) -> ContainerLocator:
        return ContainerLocator(DEV_SERVICE_LABEL, 8080, mock_container_api, "docker.test")

    async def test_not_shared_never_queries(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        result = await locator.locate("default", False, LaunchMode.DEVELOPMENT)

        assert result is None
        mock_container_api.list.assert_not_called()

    @pytest.mark.parametrize("mode", [LaunchMode.TEST, LaunchMode.NORMAL])
    async def test_only_development_mode_queries(
        self,
        locator: ContainerLocator,
        mock_container_api: AsyncMock,
        mode: LaunchMode,
    ) -> None:
        assert await locator.locate("default", True, mode) is None
        mock_container_api.list.assert_not_called()

    async def test_filters_by_label_and_service(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        await locator.locate("orders", True, LaunchMode.DEVELOPMENT)

        filters = mock_container_api.list.call_args.kwargs["filters"]
        assert filters["label"] == [f"{DEV_SERVICE_LABEL}=orders"]
        assert filters["status"] == ["running"]

    async def test_found(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        mock_container_api.list.return_value = [_container("abc123", 8080, 49153)]

        result = await locator.locate("default", True, LaunchMode.DEVELOPMENT)

        assert result is not None
        assert result.id == "abc123"
        assert result.host == "docker.test"
        assert result.port == 49153

    async def test_other_port_is_a_miss(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        mock_container_api.list.return_value = [_container("abc123", 9090, 49154)]

        assert await locator.locate("default", True, LaunchMode.DEVELOPMENT) is None

    async def test_unpublished_port_is_a_miss(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        mock_container_api.list.return_value = [_container("abc123", 8080, None)]

        assert await locator.locate("default", True, LaunchMode.DEVELOPMENT) is None

    async def test_docker_error_is_a_miss(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        mock_container_api.list.side_effect = httpx.ConnectError("refused")

        assert await locator.locate("default", True, LaunchMode.DEVELOPMENT) is None

    async def test_is_read_only(
        self, locator: ContainerLocator, mock_container_api: AsyncMock
    ) -> None:
        mock_container_api.list.return_value = [_container("abc123", 8080, 49153)]

        await locator.locate("default", True, LaunchMode.DEVELOPMENT)

        mock_container_api.create.assert_not_called()
        mock_container_api.start.assert_not_called()
        mock_container_api.stop.assert_not_called()
        mock_container_api.remove.assert_not_called()


class TestContainerListFilters:
    """ContainerAPI.list encodes filters for the Docker API."""

    async def test_filters_are_json_encoded(self, mock_docker_client: MagicMock) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=[])

        http = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://docker.test"
        )
        mock_docker_client.get = AsyncMock(return_value=http)

        await ContainerAPI(mock_docker_client).list(filters={"label": ["a=b"]})

        assert seen["all"] == "false"
        assert json.loads(seen["filters"]) == {"label": ["a=b"]}
        await http.aclose()
