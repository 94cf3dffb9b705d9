from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from forwarding_mgt.core.api_client import (
    DESTINATIONS_ENDPOINT, RULES_ENDPOINT, SOURCES_ENDPOINT, ApiError, ForwardingApiClient
)
from forwarding_mgt.core.exceptions import FetchFailed
from forwarding_mgt.core.models import DestinationRef, ForwardingRule, SourceRef
from forwarding_mgt.core.paged_source import RestPagedListSource

from helpers import rule_json


@pytest.fixture
def client():
    return ForwardingApiClient("http://localhost:5000/", api_key="secret")


def test_headers_include_api_key(client):
    assert client.base_url == "http://localhost:5000"
    assert client._headers()["X-API-Key"] == "secret"
    assert "X-API-Key" not in ForwardingApiClient("http://localhost")._headers()


@pytest.mark.asyncio
async def test_get_page_params(client):
    with patch.object(client, "_get", AsyncMock(return_value=[])) as mock_get:
        await client.get_page(RULES_ENDPOINT, 20, 10)
        mock_get.assert_awaited_once_with(RULES_ENDPOINT, {"startindex": 20, "count": 10})

        mock_get.reset_mock()
        await client.get_page(RULES_ENDPOINT, 0, 5, "source", False)
        mock_get.assert_awaited_once_with(RULES_ENDPOINT, {
            "startindex": 0, "count": 5, "orderby": "source", "orderascending": "false"
        })


@pytest.mark.asyncio
async def test_get_sources_and_destinations(client):
    sources = [{"sourceType": "box", "sourceName": "A", "sourceId": 1}]
    destinations = [{"destinationType": "box", "destinationName": "B", "destinationId": 2}]

    with patch.object(client, "_get", AsyncMock(side_effect=[sources, destinations])) as mock_get:
        assert await client.get_sources() == [SourceRef(source_type="box", source_name="A", source_id=1)]
        assert await client.get_destinations() == [
            DestinationRef(destination_type="box", destination_name="B", destination_id=2)
        ]

    assert [call.args[0] for call in mock_get.await_args_list] == [SOURCES_ENDPOINT, DESTINATIONS_ENDPOINT]


@pytest.mark.asyncio
async def test_reference_list_must_be_array(client):
    with patch.object(client, "_get", AsyncMock(return_value={"items": []})):
        with pytest.raises(ApiError):
            await client.get_sources()


@pytest.mark.asyncio
async def test_create_rule_posts_without_id(client, source_a, destination_b):
    draft = ForwardingRule(source=source_a, destination=destination_b, keep_images=False)

    with patch.object(client, "_post", AsyncMock(return_value=rule_json(12, keep_images=False))) as mock_post:
        created = await client.create_rule(draft)

    endpoint = mock_post.await_args.args[0]
    payload = mock_post.await_args.kwargs["json"]
    assert endpoint == RULES_ENDPOINT
    assert "id" not in payload
    assert payload["keepImages"] is False
    assert payload["source"]["sourceName"] == "A"
    assert created.id == 12


@pytest.mark.asyncio
async def test_create_rule_bad_response(client, source_a, destination_b):
    draft = ForwardingRule(source=source_a, destination=destination_b)

    with patch.object(client, "_post", AsyncMock(return_value={"ok": True})):
        with pytest.raises(ApiError):
            await client.create_rule(draft)


@pytest.mark.asyncio
async def test_delete_entity_path(client):
    with patch.object(client, "_delete", AsyncMock(return_value=None)) as mock_delete:
        await client.delete_entity("/api/forwarding/rules/", 3)

    mock_delete.assert_awaited_once_with("/api/forwarding/rules/3")


@pytest_asyncio.fixture
async def server():
    received = {}

    async def list_rules(request):
        received["query"] = dict(request.query)
        received["api_key"] = request.headers.get("X-API-Key")
        return web.json_response([rule_json(1)])

    async def delete_rule(request):
        if request.match_info["rule_id"] == "404":
            return web.Response(status=404, text="rule not found")
        return web.Response(status=204)

    async def list_sources(request):
        return web.Response(text="<html>oops</html>", content_type="application/json")

    app = web.Application()
    app.router.add_get(RULES_ENDPOINT, list_rules)
    app.router.add_get(SOURCES_ENDPOINT, list_sources)
    app.router.add_delete(RULES_ENDPOINT + "/{rule_id}", delete_rule)

    test_server = TestServer(app)
    await test_server.start_server()
    test_server.received = received
    yield test_server
    await test_server.close()


@pytest.mark.asyncio
async def test_request_against_server(server):
    client = ForwardingApiClient(str(server.make_url("")), api_key="secret")

    data = await client.get_page(RULES_ENDPOINT, 0, 10, "id", True)

    assert data[0]["id"] == 1
    assert server.received["query"] == {"startindex": "0", "count": "10", "orderby": "id", "orderascending": "true"}
    assert server.received["api_key"] == "secret"

    assert await client.delete_entity(RULES_ENDPOINT + "/", 5) is None


@pytest.mark.asyncio
async def test_error_status_becomes_api_error(server):
    client = ForwardingApiClient(str(server.make_url("")))

    with pytest.raises(ApiError) as exc_info:
        await client.delete_entity(RULES_ENDPOINT + "/", 404)

    assert exc_info.value.code == 404
    assert exc_info.value.message == "rule not found"


@pytest.mark.asyncio
async def test_connection_error_becomes_api_error():
    client = ForwardingApiClient("http://127.0.0.1:1", timeout=1.0)

    with pytest.raises(ApiError):
        await client.get_sources()


@pytest.mark.asyncio
async def test_invalid_json_body_becomes_api_error(server):
    client = ForwardingApiClient(str(server.make_url("")))

    with pytest.raises(ApiError) as exc_info:
        await client.get_sources()

    assert exc_info.value.code == 200


@pytest.mark.asyncio
async def test_invalid_json_page_becomes_fetch_failed(server):
    source = RestPagedListSource(ForwardingApiClient(str(server.make_url(""))), SOURCES_ENDPOINT, SourceRef)

    with pytest.raises(FetchFailed) as exc_info:
        await source.load_page(0, 10)

    assert exc_info.value.start_index == 0
    assert exc_info.value.count == 10
