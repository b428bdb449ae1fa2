import json

import httpx
import pytest
import respx

from linktracker.api_types import (
    AddLinkRequest,
    LinkResponse,
    ListLinksResponse,
    RemoveLinkRequest,
)
from linktracker.errors import ErrorResponse
from linktracker.log import new_discard_logger
from linktracker.scrapper_client import ScrapperClient

BASE = "http://scrapper.test"


@pytest.fixture
def client():
    with ScrapperClient(BASE, new_discard_logger()) as scrapper_client:
        yield scrapper_client


def _json_headers_ok(request):
    return (
        request.headers["Content-Type"] == "application/json"
        and request.headers["Accept"] == "application/json"
    )


def _sample_response():
    return ListLinksResponse(
        links=[LinkResponse(url="https://example.com", tags=["tag123"], filters=["filter"])],
        size=1,
    )


def test_register_chat(client):
    with respx.mock() as mock:
        route = mock.post(f"{BASE}/tg-chat/123").respond(200)
        assert client.register_chat(123) is None
    request = route.calls.last.request
    assert request.method == "POST"
    assert request.url.path == "/tg-chat/123"
    assert _json_headers_ok(request)


def test_delete_chat(client):
    with respx.mock() as mock:
        route = mock.delete(f"{BASE}/tg-chat/123").respond(200)
        assert client.delete_chat(123) is None
    request = route.calls.last.request
    assert request.method == "DELETE"
    assert request.url.path == "/tg-chat/123"
    assert _json_headers_ok(request)


def test_add_link(client):
    body = AddLinkRequest(link="https://example.com", tags=["tag"], filters=["filter"])
    with respx.mock() as mock:
        route = mock.post(f"{BASE}/links").respond(200)
        client.add_link(123, body)
    request = route.calls.last.request
    assert request.method == "POST"
    assert request.url.path == "/links"
    assert request.headers["Tg-Chat-ID"] == "123"
    assert _json_headers_ok(request)
    assert AddLinkRequest.from_dict(json.loads(request.content)) == body


def test_remove_link(client):
    body = RemoveLinkRequest(link="https://example.com")
    with respx.mock() as mock:
        route = mock.delete(f"{BASE}/links").respond(200)
        client.remove_link(123, body)
    request = route.calls.last.request
    assert request.method == "DELETE"
    assert request.url.path == "/links"
    assert request.headers["Tg-Chat-ID"] == "123"
    assert _json_headers_ok(request)
    assert RemoveLinkRequest.from_dict(json.loads(request.content)) == body


def test_list_links(client):
    expected = _sample_response()
    with respx.mock() as mock:
        route = mock.get(f"{BASE}/links").respond(200, json=expected.to_dict())
        result = client.list_links(123)
    request = route.calls.last.request
    assert request.method == "GET"
    assert request.url.path == "/links"
    assert request.headers["Tg-Chat-ID"] == "123"
    assert "tag" not in request.url.params
    assert _json_headers_ok(request)
    assert result == expected


def test_list_links_with_tag(client):
    expected = _sample_response()
    with respx.mock() as mock:
        route = mock.get(f"{BASE}/links").respond(200, json=expected.to_dict())
        result = client.list_links(123, "tag123")
    request = route.calls.last.request
    assert request.url.params["tag"] == "tag123"
    assert request.headers["Tg-Chat-ID"] == "123"
    assert result == expected


@pytest.mark.parametrize("code", [400, 401, 404])
def test_api_error_carries_description(client, code):
    with respx.mock() as mock:
        mock.post(f"{BASE}/tg-chat/1").respond(
            code, json={"description": "Chat already exists", "code": str(code)}
        )
        with pytest.raises(ErrorResponse) as info:
            client.register_chat(1)
    assert info.value.code == code
    assert info.value.message == "Chat already exists"


def test_undecodable_error_body(client):
    with respx.mock() as mock:
        mock.delete(f"{BASE}/tg-chat/1").respond(404, content=b"not json")
        with pytest.raises(ErrorResponse) as info:
            client.delete_chat(1)
    assert info.value.code == 404
    assert info.value.message == "failed to decode error response"


def test_unexpected_status(client):
    with respx.mock() as mock:
        mock.get(f"{BASE}/links").respond(500)
        with pytest.raises(ErrorResponse) as info:
            client.list_links(1)
    assert str(info.value) == "[500] unexpected error"


def test_list_links_bad_json(client):
    with respx.mock() as mock:
        mock.get(f"{BASE}/links").respond(200, content=b"{broken")
        with pytest.raises(ValueError, match="failed to unmarshal response"):
            client.list_links(1)


def test_transport_failure(client):
    with respx.mock() as mock:
        mock.post(f"{BASE}/tg-chat/1").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ConnectionError, match="failed to do request"):
            client.register_chat(1)