import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from linktracker.api_types import LinkUpdate, LinkUpdateType
from linktracker.bot_client import BotClient, BotClientError
from linktracker.log import new_discard_logger

BASE_URL = "http://bot.test"


def _client():
    return BotClient(BASE_URL, new_discard_logger())


def test_post_updates():
    update = LinkUpdate(
        url="https://example.com",
        tg_chat_ids=[1, 2, 3],
        description="description",
        id=1,
    )
    with respx.mock:
        route = respx.post(f"{BASE_URL}/updates").mock(return_value=httpx.Response(200))
        with _client() as client:
            client.post_updates(update)

    assert route.call_count == 1
    request = route.calls.last.request
    assert request.method == "POST"
    assert request.url.path == "/updates"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert LinkUpdate.from_dict(json.loads(request.content)) == update


def test_post_updates_sends_time_and_type():
    update = LinkUpdate(
        url="https://github.com/a/b",
        tg_chat_ids=[123],
        created_at=datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        type=LinkUpdateType.GITHUB_ISSUE,
        user_name="TestUser",
        description="Test answer body",
    )
    with respx.mock:
        route = respx.post(f"{BASE_URL}/updates").mock(return_value=httpx.Response(200))
        with _client() as client:
            client.post_updates(update)

    assert LinkUpdate.from_dict(json.loads(route.calls.last.request.content)) == update


def test_bad_request_carries_description():
    with respx.mock:
        respx.post(f"{BASE_URL}/updates").mock(
            return_value=httpx.Response(400, json={"description": "Invalid request body", "code": "400"})
        )
        with _client() as client, pytest.raises(BotClientError) as info:
            client.post_updates(LinkUpdate(url="https://example.com"))

    assert str(info.value) == "bad request: Invalid request body"
    assert info.value.status_code == 400


def test_bad_request_with_undecodable_body():
    with respx.mock:
        respx.post(f"{BASE_URL}/updates").mock(return_value=httpx.Response(400, text="not json"))
        with _client() as client, pytest.raises(BotClientError, match="failed to decode error response"):
            client.post_updates(LinkUpdate())


def test_unexpected_status_code():
    with respx.mock:
        respx.post(f"{BASE_URL}/updates").mock(return_value=httpx.Response(500))
        with _client() as client, pytest.raises(BotClientError) as info:
            client.post_updates(LinkUpdate())

    assert str(info.value) == "unexpected status code: 500"
    assert info.value.status_code == 500


def test_transport_failure():
    with respx.mock:
        respx.post(f"{BASE_URL}/updates").mock(side_effect=httpx.ConnectError("refused"))
        with _client() as client, pytest.raises(BotClientError, match="failed to do request"):
            client.post_updates(LinkUpdate())