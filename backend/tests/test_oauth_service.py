"""Tests for the GitHub code exchange client."""

import json

import httpx
import pytest

from editor_api.core.github_config import GITHUB_ACCESS_TOKEN_URL
from editor_api.services.oauth_service import (
    GitHubAccessToken,
    GitHubOAuthError,
    GitHubOAuthExchanger,
    parse_exchange_response,
)


def _exchanger(handler, requests):
    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return GitHubOAuthExchanger(
        client_id="client-id",
        client_secret="client-secret",
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(record)),
    )


@pytest.mark.asyncio
async def test_exchange_posts_code_and_state():
    requests = []
    exchanger = _exchanger(
        lambda request: httpx.Response(
            200, json={"access_token": "gho_abc", "token_type": "bearer", "scope": "repo"}
        ),
        requests,
    )

    result = await exchanger.exchange("c1", "s1")

    assert result == GitHubAccessToken(access_token="gho_abc", token_type="bearer", scope="repo")
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == GITHUB_ACCESS_TOKEN_URL
    assert request.headers["Accept"] == "application/json"
    assert request.headers["User-Agent"] == "editor.dev"
    assert json.loads(request.content) == {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "code": "c1",
        "state": "s1",
    }


@pytest.mark.asyncio
async def test_exchange_decodes_error_payload():
    payload = {
        "error": "bad_verification_code",
        "error_description": "The code passed is incorrect or expired.",
        "error_uri": "https://docs.github.com/",
    }
    exchanger = _exchanger(lambda request: httpx.Response(200, json=payload), [])

    result = await exchanger.exchange("c1", "s1")

    assert isinstance(result, GitHubOAuthError)
    assert result.error_description == payload["error_description"]
    assert result.error_uri == payload["error_uri"]


@pytest.mark.asyncio
async def test_exchange_raises_for_http_errors():
    exchanger = _exchanger(lambda request: httpx.Response(503, text="unavailable"), [])

    with pytest.raises(httpx.HTTPStatusError):
        await exchanger.exchange("c1", "s1")


def test_error_field_wins_over_token():
    result = parse_exchange_response({"error": "x", "access_token": "gho_abc"})
    assert isinstance(result, GitHubOAuthError)
