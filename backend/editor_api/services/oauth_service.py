"""
GitHub OAuth code exchange

Trades a one-time authorization code for an access token. GitHub answers the
token endpoint with HTTP 200 for both outcomes, so the body is decoded once
here into either a GitHubAccessToken or a GitHubOAuthError.
"""

import logging
from typing import Callable, Optional, Union

import httpx
from pydantic import BaseModel, TypeAdapter

from editor_api.core.config import settings
from editor_api.core.github_config import GITHUB_ACCESS_TOKEN_URL, GITHUB_USER_AGENT

logger = logging.getLogger(__name__)


class GitHubAccessToken(BaseModel):
    """Credential attached to authenticated requests."""

    access_token: str
    token_type: Optional[str] = None
    scope: Optional[str] = None


class GitHubOAuthError(BaseModel):
    error: str
    error_description: Optional[str] = None
    error_uri: Optional[str] = None


ExchangeResult = Union[GitHubOAuthError, GitHubAccessToken]

_exchange_result_adapter = TypeAdapter(ExchangeResult)


def parse_exchange_response(payload: dict) -> ExchangeResult:
    """Decode the token endpoint body; an `error` field wins over a token."""
    if "error" in payload:
        return GitHubOAuthError.model_validate(payload)
    return _exchange_result_adapter.validate_python(payload)


class GitHubOAuthExchanger:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: str = GITHUB_ACCESS_TOKEN_URL,
        client_factory: Callable[[], httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self.client_id = client_id if client_id is not None else settings.GITHUB_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else settings.github_client_secret
        )
        self.token_url = token_url
        self.client_factory = client_factory

    async def exchange(self, code: str, state: str) -> ExchangeResult:
        """
        POST the code to GitHub's token endpoint.

        Raises httpx.HTTPStatusError for non-2xx answers and httpx.HTTPError
        for transport failures.
        """
        async with self.client_factory() as client:
            response = await client.post(
                self.token_url,
                json={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "state": state,
                },
                headers={
                    "Accept": "application/json",
                    "User-Agent": GITHUB_USER_AGENT,
                },
            )
            response.raise_for_status()
            payload = response.json()

        result = parse_exchange_response(payload)
        if isinstance(result, GitHubOAuthError):
            logger.info(f"GitHub rejected code exchange: {result.error}")
        return result
