"""
Persistent store for exchanged GitHub tokens

Tokens are keyed by the exchange key (`<code>-<state>`) and written once:
a second write of the same token is a no-op, a different token is refused.
Redis is used when configured; the in-memory store covers local development.
"""

import json
import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis

from editor_api.core.errors import TokenConflictError
from editor_api.security.encryption import decrypt_github_token, encrypt_github_token
from editor_api.services.oauth_service import GitHubAccessToken

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "auth:gh:"


class TokenStore(Protocol):
    async def get(self, key: str) -> Optional[GitHubAccessToken]:
        ...

    async def put(self, key: str, token: GitHubAccessToken) -> None:
        ...


def _encode(token: GitHubAccessToken) -> str:
    data = token.model_dump()
    data["access_token"] = encrypt_github_token(token.access_token)
    return json.dumps(data)


def _decode(raw: str) -> GitHubAccessToken:
    data = json.loads(raw)
    data["access_token"] = decrypt_github_token(data["access_token"])
    return GitHubAccessToken.model_validate(data)


class RedisTokenStore:
    def __init__(self, client: redis.Redis, ttl_seconds: int = 0):
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def get(self, key: str) -> Optional[GitHubAccessToken]:
        raw = await self.client.get(TOKEN_KEY_PREFIX + key)
        if raw is None:
            return None
        return _decode(raw)

    async def put(self, key: str, token: GitHubAccessToken) -> None:
        written = await self.client.set(
            TOKEN_KEY_PREFIX + key,
            _encode(token),
            nx=True,
            ex=self.ttl_seconds or None,
        )
        if written:
            return
        existing = await self.get(key)
        if existing is None:
            # Expired between the two calls.
            await self.put(key, token)
        elif existing.access_token != token.access_token:
            raise TokenConflictError()


class MemoryTokenStore:
    """Process-local token store (development and tests)."""

    def __init__(self, ttl_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.items: Dict[str, Tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[GitHubAccessToken]:
        item = self.items.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if expires_at is not None and expires_at <= self.clock():
            del self.items[key]
            return None
        return _decode(raw)

    async def put(self, key: str, token: GitHubAccessToken) -> None:
        existing = await self.get(key)
        if existing is not None:
            if existing.access_token != token.access_token:
                raise TokenConflictError()
            return
        expires_at = self.clock() + self.ttl_seconds if self.ttl_seconds else None
        self.items[key] = (_encode(token), expires_at)


def create_token_store(client: Optional[redis.Redis], ttl_seconds: int = 0) -> TokenStore:
    if client is not None:
        logger.info("Using Redis token store")
        return RedisTokenStore(client, ttl_seconds=ttl_seconds)
    logger.warning("Using in-memory token store (development only)")
    return MemoryTokenStore(ttl_seconds=ttl_seconds)
