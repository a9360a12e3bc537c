"""
GitHub authentication for API requests

Every API request carries the `githubCode` / `githubState` pair from the OAuth
redirect. The pair is exchanged for an access token once; afterwards the token
is served from the token store. Concurrent requests with the same pair share
one in-flight exchange, because GitHub codes can only be redeemed once.
"""

import asyncio
import hashlib
import logging
from json import JSONDecodeError
from typing import Awaitable, Callable, Dict, Optional

from fastapi import Request

from editor_api.core.errors import (
    AuthenticationInputError,
    ExchangeTimeoutError,
    ProviderAuthenticationError,
)
from editor_api.security.token_store import TokenStore
from editor_api.services.oauth_service import GitHubAccessToken, GitHubOAuthExchanger, GitHubOAuthError

logger = logging.getLogger(__name__)


def exchange_key(code: str, state: str) -> str:
    return f"{code}-{state}"


def _log_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:12]


class PendingExchangeRegistry:
    """In-flight exchanges of this process, one task per exchange key."""

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, key: str) -> Optional[asyncio.Task]:
        return self._tasks.get(key)

    def start(self, key: str, factory: Callable[[], Awaitable[GitHubAccessToken]]) -> asyncio.Task:
        """
        Return the task running for `key`, starting it with `factory` if none is.

        Lookup and registration do not yield to the event loop, so two callers
        can never both start an exchange for the same key.
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda done: self._discard(key, done))
        return task

    def _discard(self, key: str, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]


class AuthenticationGate:
    def __init__(
        self,
        store: TokenStore,
        exchanger: GitHubOAuthExchanger,
        timeout: Optional[float] = None,
        pending: Optional[PendingExchangeRegistry] = None,
    ):
        self.store = store
        self.exchanger = exchanger
        self.timeout = timeout
        self.pending = pending or PendingExchangeRegistry()

    async def authenticate(self, code: Optional[str], state: Optional[str]) -> GitHubAccessToken:
        """
        Resolve the credential for one OAuth redirect.

        Raises AuthenticationInputError before any I/O when either value is
        missing, ProviderAuthenticationError when GitHub rejects the code and
        ExchangeTimeoutError when GitHub does not answer in time. Store and
        network errors propagate as they are.
        """
        if not code or not state:
            raise AuthenticationInputError()

        key = exchange_key(code, state)
        cached = await self.store.get(key)
        if cached is not None:
            # TODO: refresh tokens once the GitHub app issues expiring tokens.
            return cached

        task = self.pending.start(key, lambda: self._exchange(key, code, state))
        return await asyncio.shield(task)

    async def _exchange(self, key: str, code: str, state: str) -> GitHubAccessToken:
        # A request that finished while this one was reading the store may
        # already have redeemed the code.
        cached = await self.store.get(key)
        if cached is not None:
            return cached

        logger.info(f"Exchanging GitHub code ({_log_key(key)})")
        try:
            result = await asyncio.wait_for(self.exchanger.exchange(code, state), self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"GitHub code exchange timed out ({_log_key(key)})")
            raise ExchangeTimeoutError(self.timeout) from None

        if isinstance(result, GitHubOAuthError):
            raise ProviderAuthenticationError(
                result.error_description or result.error,
                uri=result.error_uri,
            )

        await self.store.put(key, result)
        logger.info(f"GitHub code exchanged ({_log_key(key)})")
        return result


async def _read_auth_fields(request: Request) -> Dict[str, Optional[str]]:
    try:
        body = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        body = None
    if not isinstance(body, dict):
        body = {}
    return {
        "code": body.get("githubCode"),
        "state": body.get("githubState"),
    }


async def require_github_credential(request: Request) -> GitHubAccessToken:
    """
    Dependency resolving the GitHub credential of the current request.

    Usage in routes:
        @router.post("/file.get")
        async def get_file(access: GitHubAccessToken = Depends(require_github_credential)):
            ...
    """
    gate: AuthenticationGate = request.app.state.auth_gate
    fields = await _read_auth_fields(request)
    code, state = fields["code"], fields["state"]
    if not isinstance(code, str) or not isinstance(state, str):
        raise AuthenticationInputError()
    return await gate.authenticate(code, state)
