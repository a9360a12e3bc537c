"""
Working copies of GitHub branches

Each (organization, project, branch) is cloned once under STORAGE_ROOT and
served from disk afterwards. File access is confined to the clone.
"""

import asyncio
import base64
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Union

import httpx

from git import Repo

from editor_api.core.config import settings
from editor_api.core.errors import RepositoryAccessError, StoragePathError
from editor_api.core.github_config import GITHUB_CLONE_URL
from editor_api.services.github_service import GitHubService

logger = logging.getLogger(__name__)


class BranchStorage:
    """File access rooted at one working copy."""

    def __init__(self, root: Union[str, Path]):
        self.root = str(Path(root).resolve())

    def _resolve(self, path: str) -> Path:
        root = Path(self.root)
        full_path = (root / path.lstrip("/")).resolve()
        if full_path != root and root not in full_path.parents:
            raise StoragePathError(path)
        return full_path

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def read_file(self, path: str) -> str:
        """Raises FileNotFoundError when the file does not exist."""
        return await asyncio.to_thread(self._resolve(path).read_text, encoding="utf-8")

    async def write_file(self, path: str, content: Union[str, bytes]) -> None:
        full_path = self._resolve(path)

        def _write():
            full_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                full_path.write_bytes(content)
            else:
                full_path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)

    async def delete_file(self, path: str) -> None:
        await asyncio.to_thread(self._resolve(path).unlink)

    async def list_files(self) -> List[str]:
        """Repository-relative paths of every tracked-tree file, `.git` excluded."""

        def _walk() -> List[str]:
            files = []
            for dirpath, dirnames, filenames in os.walk(self.root):
                dirnames[:] = sorted(d for d in dirnames if d != ".git")
                for filename in sorted(filenames):
                    relative = os.path.relpath(os.path.join(dirpath, filename), self.root)
                    files.append("/" + Path(relative).as_posix())
            return files

        return await asyncio.to_thread(_walk)


class StorageManager:
    """
    Working copies keyed by branch.

    Every request proves it can see the branch on GitHub with its own token
    before a working copy is handed out, since clones are shared between users.
    """

    def __init__(
        self,
        root: Union[str, Path, None] = None,
        clone_url: str = GITHUB_CLONE_URL,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self.root = Path(root or settings.STORAGE_ROOT).resolve()
        self.clone_url = clone_url
        self.client_factory = client_factory
        self._clones: Dict[Path, asyncio.Task] = {}

    def branch_path(self, organization: str, project: str, branch: str) -> Path:
        path = (self.root / organization / project / branch).resolve()
        if self.root not in path.parents:
            raise StoragePathError(f"{organization}/{project}/{branch}")
        return path

    async def check_access(
        self, organization: str, project: str, branch: str, access_token: str
    ) -> None:
        """Raises RepositoryAccessError unless the token can read the branch."""
        github = GitHubService(access_token, client_factory=self.client_factory)
        try:
            await github.get_branch(organization, project, branch)
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (401, 403, 404):
                raise RepositoryAccessError(organization, project, branch) from None
            raise

    async def storage_for_branch(
        self,
        organization: str,
        project: str,
        branch: str,
        access_token: str,
    ) -> BranchStorage:
        """
        Storage for a branch, cloning it on first use.

        Concurrent requests for the same branch share one clone; the pending
        clone is forgotten once it settles.
        """
        path = self.branch_path(organization, project, branch)
        await self.check_access(organization, project, branch, access_token)

        if not (path / ".git").exists():
            task = self._clones.get(path)
            if task is None:
                task = asyncio.ensure_future(
                    asyncio.to_thread(
                        self._clone, organization, project, branch, access_token, path
                    )
                )
                self._clones[path] = task
                task.add_done_callback(lambda done: self._clones.pop(path, None))
            await asyncio.shield(task)
        return BranchStorage(path)

    def _clone(
        self,
        organization: str,
        project: str,
        branch: str,
        access_token: str,
        path: Path,
    ) -> None:
        remote = f"{self.clone_url}/{organization}/{project}.git"
        env = None
        if access_token and self.clone_url.startswith(("http://", "https://")):
            # Passed as one-off config so the token never lands in .git/config.
            basic = base64.b64encode(f"x-access-token:{access_token}".encode()).decode()
            env = {
                "GIT_CONFIG_COUNT": "1",
                "GIT_CONFIG_KEY_0": "http.extraHeader",
                "GIT_CONFIG_VALUE_0": f"Authorization: Basic {basic}",
            }
        logger.info(f"Cloning {organization}/{project}@{branch}")
        path.parent.mkdir(parents=True, exist_ok=True)
        repo = Repo.clone_from(remote, path, branch=branch, env=env)
        repo.close()
