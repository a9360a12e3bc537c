"""
GitHub REST integration for workspaces
"""

import httpx
from typing import Callable, Dict, List

from editor_api.core.github_config import GITHUB_API_URL, github_api_headers
from editor_api.core.workspaces import is_workspace_branch, shorten_workspace_name


class GitHubService:
    """
    Thin client for the branch and commit endpoints.

    Args:
        access_token: OAuth token of the current request
        client_factory: builds the httpx client (tests pass a mock transport)
    """

    def __init__(
        self,
        access_token: str,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self.access_token = access_token
        self.client_factory = client_factory

    async def _get(self, path: str, params: Dict = None):
        async with self.client_factory(base_url=GITHUB_API_URL) as client:
            response = await client.get(
                path,
                headers=github_api_headers(self.access_token),
                params=params,
            )
            response.raise_for_status()
            return response.json()

    async def get_branch(self, owner: str, repo: str, branch: str) -> Dict:
        return await self._get(f"/repos/{owner}/{repo}/branches/{branch}")

    async def list_branches(self, owner: str, repo: str) -> List[Dict]:
        """All branches of the repository, following pagination."""
        branches: List[Dict] = []
        page = 1
        while True:
            batch = await self._get(
                f"/repos/{owner}/{repo}/branches",
                params={"per_page": 100, "page": page},
            )
            branches.extend(batch)
            if len(batch) < 100:
                return branches
            page += 1

    async def get_commit(self, owner: str, repo: str, sha: str) -> Dict:
        return await self._get(f"/repos/{owner}/{repo}/commits/{sha}")

    async def get_workspace(self, owner: str, repo: str, branch: str) -> Dict:
        """
        Workspace data for one branch, including the head commit author.
        """
        branch_data = await self.get_branch(owner, repo, branch)
        commit_data = await self.get_commit(owner, repo, branch_data["commit"]["sha"])
        author = commit_data["commit"]["author"]

        return {
            "branch": {
                "name": branch_data["name"],
                "commit": {
                    "hash": branch_data["commit"]["sha"],
                    "url": branch_data["commit"]["url"],
                    "author": {
                        "name": author["name"],
                        "email": author["email"],
                    },
                    "timestamp": author["date"],
                },
            },
            "name": shorten_workspace_name(branch_data["name"] or ""),
        }

    async def list_workspaces(self, owner: str, repo: str) -> List[Dict]:
        branches = await self.list_branches(owner, repo)
        return [
            {
                "branch": {
                    "name": branch["name"],
                    "commit": {
                        "hash": branch["commit"]["sha"],
                        "url": branch["commit"]["url"],
                    },
                },
                "name": shorten_workspace_name(branch["name"] or ""),
            }
            for branch in branches
            if is_workspace_branch(branch["name"])
        ]
