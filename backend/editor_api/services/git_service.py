"""
Commit log access for local working copies

Reads commits and tree objects straight from the git object database with
GitPython. GitPython is blocking, so every call is pushed to a worker thread.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Protocol

from git import Repo


@dataclass(frozen=True)
class Commit:
    """A commit as reported by the log, newest first."""

    id: str
    author_name: str
    author_email: str
    message: str
    timestamp_seconds: int


class ContentObjectNotFoundError(LookupError):
    """The path does not exist in the tree of the given commit."""

    def __init__(self, commit_id: str, file_path: str):
        super().__init__(f"{file_path} not found at {commit_id}")
        self.commit_id = commit_id
        self.file_path = file_path


class CommitLogReader(Protocol):
    async def list_commits(self, repository_path: str) -> List[Commit]:
        ...

    async def read_content_object_id(
        self, repository_path: str, commit_id: str, file_path: str
    ) -> str:
        ...


class GitCommitLogReader:
    """CommitLogReader backed by a local clone."""

    async def list_commits(self, repository_path: str) -> List[Commit]:
        return await asyncio.to_thread(_list_commits, repository_path)

    async def read_content_object_id(
        self, repository_path: str, commit_id: str, file_path: str
    ) -> str:
        return await asyncio.to_thread(
            _read_content_object_id, repository_path, commit_id, file_path
        )


def _list_commits(repository_path: str) -> List[Commit]:
    repo = Repo(repository_path)
    try:
        if not repo.head.is_valid():
            # No commits yet.
            return []
        return [
            Commit(
                id=commit.hexsha,
                author_name=commit.author.name or "",
                author_email=commit.author.email or "",
                message=commit.message,
                timestamp_seconds=commit.authored_date,
            )
            for commit in repo.iter_commits("HEAD")
        ]
    finally:
        repo.close()


def _read_content_object_id(repository_path: str, commit_id: str, file_path: str) -> str:
    repo = Repo(repository_path)
    try:
        tree = repo.commit(commit_id).tree
        try:
            obj = tree / file_path
        except KeyError:
            raise ContentObjectNotFoundError(commit_id, file_path) from None
        return obj.hexsha
    finally:
        repo.close()
