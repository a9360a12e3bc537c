"""
File history from the commit log

Finds the commits that changed a file by walking the whole log of the working
copy and comparing the object id stored at the file's path in each commit.
There is no path-filtered log query involved, so the cost is one tree lookup
per commit until the file disappears or enough commits were found.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from editor_api.services.git_service import (
    Commit,
    CommitLogReader,
    ContentObjectNotFoundError,
    GitCommitLogReader,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DEPTH = 10


class CommitHistoryResolver:
    def __init__(self, reader: Optional[CommitLogReader] = None):
        self.reader = reader or GitCommitLogReader()

    async def resolve(
        self,
        repository_path: str,
        file_path: str,
        max_depth: int = DEFAULT_HISTORY_DEPTH,
    ) -> List[Commit]:
        """
        Commits that changed `file_path`, newest first, at most `max_depth`.

        A commit is reported when the object stored at the path differs from
        the one in the next older commit, or when the next older commit does
        not contain the path. Commits at the very start of the log have no
        older commit to compare with and are not reported. Reverting a file to
        identical bytes looks like no change at all.

        Only a missing path ends the walk quietly; any other read error is
        raised to the caller.
        """
        file_path = file_path.lstrip("/")
        if max_depth <= 0:
            return []

        commits = await self.reader.list_commits(repository_path)

        changed: List[Commit] = []
        last_content_id: Optional[str] = None
        last_commit: Optional[Commit] = None

        for commit in commits:
            if len(changed) >= max_depth:
                break

            try:
                content_id = await self.reader.read_content_object_id(
                    repository_path, commit.id, file_path
                )
            except ContentObjectNotFoundError:
                # The file was added after this commit.
                if last_commit is not None:
                    changed.append(last_commit)
                break

            if content_id != last_content_id:
                if last_content_id is not None:
                    changed.append(last_commit)
                last_content_id = content_id
            last_commit = commit

        logger.debug(
            f"History for {file_path}: {len(changed)} of {len(commits)} commits"
        )
        return changed


def to_history_entry(commit: Commit) -> Dict:
    """Shape a commit the way the editor renders file history."""
    timestamp = datetime.fromtimestamp(commit.timestamp_seconds, tz=timezone.utc)
    return {
        "author": {
            "name": commit.author_name,
            "email": commit.author_email,
        },
        "hash": commit.id,
        "summary": commit.message,
        "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
    }
