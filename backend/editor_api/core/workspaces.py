"""
Workspace naming convention

A workspace is a branch named with the workspace prefix, or one of the
special long-lived branches. The editor shows the branch name without
the prefix.
"""

from editor_api.core.config import settings


def is_workspace_branch(branch: str) -> bool:
    if branch in settings.special_workspace_branches:
        return True
    return branch.startswith(settings.WORKSPACE_BRANCH_PREFIX)


def shorten_workspace_name(branch: str) -> str:
    prefix = settings.WORKSPACE_BRANCH_PREFIX
    if prefix and branch.startswith(prefix):
        return branch[len(prefix):]
    return branch
