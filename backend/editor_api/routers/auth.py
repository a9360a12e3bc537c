"""
Authentication router - GitHub OAuth login
"""

from fastapi import APIRouter
import secrets

from editor_api.core.github_config import get_github_oauth_url

router = APIRouter()


@router.get("/github")
async def github_login():
    """
    Start the GitHub OAuth flow

    The editor sends the user to `auth_url`. GitHub redirects back with
    `code` and `state`, which the editor then includes as `githubCode` and
    `githubState` in every API request.
    """
    state = secrets.token_urlsafe(32)

    return {
        "auth_url": get_github_oauth_url(state),
        "state": state,
        "message": "Redirect user to this URL for GitHub authentication"
    }
