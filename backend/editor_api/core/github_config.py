"""
GitHub OAuth and REST endpoints
"""

from urllib.parse import urlencode

from editor_api.core.config import settings

# GitHub OAuth endpoints
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"
GITHUB_CLONE_URL = "https://github.com"

# Headers sent with every GitHub call
GITHUB_USER_AGENT = "editor.dev"
GITHUB_API_ACCEPT = "application/vnd.github.v3+json"

# OAuth scopes needed for repository access
GITHUB_SCOPES = [
    "read:user",      # Read user profile
    "repo",           # Read and write repository contents
]


def get_github_oauth_url(state: str) -> str:
    """Generate GitHub OAuth authorization URL"""
    query = urlencode({
        "client_id": settings.GITHUB_CLIENT_ID,
        "redirect_uri": settings.GITHUB_REDIRECT_URI,
        "scope": " ".join(GITHUB_SCOPES),
        "state": state,
    })
    return f"{GITHUB_AUTHORIZE_URL}?{query}"


def github_api_headers(access_token: str) -> dict:
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": GITHUB_API_ACCEPT,
        "User-Agent": GITHUB_USER_AGENT,
    }
