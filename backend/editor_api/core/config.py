"""
Configuration management

Settings are read from environment variables (or a local .env file) with
pydantic-settings. The GitHub client secret may also be mounted as a file,
which is how the secret is shipped to container deployments.
"""

from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings.

    Values come from the process environment first, then `.env`.
    """

    # GitHub OAuth app
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    GITHUB_CLIENT_SECRET_FILE: str = ""
    GITHUB_REDIRECT_URI: str = "http://localhost:8000/auth/github/callback"

    # Token cache
    ENCRYPTION_KEY: str = ""
    TOKEN_CACHE_TTL_SECONDS: int = 0
    OAUTH_EXCHANGE_TIMEOUT_SECONDS: float = 30.0

    # Working copies and history
    STORAGE_ROOT: str = ".repos"
    HISTORY_DEPTH: int = 10

    # Workspace naming convention
    WORKSPACE_BRANCH_PREFIX: str = "workspace/"
    SPECIAL_WORKSPACE_BRANCHES: str = "main,master,staging"

    # Application Settings
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_URL: str = ""
    RATE_LIMIT_PER_MINUTE: int = 120
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # Deployment / Environment
    ENVIRONMENT: str = "development"
    FRONTEND_URL: str = "http://localhost:8080"
    CORS_ORIGINS: str = ""

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS comma-separated string into a list."""
        if self.CORS_ORIGINS:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return [self.FRONTEND_URL]

    @property
    def effective_redis_url(self) -> str:
        """Get Redis URL, falling back to host:port."""
        if self.REDIS_URL:
            return self.REDIS_URL
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def special_workspace_branches(self) -> List[str]:
        return [
            branch.strip()
            for branch in self.SPECIAL_WORKSPACE_BRANCHES.split(",")
            if branch.strip()
        ]

    @property
    def github_client_secret(self) -> str:
        """Client secret from the environment, or from the mounted secret file."""
        if self.GITHUB_CLIENT_SECRET:
            return self.GITHUB_CLIENT_SECRET
        if self.GITHUB_CLIENT_SECRET_FILE:
            secret_path = Path(self.GITHUB_CLIENT_SECRET_FILE)
            if secret_path.exists():
                return secret_path.read_text().strip()
            logger.warning(f"GitHub client secret file not found: {secret_path}")
        return ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()

# Validate required secrets in production
if settings.is_production:
    _missing = []
    if not settings.GITHUB_CLIENT_ID:
        _missing.append("GITHUB_CLIENT_ID")
    if not settings.github_client_secret:
        _missing.append("GITHUB_CLIENT_SECRET")
    if not settings.ENCRYPTION_KEY:
        _missing.append("ENCRYPTION_KEY")
    if not settings.REDIS_URL:
        _missing.append("REDIS_URL")
    if _missing:
        raise ValueError(f"Production deployment missing required secrets: {', '.join(_missing)}")
