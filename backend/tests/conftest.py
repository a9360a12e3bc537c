import pytest

from editor_api.core.config import settings
from editor_api.security.rate_limiter import reset_rate_limiter


@pytest.fixture(autouse=True)
def setup_function():
    # Reset defaults that may be overridden by some tests.
    settings.WORKSPACE_BRANCH_PREFIX = "workspace/"
    settings.SPECIAL_WORKSPACE_BRANCHES = "main,master,staging"
    settings.HISTORY_DEPTH = 10
    settings.RATE_LIMIT_PER_MINUTE = 120
    reset_rate_limiter()
