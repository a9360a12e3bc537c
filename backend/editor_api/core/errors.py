"""
API error types

Every error raised on purpose by the connector is an ApiError. The app-level
handler in main.py renders it as the editor's error body:

    {"message": ..., "description": ..., "details": {...}}
"""

from typing import Any, Dict, Optional
from fastapi import status


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        description: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.description = description
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.description:
            body["description"] = self.description
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationInputError(ApiError):
    """githubCode or githubState missing from the request."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("No authentication information provided.")


class ProviderAuthenticationError(ApiError):
    """GitHub answered the code exchange with an error payload."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, description: str, uri: Optional[str] = None):
        super().__init__(
            "Unable to confirm authentication with GitHub.",
            description=description,
            details={"uri": uri} if uri else None,
        )
        self.uri = uri


class ExchangeTimeoutError(ApiError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, timeout: float):
        super().__init__(
            "Timed out confirming authentication with GitHub.",
            description=f"No response from GitHub after {timeout:g} seconds.",
        )


class TokenConflictError(ApiError):
    """A different token is already stored under the same exchange key."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("Authentication was already confirmed with a different token.")


class StoragePathError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, path: str):
        super().__init__("Invalid file path.", description=f"Path is outside of the repository: {path}")


class RepositoryAccessError(ApiError):
    """GitHub does not show the branch to the request's token."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, organization: str, project: str, branch: str):
        super().__init__(
            "No access to repository.",
            description=f"Unable to read {organization}/{project}@{branch} on GitHub.",
        )


class UnsupportedOperationError(ApiError):
    status_code = status.HTTP_501_NOT_IMPLEMENTED


class ConnectorNotFoundError(ApiError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self):
        super().__init__("Unable to determine connector.")
