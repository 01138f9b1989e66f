"""Error types raised while resolving the current job and deployment."""
from __future__ import annotations

from typing import Optional

PERMISSIONS_DOCS_URL = (
    "https://docs.github.com/en/actions/security-guides/automatic-token-authentication"
    "#modifying-the-permissions-for-the-github_token"
)


class ValidationError(ValueError):
    """Malformed action input, workflow context chain or runner environment."""


class MissingPermissionError(PermissionError):
    def __init__(self, scope: str, permission: str) -> None:
        self.scope = scope
        self.permission = permission
        super().__init__(
            f"Ensure that GitHub job has permission: `{scope}: {permission}`. {PERMISSIONS_DOCS_URL}"
        )


class JobNotFoundError(LookupError):
    pass


class DeploymentConsistencyError(RuntimeError):
    pass


class GitHubApiError(RuntimeError):
    """HTTP or GraphQL failure reported by the GitHub API."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
