"""Process-wide resolvers for the current job and deployment.

The resolvers are built on first use from the runner environment and action
inputs and then kept for the rest of the process; the run, attempt and job
never change while it is alive.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

from .context import ActionContext
from .deployments import Deployment, DeploymentResolver
from .errors import ValidationError
from .github_api import GitHubClient
from .inputs import get_input
from .jobs import JobResolver

_job_resolver: Optional[JobResolver] = None
_deployment_resolver: Optional[DeploymentResolver] = None


def configure(context: Optional[ActionContext] = None, client: Any = None, token: Optional[str] = None) -> None:
    """(Re)build the process-wide resolvers, e.g. with an explicit token or client."""
    global _job_resolver, _deployment_resolver
    context = context or ActionContext.from_env()
    if client is None:
        token = token or get_input("token") or os.environ.get("GITHUB_TOKEN")
        if not token:
            raise ValidationError("Input required and not supplied: token")
        client = GitHubClient(token, api_url=context.api_url, graphql_url=context.graphql_url)
    _job_resolver = JobResolver(context, client)
    _deployment_resolver = DeploymentResolver(context, client, _job_resolver)


def job_resolver() -> JobResolver:
    if _job_resolver is None:
        configure()
    return _job_resolver  # type: ignore[return-value]


def deployment_resolver() -> DeploymentResolver:
    if _deployment_resolver is None:
        configure()
    return _deployment_resolver  # type: ignore[return-value]


async def get_current_job() -> Dict[str, Any]:
    return await job_resolver().resolve_current_job()


async def get_current_deployment() -> Optional[Deployment]:
    return await deployment_resolver().resolve_current_deployment()
