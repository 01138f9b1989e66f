"""Correlate the current job with its in-progress GitHub deployment.

A job that declares ``environment:`` gets a deployment created by GitHub
Actions. The REST listing cannot tell which job a deployment belongs to, so
candidates are looked up again through GraphQL, whose latest deployment status
carries the log URL of the job that created it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.parse import urlsplit

from . import actions
from .context import ActionContext
from .errors import DeploymentConsistencyError, GitHubApiError, MissingPermissionError
from .jobs import JobResolver
from .memo import SharedResolution

DEPLOY_TASK = "deploy"
IN_PROGRESS = "IN_PROGRESS"
GITHUB_ACTIONS_APP_SLUG = "github-actions"

DEPLOYMENT_NODES_QUERY = """
query($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on Deployment {
      databaseId
      commitOid
      createdAt
      task
      state
      latestEnvironment
      latestStatus {
        logUrl
        environmentUrl
      }
    }
  }
}
"""

JOB_LOG_PATH_RE = re.compile(r"^/(?P<repository>[^/]+/[^/]+)/actions/runs/(?P<run_id>\d+)/job/(?P<job_id>\d+)/?$")


@dataclass(frozen=True)
class Deployment:
    id: int
    environment: str
    url: str
    workflow_url: str
    log_url: Optional[str] = None
    environment_url: Optional[str] = None


class DeploymentsClient(Protocol):
    async def list_deployments(
        self, owner: str, repo: str, sha: str, task: str, per_page: int = 100
    ) -> List[Dict[str, Any]]: ...

    async def graphql_nodes(self, ids: Sequence[str], query: str) -> List[Optional[Dict[str, Any]]]: ...


def _origin(url: str) -> tuple:
    parts = urlsplit(url)
    return parts.scheme.lower(), parts.netloc.lower()


def is_job_log_url(log_url: Optional[str], context: ActionContext, job_id: int) -> bool:
    """True when ``log_url`` points at job ``job_id`` of the current run."""
    if not log_url:
        return False
    if _origin(log_url) != _origin(context.server_url):
        return False
    match = JOB_LOG_PATH_RE.match(urlsplit(log_url).path)
    if match is None:
        return False
    return (
        match.group("repository") == context.repository
        and int(match.group("run_id")) == context.run_id
        and int(match.group("job_id")) == job_id
    )


class DeploymentResolver:
    def __init__(self, context: ActionContext, client: DeploymentsClient, job_resolver: JobResolver) -> None:
        self.context = context
        self.client = client
        self.job_resolver = job_resolver
        self._memo: SharedResolution[Optional[Deployment]] = SharedResolution(self._resolve)

    async def resolve_current_deployment(self) -> Optional[Deployment]:
        return await self._memo.get()

    async def _resolve(self) -> Optional[Deployment]:
        ctx = self.context
        job = await self.job_resolver.resolve_current_job()

        try:
            listed = await self.client.list_deployments(ctx.owner, ctx.repo, sha=ctx.sha, task=DEPLOY_TASK, per_page=100)
        except GitHubApiError as exc:
            if exc.status == 403:
                raise MissingPermissionError("deployments", "read") from exc
            raise

        node_ids = [
            deployment["node_id"]
            for deployment in listed
            if (deployment.get("performed_via_github_app") or {}).get("slug") == GITHUB_ACTIONS_APP_SLUG
        ]
        if not node_ids:
            actions.debug("No deployments created by GitHub Actions for this commit")
            return None

        nodes = await self.client.graphql_nodes(node_ids, DEPLOYMENT_NODES_QUERY)
        candidates = [
            node
            for node in nodes
            if node
            and node.get("commitOid") == ctx.sha
            and node.get("task") == DEPLOY_TASK
            and node.get("state") == IN_PROGRESS
        ]

        match = next(
            (
                node
                for node in candidates
                if is_job_log_url((node.get("latestStatus") or {}).get("logUrl"), ctx, job["id"])
            ),
            None,
        )
        if match is None:
            actions.debug(f"No in-progress deployment belongs to job {job['id']}")
            return None
        return self._to_deployment(match)

    def _to_deployment(self, node: Dict[str, Any]) -> Deployment:
        status = node.get("latestStatus")
        environment = node.get("latestEnvironment")
        if not status or not environment:
            raise DeploymentConsistencyError(
                f"Deployment {node.get('databaseId')} is missing its latest status or environment."
            )
        ctx = self.context
        return Deployment(
            id=node["databaseId"],
            environment=environment,
            url=f"{ctx.server_url}/{ctx.repository}/deployments/{environment}",
            workflow_url=ctx.run_url,
            log_url=status.get("logUrl"),
            environment_url=status.get("environmentUrl"),
        )
