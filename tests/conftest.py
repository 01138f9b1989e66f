from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional, Sequence

import pytest

from job_context.context import ActionContext
from job_context.inputs import input_env_name

RUNNER_ENV = {
    "GITHUB_REPOSITORY": "octo/sandbox",
    "GITHUB_RUN_ID": "1001",
    "GITHUB_RUN_ATTEMPT": "2",
    "GITHUB_SHA": "abc123",
    "GITHUB_SERVER_URL": "https://github.com",
    "GITHUB_JOB": "build",
    "RUNNER_NAME": "runner-1",
    "RUNNER_TEMP": "/tmp/runner",
}


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient that records every call."""

    def __init__(
        self,
        jobs: Optional[List[Dict[str, Any]]] = None,
        deployments: Optional[List[Dict[str, Any]]] = None,
        nodes: Optional[Dict[str, Dict[str, Any]]] = None,
        jobs_error: Optional[Exception] = None,
        deployments_error: Optional[Exception] = None,
    ) -> None:
        self.jobs = jobs or []
        self.deployments = deployments or []
        self.nodes = nodes or {}
        self.jobs_error = jobs_error
        self.deployments_error = deployments_error
        self.calls: List[tuple] = []

    async def list_jobs_for_run_attempt(self, owner: str, repo: str, run_id: int, attempt_number: int):
        self.calls.append(("jobs", owner, repo, run_id, attempt_number))
        await asyncio.sleep(0)
        if self.jobs_error is not None:
            raise self.jobs_error
        return list(self.jobs)

    async def list_deployments(self, owner: str, repo: str, sha: str, task: str, per_page: int = 100):
        self.calls.append(("deployments", owner, repo, sha, task, per_page))
        await asyncio.sleep(0)
        if self.deployments_error is not None:
            raise self.deployments_error
        return list(self.deployments)

    async def graphql_nodes(self, ids: Sequence[str], query: str):
        self.calls.append(("graphql", list(ids)))
        await asyncio.sleep(0)
        return [self.nodes.get(node_id) for node_id in ids]

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def make_client():
    return FakeGitHubClient


@pytest.fixture
def action_context() -> ActionContext:
    return ActionContext.from_env(RUNNER_ENV)


@pytest.fixture
def runner_env(monkeypatch):
    for name, value in RUNNER_ENV.items():
        monkeypatch.setenv(name, value)
    return RUNNER_ENV


@pytest.fixture
def set_inputs(monkeypatch):
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name)

    def _set(inputs: Dict[str, str]) -> None:
        for name, value in inputs.items():
            monkeypatch.setenv(input_env_name(name), value)

    return _set
