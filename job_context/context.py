"""Workflow run context read from the runner environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ValidationError


def _require_env(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ValidationError(f"{name} environment variable is required.")
    return value


def _require_int_env(env: Mapping[str, str], name: str) -> int:
    value = _require_env(env, name)
    try:
        return int(value, 10)
    except ValueError as exc:
        raise ValidationError(f"{name} environment variable must be an integer, got {value!r}.") from exc


@dataclass(frozen=True)
class ActionContext:
    owner: str
    repo: str
    run_id: int
    run_attempt: int
    sha: str
    runner_name: str
    runner_temp: str
    server_url: str = "https://github.com"
    api_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    job: Optional[str] = None
    workflow: Optional[str] = None
    event_name: Optional[str] = None
    ref: Optional[str] = None
    actor: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ActionContext":
        env = os.environ if env is None else env
        repository = _require_env(env, "GITHUB_REPOSITORY")
        owner, sep, repo = repository.partition("/")
        if not sep or not owner or not repo:
            raise ValidationError(f"GITHUB_REPOSITORY must look like 'owner/repo', got {repository!r}.")
        return cls(
            owner=owner,
            repo=repo,
            run_id=_require_int_env(env, "GITHUB_RUN_ID"),
            run_attempt=_require_int_env(env, "GITHUB_RUN_ATTEMPT"),
            sha=_require_env(env, "GITHUB_SHA"),
            runner_name=_require_env(env, "RUNNER_NAME"),
            runner_temp=_require_env(env, "RUNNER_TEMP"),
            server_url=env.get("GITHUB_SERVER_URL") or cls.server_url,
            api_url=env.get("GITHUB_API_URL") or cls.api_url,
            graphql_url=env.get("GITHUB_GRAPHQL_URL") or cls.graphql_url,
            job=env.get("GITHUB_JOB"),
            workflow=env.get("GITHUB_WORKFLOW"),
            event_name=env.get("GITHUB_EVENT_NAME"),
            ref=env.get("GITHUB_REF"),
            actor=env.get("GITHUB_ACTOR"),
        )

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def run_url(self) -> str:
        return f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"
