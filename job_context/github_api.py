"""Minimal GitHub REST and GraphQL client used by the resolvers.

Calls go through ``requests`` and are moved off the event loop with
``asyncio.to_thread`` so resolvers can ``await`` them.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import requests

from . import actions
from .errors import GitHubApiError

DEFAULT_HEADERS = {
    "Accept": "application/vnd.github+json",
    "User-Agent": "actions-job-context/1.0",
    "X-GitHub-Api-Version": "2022-11-28",
}

DEFAULT_TIMEOUT = 60


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return f"HTTP {response.status_code}: {payload['message']}"
    return f"HTTP {response.status_code}"


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # --- blocking transport ---

    def _get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> requests.Response:
        actions.debug(f"GET {url}")
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code != 200:
            raise GitHubApiError(f"GET {url} failed: {_error_message(response)}", response.status_code)
        return response

    def iter_paginated(self, path: str, key: str, params: Optional[Mapping[str, Any]] = None) -> Iterable[Dict[str, Any]]:
        """Yield ``payload[key]`` items (or the items of a list payload) across all pages."""
        next_url: Optional[str] = f"{self.api_url}{path}"
        next_params = params
        while next_url:
            response = self._get(next_url, next_params)
            payload = response.json()
            items = payload if isinstance(payload, list) else payload.get(key)
            if not isinstance(items, list):
                items = []
            yield from items
            # the next link already carries the query string
            next_url = response.links.get("next", {}).get("url")
            next_params = None

    def graphql(self, query: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        actions.debug(f"POST {self.graphql_url}")
        response = self.session.post(
            self.graphql_url,
            json={"query": query, "variables": dict(variables or {})},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise GitHubApiError(
                f"GraphQL request failed: {_error_message(response)}", response.status_code
            )
        payload = response.json()
        errors = payload.get("errors")
        if errors:
            messages = "\n".join(f"  - {err.get('message', err)}" for err in errors)
            raise GitHubApiError(f"GraphQL request failed:\n{messages}", response.status_code)
        return payload.get("data") or {}

    # --- collaborators ---

    async def list_jobs_for_run_attempt(
        self, owner: str, repo: str, run_id: int, attempt_number: int
    ) -> List[Dict[str, Any]]:
        path = f"/repos/{owner}/{repo}/actions/runs/{run_id}/attempts/{attempt_number}/jobs"
        return await asyncio.to_thread(lambda: list(self.iter_paginated(path, "jobs", {"per_page": 100})))

    async def list_deployments(
        self, owner: str, repo: str, sha: str, task: str, per_page: int = 100
    ) -> List[Dict[str, Any]]:
        path = f"/repos/{owner}/{repo}/deployments"
        params = {"sha": sha, "task": task, "per_page": per_page}
        return await asyncio.to_thread(lambda: list(self.iter_paginated(path, "deployments", params)))

    async def graphql_nodes(self, ids: Sequence[str], query: str) -> List[Optional[Dict[str, Any]]]:
        """Run a ``nodes(ids: $ids)`` query and return the nodes in request order."""
        data = await asyncio.to_thread(self.graphql, query, {"ids": list(ids)})
        return list(data.get("nodes") or [])
