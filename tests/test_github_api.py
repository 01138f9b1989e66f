from __future__ import annotations

import asyncio

import pytest

from job_context.errors import GitHubApiError
from job_context.github_api import GitHubClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, next_url=None):
        self.status_code = status_code
        self._payload = payload
        self.links = {"next": {"url": next_url, "rel": "next"}} if next_url else {}

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append(("GET", url, params))
        return self.responses.pop(0)

    def post(self, url, json=None, timeout=None):
        self.requests.append(("POST", url, json))
        return self.responses.pop(0)


def test_client_sets_auth_headers():
    session = FakeSession([])
    GitHubClient("ghs_token", session=session)

    assert session.headers["Authorization"] == "Bearer ghs_token"
    assert session.headers["Accept"] == "application/vnd.github+json"


def test_job_listing_follows_next_links():
    next_url = "https://api.github.com/repositories/1/actions/runs/1001/attempts/2/jobs?per_page=100&page=2"
    session = FakeSession(
        [
            FakeResponse(payload={"total_count": 3, "jobs": [{"id": 1}, {"id": 2}]}, next_url=next_url),
            FakeResponse(payload={"total_count": 3, "jobs": [{"id": 3}]}),
        ]
    )
    client = GitHubClient("token", session=session)

    jobs = asyncio.run(client.list_jobs_for_run_attempt("octo", "sandbox", 1001, 2))

    assert [job["id"] for job in jobs] == [1, 2, 3]
    assert session.requests == [
        ("GET", "https://api.github.com/repos/octo/sandbox/actions/runs/1001/attempts/2/jobs", {"per_page": 100}),
        ("GET", next_url, None),
    ]


def test_deployment_listing_passes_filters():
    session = FakeSession([FakeResponse(payload=[{"node_id": "D1"}])])
    client = GitHubClient("token", api_url="https://ghe.example/api/v3/", session=session)

    deployments = asyncio.run(client.list_deployments("octo", "sandbox", sha="abc123", task="deploy", per_page=100))

    assert deployments == [{"node_id": "D1"}]
    assert session.requests == [
        (
            "GET",
            "https://ghe.example/api/v3/repos/octo/sandbox/deployments",
            {"sha": "abc123", "task": "deploy", "per_page": 100},
        )
    ]


def test_http_error_carries_status():
    session = FakeSession([FakeResponse(403, {"message": "Resource not accessible by integration"})])
    client = GitHubClient("token", session=session)

    with pytest.raises(GitHubApiError) as excinfo:
        asyncio.run(client.list_jobs_for_run_attempt("octo", "sandbox", 1001, 1))

    assert excinfo.value.status == 403
    assert "Resource not accessible by integration" in str(excinfo.value)


def test_http_error_without_json_body():
    session = FakeSession([FakeResponse(502)])
    client = GitHubClient("token", session=session)

    with pytest.raises(GitHubApiError, match="HTTP 502"):
        asyncio.run(client.list_deployments("octo", "sandbox", sha="abc123", task="deploy"))


def test_graphql_nodes_sends_ids():
    session = FakeSession([FakeResponse(payload={"data": {"nodes": [{"databaseId": 1}, None]}})])
    client = GitHubClient("token", graphql_url="https://api.github.com/graphql", session=session)

    nodes = asyncio.run(client.graphql_nodes(["D1", "D2"], "query($ids: [ID!]!) { nodes(ids: $ids) { id } }"))

    assert nodes == [{"databaseId": 1}, None]
    method, url, body = session.requests[0]
    assert (method, url) == ("POST", "https://api.github.com/graphql")
    assert body["variables"] == {"ids": ["D1", "D2"]}


def test_graphql_errors_are_raised():
    session = FakeSession([FakeResponse(payload={"data": None, "errors": [{"message": "Could not resolve to a node"}]})])
    client = GitHubClient("token", session=session)

    with pytest.raises(GitHubApiError, match="Could not resolve to a node"):
        asyncio.run(client.graphql_nodes(["D1"], "query { viewer { login } }"))
