"""Find the job this process runs in within the current workflow run attempt."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from . import actions
from .context import ActionContext
from .errors import GitHubApiError, JobNotFoundError, MissingPermissionError
from .inputs import FlatJsonObject, get_input
from .memo import SharedResolution
from .workflow_context import WorkflowContext, absolute_job_name, parse_workflow_context_chain

JOB_NAME_INPUT = "job-name"
JOB_MATRIX_INPUT = "#job-matrix"
WORKFLOW_CONTEXT_INPUT = "workflow-context"


class JobsClient(Protocol):
    async def list_jobs_for_run_attempt(
        self, owner: str, repo: str, run_id: int, attempt_number: int
    ) -> List[Dict[str, Any]]: ...


def read_workflow_context_chain() -> List[WorkflowContext]:
    raw = get_input(WORKFLOW_CONTEXT_INPUT)
    if raw is None:
        return []
    return parse_workflow_context_chain(raw, WORKFLOW_CONTEXT_INPUT)


def current_absolute_job_name() -> str:
    return absolute_job_name(
        get_input(JOB_NAME_INPUT, required=True),
        get_input(JOB_MATRIX_INPUT, Optional[FlatJsonObject]),
        read_workflow_context_chain(),
    )


class JobResolver:
    def __init__(self, context: ActionContext, client: JobsClient) -> None:
        self.context = context
        self.client = client
        self._memo: SharedResolution[Dict[str, Any]] = SharedResolution(self._resolve)

    async def resolve_current_job(self) -> Dict[str, Any]:
        return await self._memo.get()

    async def _resolve(self) -> Dict[str, Any]:
        ctx = self.context
        try:
            jobs = await self.client.list_jobs_for_run_attempt(ctx.owner, ctx.repo, ctx.run_id, ctx.run_attempt)
        except GitHubApiError as exc:
            if exc.status == 403:
                raise MissingPermissionError("actions", "read") from exc
            raise

        job_name = current_absolute_job_name()
        actions.debug(f"Looking up job '{job_name}' among {len(jobs)} job(s) of run attempt {ctx.run_attempt}")
        job = next((candidate for candidate in jobs if candidate.get("name") == job_name), None)
        if job is None:
            raise JobNotFoundError(
                f"Current job '{job_name}' could not be found in workflow run.\n"
                "If this action is used within a reusable workflow, ensure that "
                f"action input '{WORKFLOW_CONTEXT_INPUT}' is set correctly and "
                f"the '{WORKFLOW_CONTEXT_INPUT}' job name matches the job name of the job that uses the reusable workflow."
            )
        return job
