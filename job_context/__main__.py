"""Resolve the current GitHub Actions job and deployment and publish them as step outputs."""
from __future__ import annotations

import argparse
import sys
from typing import Iterable, Optional

from . import actions, current


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m job_context", description=__doc__)
    parser.add_argument("--token", default=None, help="GitHub token (defaults to input 'token', then GITHUB_TOKEN)")
    parser.add_argument(
        "--skip-deployment",
        action="store_true",
        help="Only resolve the current job",
    )
    return parser


async def publish_outputs(skip_deployment: bool = False) -> None:
    with actions.group("Resolve current job"):
        job = await current.get_current_job()
        actions.info(f"Job: {job['name']} (id {job['id']})")

    deployment = None
    if not skip_deployment:
        with actions.group("Resolve current deployment"):
            deployment = await current.get_current_deployment()
            if deployment is None:
                actions.info("No in-progress deployment belongs to this job.")
            else:
                actions.info(f"Deployment: {deployment.id} ({deployment.environment})")

    # outputs are only written once everything resolved
    actions.set_output("job-id", job["id"])
    actions.set_output("job-name", job["name"])
    actions.set_output("job-url", job.get("html_url"))
    if deployment is not None:
        actions.set_output("deployment-id", deployment.id)
        actions.set_output("deployment-environment", deployment.environment)
        actions.set_output("deployment-url", deployment.url)
        actions.set_output("deployment-workflow-url", deployment.workflow_url)
        actions.set_output("deployment-log-url", deployment.log_url)
        actions.set_output("deployment-environment-url", deployment.environment_url)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else list(argv))

    async def action() -> None:
        current.configure(token=args.token)
        await publish_outputs(skip_deployment=args.skip_deployment)

    return actions.run(action)


if __name__ == "__main__":
    sys.exit(main())
