"""GitHub Actions runtime helpers: workflow commands, outputs and the error boundary."""
from __future__ import annotations

import asyncio
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Mapping, Optional, Sequence


@dataclass(frozen=True)
class BotIdentity:
    name: str
    email: str


# GitHub Actions bot user
bot = BotIdentity(
    name="github-actions[bot]",
    email="41898282+github-actions[bot]@users.noreply.github.com",
)

UNHANDLED_ERROR_MESSAGE = "Unhandled error, see job logs"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue_command(command: str, message: str = "", properties: Optional[Mapping[str, str]] = None) -> None:
    props = ""
    if properties:
        props = " " + ",".join(f"{key}={_escape_property(str(val))}" for key, val in properties.items())
    print(f"::{command}{props}::{_escape_data(message)}", flush=True)


def debug(message: str) -> None:
    issue_command("debug", message)


def info(message: str) -> None:
    print(message, flush=True)


def warning(message: str) -> None:
    issue_command("warning", message)


def error(message: str) -> None:
    issue_command("error", message)


def set_secret(value: str) -> None:
    """Mask ``value`` in all subsequent job log output."""
    issue_command("add-mask", value)


@contextmanager
def group(title: str) -> Iterator[None]:
    issue_command("group", title)
    try:
        yield
    finally:
        issue_command("endgroup")


def set_output(name: str, value: object) -> None:
    """Append a step output to ``$GITHUB_OUTPUT``.

    Multi-line values use the heredoc form the runner understands. Outside of a
    runner (no ``GITHUB_OUTPUT``) the pair is printed so local runs stay readable.
    """
    text = "" if value is None else str(value)
    outputs_path = os.environ.get("GITHUB_OUTPUT")
    if not outputs_path:
        info(f"{name}={text}")
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(outputs_path, "a", encoding="utf-8") as fh:
        fh.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")


def set_failed(message: str) -> None:
    error(message)


def run(action: Callable[[], Awaitable[None]]) -> int:
    """Run ``action`` to completion and turn any escaping error into a failed step.

    Returns the process exit code: ``0`` on success, ``1`` after reporting the error.
    """
    try:
        asyncio.run(action())
    except Exception as exc:
        set_failed(str(exc) or UNHANDLED_ERROR_MESSAGE)
        traceback.print_exc(file=sys.stderr)
        return 1
    return 0


@dataclass
class ExecResult:
    status: int
    stdout: bytes
    stderr: bytes


async def exec_command(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ExecResult:
    """Execute ``command`` with ``args`` and capture its exit status and output."""
    debug(f"exec: {command} {' '.join(args)}".rstrip())
    proc = await asyncio.create_subprocess_exec(
        command,
        *args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return ExecResult(status=proc.returncode, stdout=stdout, stderr=stderr)
