"""Bugsnag error reporting integration.

A Bugsnag handler on the root logger reports ERROR-level entries, such as a
failed parallel branch. Each report carries the run it came from in a "run"
tab, taken from the same context variables the logs use.
"""

import logging
from typing import Any

import bugsnag
import structlog
from bugsnag.event import Event
from bugsnag.handlers import BugsnagHandler

from agentcore.platform.observability.logging import branch_ctx, invocation_id_ctx

RUN_TAB = "run"


def run_metadata() -> dict[str, Any]:
    """Identify the current run for an error report; empty outside a run."""
    metadata: dict[str, Any] = dict(structlog.contextvars.get_contextvars())
    invocation_id = invocation_id_ctx.get()
    if invocation_id:
        metadata["invocation_id"] = invocation_id
    branch = branch_ctx.get()
    if branch:
        metadata["branch"] = branch
    return metadata


def add_run_metadata(event: Event) -> None:
    metadata = run_metadata()
    if not metadata:
        return
    event.add_tab(RUN_TAB, metadata)
    if "branch" in metadata:
        event.context = metadata["branch"]


def initialize_bugsnag(api_key: str, release_stage: str) -> None:
    """Initialize Bugsnag error reporting.

    Args:
        api_key: Bugsnag project API key
        release_stage: Environment identifier ("production", "development", "local")

    Note:
        No-op when release_stage is "local" to avoid reporting during local development.
    """
    if release_stage == "local":
        return
    bugsnag.configure(
        api_key=api_key,
        release_stage=release_stage,
        auto_notify=True,
    )
    bugsnag.before_notify(add_run_metadata)
    handler = BugsnagHandler()
    handler.setLevel(logging.ERROR)
    logging.getLogger().addHandler(handler)
