#!/usr/bin/env python3
"""Programmatic dispatch example.

This demonstrates wiring the dispatcher directly:

* load settings from `.env` and take a configuration snapshot
* resolve commits, permissions and commit statuses through GitHub
* persist runs and schedules to the local JSON run store

Workflow detection and parsing belong to the host application. This example
stands in for them with a naive reader of a local workflow directory: every
`*.yml` file is one single-job workflow triggered by `push`, and files with a
`cron:` line are schedules.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Sequence

from actions_dispatcher import DispatcherSettings, TriggerContext, WorkflowTriggerDispatcher
from actions_dispatcher.github.client import GitHubClient
from actions_dispatcher.logging import configure_logging
from actions_dispatcher.models import (
    Commit,
    DetectedWorkflow,
    EventKind,
    ParsedJob,
    Repository,
    User,
)
from actions_dispatcher.store.json_store import JsonRunStore


class DirectoryDetector:
    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def detect(
        self,
        repository: Repository,
        commit: Commit,
        event: EventKind,
        payload: Any,
        is_default_branch_push: bool,
    ) -> tuple[list[DetectedWorkflow], list[DetectedWorkflow]]:
        workflows: list[DetectedWorkflow] = []
        schedules: list[DetectedWorkflow] = []
        for path in sorted(self._directory.glob("*.yml")):
            content = path.read_bytes()
            if b"cron:" in content:
                schedules.append(DetectedWorkflow(path.name, "schedule", content))
            elif event == EventKind.PUSH:
                workflows.append(DetectedWorkflow(path.name, "push", content))
        return workflows, schedules


class LineParser:
    def parse_jobs(self, content: bytes) -> list[ParsedJob]:
        return [ParsedJob(job_id="main", name="main", content=content)]

    def parse_schedules(self, content: bytes) -> list[str]:
        specs = []
        for line in content.decode("utf-8").splitlines():
            line = line.strip().lstrip("- ")
            if line.startswith("cron:"):
                specs.append(line[len("cron:") :].strip().strip("'\""))
        return specs


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dispatch a push event (programmatic example).")
    parser.add_argument("--repo", required=True, help='Repository in the form "owner/repo"')
    parser.add_argument("--repo-id", type=int, default=1, help="Numeric repository id")
    parser.add_argument("--default-branch", default="main", help="Default branch name")
    parser.add_argument("--ref", default="refs/heads/main", help="Pushed ref")
    parser.add_argument("--pusher", required=True, help="GitHub login of the pusher")
    parser.add_argument(
        "--workflows", type=Path, default=Path(".github/workflows"), help="Workflow directory"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = DispatcherSettings()
    configure_logging(settings.log_level)

    github = GitHubClient(token=settings.github_token, base_url=settings.github_base_url)
    try:
        dispatcher = WorkflowTriggerDispatcher(
            commits=github,
            detector=DirectoryDetector(args.workflows),
            parser=LineParser(),
            permissions=github,
            store=JsonRunStore(settings.run_store_path),
            notifier=github,
        )

        repository = Repository(
            id=args.repo_id,
            owner_id=0,
            full_name=args.repo,
            default_branch=args.default_branch,
        )
        ctx = TriggerContext.new(repository, User(id=0, name=args.pusher), EventKind.PUSH)
        ctx = ctx.with_method("push").with_ref(args.ref).with_payload({"ref": args.ref})

        result = dispatcher.dispatch(ctx, settings.snapshot())
    finally:
        github.close()

    if result.skipped:
        print(f"Nothing dispatched: {result.skipped}")
        return 0
    for run in result.runs:
        print(f"Run #{run.id}: {run.workflow_id} ({run.status.value})")
    for schedule in result.schedules:
        print(f"Schedule: {schedule.workflow_id} {schedule.specs}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
