"""Interfaces of the systems the dispatcher talks to.

The dispatcher only depends on these structural protocols. Concrete adapters
live in `actions_dispatcher.github` and `actions_dispatcher.store`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from actions_dispatcher.models import (
    Commit,
    DetectedWorkflow,
    EventKind,
    ParsedJob,
    Permission,
    Repository,
    Run,
    RunJob,
    Schedule,
    User,
)


class CommitSource(Protocol):
    def get_commit(self, repository: Repository, ref: str) -> Commit:
        """Resolve `ref` to a commit; raise CommitNotFoundError if it does not exist."""
        ...

    def get_branch_name(self, repository: Repository, commit: Commit) -> str: ...


class WorkflowDetector(Protocol):
    def detect(
        self,
        repository: Repository,
        commit: Commit,
        event: EventKind,
        payload: Any,
        is_default_branch_push: bool,
    ) -> tuple[list[DetectedWorkflow], list[DetectedWorkflow]]:
        """Return (event-triggered workflows, schedule-triggered workflows)."""
        ...


class WorkflowParser(Protocol):
    def parse_jobs(self, content: bytes) -> list[ParsedJob]: ...

    def parse_schedules(self, content: bytes) -> list[str]:
        """Return the cron specifications declared by the workflow."""
        ...


class PermissionOracle(Protocol):
    def permission_of(self, repository: Repository, user: User) -> Permission: ...


class RunStore(Protocol):
    """Persistence for runs and schedules. Each call must be atomic on its own."""

    def insert_run(self, run: Run, jobs: Sequence[ParsedJob]) -> Run: ...

    def cancel_running_jobs(
        self, repo_id: int, ref: str, workflow_id: str, event: EventKind
    ) -> None: ...

    def find_run_jobs(self, run_id: int) -> list[RunJob]: ...

    def count_approved_runs(self, repo_id: int, trigger_user_id: int) -> int: ...

    def count_schedules(self, repo_id: int) -> int: ...

    def create_schedules(self, schedules: Sequence[Schedule]) -> None: ...

    def clean_repo_schedules(self, repo_id: int) -> None: ...


class CommitStatusNotifier(Protocol):
    def create_commit_status(
        self, repository: Repository, run: Run, jobs: Sequence[RunJob]
    ) -> None: ...
