"""JSON-file backed run store.

Everything lives in one document:

    {"next_id": 1, "runs": [...], "jobs": [...], "schedules": [...]}

Each public method loads, modifies and saves the document under a lock, so
operations are atomic within one process. This is meant for local use and
tests; a shared deployment should back `RunStore` with a database.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from actions_dispatcher.errors import RunStoreError
from actions_dispatcher.models import EventKind, ParsedJob, Run, RunJob, RunStatus, Schedule

logger = logging.getLogger(__name__)


class _StoreDocument(BaseModel):
    next_id: int = 1
    runs: list[Run] = Field(default_factory=list)
    jobs: list[RunJob] = Field(default_factory=list)
    schedules: list[Schedule] = Field(default_factory=list)

    def allocate_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value


@dataclass
class JsonRunStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> _StoreDocument:
        if not self.path.exists():
            return _StoreDocument()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise RunStoreError(f"run store {self.path} is not valid JSON: {e}") from e
        if raw is None:
            return _StoreDocument()
        try:
            return _StoreDocument.model_validate(raw)
        except ValidationError as e:
            raise RunStoreError(f"run store {self.path} has unexpected shape: {e}") from e

    def _save_unlocked(self, doc: _StoreDocument) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(doc.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except (OSError, ValueError) as e:
            raise RunStoreError(f"writing run store {self.path} failed: {e}") from e

    # Runs

    def insert_run(self, run: Run, jobs: Sequence[ParsedJob]) -> Run:
        with self._lock:
            doc = self._load_unlocked()
            stored = run.model_copy(update={"id": doc.allocate_id()})
            doc.runs.append(stored)
            for job in jobs:
                doc.jobs.append(
                    RunJob(
                        id=doc.allocate_id(),
                        run_id=stored.id,
                        repo_id=stored.repo_id,
                        owner_id=stored.owner_id,
                        commit_sha=stored.commit_sha,
                        is_fork_pull_request=stored.is_fork_pull_request,
                        name=job.name,
                        job_id=job.job_id,
                        needs=list(job.needs),
                        status=RunStatus.WAITING if not job.needs else RunStatus.BLOCKED,
                    )
                )
            self._save_unlocked(doc)
            return stored

    def cancel_running_jobs(
        self, repo_id: int, ref: str, workflow_id: str, event: EventKind
    ) -> None:
        with self._lock:
            doc = self._load_unlocked()
            cancelled: set[int] = set()
            for idx, run in enumerate(doc.runs):
                if (
                    run.repo_id != repo_id
                    or run.ref != ref
                    or run.workflow_id != workflow_id
                    or run.event != event
                    or run.status.is_done()
                ):
                    continue
                doc.runs[idx] = run.model_copy(update={"status": RunStatus.CANCELLED})
                cancelled.add(run.id)

            if not cancelled:
                return

            for idx, job in enumerate(doc.jobs):
                if job.run_id in cancelled and not job.status.is_done():
                    doc.jobs[idx] = job.model_copy(update={"status": RunStatus.CANCELLED})
            self._save_unlocked(doc)
            logger.info(
                "Cancelled superseded runs",
                extra={
                    "repo_id": repo_id,
                    "ref": ref,
                    "workflow": workflow_id,
                    "count": len(cancelled),
                },
            )

    def find_run_jobs(self, run_id: int) -> list[RunJob]:
        with self._lock:
            return [job for job in self._load_unlocked().jobs if job.run_id == run_id]

    def count_approved_runs(self, repo_id: int, trigger_user_id: int) -> int:
        with self._lock:
            return sum(
                1
                for run in self._load_unlocked().runs
                if run.repo_id == repo_id
                and run.trigger_user_id == trigger_user_id
                and run.approved_by > 0
            )

    def list_runs(self, repo_id: int | None = None) -> list[Run]:
        with self._lock:
            runs = self._load_unlocked().runs
        if repo_id is None:
            return runs
        return [run for run in runs if run.repo_id == repo_id]

    def get_run(self, run_id: int) -> Run | None:
        with self._lock:
            for run in self._load_unlocked().runs:
                if run.id == run_id:
                    return run
            return None

    def approve_run(self, run_id: int, approver_id: int) -> Run:
        """Record a maintainer's approval of a run that was waiting for one."""

        if approver_id <= 0:
            raise ValueError("approver_id must be a positive user id")
        with self._lock:
            doc = self._load_unlocked()
            for idx, run in enumerate(doc.runs):
                if run.id != run_id:
                    continue
                approved = run.model_copy(
                    update={"approved_by": approver_id, "need_approval": False}
                )
                doc.runs[idx] = approved
                self._save_unlocked(doc)
                return approved
            raise KeyError(run_id)

    # Schedules

    def count_schedules(self, repo_id: int) -> int:
        with self._lock:
            return sum(1 for s in self._load_unlocked().schedules if s.repo_id == repo_id)

    def create_schedules(self, schedules: Sequence[Schedule]) -> None:
        if not schedules:
            return
        with self._lock:
            doc = self._load_unlocked()
            for schedule in schedules:
                doc.schedules.append(schedule.model_copy(update={"id": doc.allocate_id()}))
            self._save_unlocked(doc)

    def clean_repo_schedules(self, repo_id: int) -> None:
        with self._lock:
            doc = self._load_unlocked()
            kept = [s for s in doc.schedules if s.repo_id != repo_id]
            if len(kept) == len(doc.schedules):
                return
            removed = len(doc.schedules) - len(kept)
            doc.schedules = kept
            self._save_unlocked(doc)
            logger.info("Removed schedules", extra={"repo_id": repo_id, "count": removed})

    def list_schedules(self, repo_id: int | None = None) -> list[Schedule]:
        with self._lock:
            schedules = self._load_unlocked().schedules
        if repo_id is None:
            return schedules
        return [s for s in schedules if s.repo_id == repo_id]
