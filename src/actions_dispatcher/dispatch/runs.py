"""Turn matched event workflows into persisted runs."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from actions_dispatcher.collaborators import (
    CommitStatusNotifier,
    PermissionOracle,
    RunStore,
    WorkflowParser,
)
from actions_dispatcher.errors import ApprovalCheckError, RunStoreError
from actions_dispatcher.models import (
    Commit,
    DetectedWorkflow,
    EventKind,
    PullRequest,
    PullRequestFlow,
    Run,
    RunStatus,
)

from .approval import need_approval
from .context import TriggerContext

logger = logging.getLogger(__name__)


def is_fork_pull_request(pull_request: PullRequest | None) -> bool:
    """Whether runs for this pull request execute code from an untrusted source."""

    if pull_request is None:
        return False
    if pull_request.flow == PullRequestFlow.GITHUB.value:
        return pull_request.is_from_fork
    # AGit topic branches can be pushed by anyone with read access, and an
    # unknown flow is treated the same way.
    return True


class RunMaterializer:
    def __init__(
        self,
        *,
        store: RunStore,
        parser: WorkflowParser,
        permissions: PermissionOracle,
        notifier: CommitStatusNotifier,
    ) -> None:
        self._store = store
        self._parser = parser
        self._permissions = permissions
        self._notifier = notifier

    def materialize(
        self,
        ctx: TriggerContext,
        workflows: Sequence[DetectedWorkflow],
        commit: Commit,
        ref: str,
        payload_json: str,
    ) -> list[Run]:
        """Create one run per workflow; a failing workflow never blocks its siblings."""

        if not workflows:
            logger.debug(
                "No workflows to run",
                extra={**ctx.log_fields(), "commit": commit.sha},
            )
            return []

        fork = is_fork_pull_request(ctx.pull_request)
        created: list[Run] = []
        for workflow in workflows:
            run = self._materialize_one(ctx, workflow, commit, ref, payload_json, fork)
            if run is not None:
                created.append(run)
        return created

    def _materialize_one(
        self,
        ctx: TriggerContext,
        workflow: DetectedWorkflow,
        commit: Commit,
        ref: str,
        payload_json: str,
        fork: bool,
    ) -> Run | None:
        fields = {**ctx.log_fields(), "workflow": workflow.entry_name, "commit": commit.sha}
        repository = ctx.repository

        run = Run(
            title=commit.title,
            repo_id=repository.id,
            owner_id=repository.owner_id,
            workflow_id=workflow.entry_name,
            trigger_user_id=ctx.actor.id,
            ref=ref,
            commit_sha=commit.sha,
            event=ctx.event,
            event_payload=payload_json,
            trigger_event=workflow.trigger_event,
            is_fork_pull_request=fork,
            status=RunStatus.WAITING,
        )

        try:
            needed = need_approval(
                run,
                repository,
                ctx.actor,
                permissions=self._permissions,
                store=self._store,
            )
        except ApprovalCheckError:
            logger.exception("Approval check failed; skipping workflow", extra=fields)
            return None
        run = run.model_copy(update={"need_approval": needed})

        try:
            jobs = self._parser.parse_jobs(workflow.content)
        except Exception:
            # Parsers raise their own error types (YAML, decoding, ...).
            logger.exception("Workflow content is invalid; skipping workflow", extra=fields)
            return None

        if run.event == EventKind.PUSH:
            # A new push supersedes in-flight runs of the same workflow on the same ref.
            try:
                self._store.cancel_running_jobs(run.repo_id, run.ref, run.workflow_id, run.event)
            except RunStoreError:
                logger.exception("Cancelling superseded runs failed", extra=fields)

        try:
            run = self._store.insert_run(run, jobs)
        except RunStoreError:
            logger.exception("Inserting run failed; skipping workflow", extra=fields)
            return None

        logger.info(
            "Run created",
            extra={**fields, "run_id": run.id, "need_approval": run.need_approval},
        )

        try:
            run_jobs = self._store.find_run_jobs(run.id)
        except RunStoreError:
            logger.exception("Loading run jobs failed", extra={**fields, "run_id": run.id})
            return run

        try:
            self._notifier.create_commit_status(repository, run, run_jobs)
        except Exception:
            logger.exception("Creating commit status failed", extra={**fields, "run_id": run.id})
        return run
