"""Decide which workflows a repository event triggers and materialize them.

The dispatcher resolves the commit the event refers to, asks the detector
which workflows match, applies repository configuration and the fork safety
rules, then hands the matched workflows to the run and schedule
materializers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from actions_dispatcher.collaborators import (
    CommitSource,
    CommitStatusNotifier,
    PermissionOracle,
    RunStore,
    WorkflowDetector,
    WorkflowParser,
)
from actions_dispatcher.config import DispatchConfig
from actions_dispatcher.errors import (
    DispatchError,
    PayloadSerializationError,
    RunStoreError,
    WorkflowDetectionError,
)
from actions_dispatcher.models import (
    BRANCH_PREFIX,
    PULL_REQUEST_TARGET,
    Commit,
    DetectedWorkflow,
    EventKind,
    Run,
    Schedule,
    branch_name,
)

from .context import TriggerContext
from .runs import RunMaterializer
from .schedules import ScheduleMaterializer
from .skip import should_skip

logger = logging.getLogger(__name__)

SKIP_AUTOMATION_ACTOR = "automation-actor"
SKIP_GLOBALLY_DISABLED = "globally-disabled"
SKIP_REPOSITORY_DISABLED = "repository-disabled"
SKIP_COMMIT_MESSAGE = "skip-string"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    runs: list[Run] = field(default_factory=list)
    schedules: list[Schedule] = field(default_factory=list)
    # Reason the dispatch stopped before detection, if it did.
    skipped: str | None = None


def serialize_payload(payload: Any) -> str:
    if isinstance(payload, BaseModel):
        return payload.model_dump_json()
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise PayloadSerializationError(f"event payload is not serializable: {e}") from e


class WorkflowTriggerDispatcher:
    """Entry point: one `dispatch` call per repository event."""

    def __init__(
        self,
        *,
        commits: CommitSource,
        detector: WorkflowDetector,
        parser: WorkflowParser,
        permissions: PermissionOracle,
        store: RunStore,
        notifier: CommitStatusNotifier,
    ) -> None:
        self._commits = commits
        self._detector = detector
        self._store = store
        self._runs = RunMaterializer(
            store=store, parser=parser, permissions=permissions, notifier=notifier
        )
        self._schedules = ScheduleMaterializer(store=store, parser=parser, commits=commits)

    def dispatch(self, ctx: TriggerContext, config: DispatchConfig) -> DispatchResult:
        """Dispatch one event.

        Raises:
            DispatchError: if the commit cannot be resolved, detection fails or
                the payload cannot be serialized. Nothing is created in that case.
        """

        fields = ctx.log_fields()
        logger.debug("Dispatching event", extra=fields)

        if ctx.actor.is_automation:
            # Activity generated by workflows must not trigger workflows again.
            logger.debug("Ignoring event triggered by the automation user", extra=fields)
            return DispatchResult(skipped=SKIP_AUTOMATION_ACTOR)

        repository = ctx.repository
        if config.actions_disabled:
            try:
                self._store.clean_repo_schedules(repository.id)
            except RunStoreError:
                logger.exception("Cleaning schedules failed", extra=fields)
            return DispatchResult(skipped=SKIP_GLOBALLY_DISABLED)

        if not config.is_repository_enabled(repository):
            logger.debug("Actions are disabled for repository", extra=fields)
            return DispatchResult(skipped=SKIP_REPOSITORY_DISABLED)

        # A deleted ref has no commit any more; fall back to the default branch.
        ref = "" if ctx.event == EventKind.DELETE else ctx.ref
        if not ref:
            ref = repository.default_branch

        commit = self._commits.get_commit(repository, ref)
        fields = {**fields, "ref": ref, "commit": commit.sha}

        if should_skip(ctx.event, commit.message, config.skip_workflow_strings):
            logger.info("Commit message opts out of workflows", extra=fields)
            return DispatchResult(skipped=SKIP_COMMIT_MESSAGE)

        is_default_branch_push = (
            ctx.event == EventKind.PUSH and branch_name(ctx.ref) == repository.default_branch
        )
        workflows, schedule_workflows = self._detect(ctx, commit, is_default_branch_push)
        logger.debug(
            "Workflows detected",
            extra={**fields, "workflows": len(workflows), "schedules": len(schedule_workflows)},
        )

        matched: list[DetectedWorkflow] = []
        for workflow in workflows:
            if config.is_workflow_disabled(repository, workflow.entry_name):
                logger.debug(
                    "Workflow is disabled", extra={**fields, "workflow": workflow.entry_name}
                )
                continue
            # pull_request_target workflows are only ever taken from the base branch.
            if workflow.trigger_event != PULL_REQUEST_TARGET:
                matched.append(workflow)

        if ctx.pull_request is not None:
            matched.extend(self._detect_pull_request_target(ctx, fields))

        payload_json = serialize_payload(ctx.payload)

        schedules = self._schedules.materialize(ctx, schedule_workflows, commit, ref, payload_json)
        runs = self._runs.materialize(ctx, matched, commit, ref, payload_json)
        return DispatchResult(runs=runs, schedules=schedules)

    def _detect(
        self, ctx: TriggerContext, commit: Commit, is_default_branch_push: bool
    ) -> tuple[list[DetectedWorkflow], list[DetectedWorkflow]]:
        try:
            workflows, schedules = self._detector.detect(
                ctx.repository, commit, ctx.event, ctx.payload, is_default_branch_push
            )
        except DispatchError:
            raise
        except Exception as e:
            raise WorkflowDetectionError(
                f"detecting workflows at {commit.sha} failed: {e}"
            ) from e
        return list(workflows), list(schedules)

    def _detect_pull_request_target(
        self, ctx: TriggerContext, fields: dict[str, object]
    ) -> list[DetectedWorkflow]:
        assert ctx.pull_request is not None
        base_ref = BRANCH_PREFIX + ctx.pull_request.base_branch
        base_commit = self._commits.get_commit(ctx.repository, base_ref)

        base_workflows, _ = self._detect(ctx, base_commit, False)
        targets = [wf for wf in base_workflows if wf.trigger_event == PULL_REQUEST_TARGET]
        if not targets:
            logger.debug(
                "No pull_request_target workflows on base branch",
                extra={**fields, "base_commit": base_commit.sha},
            )
        return targets
