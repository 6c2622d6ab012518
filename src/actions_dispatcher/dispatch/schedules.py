"""Turn default-branch schedule workflows into recurring schedule records."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from actions_dispatcher.collaborators import CommitSource, RunStore, WorkflowParser
from actions_dispatcher.models import Commit, DetectedWorkflow, Schedule

from .context import TriggerContext

logger = logging.getLogger(__name__)


class ScheduleMaterializer:
    def __init__(self, *, store: RunStore, parser: WorkflowParser, commits: CommitSource) -> None:
        self._store = store
        self._parser = parser
        self._commits = commits

    def materialize(
        self,
        ctx: TriggerContext,
        workflows: Sequence[DetectedWorkflow],
        commit: Commit,
        ref: str,
        payload_json: str,
    ) -> list[Schedule]:
        """Replace the repository's schedule set with the one declared at `commit`.

        Only commits on the default branch count. Any existing schedules are
        purged first, even when the commit declares none.
        """

        repository = ctx.repository
        fields = {**ctx.log_fields(), "commit": commit.sha}

        branch = self._commits.get_branch_name(repository, commit)
        if branch != repository.default_branch:
            logger.debug(
                "Commit is not on the default branch; schedules untouched",
                extra={**fields, "branch": branch},
            )
            return []

        if self._store.count_schedules(repository.id) > 0:
            self._store.clean_repo_schedules(repository.id)

        if not workflows:
            logger.debug("No schedule workflows found", extra=fields)
            return []

        schedules: list[Schedule] = []
        for workflow in workflows:
            wf_fields = {**fields, "workflow": workflow.entry_name}
            try:
                specs = self._parser.parse_schedules(workflow.content)
            except Exception:
                logger.exception("Workflow content is invalid; skipping schedule", extra=wf_fields)
                continue
            if not specs:
                logger.warning("Workflow declares no schedule", extra=wf_fields)
                continue

            schedules.append(
                Schedule(
                    title=commit.title,
                    repo_id=repository.id,
                    owner_id=repository.owner_id,
                    workflow_id=workflow.entry_name,
                    trigger_user_id=ctx.actor.id,
                    ref=ref,
                    commit_sha=commit.sha,
                    event=ctx.event,
                    event_payload=payload_json,
                    specs=list(specs),
                    content=workflow.content,
                )
            )

        if schedules:
            self._store.create_schedules(schedules)
            logger.info("Schedules created", extra={**fields, "count": len(schedules)})
        return schedules
