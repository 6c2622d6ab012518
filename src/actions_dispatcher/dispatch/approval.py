"""Approval gate for runs triggered from untrusted pull requests."""

from __future__ import annotations

import logging

from actions_dispatcher.collaborators import PermissionOracle, RunStore
from actions_dispatcher.errors import ApprovalCheckError
from actions_dispatcher.models import ACTIONS_UNIT, PULL_REQUEST_TARGET, Repository, Run, User

logger = logging.getLogger(__name__)


def need_approval(
    run: Run,
    repository: Repository,
    user: User,
    *,
    permissions: PermissionOracle,
    store: RunStore,
) -> bool:
    """Decide whether `run` must wait for a maintainer before it executes.

    Order matters:
      1. Non-fork runs and `pull_request_target` runs never need approval; the
         latter always evaluate the base branch's workflow definition.
      2. Restricted users always need approval.
      3. Users who can write the actions unit are trusted.
      4. Users with at least one approved run in the repository are trusted.
      5. Everybody else needs approval.

    Raises:
        ApprovalCheckError: if the permission oracle or the run store fails.
    """

    if not run.is_fork_pull_request or run.trigger_event == PULL_REQUEST_TARGET:
        return False

    fields = {"repo_id": repository.id, "user_id": user.id}

    if user.is_restricted:
        logger.debug("Approval required: user is restricted", extra=fields)
        return True

    try:
        permission = permissions.permission_of(repository, user)
    except Exception as e:
        raise ApprovalCheckError(f"permission lookup failed: {e}") from e
    if permission.can_write(ACTIONS_UNIT):
        logger.debug("Approval not required: user can write", extra=fields)
        return False

    try:
        approved = store.count_approved_runs(repository.id, user.id)
    except Exception as e:
        raise ApprovalCheckError(f"counting approved runs failed: {e}") from e
    if approved > 0:
        logger.debug("Approval not required: user was approved before", extra=fields)
        return False

    logger.debug("Approval required: first run by this user", extra=fields)
    return True
