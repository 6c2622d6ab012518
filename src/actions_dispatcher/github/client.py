"""GitHub-backed collaborators.

This wraps PyGithub to serve three of the dispatcher's collaborators at once:
commit resolution, collaborator permissions and pending commit statuses.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from github import Auth, Github, GithubException
from github.Repository import Repository as GitHubRepository

from actions_dispatcher.errors import CommitNotFoundError, PermissionLookupError
from actions_dispatcher.models import (
    ACTIONS_UNIT,
    BRANCH_PREFIX,
    TAG_PREFIX,
    AccessMode,
    Commit,
    Permission,
    Repository,
    Run,
    RunJob,
    RunStatus,
    User,
)

logger = logging.getLogger(__name__)

_COLLABORATOR_ACCESS: dict[str, AccessMode] = {
    "admin": AccessMode.ADMIN,
    "maintain": AccessMode.WRITE,
    "write": AccessMode.WRITE,
    "triage": AccessMode.READ,
    "read": AccessMode.READ,
    "none": AccessMode.NONE,
}


def _short_ref(ref: str) -> str:
    for prefix in (BRANCH_PREFIX, TAG_PREFIX):
        if ref.startswith(prefix):
            return ref[len(prefix) :]
    return ref


def status_context(run: Run, job: RunJob) -> str:
    return f"{run.workflow_id} / {job.name} ({run.event.value})"


def status_description(job: RunJob) -> str:
    if job.status == RunStatus.BLOCKED:
        return "Blocked by required conditions"
    return "Waiting to run"


class GitHubClient:
    """Commit source, permission oracle and commit-status notifier for GitHub."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._github = github_api or Github(auth=Auth.Token(token), base_url=base_url)
        self._repos: dict[str, GitHubRepository] = {}

    def _repo(self, repository: Repository) -> GitHubRepository:
        repo = self._repos.get(repository.full_name)
        if repo is None:
            repo = self._github.get_repo(repository.full_name)
            self._repos[repository.full_name] = repo
        return repo

    def get_commit(self, repository: Repository, ref: str) -> Commit:
        try:
            gh_commit = self._repo(repository).get_commit(_short_ref(ref))
        except GithubException as e:
            raise CommitNotFoundError(ref, f"GitHub returned {e.status}") from e
        return Commit(sha=gh_commit.sha, message=gh_commit.commit.message)

    def get_branch_name(self, repository: Repository, commit: Commit) -> str:
        """Name of a branch whose head is `commit`, preferring the default branch."""

        repo = self._repo(repository)
        default = repo.get_branch(repository.default_branch)
        if default.commit.sha == commit.sha:
            return default.name
        for branch in repo.get_branches():
            if branch.commit.sha == commit.sha:
                return branch.name
        return ""

    def permission_of(self, repository: Repository, user: User) -> Permission:
        try:
            level = self._repo(repository).get_collaborator_permission(user.name)
        except GithubException as e:
            raise PermissionLookupError(
                f"cannot read permission of {user.name} on {repository.full_name}: {e.status}"
            ) from e
        mode = _COLLABORATOR_ACCESS.get(str(level).lower(), AccessMode.NONE)
        return Permission(unit_modes={ACTIONS_UNIT: mode})

    def create_commit_status(
        self, repository: Repository, run: Run, jobs: Sequence[RunJob]
    ) -> None:
        """Post a pending status per job. Failures are logged, never raised."""

        fields = {"repo": repository.full_name, "run_id": run.id, "commit": run.commit_sha}
        try:
            gh_commit = self._repo(repository).get_commit(run.commit_sha)
        except GithubException:
            logger.exception("Cannot load commit for status reporting", extra=fields)
            return

        for job in jobs:
            context = status_context(run, job)
            try:
                gh_commit.create_status(
                    state="pending",
                    description=status_description(job),
                    context=context,
                )
            except GithubException:
                logger.exception(
                    "Creating commit status failed", extra={**fields, "context": context}
                )

    def close(self) -> None:
        self._github.close()
