"""Domain types shared by the dispatcher and its collaborators.

Value types handed to the dispatcher are frozen dataclasses. Records that the
run store persists are pydantic models so they round-trip through JSON.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_serializer, field_validator

AUTOMATION_USER_ID = -2
AUTOMATION_USER_NAME = "actions-bot"

# Trigger form whose definition is always read from the base branch.
PULL_REQUEST_TARGET = "pull_request_target"

ACTIONS_UNIT = "actions"

BRANCH_PREFIX = "refs/heads/"
TAG_PREFIX = "refs/tags/"


class EventKind(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    FORK = "fork"
    PUSH = "push"
    ISSUES = "issues"
    ISSUE_ASSIGN = "issue_assign"
    ISSUE_LABEL = "issue_label"
    ISSUE_MILESTONE = "issue_milestone"
    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_ASSIGN = "pull_request_assign"
    PULL_REQUEST_LABEL = "pull_request_label"
    PULL_REQUEST_MILESTONE = "pull_request_milestone"
    PULL_REQUEST_COMMENT = "pull_request_comment"
    PULL_REQUEST_REVIEW_APPROVED = "pull_request_review_approved"
    PULL_REQUEST_REVIEW_REJECTED = "pull_request_review_rejected"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"
    PULL_REQUEST_SYNC = "pull_request_sync"
    PULL_REQUEST_REVIEW_REQUEST = "pull_request_review_request"
    WIKI = "wiki"
    REPOSITORY = "repository"
    RELEASE = "release"
    PACKAGE = "package"
    STATUS = "status"


class RunStatus(str, Enum):
    UNKNOWN = "unknown"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    WAITING = "waiting"
    RUNNING = "running"
    BLOCKED = "blocked"

    def is_done(self) -> bool:
        return self in _DONE_STATUSES


_DONE_STATUSES = frozenset(
    {RunStatus.SUCCESS, RunStatus.FAILURE, RunStatus.CANCELLED, RunStatus.SKIPPED}
)


class PullRequestFlow(str, Enum):
    # Head branch lives in the base repository or in a fork of it.
    GITHUB = "github"
    # Topic branches pushed as refs/for/<target>/<topic>; no fork concept.
    AGIT = "agit"


class AccessMode(IntEnum):
    NONE = 0
    READ = 1
    WRITE = 2
    ADMIN = 3
    OWNER = 4


def branch_name(ref: str) -> str:
    """Return the branch name of a full `refs/heads/...` ref, or "" otherwise."""

    if ref.startswith(BRANCH_PREFIX):
        return ref[len(BRANCH_PREFIX) :]
    return ""


def first_line(message: str) -> str:
    return message.split("\n", 1)[0]


@dataclass(frozen=True, slots=True)
class Repository:
    id: int
    owner_id: int
    full_name: str
    default_branch: str = "main"


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    is_restricted: bool = False

    @property
    def is_automation(self) -> bool:
        """True for the automation service identity itself."""

        return self.id == AUTOMATION_USER_ID


def automation_user() -> User:
    return User(id=AUTOMATION_USER_ID, name=AUTOMATION_USER_NAME)


@dataclass(frozen=True, slots=True)
class PullRequest:
    index: int
    base_branch: str
    head_branch: str
    head_repo_id: int
    base_repo_id: int
    # Kept as a plain string: flows this module does not know about must survive.
    flow: str = PullRequestFlow.GITHUB.value

    @property
    def is_from_fork(self) -> bool:
        return self.head_repo_id != self.base_repo_id

    @property
    def git_ref_name(self) -> str:
        return f"refs/pull/{self.index}/head"


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    message: str

    @property
    def title(self) -> str:
        return first_line(self.message)


@dataclass(frozen=True, slots=True)
class Permission:
    """Effective access of one user on one repository, per unit."""

    unit_modes: Mapping[str, AccessMode] = field(default_factory=dict)

    def can_write(self, unit: str = ACTIONS_UNIT) -> bool:
        return self.unit_modes.get(unit, AccessMode.NONE) >= AccessMode.WRITE


@dataclass(frozen=True, slots=True)
class DetectedWorkflow:
    """A workflow file the detector matched against an event."""

    entry_name: str
    trigger_event: str
    content: bytes


@dataclass(frozen=True, slots=True)
class ParsedJob:
    """One node of a parsed workflow job graph."""

    job_id: str
    name: str
    needs: tuple[str, ...] = ()
    content: bytes = b""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Run(BaseModel):
    """A requested execution of one workflow against one commit."""

    id: int = 0
    title: str
    repo_id: int
    owner_id: int
    workflow_id: str
    trigger_user_id: int
    ref: str
    commit_sha: str
    event: EventKind
    event_payload: str
    trigger_event: str
    is_fork_pull_request: bool = False
    need_approval: bool = False
    approved_by: int = Field(default=0, description="User id of the approver; 0 if none")
    status: RunStatus = RunStatus.WAITING
    created_at: datetime = Field(default_factory=_utc_now)


class RunJob(BaseModel):
    id: int = 0
    run_id: int
    repo_id: int
    owner_id: int
    commit_sha: str
    is_fork_pull_request: bool = False
    name: str
    job_id: str
    needs: list[str] = Field(default_factory=list)
    status: RunStatus = RunStatus.WAITING


class Schedule(BaseModel):
    """A recurring trigger for one workflow of a repository's default branch."""

    id: int = 0
    title: str
    repo_id: int
    owner_id: int
    workflow_id: str
    trigger_user_id: int
    ref: str
    commit_sha: str
    event: EventKind
    event_payload: str
    specs: list[str]
    content: bytes
    created_at: datetime = Field(default_factory=_utc_now)

    # Workflow files are not guaranteed to be UTF-8, so JSON carries them as base64.
    @field_serializer("content", when_used="json")
    def _encode_content(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    @field_validator("content", mode="before")
    @classmethod
    def _decode_content(cls, value: object) -> object:
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value
