"""Unit tests for the trigger context builder."""

from __future__ import annotations

import dataclasses

import pytest

from actions_dispatcher.dispatch.context import DEFAULT_METHOD, TriggerContext
from actions_dispatcher.models import EventKind, PullRequest, Repository, User


def test_builder_returns_new_values(repository: Repository, maintainer: User) -> None:
    base = TriggerContext.new(repository, maintainer, EventKind.PUSH)
    with_ref = base.with_ref("refs/heads/main")

    assert base.ref == ""
    assert with_ref.ref == "refs/heads/main"
    assert with_ref.repository is repository
    with pytest.raises(dataclasses.FrozenInstanceError):
        base.ref = "refs/heads/other"  # type: ignore[misc]


def test_pull_request_backfills_empty_ref(repository: Repository, maintainer: User) -> None:
    pr = PullRequest(index=12, base_branch="main", head_branch="x", head_repo_id=1, base_repo_id=1)

    ctx = TriggerContext.new(repository, maintainer, EventKind.PULL_REQUEST).with_pull_request(pr)

    assert ctx.pull_request == pr
    assert ctx.ref == "refs/pull/12/head"


def test_pull_request_keeps_explicit_ref(repository: Repository, maintainer: User) -> None:
    pr = PullRequest(index=12, base_branch="main", head_branch="x", head_repo_id=1, base_repo_id=1)

    ctx = (
        TriggerContext.new(repository, maintainer, EventKind.PULL_REQUEST_COMMENT)
        .with_ref("refs/heads/x")
        .with_pull_request(pr)
    )

    assert ctx.ref == "refs/heads/x"


def test_method_tag_is_not_overwritten(repository: Repository, maintainer: User) -> None:
    ctx = TriggerContext.new(repository, maintainer, EventKind.RELEASE)
    assert ctx.method == DEFAULT_METHOD

    tagged = ctx.with_method("release").with_method("push")

    assert tagged.method == "release"
    assert tagged.log_fields() == {
        "method": "release",
        "repo": "octo-org/octo-repo",
        "event": "release",
        "actor": "maintainer",
    }


def test_with_actor_replaces_actor(
    repository: Repository, maintainer: User, contributor: User
) -> None:
    ctx = TriggerContext.new(repository, contributor, EventKind.ISSUES).with_actor(maintainer)
    assert ctx.actor == maintainer


def test_repository_and_actor_are_required(repository: Repository, maintainer: User) -> None:
    with pytest.raises(ValueError):
        TriggerContext.new(None, maintainer, EventKind.PUSH)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        TriggerContext.new(repository, None, EventKind.PUSH)  # type: ignore[arg-type]


def test_event_is_coerced_to_event_kind(repository: Repository, maintainer: User) -> None:
    ctx = TriggerContext(repository, maintainer, "push")  # type: ignore[arg-type]

    assert ctx.event is EventKind.PUSH
    assert ctx.log_fields()["event"] == "push"
    with pytest.raises(ValueError):
        TriggerContext(repository, maintainer, "no-such-event")  # type: ignore[arg-type]
