"""Test configuration and fixtures.

The dispatcher is exercised against small in-memory fakes for the version
control side (commits, workflow detection, workflow parsing) and the real
JSON run store in a temporary directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import Mock

import pytest

from actions_dispatcher.config import DispatchConfig
from actions_dispatcher.dispatch.dispatcher import WorkflowTriggerDispatcher
from actions_dispatcher.models import AccessMode, Repository, User
from actions_dispatcher.store.json_store import JsonRunStore
from fakes import FakeCommitSource, FakeDetector, FakeParser, FakePermissions


@pytest.fixture
def repository() -> Repository:
    return Repository(id=1, owner_id=10, full_name="octo-org/octo-repo", default_branch="main")


@pytest.fixture
def maintainer() -> User:
    return User(id=100, name="maintainer")


@pytest.fixture
def contributor() -> User:
    return User(id=200, name="contributor")


@pytest.fixture
def store(tmp_path: Path) -> JsonRunStore:
    return JsonRunStore(tmp_path / "agent_state" / "runs.json")


@pytest.fixture
def commits() -> FakeCommitSource:
    return FakeCommitSource()


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector()


@pytest.fixture
def parser() -> FakeParser:
    return FakeParser()


@pytest.fixture
def permissions(maintainer: User) -> FakePermissions:
    oracle = FakePermissions()
    oracle.modes[maintainer.id] = AccessMode.WRITE
    return oracle


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def config() -> DispatchConfig:
    return DispatchConfig()


@pytest.fixture
def dispatcher(
    commits: FakeCommitSource,
    detector: FakeDetector,
    parser: FakeParser,
    permissions: FakePermissions,
    store: JsonRunStore,
    notifier: Mock,
) -> WorkflowTriggerDispatcher:
    return WorkflowTriggerDispatcher(
        commits=commits,
        detector=detector,
        parser=parser,
        permissions=permissions,
        store=store,
        notifier=notifier,
    )


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Undo `configure_logging` side effects on the root logger."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
