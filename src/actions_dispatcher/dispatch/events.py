"""Build trigger contexts for events that do not come from a git push."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from actions_dispatcher.models import TAG_PREFIX, EventKind, Repository, User

from .context import TriggerContext

logger = logging.getLogger(__name__)


def _user_payload(user: User) -> dict[str, object]:
    return {"id": user.id, "login": user.name}


def _repository_payload(repository: Repository) -> dict[str, object]:
    return {
        "id": repository.id,
        "full_name": repository.full_name,
        "default_branch": repository.default_branch,
    }


def release_context(
    repository: Repository,
    actor: User,
    *,
    tag_name: str,
    action: str,
    release: Mapping[str, object],
) -> TriggerContext:
    """Context for a release event; the ref is the release tag."""

    return (
        TriggerContext.new(repository, actor, EventKind.RELEASE)
        .with_method("release")
        .with_ref(TAG_PREFIX + tag_name)
        .with_payload(
            {
                "action": action,
                "release": dict(release),
                "repository": _repository_payload(repository),
                "sender": _user_payload(actor),
            }
        )
    )


def package_context(
    repository: Repository | None,
    sender: User,
    *,
    action: str,
    package: Mapping[str, object],
) -> TriggerContext | None:
    """Context for a package event, or None for packages without a repository.

    Packages published to an organization are not attached to a repository and
    therefore cannot trigger workflows.
    """

    if repository is None:
        logger.debug("Package is not linked to a repository", extra={"action": action})
        return None

    return (
        TriggerContext.new(repository, sender, EventKind.PACKAGE)
        .with_method("package")
        .with_payload(
            {
                "action": action,
                "package": dict(package),
                "sender": _user_payload(sender),
            }
        )
    )


def issue_context(repository: Repository, poster: User, event: EventKind) -> TriggerContext:
    return TriggerContext.new(repository, poster, event)
