"""The trigger context handed to the dispatcher.

A context is built once per repository event and never mutated: every
`with_*` call returns a new value, so a partially built context can be shared
and extended safely.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from actions_dispatcher.models import EventKind, PullRequest, Repository, User

DEFAULT_METHOD = "notify"


@dataclass(frozen=True, slots=True)
class TriggerContext:
    repository: Repository
    actor: User
    event: EventKind
    ref: str = ""
    payload: Any = None
    pull_request: PullRequest | None = None
    # Name of the notification method that produced this context, for logs only.
    method: str = DEFAULT_METHOD

    def __post_init__(self) -> None:
        if self.repository is None:
            raise ValueError("TriggerContext requires a repository")
        if self.actor is None:
            raise ValueError("TriggerContext requires an actor")
        if not isinstance(self.event, EventKind):
            object.__setattr__(self, "event", EventKind(self.event))

    @classmethod
    def new(cls, repository: Repository, actor: User, event: EventKind) -> TriggerContext:
        return cls(repository=repository, actor=actor, event=EventKind(event))

    def with_actor(self, actor: User) -> TriggerContext:
        return replace(self, actor=actor)

    def with_ref(self, ref: str) -> TriggerContext:
        return replace(self, ref=ref)

    def with_payload(self, payload: Any) -> TriggerContext:
        return replace(self, payload=payload)

    def with_pull_request(self, pull_request: PullRequest) -> TriggerContext:
        ref = self.ref or pull_request.git_ref_name
        return replace(self, pull_request=pull_request, ref=ref)

    def with_method(self, method: str) -> TriggerContext:
        """Tag the context with its notification method unless already tagged."""

        if self.method != DEFAULT_METHOD:
            return self
        return replace(self, method=method)

    def log_fields(self) -> dict[str, object]:
        return {
            "method": self.method,
            "repo": self.repository.full_name,
            "event": self.event.value,
            "actor": self.actor.name,
        }
