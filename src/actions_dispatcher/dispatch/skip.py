from __future__ import annotations

import logging
from collections.abc import Iterable

from actions_dispatcher.models import EventKind

logger = logging.getLogger(__name__)

# Only code-carrying events honour the "[skip ci]" style opt-out.
SKIPPABLE_EVENTS: frozenset[EventKind] = frozenset(
    {EventKind.PUSH, EventKind.PULL_REQUEST, EventKind.PULL_REQUEST_SYNC}
)


def should_skip(event: EventKind, commit_message: str, skip_strings: Iterable[str]) -> bool:
    """Return True if the commit message opts this event out of automation."""

    if event not in SKIPPABLE_EVENTS:
        return False
    for marker in skip_strings:
        if marker and marker in commit_message:
            logger.debug(
                "Skipping workflows because of skip string",
                extra={"event": event.value, "skip_string": marker},
            )
            return True
    return False
