"""Exceptions raised while dispatching repository events.

`DispatchError` and its subclasses are fatal to a dispatch and propagate to
the caller. The remaining exceptions are raised by collaborators for a single
workflow; the materializers log them and carry on with the next workflow.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for failures that abort a whole dispatch."""


class CommitNotFoundError(DispatchError):
    """Raised when a ref cannot be resolved to a commit."""

    def __init__(self, ref: str, reason: str = "") -> None:
        super().__init__(ref, reason)
        self.ref = ref
        self.reason = reason

    def __str__(self) -> str:
        if self.reason:
            return f"Cannot resolve commit for ref {self.ref!r}: {self.reason}"
        return f"Cannot resolve commit for ref {self.ref!r}"


class PayloadSerializationError(DispatchError):
    pass


class WorkflowDetectionError(DispatchError):
    pass


class WorkflowParseError(ValueError):
    """Raised by workflow parsers for malformed workflow content."""


class ApprovalCheckError(Exception):
    """The approval gate could not reach a decision for one run."""


class PermissionLookupError(Exception):
    pass


class RunStoreError(Exception):
    pass
