"""Trigger dispatch: from a repository event to runs and schedules.

- `context`     immutable trigger context and its builder
- `skip`        commit-message opt-out filter
- `approval`    approval gate for fork pull requests
- `runs`        run materializer
- `schedules`   schedule materializer
- `dispatcher`  the orchestrating entry point
- `events`      context helpers for release/package/issue events
"""

from actions_dispatcher.dispatch.context import TriggerContext
from actions_dispatcher.dispatch.dispatcher import DispatchResult, WorkflowTriggerDispatcher

__all__ = ["DispatchResult", "TriggerContext", "WorkflowTriggerDispatcher"]
