"""Actions dispatcher.

Decides which automation workflows a repository event triggers:
- matches detected workflows against the event and repository configuration
- gates runs from untrusted pull requests behind approval
- cancels superseded push runs
- keeps cron schedules in sync with the default branch
"""

__version__ = "0.1.0"

from actions_dispatcher.config import DispatchConfig, DispatcherSettings
from actions_dispatcher.dispatch import DispatchResult, TriggerContext, WorkflowTriggerDispatcher

__all__ = [
    "__version__",
    "DispatchConfig",
    "DispatchResult",
    "DispatcherSettings",
    "TriggerContext",
    "WorkflowTriggerDispatcher",
]
