"""Run store implementations."""

from actions_dispatcher.store.json_store import JsonRunStore

__all__ = ["JsonRunStore"]
