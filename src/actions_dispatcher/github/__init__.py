"""GitHub adapters for the dispatcher's collaborators."""

from actions_dispatcher.github.client import GitHubClient

__all__ = ["GitHubClient"]
