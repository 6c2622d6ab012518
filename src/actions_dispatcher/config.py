"""Configuration for the dispatcher.

Settings are loaded from environment variables and a local `.env` file. A
dispatch never reads settings directly: callers take a `DispatchConfig`
snapshot and pass it in, so one dispatch sees one consistent configuration.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from actions_dispatcher.models import Repository

DEFAULT_SKIP_WORKFLOW_STRINGS: tuple[str, ...] = (
    "[skip ci]",
    "[ci skip]",
    "[no ci]",
    "[skip actions]",
    "[actions skip]",
)


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Read-only configuration snapshot for a single dispatch."""

    actions_disabled: bool = False
    skip_workflow_strings: tuple[str, ...] = DEFAULT_SKIP_WORKFLOW_STRINGS
    disabled_repositories: frozenset[str] = frozenset()
    disabled_workflows: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def is_repository_enabled(self, repository: Repository) -> bool:
        return repository.full_name not in self.disabled_repositories

    def is_workflow_disabled(self, repository: Repository, workflow_id: str) -> bool:
        return workflow_id in self.disabled_workflows.get(repository.full_name, frozenset())


class DispatcherSettings(BaseSettings):
    """Settings for the dispatcher and its local adapters.

    Environment variables:
    - LOG_LEVEL                       (optional)
    - ACTIONS_ENABLED                 (optional, global switch)
    - ACTIONS_SKIP_WORKFLOW_STRINGS   (optional, JSON list)
    - ACTIONS_DISABLED_REPOSITORIES   (optional, JSON list of "owner/repo")
    - ACTIONS_DISABLED_WORKFLOWS      (optional, JSON object "owner/repo" -> [workflow, ...])
    - ACTIONS_RUN_STORE_PATH          (optional)
    - ACTIONS_GITHUB_TOKEN            (only needed by the GitHub adapter)
    - GITHUB_BASE_URL                 (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `DispatcherSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    actions_enabled: bool = Field(
        default=True,
        validation_alias="ACTIONS_ENABLED",
        description="Global switch; when false every dispatch purges schedules and stops",
    )

    skip_workflow_strings: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_WORKFLOW_STRINGS),
        validation_alias="ACTIONS_SKIP_WORKFLOW_STRINGS",
        description="Commit message markers that suppress push and pull request runs",
    )

    disabled_repositories: list[str] = Field(
        default_factory=list,
        validation_alias="ACTIONS_DISABLED_REPOSITORIES",
        description="Repositories ('owner/repo') whose actions unit is disabled",
    )

    disabled_workflows: dict[str, list[str]] = Field(
        default_factory=dict,
        validation_alias="ACTIONS_DISABLED_WORKFLOWS",
        description="Per-repository list of workflow entry names that must not run",
    )

    run_store_path: Path = Field(
        default=Path("agent_state/runs.json"),
        validation_alias="ACTIONS_RUN_STORE_PATH",
        description="Path of the JSON run store used by the CLI",
    )

    github_token: str = Field(
        default="",
        validation_alias="ACTIONS_GITHUB_TOKEN",
        description="GitHub token used by the GitHub adapter",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("skip_workflow_strings")
    @classmethod
    def _drop_empty_skip_strings(cls, value: list[str]) -> list[str]:
        # An empty marker would match every commit message.
        return [s for s in value if s.strip()]

    def snapshot(self) -> DispatchConfig:
        return DispatchConfig(
            actions_disabled=not self.actions_enabled,
            skip_workflow_strings=tuple(self.skip_workflow_strings),
            disabled_repositories=frozenset(r.strip() for r in self.disabled_repositories),
            disabled_workflows={
                repo.strip(): frozenset(names) for repo, names in self.disabled_workflows.items()
            },
        )
