"""Configuration for the pull request helper.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Credentials are deliberately not part of the settings: they come from the
command line or are prompted for, and are never persisted.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PullRequestSettings(BaseSettings):
    """Settings for the pull request helper.

    Environment variables:
    - JIRA_BASE_URL       (optional)
    - GITHUB_BASE_URL     (optional)
    - UPSTREAM_OWNER      (optional)
    - LOG_LEVEL           (optional)
    - OPENMRS_PR_SCM_URL  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `PullRequestSettings(_env_file=path_to_env)`.
    """

    jira_base_url: str = Field(
        default="https://issues.openmrs.org",
        validation_alias="JIRA_BASE_URL",
        description="Base URL of the JIRA instance holding the issues",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    upstream_owner: str = Field(
        default="openmrs",
        validation_alias="UPSTREAM_OWNER",
        description="Owner of the upstream repositories pull requests are opened against",
    )

    log_level: str = Field(
        default="WARNING",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    scm_url: str | None = Field(
        default=None,
        validation_alias="OPENMRS_PR_SCM_URL",
        description="Overrides the <scm><url> read from the project's pom.xml",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("jira_base_url", "github_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("base URL must not be empty")
        return value

    @field_validator("upstream_owner")
    @classmethod
    def _require_owner(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("UPSTREAM_OWNER must not be empty")
        return value.strip()

    def issue_browse_url(self, issue_key: str) -> str:
        """Human-facing JIRA URL for an issue, embedded in the pull request body."""

        return f"{self.jira_base_url}/browse/{issue_key}"
