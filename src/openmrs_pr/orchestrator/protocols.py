"""Collaborators consumed by the pull request pipeline.

The pipeline only talks to these protocols; concrete implementations live in
the jira, git and github subpackages and in the wizard module.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, Protocol

from openmrs_pr.orchestrator.git.operations import CommitInfo
from openmrs_pr.orchestrator.github.client import PullRequestDraft, PullRequestRecord
from openmrs_pr.orchestrator.jira.client import Issue
from openmrs_pr.orchestrator.project import ProjectInfo


class IssueClient(Protocol):
    def get_issue(self, key: str) -> Issue | None: ...


class GitOps(Protocol):
    def open_repo(self, path: Path) -> AbstractContextManager[Any]: ...

    def current_branch(self, repo: Any) -> str: ...

    def has_uncommitted(self, repo: Any) -> bool: ...

    def pull_rebase(self, repo: Any, upstream_branch: str, project: ProjectInfo) -> None: ...

    def commit_range(self, repo: Any, from_ref: str, to_ref: str) -> list[CommitInfo]: ...

    def commit_messages(self, repo: Any, from_ref: str, to_ref: str) -> list[str]: ...

    def squash(self, repo: Any, count: int) -> None: ...

    def prefix_missing_issue_id(self, repo: Any, issue_id: str, count: int) -> None: ...

    def push(self, repo: Any, username: str, credential: str) -> None: ...


class HostClient(Protocol):
    def find_pull_request(
        self, *, base: str, head: str, repository: str
    ) -> PullRequestRecord | None: ...

    def create_pull_request(self, draft: PullRequestDraft) -> PullRequestRecord: ...


class Wizard(Protocol):
    """Everything the pipeline asks of, or tells, the user."""

    def prompt_for_value_if_missing(
        self, current: str | None, label: str, *, password: bool = False
    ) -> str: ...

    def prompt_for_value_if_missing_with_default(
        self, template: str, current: str | None, label: str, default: str
    ) -> str: ...

    def prompt_yes_no(self, question: str) -> bool: ...

    def show_message(self, text: str) -> None: ...
