"""The pull request preparation pipeline.

Runs once per invocation, strictly in this order:

    resolve issue -> check working tree -> rebase on upstream -> diff
    -> squash (optional) -> prefix messages (optional) -> repository slug
    -> credentials -> push -> create or update the pull request

Each step either advances or raises a PullRequestError. Nothing is retried
and nothing is rolled back: mutations are ordered so that a failure leaves the
working copy in a state the user can inspect and finish by hand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass

import requests
from git.exc import GitError
from github import GithubException

from openmrs_pr.orchestrator.config import PullRequestSettings
from openmrs_pr.orchestrator.errors import (
    DirtyWorkingTreeError,
    HostApiFailedError,
    InvalidIssueError,
    PullRequestError,
    PushFailedError,
    RebaseFailedError,
    RepoAccessError,
)
from openmrs_pr.orchestrator.git.operations import local_ref, upstream_ref
from openmrs_pr.orchestrator.github.client import PullRequestDraft, PullRequestRecord
from openmrs_pr.orchestrator.jira.client import Issue
from openmrs_pr.orchestrator.project import ProjectInfo
from openmrs_pr.orchestrator.protocols import GitOps, HostClient, IssueClient, Wizard
from openmrs_pr.orchestrator.stages import PipelineStage, advance

logger = logging.getLogger(__name__)

UNCOMMITTED_CHANGES_MESSAGE = "There are uncommitted changes. Please commit before proceeding."

SQUASH_PROMPT_TEMPLATE = (
    "There are %d commits, which will be included in your pull request. "
    "It is recommended to squash them into one. Would you like to squash them?"
)

RENAME_PROMPT = "Would you like them to be corrected automatically?"

DESCRIPTION_TEMPLATE = "You can include a short %s (optional)"

HostClientFactory = Callable[[str, str], HostClient]


@dataclass(frozen=True, slots=True)
class PullRequestRequest:
    """Values supplied on the command line; missing ones are prompted for."""

    branch: str = "master"
    issue_id: str | None = None
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class PullRequestOutcome:
    url: str
    created: bool
    stage: PipelineStage


def build_rename_preview(issue_id: str, messages: list[str]) -> str:
    lines = ["Some of your commits do not start from issue id. they should be corrected as following:"]
    lines.extend(f"{message} -> {issue_id} {message}" for message in messages)
    return "\n".join(lines) + "\n"


def pull_request_head(username: str, local_branch: str) -> str:
    return f"{username}:{local_branch}"


class PullRequestPipeline:
    """Prepares the current branch and opens (or updates) its pull request.

    Collaborators are injected; the pipeline holds no state between runs.
    The host client is built from the credentials once they are known, which
    is only after every local mutation has succeeded.
    """

    def __init__(
        self,
        *,
        issues: IssueClient,
        git: GitOps,
        host_factory: HostClientFactory,
        wizard: Wizard,
        project: ProjectInfo,
        settings: PullRequestSettings,
    ) -> None:
        self._issues = issues
        self._git = git
        self._host_factory = host_factory
        self._wizard = wizard
        self._project = project
        self._settings = settings
        self.stage = PipelineStage.START

    def _advance(self, to: PipelineStage) -> None:
        self.stage = advance(current=self.stage, to=to)
        logger.info("Pipeline advanced", extra={"stage": to.value})

    def run(self, request: PullRequestRequest) -> PullRequestOutcome:
        self.stage = PipelineStage.START
        try:
            return self._run(request)
        except PullRequestError as e:
            if e.stage is None:
                e.stage = self.stage
            logger.warning(
                "Pipeline aborted",
                extra={"stage": self.stage.value, "kind": e.kind.value, "reason": e.message},
            )
            raise

    def _run(self, request: PullRequestRequest) -> PullRequestOutcome:
        branch = request.branch
        issue_id = self._wizard.prompt_for_value_if_missing(request.issue_id, "issue id")
        issue_id = issue_id.strip()
        issue = self._issues.get_issue(issue_id)
        if issue is None:
            raise InvalidIssueError(f"invalid issue id {issue_id!r}")
        self._advance(PipelineStage.ISSUE_RESOLVED)

        with ExitStack() as stack:
            try:
                repo = stack.enter_context(self._git.open_repo(self._project.base_dir))
                local_branch = self._git.current_branch(repo)
            except (GitError, OSError, ValueError) as e:
                raise RepoAccessError(f"Error during accessing local repository: {e}") from e

            if local_branch == branch:
                raise RepoAccessError(
                    f"You are on the upstream branch '{branch}'. "
                    "Create a feature branch for your work first."
                )

            if self._git.has_uncommitted(repo):
                self._wizard.show_message(UNCOMMITTED_CHANGES_MESSAGE)
                raise DirtyWorkingTreeError(UNCOMMITTED_CHANGES_MESSAGE)
            self._advance(PipelineStage.WORKING_TREE_CLEAN)

            try:
                self._git.pull_rebase(repo, branch, self._project)
            except (GitError, ValueError) as e:
                raise RebaseFailedError(f"Rebase onto upstream/{branch} failed: {e}") from e
            self._advance(PipelineStage.REBASED)

            from_ref = upstream_ref(branch)
            to_ref = local_ref(local_branch)
            try:
                commits = self._git.commit_range(repo, from_ref, to_ref)
            except GitError as e:
                raise RepoAccessError(f"Cannot list commits {from_ref}..{to_ref}: {e}") from e
            self._advance(PipelineStage.DIFFED)

            self._maybe_squash(repo, len(commits))
            self._advance(PipelineStage.SQUASHED)

            self._maybe_prefix_messages(repo, issue_id, from_ref, to_ref)
            self._advance(PipelineStage.MESSAGES_NORMALIZED)

            repository = self._project.repository_slug()
            self._advance(PipelineStage.SLUG_KNOWN)

            username = self._wizard.prompt_for_value_if_missing(request.username, "github username")
            password = self._wizard.prompt_for_value_if_missing(
                request.password, "github password", password=True
            )
            self._advance(PipelineStage.AUTHENTICATED)

            try:
                self._git.push(repo, username, password)
            except (GitError, ValueError) as e:
                raise PushFailedError(f"Push to your fork failed: {e}") from e
            self._advance(PipelineStage.PUSHED)

            url, created = self._reconcile_pull_request(
                issue=issue,
                issue_id=issue_id,
                base=branch,
                head=pull_request_head(username, local_branch),
                repository=repository,
                username=username,
                password=password,
            )
            self._advance(PipelineStage.PR_RECONCILED)

        return PullRequestOutcome(url=url, created=created, stage=self.stage)

    def _maybe_squash(self, repo: object, count: int) -> None:
        if count <= 1:
            return
        if not self._wizard.prompt_yes_no(SQUASH_PROMPT_TEMPLATE % count):
            return
        try:
            self._git.squash(repo, count)
        except GitError as e:
            raise RepoAccessError(f"Squashing {count} commits failed: {e}") from e

    def _maybe_prefix_messages(
        self, repo: object, issue_id: str, from_ref: str, to_ref: str
    ) -> None:
        try:
            messages = self._git.commit_messages(repo, from_ref, to_ref)
        except GitError as e:
            raise RepoAccessError(f"Cannot read commit messages: {e}") from e

        # The rewrite window is the whole range, not just the offending commits.
        count = len(messages)
        to_modify = [message for message in messages if not message.startswith(issue_id)]
        if not to_modify:
            return

        self._wizard.show_message(build_rename_preview(issue_id, to_modify))
        if not self._wizard.prompt_yes_no(RENAME_PROMPT):
            return
        try:
            self._git.prefix_missing_issue_id(repo, issue_id, count)
        except GitError as e:
            raise RepoAccessError(f"Rewriting commit messages failed: {e}") from e

    def _reconcile_pull_request(
        self,
        *,
        issue: Issue,
        issue_id: str,
        base: str,
        head: str,
        repository: str,
        username: str,
        password: str,
    ) -> tuple[str, bool]:
        try:
            host = self._host_factory(username, password)
            existing = host.find_pull_request(base=base, head=head, repository=repository)
        except (GithubException, requests.RequestException) as e:
            raise HostApiFailedError(f"Pull request lookup failed: {e}") from e

        if existing is not None:
            self._wizard.show_message(f"Pull request updated at {existing.url}")
            return existing.url, False

        self._wizard.show_message("creating new pull request...")
        description = self._wizard.prompt_for_value_if_missing_with_default(
            DESCRIPTION_TEMPLATE, None, "description", " "
        )
        draft = PullRequestDraft(
            base=base,
            head=head,
            title=f"{issue.key} {issue.summary}",
            body=f"{self._settings.issue_browse_url(issue_id)}\n\n{description}",
            repository=repository,
        )
        try:
            created: PullRequestRecord = host.create_pull_request(draft)
        except (GithubException, requests.RequestException) as e:
            raise HostApiFailedError(f"Pull request creation failed: {e}") from e

        self._wizard.show_message(f"Pull request created at {created.url}")
        return created.url, True
