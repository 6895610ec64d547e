"""Errors raised by the pull request pipeline.

Every failing step aborts the run with exactly one of these. The CLI maps
each kind to its own exit code.
"""

from __future__ import annotations

from enum import Enum

from openmrs_pr.orchestrator.stages import PipelineStage


class ErrorKind(str, Enum):
    INVALID_ISSUE = "invalid_issue"
    REPO_ACCESS = "repo_access"
    DIRTY_WORKING_TREE = "dirty_working_tree"
    REBASE_FAILED = "rebase_failed"
    PUSH_FAILED = "push_failed"
    HOST_API_FAILED = "host_api_failed"
    BAD_SCM_URL = "bad_scm_url"


EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ISSUE: 3,
    ErrorKind.REPO_ACCESS: 4,
    ErrorKind.DIRTY_WORKING_TREE: 5,
    ErrorKind.REBASE_FAILED: 6,
    ErrorKind.PUSH_FAILED: 7,
    ErrorKind.HOST_API_FAILED: 8,
    ErrorKind.BAD_SCM_URL: 9,
}


class PullRequestError(RuntimeError):
    """Base class for pipeline failures.

    Attributes:
        kind: Which precondition or step failed.
        stage: The last stage reached before the failure (set by the pipeline).
    """

    kind: ErrorKind

    def __init__(self, message: str, *, stage: PipelineStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.kind]

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class InvalidIssueError(PullRequestError):
    kind = ErrorKind.INVALID_ISSUE


class RepoAccessError(PullRequestError):
    kind = ErrorKind.REPO_ACCESS


class DirtyWorkingTreeError(PullRequestError):
    kind = ErrorKind.DIRTY_WORKING_TREE


class RebaseFailedError(PullRequestError):
    kind = ErrorKind.REBASE_FAILED


class PushFailedError(PullRequestError):
    kind = ErrorKind.PUSH_FAILED


class HostApiFailedError(PullRequestError):
    kind = ErrorKind.HOST_API_FAILED


class BadScmUrlError(PullRequestError):
    kind = ErrorKind.BAD_SCM_URL


class MissingValueError(ValueError):
    """Raised by a non-interactive wizard when a required value was not supplied."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Missing required value: {label}")
        self.label = label
