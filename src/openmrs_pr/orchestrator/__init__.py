"""Pull request preparation pipeline and its collaborators."""

from openmrs_pr.orchestrator.errors import ErrorKind, PullRequestError
from openmrs_pr.orchestrator.pull_request import (
    PullRequestOutcome,
    PullRequestPipeline,
    PullRequestRequest,
)

__all__ = [
    "ErrorKind",
    "PullRequestError",
    "PullRequestOutcome",
    "PullRequestPipeline",
    "PullRequestRequest",
]
