"""OpenMRS pull request helper.

Prepares a feature branch for review and opens the pull request:
- validates the JIRA issue the work belongs to
- rebases on the upstream branch, optionally squashing
- prefixes commit messages with the issue key
- pushes to the contributor's fork and creates or updates the PR
"""

__version__ = "0.1.0"

from openmrs_pr.orchestrator.config import PullRequestSettings

__all__ = ["__version__", "PullRequestSettings"]
