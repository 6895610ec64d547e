"""GitHub API client wrapper.

This intentionally wraps PyGithub to keep GitHub calls out of the pipeline and make tests easy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from github import Auth, Github
from github.PullRequest import PullRequest
from github.Repository import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PullRequestRecord:
    """Minimal pull request metadata returned from GitHub."""

    number: int
    url: str


@dataclass(frozen=True, slots=True)
class PullRequestDraft:
    """Everything needed to open a pull request against an upstream repository.

    `repository` is the bare repository name; the owner comes from the client.
    """

    base: str
    head: str
    title: str
    body: str
    repository: str


class GitHubPullRequestClient:
    """Finds and opens pull requests on upstream repositories.

    Authenticates as the contributor with the username and password (or
    personal access token) they supplied for the push.
    """

    def __init__(
        self,
        *,
        username: str,
        password: str,
        upstream_owner: str = "openmrs",
        base_url: str = "https://api.github.com",
        github_api: Github | None = None,
    ) -> None:
        if not username:
            raise ValueError("GitHub username is required")
        if not upstream_owner:
            raise ValueError("Upstream owner is required")

        self._username = username
        self._upstream_owner = upstream_owner
        self._repos: dict[str, Repository] = {}

        if github_api is not None:
            self._github = github_api
            logger.debug("Using injected Github instance")
            return

        auth = Auth.Login(username, password)
        self._github = Github(auth=auth, base_url=base_url.rstrip("/"))

    @property
    def username(self) -> str:
        return self._username

    def _full_name(self, repository: str) -> str:
        name = repository.strip().strip("/")
        if not name:
            raise ValueError("repository is required")
        if "/" in name:
            return name
        return f"{self._upstream_owner}/{name}"

    def _repo(self, repository: str) -> Repository:
        full_name = self._full_name(repository)
        repo = self._repos.get(full_name)
        if repo is None:
            repo = self._github.get_repo(full_name)
            self._repos[full_name] = repo
            logger.info("Connected to repository", extra={"repo": full_name})
        return repo

    @staticmethod
    def _record(pr: PullRequest) -> PullRequestRecord:
        return PullRequestRecord(number=pr.number, url=pr.html_url)

    def find_pull_request(
        self, *, base: str, head: str, repository: str
    ) -> PullRequestRecord | None:
        """Return the open pull request for (base, head) on the repository, if any.

        `head` is in "owner:branch" form, as the GitHub API expects for forks.
        """

        logger.debug(
            "Looking up pull request",
            extra={"base": base, "head": head, "repo": repository},
        )
        pulls = self._repo(repository).get_pulls(state="open", base=base, head=head)
        for pr in pulls:
            return self._record(pr)
        return None

    def create_pull_request(self, draft: PullRequestDraft) -> PullRequestRecord:
        logger.info(
            "Creating pull request",
            extra={"title": draft.title, "head": draft.head, "base": draft.base},
        )
        pr = self._repo(draft.repository).create_pull(
            title=draft.title,
            body=draft.body,
            head=draft.head,
            base=draft.base,
        )
        logger.info("Pull request created", extra={"number": pr.number})
        return self._record(pr)

    def close(self) -> None:
        """Close the GitHub client connection."""
        self._github.close()
