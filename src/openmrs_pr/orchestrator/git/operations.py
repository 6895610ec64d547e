"""Git operations on the contributor's working copy, built on GitPython.

Ref conventions:
- local branch:    refs/heads/<branch>
- upstream branch: refs/remotes/upstream/<branch>

The remote names `upstream` (the canonical repository) and `origin` (the
contributor's fork) are fixed conventions.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from git import Repo
from git.exc import GitCommandError
from git.objects.util import altz_to_utctz_str

from openmrs_pr.orchestrator.project import ProjectInfo

logger = logging.getLogger(__name__)

UPSTREAM_REMOTE = "upstream"
ORIGIN_REMOTE = "origin"


def local_ref(branch: str) -> str:
    return f"refs/heads/{branch}"


def upstream_ref(branch: str) -> str:
    return f"refs/remotes/{UPSTREAM_REMOTE}/{branch}"


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """A commit in the range proposed for the pull request."""

    sha: str
    summary: str


_CREDENTIALS_IN_URL = re.compile(r"(https?://)[^/@\s]+@")


def _redact(text: str) -> str:
    return _CREDENTIALS_IN_URL.sub(r"\1***@", text)


def _with_credentials(url: str, username: str, credential: str) -> str:
    """Embed basic-auth credentials into an http(s) remote URL.

    SSH and other URLs are returned unchanged; they authenticate on their own.
    """

    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"}:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    userinfo = f"{quote(username, safe='')}:{quote(credential, safe='')}"
    return urlunsplit((parts.scheme, f"{userinfo}@{host}", parts.path, parts.query, parts.fragment))


class GitOperations:
    """The git side of the pull request pipeline.

    Methods raise GitPython exceptions (or ValueError for unusable repository
    state); the pipeline decides which step they fail.
    """

    @contextmanager
    def open_repo(self, path: Path) -> Iterator[Repo]:
        """Open the repository containing path and release it on exit."""

        repo = Repo(path, search_parent_directories=True)
        logger.debug("Opened repository", extra={"path": str(repo.working_tree_dir)})
        try:
            yield repo
        finally:
            repo.close()

    def current_branch(self, repo: Repo) -> str:
        if repo.head.is_detached:
            raise ValueError("HEAD is detached; check out a branch first")
        return repo.active_branch.name

    def has_uncommitted(self, repo: Repo) -> bool:
        """True when the index or tracked files differ from HEAD. Untracked files are ignored."""

        return repo.is_dirty(index=True, working_tree=True, untracked_files=False)

    def pull_rebase(self, repo: Repo, upstream_branch: str, project: ProjectInfo) -> None:
        """Fetch upstream/<branch> and replay the local commits on top of it.

        A missing `upstream` remote is added from the project's SCM URL when
        one is known. Conflicts are left for the user to resolve; the rebase is
        not aborted.
        """

        if UPSTREAM_REMOTE not in [remote.name for remote in repo.remotes]:
            url = project.upstream_url
            if url is None:
                raise ValueError(
                    f"No '{UPSTREAM_REMOTE}' remote configured and no SCM URL to add it from"
                )
            logger.info("Adding upstream remote", extra={"url": url})
            repo.create_remote(UPSTREAM_REMOTE, url)

        target = upstream_ref(upstream_branch)
        logger.info("Fetching upstream", extra={"branch": upstream_branch})
        repo.git.fetch(UPSTREAM_REMOTE, f"+refs/heads/{upstream_branch}:{target}")
        logger.info("Rebasing onto upstream", extra={"onto": target})
        repo.git.rebase(target)

    def commit_range(self, repo: Repo, from_ref: str, to_ref: str) -> list[CommitInfo]:
        """Commits reachable from to_ref but not from from_ref, newest first."""

        return [
            CommitInfo(sha=commit.hexsha, summary=commit.summary)
            for commit in repo.iter_commits(f"{from_ref}..{to_ref}")
        ]

    def commit_messages(self, repo: Repo, from_ref: str, to_ref: str) -> list[str]:
        return [commit.summary for commit in self.commit_range(repo, from_ref, to_ref)]

    def squash(self, repo: Repo, count: int) -> None:
        """Combine the last `count` commits into one.

        The resulting commit keeps the cumulative tree and the newest commit's message.
        """

        if count < 2:
            return
        message = repo.head.commit.message
        logger.info("Squashing commits", extra={"count": count})
        repo.git.reset("--soft", f"HEAD~{count}")
        repo.git.commit("-m", message)

    def prefix_missing_issue_id(self, repo: Repo, issue_id: str, count: int) -> None:
        """Prefix "<issue_id> " to messages among the last `count` commits that lack it.

        The branch is rewritten in one ref update. Commits below the first one
        needing a change keep their identity; authorship, dates and trees of
        rewritten commits are preserved.
        """

        if count < 1:
            return

        branch = repo.active_branch
        old_head = branch.commit
        commits = list(repo.iter_commits(old_head, max_count=count, first_parent=True))
        commits.reverse()

        parent = commits[0].parents[0].hexsha if commits[0].parents else None
        rewritten = 0
        for commit in commits:
            needs_prefix = not commit.message.startswith(issue_id)
            if not needs_prefix and rewritten == 0:
                parent = commit.hexsha
                continue

            message = f"{issue_id} {commit.message}" if needs_prefix else commit.message
            args = [commit.tree.hexsha]
            parents = [parent] if parent else []
            parents.extend(p.hexsha for p in commit.parents[1:])
            for p in parents:
                args.extend(["-p", p])
            args.extend(["-m", message])

            author_date = f"{commit.authored_date} {altz_to_utctz_str(commit.author_tz_offset)}"
            with repo.git.custom_environment(
                GIT_AUTHOR_NAME=commit.author.name or "",
                GIT_AUTHOR_EMAIL=commit.author.email or "",
                GIT_AUTHOR_DATE=author_date,
            ):
                parent = repo.git.commit_tree(*args)
            rewritten += 1

        if rewritten == 0 or parent is None:
            return
        logger.info("Rewrote commit messages", extra={"issue_id": issue_id, "count": rewritten})
        repo.git.update_ref(
            "-m",
            f"openmrs-pr: prefix commit messages with {issue_id}",
            branch.path,
            parent,
            old_head.hexsha,
        )

    def push(self, repo: Repo, username: str, credential: str) -> None:
        """Force-push the current branch to the contributor's fork (`origin`).

        History may have been rebased, squashed or reworded, so the push is forced.
        """

        if ORIGIN_REMOTE not in [remote.name for remote in repo.remotes]:
            raise ValueError(f"No '{ORIGIN_REMOTE}' remote configured")
        branch = self.current_branch(repo)
        url = _with_credentials(repo.remote(ORIGIN_REMOTE).url, username, credential)
        refspec = f"{local_ref(branch)}:{local_ref(branch)}"

        logger.info("Pushing branch", extra={"branch": branch, "remote": ORIGIN_REMOTE})
        try:
            repo.git.push("--force", url, refspec)
        except GitCommandError as e:
            # The command line and stderr may echo the URL with credentials in it.
            raise GitCommandError(
                ["git", "push", "--force", ORIGIN_REMOTE, refspec],
                e.status,
                _redact(str(e.stderr or "")),
            ) from None
