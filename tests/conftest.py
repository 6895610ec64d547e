"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from pathlib import Path
from unittest.mock import Mock

import pytest
from git import Repo

from openmrs_pr.orchestrator.config import PullRequestSettings
from openmrs_pr.orchestrator.git.operations import CommitInfo, GitOperations
from openmrs_pr.orchestrator.github.client import GitHubPullRequestClient, PullRequestRecord
from openmrs_pr.orchestrator.jira.client import Issue, JiraClient
from openmrs_pr.orchestrator.project import ProjectInfo
from openmrs_pr.orchestrator.wizard import ConsoleWizard

from git_helpers import commit_file, configure_identity

PROMPT_ANSWERS = {
    "issue id": "ABC-7",
    "github username": "alice",
    "github password": "s3cret",
}


@pytest.fixture
def settings() -> PullRequestSettings:
    """Settings with defaults only (no .env)."""
    return PullRequestSettings(_env_file=None)


@pytest.fixture
def project(tmp_path: Path) -> ProjectInfo:
    return ProjectInfo(base_dir=tmp_path, scm_url="https://github.com/openmrs/openmrs-module-widget")


@pytest.fixture
def issues() -> Mock:
    client = Mock(spec=JiraClient)
    client.get_issue.return_value = Issue(key="ABC-7", summary="Add the widget feature")
    return client


@pytest.fixture
def git_ops() -> Mock:
    """A GitOps double for a clean branch `feat/x` one commit ahead of upstream."""
    ops = Mock(spec=GitOperations)
    ops.open_repo.return_value = nullcontext("repo")
    ops.current_branch.return_value = "feat/x"
    ops.has_uncommitted.return_value = False
    ops.commit_range.return_value = [CommitInfo(sha="a" * 40, summary="ABC-7 add widget")]
    ops.commit_messages.return_value = ["ABC-7 add widget"]
    return ops


@pytest.fixture
def host() -> Mock:
    client = Mock(spec=GitHubPullRequestClient)
    client.find_pull_request.return_value = None
    client.create_pull_request.return_value = PullRequestRecord(
        number=1, url="https://github.com/openmrs/openmrs-module-widget/pull/1"
    )
    return client


@pytest.fixture
def wizard() -> Mock:
    """A wizard that answers yes, accepts defaults and fills in PROMPT_ANSWERS."""
    w = Mock(spec=ConsoleWizard)
    w.prompt_for_value_if_missing.side_effect = (
        lambda current, label, password=False: current or PROMPT_ANSWERS[label]
    )
    w.prompt_for_value_if_missing_with_default.side_effect = (
        lambda template, current, label, default: current or default
    )
    w.prompt_yes_no.return_value = True
    return w


@pytest.fixture
def git_workspace(tmp_path: Path) -> dict[str, Path]:
    """Real repositories: an upstream, a fork of it, and a working copy.

    The working copy has `origin` -> fork and `upstream` -> upstream, and is
    checked out on `feat/x` at upstream's master.
    """
    seed_dir = tmp_path / "seed"
    seed = Repo.init(seed_dir)
    configure_identity(seed)
    commit_file(seed, "README.md", "widget\n", "Initial commit")
    seed.git.branch("-M", "master")

    upstream_dir = tmp_path / "upstream.git"
    seed.git.clone("--bare", str(seed_dir), str(upstream_dir))
    fork_dir = tmp_path / "fork.git"
    seed.git.clone("--bare", str(upstream_dir), str(fork_dir))

    work_dir = tmp_path / "work"
    work = Repo.clone_from(str(fork_dir), str(work_dir))
    configure_identity(work)
    work.create_remote("upstream", str(upstream_dir))
    work.git.fetch("upstream")
    work.git.checkout("-b", "feat/x", "upstream/master")
    work.close()
    seed.close()

    return {"seed": seed_dir, "upstream": upstream_dir, "fork": fork_dir, "work": work_dir}


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """configure_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
