"""CLI entrypoint for the pull request helper.

One command, no positional arguments. Every option may also be collected
interactively when it is missing.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from openmrs_pr import __version__
from openmrs_pr.orchestrator.config import PullRequestSettings
from openmrs_pr.orchestrator.errors import MissingValueError, PullRequestError
from openmrs_pr.orchestrator.git.operations import GitOperations
from openmrs_pr.orchestrator.github.client import GitHubPullRequestClient
from openmrs_pr.orchestrator.jira.client import JiraClient
from openmrs_pr.orchestrator.logging import configure_logging
from openmrs_pr.orchestrator.project import load_project
from openmrs_pr.orchestrator.pull_request import PullRequestPipeline, PullRequestRequest
from openmrs_pr.orchestrator.wizard import ConsoleWizard

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openmrs-pr",
        description=(
            "Rebase the current branch on upstream, tidy its commits and open "
            "(or update) a pull request for a JIRA issue"
        ),
    )
    parser.add_argument("--version", action="version", version=f"openmrs-pr {__version__}")
    parser.add_argument(
        "--branch",
        default="master",
        help="Upstream branch the pull request targets (default: master)",
    )
    parser.add_argument(
        "--issue-id",
        "--issueId",
        dest="issue_id",
        default=None,
        help="JIRA issue key, e.g. TRUNK-123 (prompted for when missing)",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="GitHub username (prompted for when missing)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="GitHub password or personal access token (prompted for when missing)",
    )
    parser.add_argument(
        "--project-dir",
        default=".",
        help="Directory of the project working copy (default: current directory)",
    )
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Never prompt: answer yes to every question and fail on missing values",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.branch.strip():
        parser.error("--branch must not be empty")

    try:
        settings = PullRequestSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    wizard = ConsoleWizard(interactive=not args.batch)
    project = load_project(Path(args.project_dir), scm_url=settings.scm_url)
    jira = JiraClient(base_url=settings.jira_base_url)
    hosts: list[GitHubPullRequestClient] = []

    def host_factory(username: str, password: str) -> GitHubPullRequestClient:
        client = GitHubPullRequestClient(
            username=username,
            password=password,
            upstream_owner=settings.upstream_owner,
            base_url=settings.github_base_url,
        )
        hosts.append(client)
        return client

    pipeline = PullRequestPipeline(
        issues=jira,
        git=GitOperations(),
        host_factory=host_factory,
        wizard=wizard,
        project=project,
        settings=settings,
    )
    request = PullRequestRequest(
        branch=args.branch.strip(),
        issue_id=args.issue_id,
        username=args.username,
        password=args.password,
    )

    try:
        pipeline.run(request)
        return 0

    except PullRequestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    except MissingValueError as e:
        print(f"Error: {e} (not prompted in batch mode)", file=sys.stderr)
        return 2

    except click.Abort:
        print("Aborted.", file=sys.stderr)
        return 130

    except Exception:
        logger.exception("Command failed", extra={"stage": pipeline.stage.value})
        return 1

    finally:
        jira.close()
        for host in hosts:
            host.close()


if __name__ == "__main__":
    raise SystemExit(main())
