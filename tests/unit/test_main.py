"""Unit tests for the CLI entrypoint (pipeline replaced by a stub)."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

import openmrs_pr.orchestrator.main as main_module
from openmrs_pr.orchestrator.errors import DirtyWorkingTreeError, MissingValueError
from openmrs_pr.orchestrator.pull_request import PullRequestOutcome
from openmrs_pr.orchestrator.stages import PipelineStage


class _StubPipeline:
    instances: list[_StubPipeline] = []
    raises: BaseException | None = None

    def __init__(self, **kwargs: object) -> None:
        self.kwargs = kwargs
        self.request = None
        self.stage = PipelineStage.START
        _StubPipeline.instances.append(self)

    def run(self, request):
        self.request = request
        if _StubPipeline.raises is not None:
            raise _StubPipeline.raises
        return PullRequestOutcome(url="https://host/pr/1", created=True, stage=self.stage)


@pytest.fixture
def stub_pipeline(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> type[_StubPipeline]:
    monkeypatch.chdir(tmp_path)
    for name in ("JIRA_BASE_URL", "GITHUB_BASE_URL", "UPSTREAM_OWNER", "OPENMRS_PR_SCM_URL"):
        monkeypatch.delenv(name, raising=False)
    _StubPipeline.instances = []
    _StubPipeline.raises = None
    monkeypatch.setattr(main_module, "PullRequestPipeline", _StubPipeline)
    return _StubPipeline


def test_options_are_bound_to_the_request(stub_pipeline, tmp_path: Path) -> None:
    code = main_module.main(
        [
            "--branch",
            "2.x",
            "--issueId",
            "TRUNK-1",
            "--username",
            "alice",
            "--password",
            "pw",
            "--project-dir",
            str(tmp_path),
        ]
    )

    assert code == 0
    pipeline = stub_pipeline.instances[0]
    assert pipeline.request.branch == "2.x"
    assert pipeline.request.issue_id == "TRUNK-1"
    assert pipeline.request.username == "alice"
    assert pipeline.request.password == "pw"
    assert pipeline.kwargs["project"].base_dir == tmp_path.resolve()
    assert pipeline.kwargs["wizard"].interactive is True


def test_defaults(stub_pipeline) -> None:
    assert main_module.main(["--batch"]) == 0

    pipeline = stub_pipeline.instances[0]
    assert pipeline.request.branch == "master"
    assert pipeline.request.issue_id is None
    assert pipeline.kwargs["wizard"].interactive is False


def test_pipeline_errors_map_to_exit_codes(stub_pipeline, capsys) -> None:
    stub_pipeline.raises = DirtyWorkingTreeError("There are uncommitted changes.")

    assert main_module.main([]) == 5
    assert "dirty_working_tree" in capsys.readouterr().err


def test_missing_value_in_batch_mode(stub_pipeline) -> None:
    stub_pipeline.raises = MissingValueError("issue id")

    assert main_module.main(["--batch"]) == 2


def test_aborted_prompt(stub_pipeline) -> None:
    stub_pipeline.raises = click.Abort()

    assert main_module.main([]) == 130


def test_unexpected_errors_exit_one(stub_pipeline) -> None:
    stub_pipeline.raises = RuntimeError("boom")

    assert main_module.main([]) == 1


def test_host_factory_builds_an_authenticated_client(stub_pipeline) -> None:
    main_module.main([])

    factory = stub_pipeline.instances[0].kwargs["host_factory"]
    client = factory("alice", "pw")

    assert client.username == "alice"


def test_configuration_error_exits_two(stub_pipeline, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPSTREAM_OWNER", " ")

    assert main_module.main([]) == 2
    assert stub_pipeline.instances == []
