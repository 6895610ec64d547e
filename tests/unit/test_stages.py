"""Unit tests for the linear pipeline stage machine."""

from __future__ import annotations

import pytest

from openmrs_pr.orchestrator.stages import (
    ALLOWED_TRANSITIONS,
    IllegalTransitionError,
    PipelineStage,
    advance,
)


def test_every_stage_advances_in_declaration_order() -> None:
    stages = list(PipelineStage)
    current = stages[0]
    for nxt in stages[1:]:
        current = advance(current=current, to=nxt)
    assert current == PipelineStage.PR_RECONCILED


def test_advance_rejects_skips_and_backward_moves() -> None:
    with pytest.raises(IllegalTransitionError):
        advance(current=PipelineStage.START, to=PipelineStage.PUSHED)
    with pytest.raises(IllegalTransitionError):
        advance(current=PipelineStage.REBASED, to=PipelineStage.ISSUE_RESOLVED)


def test_only_the_last_stage_has_no_successor() -> None:
    terminal = [stage for stage, targets in ALLOWED_TRANSITIONS.items() if not targets]
    assert terminal == [PipelineStage.PR_RECONCILED]
    assert all(len(targets) <= 1 for targets in ALLOWED_TRANSITIONS.values())
