from __future__ import annotations

from enum import Enum


class PipelineStage(str, Enum):
    START = "start"
    ISSUE_RESOLVED = "issue_resolved"
    WORKING_TREE_CLEAN = "working_tree_clean"
    REBASED = "rebased"
    DIFFED = "diffed"
    SQUASHED = "squashed"
    MESSAGES_NORMALIZED = "messages_normalized"
    SLUG_KNOWN = "slug_known"
    AUTHENTICATED = "authenticated"
    PUSHED = "pushed"
    PR_RECONCILED = "pr_reconciled"


# Strictly linear. Optional steps (squash, rename) still pass through their
# stage as a no-op so the observable order never changes.
ALLOWED_TRANSITIONS: dict[PipelineStage, set[PipelineStage]] = {
    PipelineStage.START: {PipelineStage.ISSUE_RESOLVED},
    PipelineStage.ISSUE_RESOLVED: {PipelineStage.WORKING_TREE_CLEAN},
    PipelineStage.WORKING_TREE_CLEAN: {PipelineStage.REBASED},
    PipelineStage.REBASED: {PipelineStage.DIFFED},
    PipelineStage.DIFFED: {PipelineStage.SQUASHED},
    PipelineStage.SQUASHED: {PipelineStage.MESSAGES_NORMALIZED},
    PipelineStage.MESSAGES_NORMALIZED: {PipelineStage.SLUG_KNOWN},
    PipelineStage.SLUG_KNOWN: {PipelineStage.AUTHENTICATED},
    PipelineStage.AUTHENTICATED: {PipelineStage.PUSHED},
    PipelineStage.PUSHED: {PipelineStage.PR_RECONCILED},
    PipelineStage.PR_RECONCILED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def advance(*, current: PipelineStage, to: PipelineStage) -> PipelineStage:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to
