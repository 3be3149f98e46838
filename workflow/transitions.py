"""Explicit phase transition table.

Every edge of the workflow graph is listed here as ``(phase, outcome) ->
node``; routing functions only classify the outcome of the phase that just
ran and look up the next node.
"""

from enum import Enum

from langgraph.graph import END

from config.exceptions import WorkflowError
from models.enums import Phase

HANDLE_ERROR = "handle_error"

# Resume actions and the node each one re-enters at
RESUME_ANSWERS = "answers"
RESUME_CORRECTION = "correction"


class Outcome(str, Enum):
    OK = "ok"
    FAILED = "failed"
    # Questions phase only
    NEEDS_ANSWERS = "needs_answers"
    NO_CLARIFICATION = "no_clarification"


TRANSITIONS: dict[tuple[Phase, Outcome], str] = {
    (Phase.ENRICH, Outcome.OK): Phase.PLAN.value,
    (Phase.PLAN, Outcome.OK): Phase.QUESTIONS.value,
    (Phase.QUESTIONS, Outcome.NO_CLARIFICATION): Phase.PRODUCTION.value,
    (Phase.QUESTIONS, Outcome.NEEDS_ANSWERS): END,
    (Phase.REVISION, Outcome.OK): Phase.PRODUCTION.value,
    (Phase.CORRECTION, Outcome.OK): Phase.PRODUCTION.value,
    (Phase.PRODUCTION, Outcome.OK): END,
}

ENTRY_POINTS: dict[str | None, str] = {
    None: Phase.ENRICH.value,
    RESUME_ANSWERS: Phase.REVISION.value,
    RESUME_CORRECTION: Phase.CORRECTION.value,
}


def next_node(phase: Phase, outcome: Outcome) -> str:
    """Look up the node that follows ``phase`` for ``outcome``.

    Any phase that failed goes to the error handler.

    Raises:
        WorkflowError: If the table has no entry for the pair.
    """
    if outcome == Outcome.FAILED:
        return HANDLE_ERROR
    try:
        return TRANSITIONS[(phase, outcome)]
    except KeyError:
        raise WorkflowError(
            f"No transition from {phase.value} on {outcome.value}",
            {"phase": phase.value, "outcome": outcome.value},
        ) from None


def entry_node(resume_action: str | None) -> str:
    """Node a run starts at: enrich for new runs, revision/correction on resume."""
    try:
        return ENTRY_POINTS[resume_action]
    except KeyError:
        raise WorkflowError(f"Unknown resume action: {resume_action}") from None


def graph_edges(phase: Phase) -> dict[str, str]:
    """Path map for add_conditional_edges: every node reachable from ``phase``."""
    targets = {HANDLE_ERROR}
    targets.update(node for (p, _), node in TRANSITIONS.items() if p == phase)
    return {t: t for t in targets}
