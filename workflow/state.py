"""LangGraph workflow state definition."""

from typing import TypedDict, Optional, Annotated
from operator import add

from config.exceptions import ErrorKind
from models.enums import Phase
from models.workflow import (
    CorrectedPlanData,
    EnrichedContext,
    PlanData,
    ProductionData,
    QuestionsData,
    RevisedPlanData,
    WorkflowInput,
)

# Marker appended to phases_executed when clarification is disabled
QUESTIONS_SKIPPED = "questions_skipped"


def merge_dicts(left: Optional[dict], right: Optional[dict]) -> dict:
    """Reducer for per-phase timings: later values win per key."""
    return {**(left or {}), **(right or {})}


class PlanModeState(TypedDict, total=False):
    """Global state shared by all workflow nodes.

    Fields are grouped logically:
    - Identity: workflow_input
    - Progress: current_phase, phases_executed, phase_timings, total_ai_calls
    - Phase outputs: enriched_context, plan_data, questions_data,
      revised_plan_data, corrected_plan_data, production_data
    - Resume: resume_action, pending_answers, pending_correction
    - Control: error, error_kind
    """

    # Identity
    workflow_input: WorkflowInput

    # Progress (phases_executed and total_ai_calls only ever grow)
    current_phase: Phase
    phases_executed: Annotated[list, add]
    phase_timings: Annotated[dict, merge_dicts]  # {phase: milliseconds}
    total_ai_calls: Annotated[int, add]

    # Phase outputs
    enriched_context: EnrichedContext  # Set once by enrich, read-only afterwards
    plan_data: PlanData
    questions_data: QuestionsData
    revised_plan_data: RevisedPlanData
    corrected_plan_data: CorrectedPlanData
    production_data: ProductionData

    # Resume
    resume_action: Optional[str]  # "answers" or "correction"
    pending_answers: dict  # {question_id: str | list[str]}
    pending_correction: str

    # Control flow
    error: str
    error_kind: ErrorKind


_REDUCERS = {
    "phases_executed": lambda left, right: list(left or []) + list(right or []),
    "total_ai_calls": lambda left, right: (left or 0) + (right or 0),
    "phase_timings": merge_dicts,
}


def merge_update(state: dict, update: dict) -> dict:
    """Apply a node's partial update to a state dict the way the graph does."""
    merged = dict(state)
    for key, value in (update or {}).items():
        reducer = _REDUCERS.get(key)
        merged[key] = reducer(merged.get(key), value) if reducer else value
    return merged
