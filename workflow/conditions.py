"""Conditional routing functions for the LangGraph workflow."""

from models.enums import Phase
from workflow.state import PlanModeState
from workflow.transitions import Outcome, entry_node, next_node


def route_entry(state: PlanModeState) -> str:
    """Route a new run to enrich and a resumed run to revision or correction."""
    return entry_node(state.get("resume_action"))


def _route_simple(state: PlanModeState, phase: Phase) -> str:
    return next_node(phase, Outcome.FAILED if state.get("error") else Outcome.OK)


def route_after_enrich(state: PlanModeState) -> str:
    return _route_simple(state, Phase.ENRICH)


def route_after_plan(state: PlanModeState) -> str:
    return _route_simple(state, Phase.PLAN)


def route_after_questions(state: PlanModeState) -> str:
    """Stop for answers only when actionable questions are pending."""
    if state.get("error"):
        return next_node(Phase.QUESTIONS, Outcome.FAILED)
    questions = state.get("questions_data")
    if questions is not None and questions.needs_clarification and questions.questions:
        return next_node(Phase.QUESTIONS, Outcome.NEEDS_ANSWERS)
    return next_node(Phase.QUESTIONS, Outcome.NO_CLARIFICATION)


def route_after_revision(state: PlanModeState) -> str:
    return _route_simple(state, Phase.REVISION)


def route_after_correction(state: PlanModeState) -> str:
    return _route_simple(state, Phase.CORRECTION)


def route_after_production(state: PlanModeState) -> str:
    return _route_simple(state, Phase.PRODUCTION)
