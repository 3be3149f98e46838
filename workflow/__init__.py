"""Workflow package: LangGraph graph, state, transitions, and callbacks."""

from workflow.graph import PlanModeOrchestrator, WorkflowResources, build_graph, run_workflow
from workflow.state import QUESTIONS_SKIPPED, PlanModeState, merge_update
from workflow.transitions import TRANSITIONS, Outcome, next_node
from workflow.conditions import (
    route_entry,
    route_after_enrich,
    route_after_plan,
    route_after_questions,
    route_after_revision,
    route_after_correction,
    route_after_production,
)
from workflow.plan_resolution import resolve_current_plan
from workflow.callbacks import WorkflowCallback, LoggingCallback, RichProgressCallback

__all__ = [
    "PlanModeOrchestrator",
    "WorkflowResources",
    "build_graph",
    "run_workflow",
    "QUESTIONS_SKIPPED",
    "PlanModeState",
    "merge_update",
    "TRANSITIONS",
    "Outcome",
    "next_node",
    "route_entry",
    "route_after_enrich",
    "route_after_plan",
    "route_after_questions",
    "route_after_revision",
    "route_after_correction",
    "route_after_production",
    "resolve_current_plan",
    "WorkflowCallback",
    "LoggingCallback",
    "RichProgressCallback",
]
