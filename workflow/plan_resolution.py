"""Authoritative plan selection shared by every phase that reads the plan."""

from typing import Optional

from models.enums import PlanVersion
from models.workflow import CurrentPlan


def resolve_current_plan(state: dict) -> Optional[CurrentPlan]:
    """Return the corrected plan if present, else the revised, else the original."""
    corrected = state.get("corrected_plan_data")
    if corrected is not None and corrected.corrected_plan:
        return CurrentPlan(corrected.corrected_plan, PlanVersion.CORRECTED)

    revised = state.get("revised_plan_data")
    if revised is not None and revised.revised_plan:
        return CurrentPlan(revised.revised_plan, PlanVersion.REVISED)

    plan = state.get("plan_data")
    if plan is not None and plan.original_plan:
        return CurrentPlan(plan.original_plan, PlanVersion.ORIGINAL)

    return None
