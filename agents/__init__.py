"""Agents package: one agent per model-driven workflow phase."""

from agents.base_agent import BaseAgent
from agents.planner_agent import PlannerAgent
from agents.question_agent import QuestionAgent
from agents.revision_agent import RevisionAgent
from agents.production_agent import ProductionAgent

__all__ = [
    "BaseAgent",
    "PlannerAgent",
    "QuestionAgent",
    "RevisionAgent",
    "ProductionAgent",
]
