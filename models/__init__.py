"""Models package: workflow records, documents and enums."""

from models.document import ContentExample, DocumentRef, KnowledgeSnippet, coerce_document
from models.enums import (
    Phase,
    GeneratorType,
    QuestionType,
    DocumentType,
    KnowledgeKind,
    PlanVersion,
)
from models.workflow import (
    WorkflowInput,
    Question,
    PlanData,
    QuestionsData,
    RevisedPlanData,
    CorrectedPlanData,
    ProductionData,
    EnrichedContext,
    CurrentPlan,
)

__all__ = [
    "ContentExample",
    "DocumentRef",
    "KnowledgeSnippet",
    "coerce_document",
    "Phase",
    "GeneratorType",
    "QuestionType",
    "DocumentType",
    "KnowledgeKind",
    "PlanVersion",
    "WorkflowInput",
    "Question",
    "PlanData",
    "QuestionsData",
    "RevisedPlanData",
    "CorrectedPlanData",
    "ProductionData",
    "EnrichedContext",
    "CurrentPlan",
]
