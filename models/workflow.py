"""Workflow input and per-phase result records."""

from dataclasses import dataclass, field

from models.document import DocumentRef
from models.enums import GeneratorType, PlanVersion, QuestionType


@dataclass(frozen=True)
class WorkflowInput:
    """Immutable description of one generation request."""
    content: str
    generator_type: GeneratorType = GeneratorType.PR
    locale: str = "de-DE"
    request_type: str = ""
    platforms: tuple[str, ...] = ()
    selected_document_ids: tuple[str, ...] = ()
    selected_text_ids: tuple[str, ...] = ()
    attachments: tuple[DocumentRef, ...] = ()
    instructions: str = ""
    enable_web_search: bool = False
    enable_documents: bool = True
    enable_knowledge: bool = True
    enable_doc_extraction: bool = True
    use_privacy_mode: bool = False

    @property
    def route_type(self) -> str:
        """Route used for extraction phrasing and enrichment."""
        return "social" if self.generator_type == GeneratorType.PR else "antrag"

    def request_payload(self) -> dict:
        """Structured request handed to prompt assembly."""
        payload = {"thema": self.content}
        if self.platforms:
            payload["platforms"] = list(self.platforms)
        if self.request_type:
            payload["requestType"] = self.request_type
        return payload


@dataclass
class Question:
    id: str
    text: str
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: list[str] = field(default_factory=list)
    rationale: str = ""


@dataclass
class PlanData:
    original_plan: str
    plan_summary: str = ""
    confidence_score: float = 0.85


@dataclass
class QuestionsData:
    needs_clarification: bool
    questions: list[Question] = field(default_factory=list)
    question_round: int = 0
    confidence_reason: str = ""
    source: str = "model"  # "model" or "fallback"


@dataclass
class RevisedPlanData:
    revised_plan: str
    changes: str = ""
    answers: dict = field(default_factory=dict)


@dataclass
class CorrectedPlanData:
    corrected_plan: str
    correction_text: str = ""
    based_on: PlanVersion = PlanVersion.ORIGINAL


@dataclass
class ProductionData:
    content: str
    metadata: dict = field(default_factory=dict)


@dataclass
class EnrichedContext:
    """Everything the enrichment phase gathered, cached for later phases."""
    documents: list[DocumentRef] = field(default_factory=list)
    web_search_results: list[str] = field(default_factory=list)
    knowledge_base: list[str] = field(default_factory=list)
    framing: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def knowledge(self) -> list[str]:
        return [*self.web_search_results, *self.knowledge_base, *self.framing]


@dataclass
class CurrentPlan:
    text: str
    version: PlanVersion
