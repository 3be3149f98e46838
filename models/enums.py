"""Enumerations for plan-mode workflow tracking."""

from enum import Enum


class Phase(str, Enum):
    ENRICH = "enrich"
    PLAN = "plan"
    QUESTIONS = "questions"
    REVISION = "revision"
    CORRECTION = "correction"
    PRODUCTION = "production"
    COMPLETED = "completed"
    ERROR = "error"


class GeneratorType(str, Enum):
    PR = "pr"
    ANTRAG = "antrag"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    YES_NO = "yes_no"


class DocumentType(str, Enum):
    DOCUMENT = "document"
    IMAGE = "image"
    TEXT = "text"


class KnowledgeKind(str, Enum):
    WEB = "web"
    KB = "kb"


class PlanVersion(str, Enum):
    ORIGINAL = "original"
    REVISED = "revised"
    CORRECTED = "corrected"
