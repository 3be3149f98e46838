"""Extraction package: attachment hosting and knowledge capsules."""

from extraction.capsule import (
    CAPSULE_LABEL,
    CapsuleResult,
    ExtractionService,
    KnowledgeExtractor,
    derive_probing_questions,
    truncate_capsule,
)
from extraction.uploader import DocumentUploader, FileHost, is_data_uri, reference_kind

__all__ = [
    "CAPSULE_LABEL",
    "CapsuleResult",
    "ExtractionService",
    "KnowledgeExtractor",
    "derive_probing_questions",
    "truncate_capsule",
    "DocumentUploader",
    "FileHost",
    "is_data_uri",
    "reference_kind",
]
