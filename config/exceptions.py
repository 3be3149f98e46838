"""Custom exception hierarchy for the plan-mode generation pipeline."""

import asyncio
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Stable classification of terminal workflow failures."""

    PRECONDITION = "precondition"
    UPSTREAM = "upstream"
    MALFORMED_RESPONSE = "malformed_response"
    VALIDATION = "validation"
    INTERNAL = "internal"


class PlanModeError(Exception):
    """Base exception for all plan-mode errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(PlanModeError):
    """Base exception for generation-service errors."""

    kind = ErrorKind.UPSTREAM


class LLMTimeoutError(LLMError):
    """Generation request timed out."""


class LLMResponseParseError(LLMError):
    """Failed to parse a generation response."""

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str = "Failed to parse LLM response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


# ---- Enrichment / Extraction Errors ----

class EnrichmentError(PlanModeError):
    """Document, text or knowledge retrieval failed."""

    kind = ErrorKind.UPSTREAM


class ExtractionError(PlanModeError):
    """Knowledge capsule extraction failed."""

    kind = ErrorKind.UPSTREAM


class UploadError(ExtractionError):
    """File attachment could not be hosted."""

    def __init__(self, name: str, message: str = ""):
        msg = message or f"Upload failed: {name}"
        super().__init__(msg, {"name": name})
        self.name = name


# ---- Prompt Assembly Errors ----

class PromptAssemblyError(PlanModeError):
    """Prompt could not be assembled from the given context."""

    kind = ErrorKind.PRECONDITION


# ---- Workflow Errors ----

class WorkflowError(PlanModeError):
    """Base exception for workflow orchestration errors."""


class WorkflowStateError(WorkflowError):
    """A phase ran without the output of a required predecessor."""

    kind = ErrorKind.PRECONDITION

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message, {"phase": phase} if phase else None)
        self.phase = phase


# ---- Validation Errors ----

class ValidationError(PlanModeError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""


def error_kind_for(exc: BaseException) -> ErrorKind:
    """Map an exception to the ErrorKind reported in workflow state."""
    if isinstance(exc, PlanModeError):
        return exc.kind
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.UPSTREAM
    return ErrorKind.INTERNAL
