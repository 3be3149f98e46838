"""Configuration package: settings, logging setup and the error hierarchy."""

from config.exceptions import (
    ErrorKind,
    PlanModeError,
    LLMError,
    LLMTimeoutError,
    LLMResponseParseError,
    EnrichmentError,
    ExtractionError,
    UploadError,
    PromptAssemblyError,
    WorkflowError,
    WorkflowStateError,
    ValidationError,
    InvalidConfigError,
    error_kind_for,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "ErrorKind",
    "PlanModeError",
    "LLMError",
    "LLMTimeoutError",
    "LLMResponseParseError",
    "EnrichmentError",
    "ExtractionError",
    "UploadError",
    "PromptAssemblyError",
    "WorkflowError",
    "WorkflowStateError",
    "ValidationError",
    "InvalidConfigError",
    "error_kind_for",
]
