"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Authentication for the default generation backend is handled by the
    Claude Agent SDK via the Claude Code CLI, so no API key lives here.
    """

    # LLM models, one per phase
    llm_model_planning: str = "claude-opus-4-6"      # PlannerAgent
    llm_model_questions: str = "claude-sonnet-4-6"   # QuestionAgent
    llm_model_revision: str = "claude-opus-4-6"      # RevisionAgent
    llm_model_production: str = "claude-opus-4-6"    # ProductionAgent
    llm_model_extraction: str = "claude-haiku-4-5"   # KnowledgeExtractor

    # Generation options per phase
    plan_max_tokens: int = 1000
    plan_temperature: float = 0.6
    questions_max_tokens: int = 1500
    questions_temperature: float = 0.4
    revision_max_tokens: int = 1200
    revision_temperature: float = 0.6
    production_max_tokens: int = 2000
    production_temperature: float = 0.7
    default_top_p: float = 0.9

    # Workflow
    questions_enabled: bool = True
    default_locale: str = "de-DE"
    max_fallback_questions: int = 5
    max_question_options: int = 4
    default_confidence_score: float = 0.85

    # Value framing (knowledge base)
    value_framing_generators: list[str] = ["antrag"]
    framing_collections: list[str] = ["grundsatz_documents"]
    framing_threshold: float = 0.4
    framing_limit: int = 5

    # Examples
    examples_per_platform: int = 2

    # Document extraction
    doc_extraction_enabled: bool = True
    capsule_max_chars: int = 1800
    upload_concurrency: int = 4
    upload_timeout_seconds: float = 30.0
    extraction_timeout_seconds: float = 60.0
    extraction_max_tokens: int = 800
    extraction_temperature: float = 0.2
    extraction_top_p: float = 0.85
    generation_timeout_seconds: Optional[float] = None

    # Storage
    chroma_persist_dir: Path = Path("./data/chroma")

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("framing_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("framing_threshold must be between 0 and 1")
        return v

    @field_validator(
        "framing_limit",
        "upload_concurrency",
        "examples_per_platform",
        "max_fallback_questions",
        "max_question_options",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Limit values must be >= 1")
        return v

    @field_validator("capsule_max_chars")
    @classmethod
    def validate_capsule_chars(cls, v: int) -> int:
        if v < 100:
            raise ValueError("capsule_max_chars must be >= 100")
        return v

    @field_validator("upload_timeout_seconds", "extraction_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("chroma_persist_dir", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_question_limits(self) -> "Settings":
        if self.max_question_options < 2:
            raise ValueError(
                f"max_question_options ({self.max_question_options}) must allow "
                f"at least two options"
            )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
