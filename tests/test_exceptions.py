"""Tests for the custom exception hierarchy."""

import asyncio

import pytest
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


class TestExceptionHierarchy:
    def test_all_inherit_from_plan_mode_error(self):
        leaf_classes = [
            LLMError, LLMTimeoutError, LLMResponseParseError,
            EnrichmentError, ExtractionError, UploadError,
            PromptAssemblyError,
            WorkflowError, WorkflowStateError,
            ValidationError, InvalidConfigError,
        ]
        for cls in leaf_classes:
            assert issubclass(cls, PlanModeError), f"{cls.__name__} must inherit PlanModeError"

    def test_llm_subclasses(self):
        assert issubclass(LLMTimeoutError, LLMError)
        assert issubclass(LLMResponseParseError, LLMError)

    def test_upload_is_extraction_error(self):
        assert issubclass(UploadError, ExtractionError)

    def test_workflow_and_validation_subclasses(self):
        assert issubclass(WorkflowStateError, WorkflowError)
        assert issubclass(InvalidConfigError, ValidationError)


class TestExceptionCreation:
    def test_basic_message(self):
        err = LLMError("API failed")
        assert err.message == "API failed"
        assert err.details == {}
        assert str(err) == "API failed"

    def test_details_in_str(self):
        err = PlanModeError("Broken", {"phase": "plan"})
        assert "phase=plan" in str(err)

    def test_parse_error_truncates_raw_response(self):
        err = LLMResponseParseError(raw_response="x" * 500)
        assert err.raw_response == "x" * 500
        assert len(err.details["raw_response"]) == 200

    def test_upload_error_carries_name(self):
        err = UploadError("plan.pdf")
        assert err.name == "plan.pdf"
        assert "plan.pdf" in err.message

    def test_workflow_state_error_phase(self):
        err = WorkflowStateError("No plan", phase="production")
        assert err.phase == "production"
        assert err.details == {"phase": "production"}


class TestErrorKind:
    @pytest.mark.parametrize(
        "exc, kind",
        [
            (LLMError("x"), ErrorKind.UPSTREAM),
            (LLMTimeoutError("x"), ErrorKind.UPSTREAM),
            (LLMResponseParseError(), ErrorKind.MALFORMED_RESPONSE),
            (EnrichmentError("x"), ErrorKind.UPSTREAM),
            (PromptAssemblyError("x"), ErrorKind.PRECONDITION),
            (WorkflowStateError("x"), ErrorKind.PRECONDITION),
            (ValidationError("x"), ErrorKind.VALIDATION),
            (WorkflowError("x"), ErrorKind.INTERNAL),
            (asyncio.TimeoutError(), ErrorKind.UPSTREAM),
            (RuntimeError("boom"), ErrorKind.INTERNAL),
        ],
    )
    def test_error_kind_for(self, exc, kind):
        assert error_kind_for(exc) == kind

    def test_kind_values_are_stable_strings(self):
        assert ErrorKind.MALFORMED_RESPONSE.value == "malformed_response"
        assert ErrorKind("precondition") is ErrorKind.PRECONDITION
