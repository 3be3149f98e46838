"""Shared pytest fixtures for the planmode test suite."""

import base64

import pytest
from unittest.mock import AsyncMock, MagicMock


PLAN_WITH_OPTIONS = """Die Kampagne stellt sichere Radwege in den Mittelpunkt. Sie richtet sich an Pendler:innen.

### Einstieg
Option A: Persönliche Geschichte einer Radfahrerin
Option B: Aktuelle Unfallstatistik

### Call-to-Action
**Option A:** Petition unterschreiben
**Option B:** Zur Stadtratssitzung kommen
Option C: Eigene Route melden
"""


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        chroma_persist_dir=tmp_path / "chroma",
        log_dir=tmp_path / "logs",
    )


# ---------------------------------------------------------------------------
# Generation service mocks
# ---------------------------------------------------------------------------

def _default_response(request):
    from tools.generation import GenerationResponse
    if request.request_type == "plan_question_generation":
        return GenerationResponse(
            text="",
            tool_calls=[{"name": "decide_clarification", "input": {"needsClarification": True, "questions": []}}],
        )
    if request.request_type == "document_extraction":
        return GenerationResponse(text="• Fakt 1\n• Fakt 2")
    if request.request_type.endswith("plan_generation"):
        return GenerationResponse(text="Ein klarer Plan. Er hat zwei Sätze. Und noch einen dritten.")
    if "revision" in request.request_type:
        return GenerationResponse(text="Überarbeiteter Plan mit Antworten.")
    if request.request_type == "plan_correction":
        return GenerationResponse(text="Korrigierter Plan.")
    return GenerationResponse(text="Fertiger Beitrag für Instagram.", metadata={"model": "test-model"})


@pytest.fixture
def make_generation():
    """Factory for a mock GenerationService.

    ``overrides`` maps request_type to a GenerationResponse or an exception;
    other request types get a sensible default response.
    """

    def _make(overrides: dict | None = None):
        overrides = overrides or {}

        def _generate(request):
            result = overrides.get(request.request_type)
            if isinstance(result, Exception):
                raise result
            if result is not None:
                return result
            return _default_response(request)

        service = MagicMock()
        service.generate = AsyncMock(side_effect=_generate)
        return service

    return _make


@pytest.fixture
def mock_generation(make_generation):
    """Return a mock GenerationService with default responses."""
    return make_generation()


@pytest.fixture
def request_types():
    """Return a helper listing the request types a mock service was called with."""

    def _request_types(service) -> list[str]:
        return [c.args[0].request_type for c in service.generate.await_args_list]

    return _request_types


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def file_attachment():
    """A base64 PDF attachment as supplied directly with a request."""
    from models.document import DocumentRef
    from models.enums import DocumentType
    return DocumentRef(
        type=DocumentType.DOCUMENT,
        source={
            "type": "base64",
            "media_type": "application/pdf",
            "name": "haushalt.pdf",
            "data": base64.b64encode(b"%PDF-1.4 test").decode("ascii"),
        },
    )


@pytest.fixture
def crawled_text():
    from models.document import DocumentRef
    from models.enums import DocumentType
    return DocumentRef(
        type=DocumentType.TEXT,
        source={
            "text": "Die Stadt plant 20 km neue Radwege.",
            "metadata": {"content_source": "url_crawl", "title": "Stadtportal", "url": "https://example.org/rad"},
        },
    )


@pytest.fixture
def sample_input():
    from models.workflow import WorkflowInput
    return WorkflowInput(
        content="Sichere Radwege in der Innenstadt",
        platforms=("instagram",),
    )


@pytest.fixture
def antrag_input():
    from models.enums import GeneratorType
    from models.workflow import WorkflowInput
    return WorkflowInput(
        content="Kostenloser ÖPNV für Schüler:innen",
        generator_type=GeneratorType.ANTRAG,
        request_type="antrag",
    )


@pytest.fixture
def plan_with_options():
    """A plan whose sections offer lettered options."""
    return PLAN_WITH_OPTIONS
