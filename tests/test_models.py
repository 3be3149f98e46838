"""Tests for document and workflow records."""

import pytest


class TestDocumentRef:
    def test_file_attachment(self, file_attachment):
        assert file_attachment.is_file_attachment
        assert not file_attachment.is_crawled_text
        assert file_attachment.name == "haushalt.pdf"
        assert file_attachment.media_type == "application/pdf"

    def test_crawled_text(self, crawled_text):
        assert crawled_text.is_crawled_text
        assert not crawled_text.is_file_attachment
        assert crawled_text.metadata["title"] == "Stadtportal"

    def test_plain_text_is_neither(self):
        from models.document import DocumentRef
        doc = DocumentRef.from_dict({"type": "text", "source": {"text": "Notiz"}})
        assert not doc.is_crawled_text
        assert not doc.is_file_attachment

    def test_defaults_for_missing_fields(self):
        from models.document import DocumentRef
        from models.enums import DocumentType
        doc = DocumentRef(type=DocumentType.DOCUMENT, source={"url": "https://x"})
        assert doc.name == "document.pdf"
        assert doc.media_type == "application/pdf"

    def test_to_block_round_trips_shape(self, file_attachment):
        from models.document import coerce_document
        block = file_attachment.to_block()
        assert block["type"] == "document"
        assert coerce_document(block) == file_attachment

    def test_unknown_type_rejected(self):
        from models.document import DocumentRef
        with pytest.raises(ValueError):
            DocumentRef.from_dict({"type": "video"})


class TestWorkflowInput:
    def test_route_type(self, sample_input, antrag_input):
        assert sample_input.route_type == "social"
        assert antrag_input.route_type == "antrag"

    def test_request_payload(self, sample_input, antrag_input):
        assert sample_input.request_payload() == {"thema": sample_input.content, "platforms": ["instagram"]}
        assert antrag_input.request_payload() == {"thema": antrag_input.content, "requestType": "antrag"}

    def test_input_is_immutable(self, sample_input):
        from dataclasses import FrozenInstanceError
        with pytest.raises(FrozenInstanceError):
            sample_input.content = "anders"


class TestEnrichedContext:
    def test_knowledge_order(self):
        from models.workflow import EnrichedContext
        ctx = EnrichedContext(web_search_results=["web"], knowledge_base=["kb"], framing=["frame"])
        assert ctx.knowledge == ["web", "kb", "frame"]

    def test_enum_values(self):
        from models.enums import Phase, PlanVersion
        assert Phase("completed") is Phase.COMPLETED
        assert [v.value for v in PlanVersion] == ["original", "revised", "corrected"]
