"""Tests for attachment upload and knowledge capsule extraction."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock


def _file_host(url=None, side_effect=None):
    host = MagicMock()
    host.upload = AsyncMock(return_value=url, side_effect=side_effect)
    return host


def _extraction_service(text="• Fact 1\n• Fact 2", side_effect=None):
    from tools.generation import GenerationResponse
    service = MagicMock()
    service.generate = AsyncMock(return_value=GenerationResponse(text=text), side_effect=side_effect)
    return service


def _ctx(documents, **kwargs):
    from assembly.context import AssemblyContext
    kwargs.setdefault("enable_doc_extraction", True)
    return AssemblyContext(
        system_role="Rolle",
        request={"thema": "Haushalt 2027", "platforms": ["facebook"]},
        documents=list(documents),
        **kwargs,
    )


def _extractor(settings, file_host=None, service=None):
    from extraction.capsule import KnowledgeExtractor
    from extraction.uploader import DocumentUploader
    return KnowledgeExtractor(
        service if service is not None else _extraction_service(),
        DocumentUploader(file_host, settings),
        settings,
    )


class TestDocumentUploader:
    @pytest.mark.asyncio
    async def test_hosted_url_preferred(self, settings, file_attachment):
        from extraction.uploader import DocumentUploader
        host = _file_host("https://files.example/haushalt.pdf")
        ref = await DocumentUploader(host, settings).upload(file_attachment)
        assert ref == "https://files.example/haushalt.pdf"
        data, name, media_type = host.upload.await_args.args
        assert data == b"%PDF-1.4 test"
        assert (name, media_type) == ("haushalt.pdf", "application/pdf")

    @pytest.mark.asyncio
    async def test_no_host_gives_data_uri(self, settings, file_attachment):
        from extraction.uploader import DocumentUploader
        ref = await DocumentUploader(None, settings).upload(file_attachment)
        assert ref.startswith("data:application/pdf;base64,")

    @pytest.mark.asyncio
    async def test_host_failure_falls_back_to_data_uri(self, settings, file_attachment):
        from extraction.uploader import DocumentUploader
        host = _file_host(side_effect=RuntimeError("503"))
        ref = await DocumentUploader(host, settings).upload(file_attachment)
        assert ref.startswith("data:")

    @pytest.mark.asyncio
    async def test_host_timeout_falls_back_to_data_uri(self, file_attachment, tmp_path):
        from config.settings import Settings
        from extraction.uploader import DocumentUploader

        async def _slow(*args):
            await asyncio.sleep(5)

        fast = Settings(_env_file=None, chroma_persist_dir=tmp_path / "c", log_dir=tmp_path / "l",
                        upload_timeout_seconds=0.01)
        ref = await DocumentUploader(_file_host(side_effect=_slow), fast).upload(file_attachment)
        assert ref.startswith("data:")

    @pytest.mark.asyncio
    async def test_invalid_base64_skipped(self, settings):
        from extraction.uploader import DocumentUploader
        from models.document import DocumentRef
        from models.enums import DocumentType
        broken = DocumentRef(type=DocumentType.DOCUMENT, source={"data": "@@not base64@@"})
        assert await DocumentUploader(_file_host("https://x"), settings).upload(broken) is None

    @pytest.mark.asyncio
    async def test_source_url_used_directly(self, settings):
        from extraction.uploader import DocumentUploader
        from models.document import DocumentRef
        from models.enums import DocumentType
        doc = DocumentRef(type=DocumentType.DOCUMENT, source={"type": "url", "url": "https://x/a.pdf"})
        assert await DocumentUploader(None, settings).upload(doc) == "https://x/a.pdf"

    @pytest.mark.asyncio
    async def test_upload_all_preserves_order(self, settings, file_attachment):
        from extraction.uploader import DocumentUploader
        from models.document import DocumentRef
        from models.enums import DocumentType
        by_url = DocumentRef(type=DocumentType.DOCUMENT, source={"url": "https://x/b.pdf"})
        refs = await DocumentUploader(None, settings).upload_all([by_url, file_attachment])
        assert refs[0] == "https://x/b.pdf"
        assert refs[1].startswith("data:")

    def test_reference_kind(self):
        from extraction.uploader import reference_kind
        assert reference_kind("data:application/pdf;base64,AAA") == "data"
        assert reference_kind("https://x") == "http"
        assert reference_kind("s3://bucket/key") == "other"


class TestProbingQuestions:
    @pytest.mark.parametrize("route, fragment", [
        ("social", "max 12"),
        ("presse", "Pressemitteilung"),
        ("antrag", "Was sagen die Dokumente"),
    ])
    def test_phrasing_per_route(self, route, fragment):
        from extraction.capsule import derive_probing_questions
        question = derive_probing_questions(route, "Haushalt")[0]
        assert fragment in question
        assert '"Haushalt"' in question

    def test_topic_truncated(self):
        from extraction.capsule import derive_probing_questions
        assert "x" * 201 not in derive_probing_questions("social", "x" * 500)[0]

    def test_truncate_capsule(self):
        from extraction.capsule import truncate_capsule
        assert truncate_capsule("a" * 2000, 1800) == "a" * 1800 + "..."
        assert truncate_capsule("  kurz  ", 1800) == "kurz"


class TestKnowledgeExtractor:
    @pytest.mark.asyncio
    async def test_capsule_replaces_attachment(self, settings, file_attachment):
        from extraction.capsule import CAPSULE_LABEL
        result = await _extractor(settings, _file_host("https://files.example/a.pdf")).process(
            _ctx([file_attachment], knowledge=["Vorwissen"])
        )
        assert result.used
        assert result.documents == []
        assert result.knowledge == [f"{CAPSULE_LABEL}\n• Fact 1\n• Fact 2", "Vorwissen"]

    @pytest.mark.asyncio
    async def test_extraction_request_uses_hosted_url(self, settings, file_attachment):
        service = _extraction_service()
        await _extractor(settings, _file_host("https://files.example/a.pdf"), service).process(_ctx([file_attachment]))
        request = service.generate.await_args.args[0]
        assert request.request_type == "document_extraction"
        blocks = request.messages[0]["content"]
        assert blocks[0]["type"] == "text"
        assert blocks[1] == {"type": "document_url", "document_url": "https://files.example/a.pdf"}

    @pytest.mark.asyncio
    async def test_crawled_text_kept_next_to_capsule(self, settings, file_attachment, crawled_text):
        result = await _extractor(settings, _file_host("https://x/a.pdf")).process(
            _ctx([file_attachment, crawled_text])
        )
        assert result.documents == [crawled_text]

    @pytest.mark.asyncio
    async def test_data_uris_only_skip_without_call(self, settings, file_attachment):
        service = _extraction_service()
        result = await _extractor(settings, None, service).process(_ctx([file_attachment]))
        assert result.skipped_reason == "data_uris_only"
        assert result.documents == [file_attachment]
        service.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled(self, settings, file_attachment):
        result = await _extractor(settings).process(_ctx([file_attachment], enable_doc_extraction=False))
        assert result.skipped_reason == "disabled"
        assert result.documents == [file_attachment]

    @pytest.mark.asyncio
    async def test_preselected_documents_skip(self, settings, file_attachment):
        result = await _extractor(settings, _file_host("https://x")).process(
            _ctx([file_attachment], selected_document_ids=["doc-1"])
        )
        assert result.skipped_reason == "preselected_documents"

    @pytest.mark.asyncio
    async def test_no_attachments_skip(self, settings, crawled_text):
        result = await _extractor(settings).process(_ctx([crawled_text]))
        assert result.skipped_reason == "no_attachments"
        assert result.documents == [crawled_text]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [
        {"side_effect": RuntimeError("500")},
        {"text": ""},
        {"text": "   "},
    ])
    async def test_extraction_failure_keeps_documents(self, settings, file_attachment, failure):
        service = _extraction_service(**failure)
        result = await _extractor(settings, _file_host("https://x/a.pdf"), service).process(
            _ctx([file_attachment], knowledge=["Vorwissen"])
        )
        assert not result.used
        assert result.skipped_reason == "no_capsule"
        assert result.documents == [file_attachment]
        assert result.knowledge == ["Vorwissen"]

    @pytest.mark.asyncio
    async def test_extraction_timeout_keeps_documents(self, file_attachment, tmp_path):
        from config.settings import Settings

        async def _slow(request):
            await asyncio.sleep(5)

        fast = Settings(_env_file=None, chroma_persist_dir=tmp_path / "c", log_dir=tmp_path / "l",
                        extraction_timeout_seconds=0.01)
        result = await _extractor(fast, _file_host("https://x/a.pdf"), _extraction_service(side_effect=_slow)).process(
            _ctx([file_attachment])
        )
        assert result.documents == [file_attachment]

    @pytest.mark.asyncio
    async def test_long_capsule_truncated(self, settings, file_attachment):
        service = _extraction_service(text="• " + "x" * 3000)
        result = await _extractor(settings, _file_host("https://x/a.pdf"), service).process(_ctx([file_attachment]))
        assert result.capsule.endswith("...")
        assert len(result.capsule) == settings.capsule_max_chars + 3

    @pytest.mark.asyncio
    async def test_unpreparable_attachments_sent_raw(self, settings):
        """When no reference can be prepared, the raw blocks go to extraction."""
        from models.document import DocumentRef
        from models.enums import DocumentType
        doc = DocumentRef(type=DocumentType.DOCUMENT, source={"name": "leer.pdf"})
        service = _extraction_service()
        result = await _extractor(settings, _file_host("https://x"), service).process(_ctx([doc]))
        assert result.used
        blocks = service.generate.await_args.args[0].messages[0]["content"]
        assert blocks[1]["type"] == "document"


class TestAssemblyWithExtraction:
    """End-to-end through the async assembler."""

    @pytest.mark.asyncio
    async def test_capsule_leads_knowledge_and_attachment_absent(self, settings, file_attachment):
        from assembly.engine import PromptAssembler
        assembler = PromptAssembler(_extractor(settings, _file_host("https://files.example/a.pdf")), settings=settings)

        prompt = await assembler.assemble(_ctx([file_attachment]))

        text = prompt.messages[-1]["content"][0]["text"]
        assert "<knowledge>\nDOKUMENT-FAKTEN (kompakt):\n• Fact 1\n• Fact 2" in text
        assert len(prompt.messages) == 1
        assert all(b["type"] != "document" for m in prompt.messages for b in m["content"])

    @pytest.mark.asyncio
    async def test_data_uri_upload_keeps_attachment_block(self, settings, file_attachment):
        from assembly.engine import PromptAssembler
        service = _extraction_service()
        assembler = PromptAssembler(_extractor(settings, _file_host(None), service), settings=settings)

        prompt = await assembler.assemble(_ctx([file_attachment]))

        service.generate.assert_not_awaited()
        doc_blocks = [b for b in prompt.messages[0]["content"] if b["type"] == "document"]
        assert doc_blocks[0]["source"]["name"] == "haushalt.pdf"
        assert "DOKUMENT-FAKTEN" not in prompt.messages[-1]["content"][0]["text"]


class TestExtractionThroughAgentSDK:
    """Raw attachment blocks handed to the Agent SDK backend."""

    @pytest.mark.asyncio
    async def test_unreadable_attachment_yields_no_capsule(self, settings):
        from unittest.mock import patch
        from models.document import DocumentRef
        from models.enums import DocumentType
        from tools.agent_sdk_client import AgentSDKClient

        scan = DocumentRef(
            type=DocumentType.DOCUMENT,
            source={"type": "base64", "media_type": "application/pdf", "name": "scan.pdf", "data": "@@kein base64@@"},
        )
        query = MagicMock(side_effect=AssertionError("query must not run"))
        client = AgentSDKClient(settings, strict_attachments=True)

        with patch("tools.agent_sdk_client.query", query):
            result = await _extractor(settings, _file_host("https://files.example/a.pdf"), client).process(
                _ctx([scan])
            )

        query.assert_not_called()
        assert result.capsule is None
        assert result.skipped_reason == "no_capsule"
        assert result.documents == [scan]
        assert not any(k.startswith("DOKUMENT-FAKTEN") for k in result.knowledge)
