"""Knowledge capsule extraction from file attachments.

File attachments are sent to an extraction model together with a probing
question; the bullet-point answer (the capsule) replaces the attachments in
the final prompt. Any failure leaves the documents exactly as they were.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from assembly.context import AssemblyContext
from config.settings import Settings
from extraction.uploader import DocumentUploader, reference_kind
from models.document import DocumentRef, coerce_document
from tools.generation import GenerationOptions, GenerationRequest, GenerationService

logger = logging.getLogger(__name__)

CAPSULE_LABEL = "DOKUMENT-FAKTEN (kompakt):"

# The extraction backend has the same interface as the generation service
ExtractionService = GenerationService

DocumentReference = Union[str, DocumentRef]


@dataclass
class CapsuleResult:
    """Outcome of one extraction attempt.

    ``documents`` and ``knowledge`` are the lists to assemble with; without a
    capsule they are the unchanged inputs.
    """
    documents: list[DocumentRef]
    knowledge: list[str]
    capsule: Optional[str] = None
    skipped_reason: Optional[str] = None
    reference_kinds: list[str] = field(default_factory=list)

    @property
    def used(self) -> bool:
        return self.capsule is not None


def derive_probing_questions(route_type: str, topic: str) -> list[str]:
    """Phrase the extraction question for the route's kind of content."""
    base = (topic or "")[:200]
    if route_type == "social":
        return [
            f'Extrahiere knappe, überprüfbare Fakten, Zahlen und ggf. kurze Zitate aus den '
            f'Dokumenten zum Thema: "{base}". Gib nur Stichpunkte (max 12) in Deutsch aus.'
        ]
    if route_type == "presse":
        return [
            f'Welche verifizierbaren Informationen und Zitate unterstützen eine sachliche '
            f'Pressemitteilung zum Thema: "{base}"? Antworte in 6–10 prägnanten Stichpunkten in Deutsch.'
        ]
    return [
        f'Was sagen die Dokumente zu: "{base}"? Antworte in 8–12 prägnanten Stichpunkten '
        f'in Deutsch, mit klaren Fakten.'
    ]


def truncate_capsule(text: str, max_chars: int) -> str:
    capsule = text.strip()
    if len(capsule) > max_chars:
        capsule = capsule[:max_chars] + "..."
    return capsule


class KnowledgeExtractor:
    """Compacts file attachments into a knowledge capsule."""

    def __init__(
        self,
        extraction_service: Optional[ExtractionService],
        uploader: Optional[DocumentUploader] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.extraction_service = extraction_service
        self.uploader = uploader or DocumentUploader(settings=self.settings)

    def _request(self, question: str, refs: list[DocumentReference]) -> GenerationRequest:
        content: list[dict] = [{"type": "text", "text": question}]
        for ref in refs:
            if isinstance(ref, str):
                content.append({"type": "document_url", "document_url": ref})
            else:
                content.append(ref.to_block())
        return GenerationRequest(
            request_type="document_extraction",
            system="Du extrahierst überprüfbare Fakten aus Dokumenten.",
            messages=[{"role": "user", "content": content}],
            options=GenerationOptions(
                max_tokens=self.settings.extraction_max_tokens,
                temperature=self.settings.extraction_temperature,
                top_p=self.settings.extraction_top_p,
                model=self.settings.llm_model_extraction,
            ),
        )

    async def run_extraction(
        self,
        refs: list[DocumentReference],
        route_type: str,
        topic: str,
    ) -> Optional[str]:
        """Issue one extraction call; return the truncated capsule or None."""
        if self.extraction_service is None or not refs:
            return None

        question = derive_probing_questions(route_type, topic)[0]
        logger.info(
            "Extracting capsule from %d documents (kinds=%s)",
            len(refs),
            ",".join(reference_kind(r) for r in refs),
        )
        try:
            response = await asyncio.wait_for(
                self.extraction_service.generate(self._request(question, refs)),
                timeout=self.settings.extraction_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Extraction call timed out after %.0fs", self.settings.extraction_timeout_seconds)
            return None
        except Exception as e:
            logger.warning("Extraction call failed: %s", e)
            return None

        text = (response.text or "").strip() if response else ""
        if not text:
            logger.info("Extraction returned no content")
            return None

        capsule = truncate_capsule(text, self.settings.capsule_max_chars)
        logger.info("Extracted %d chars of knowledge", len(capsule))
        return capsule

    async def process(self, ctx: AssemblyContext) -> CapsuleResult:
        """Try to replace the context's file attachments with a capsule."""
        documents = [coerce_document(d) for d in ctx.documents]
        knowledge = list(ctx.knowledge)
        unchanged = CapsuleResult(documents=documents, knowledge=knowledge)

        if not ctx.enable_doc_extraction or not documents:
            unchanged.skipped_reason = "disabled" if documents else "no_documents"
            return unchanged
        if ctx.selected_document_ids:
            logger.info("Extraction skipped: documents came from vector-search selection")
            unchanged.skipped_reason = "preselected_documents"
            return unchanged

        crawled = [d for d in documents if d.is_crawled_text]
        attachments = [d for d in documents if d.is_file_attachment]
        logger.info("Document split: %d file attachments, %d crawled texts", len(attachments), len(crawled))
        if not attachments:
            unchanged.skipped_reason = "no_attachments"
            return unchanged

        try:
            refs = [r for r in await self.uploader.upload_all(attachments) if r]
        except Exception as e:
            logger.warning("Attachment upload failed: %s", e)
            unchanged.skipped_reason = "upload_failed"
            return unchanged

        kinds = [reference_kind(r) for r in refs]
        unchanged.reference_kinds = kinds
        if refs and all(k == "data" for k in kinds):
            logger.warning("All document references are data URIs; skipping extraction")
            unchanged.skipped_reason = "data_uris_only"
            return unchanged

        # No reference could be prepared at all: hand over the raw blocks
        extraction_refs: list[DocumentReference] = refs if refs else list(attachments)
        capsule = await self.run_extraction(extraction_refs, ctx.route_type, ctx.topic)
        if capsule is None:
            logger.info("No capsule produced; retaining all documents")
            unchanged.skipped_reason = "no_capsule"
            return unchanged

        kept = [d for d in documents if not d.is_file_attachment]
        return CapsuleResult(
            documents=kept,
            knowledge=[f"{CAPSULE_LABEL}\n{capsule}", *knowledge],
            capsule=capsule,
            reference_kinds=kinds,
        )
