"""Enrichment phase: gather documents, knowledge and framing once per request."""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union, runtime_checkable

from config.exceptions import EnrichmentError, PlanModeError
from config.settings import Settings
from memory.chroma_store import KnowledgeHit
from models.document import DocumentRef, KnowledgeSnippet, coerce_document
from models.enums import KnowledgeKind
from models.workflow import EnrichedContext, WorkflowInput

logger = logging.getLogger(__name__)

# Provenance marker the web-search enrichment puts into its knowledge strings
WEB_SEARCH_MARKER = "Websuche"


@dataclass
class EnrichmentOptions:
    type: str = "social"
    enable_web_search: bool = False
    enable_doc_qna: bool = True
    enable_knowledge_base: bool = True
    search_query: str = ""
    selected_document_ids: list[str] = field(default_factory=list)
    selected_text_ids: list[str] = field(default_factory=list)
    locale: str = "de-DE"


@dataclass
class EnrichmentResult:
    documents: list = field(default_factory=list)
    knowledge: list[Union[str, KnowledgeSnippet]] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


@runtime_checkable
class EnrichmentService(Protocol):
    """Fetches selected documents/texts, web search and knowledge snippets."""

    async def enrich(self, workflow_input: WorkflowInput, options: EnrichmentOptions) -> EnrichmentResult:
        ...


@runtime_checkable
class KnowledgeBase(Protocol):
    async def search(
        self, query: str, collections: list[str], limit: int = 5, threshold: float = 0.0
    ) -> list[KnowledgeHit]:
        ...


class NullEnrichmentService:
    """Enrichment without retrieval: only the request's own attachments."""

    async def enrich(self, workflow_input: WorkflowInput, options: EnrichmentOptions) -> EnrichmentResult:
        return EnrichmentResult(metadata={"source": "none"})


def classify_knowledge(item: Union[str, KnowledgeSnippet]) -> KnowledgeSnippet:
    """Tag a knowledge item; plain strings are classified by their marker."""
    if isinstance(item, KnowledgeSnippet):
        return item
    kind = KnowledgeKind.WEB if WEB_SEARCH_MARKER in item else KnowledgeKind.KB
    return KnowledgeSnippet(kind=kind, text=item)


def format_framing_hit(hit: KnowledgeHit) -> str:
    collection = hit.metadata.get("collection", "")
    return (
        f"## Wertebezug: {hit.source or 'Unbekannte Quelle'}\n"
        f"**Sammlung:** {collection or 'Unbekannt'}\n"
        f"**Relevanz:** {round(hit.relevance * 100)}%\n\n"
        f"{hit.text.strip()}"
    )


class ContextEnricher:
    """Runs the enrichment collaborator and the optional framing search."""

    def __init__(
        self,
        enrichment_service: Optional[EnrichmentService] = None,
        knowledge_base: Optional[KnowledgeBase] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.enrichment_service = enrichment_service or NullEnrichmentService()
        self.knowledge_base = knowledge_base

    def _options(self, inp: WorkflowInput) -> EnrichmentOptions:
        return EnrichmentOptions(
            type=inp.route_type,
            enable_web_search=inp.enable_web_search,
            enable_doc_qna=inp.enable_documents,
            enable_knowledge_base=inp.enable_knowledge,
            search_query=inp.content,
            selected_document_ids=list(inp.selected_document_ids),
            selected_text_ids=list(inp.selected_text_ids),
            locale=inp.locale,
        )

    def framing_enabled(self, inp: WorkflowInput) -> bool:
        return (
            self.knowledge_base is not None
            and inp.generator_type.value in self.settings.value_framing_generators
        )

    async def search_framing(self, inp: WorkflowInput) -> list[str]:
        """Query the knowledge base for framing snippets; never raises."""
        try:
            hits = await self.knowledge_base.search(
                inp.content,
                collections=list(self.settings.framing_collections),
                limit=self.settings.framing_limit,
                threshold=self.settings.framing_threshold,
            )
        except Exception as e:
            logger.warning("Framing search failed, continuing without framing: %s", e)
            return []

        relevant = [h for h in hits if h.relevance >= self.settings.framing_threshold]
        return [format_framing_hit(h) for h in relevant[: self.settings.framing_limit]]

    async def enrich(self, inp: WorkflowInput) -> EnrichedContext:
        """Gather everything later phases need.

        Raises:
            EnrichmentError: If the enrichment collaborator fails.
        """
        started = time.monotonic()
        try:
            result = await self.enrichment_service.enrich(inp, self._options(inp))
        except PlanModeError:
            raise
        except Exception as e:
            raise EnrichmentError(f"Enrichment failed: {e}") from e
        enrich_ms = int((time.monotonic() - started) * 1000)

        documents: list[DocumentRef] = [coerce_document(d) for d in result.documents or []]
        for attachment in inp.attachments:
            if attachment not in documents:
                documents.append(attachment)

        web_results, kb_results = [], []
        for item in result.knowledge or []:
            snippet = classify_knowledge(item)
            (web_results if snippet.kind == KnowledgeKind.WEB else kb_results).append(snippet.text)

        framing: list[str] = []
        framing_ms = 0
        if self.framing_enabled(inp):
            framing_started = time.monotonic()
            framing = await self.search_framing(inp)
            framing_ms = int((time.monotonic() - framing_started) * 1000)

        metadata = {
            **(result.metadata or {}),
            "document_count": len(documents),
            "web_search_count": len(web_results),
            "knowledge_count": len(kb_results),
            "framing_count": len(framing),
            "enable_doc_extraction": inp.enable_doc_extraction and self.settings.doc_extraction_enabled,
            "timings_ms": {"enrich": enrich_ms, "framing": framing_ms},
        }
        logger.info(
            "Enrichment done: docs=%d, web=%d, kb=%d, framing=%d",
            len(documents), len(web_results), len(kb_results), len(framing),
        )
        return EnrichedContext(
            documents=documents,
            web_search_results=web_results,
            knowledge_base=kb_results,
            framing=framing,
            metadata=metadata,
        )
