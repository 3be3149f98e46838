"""Document, example and knowledge records passed into prompt assembly."""

from dataclasses import dataclass, field
from typing import Any, Optional

from models.enums import DocumentType, KnowledgeKind

URL_CRAWL_SOURCE = "url_crawl"


@dataclass(frozen=True)
class DocumentRef:
    """A document handed to the model as a typed content block.

    ``source`` follows the provider block shape: file attachments carry
    ``data`` (base64), ``media_type`` and ``name`` or a ``url``; text blocks
    carry ``text`` and optional ``metadata`` (``content_source``, ``title``,
    ``url``).
    """
    type: DocumentType
    source: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "DocumentRef":
        return cls(type=DocumentType(raw.get("type", "text")), source=dict(raw.get("source") or {}))

    @property
    def metadata(self) -> dict:
        return self.source.get("metadata") or {}

    @property
    def is_file_attachment(self) -> bool:
        return self.type == DocumentType.DOCUMENT and bool(self.source)

    @property
    def is_crawled_text(self) -> bool:
        return (
            self.type == DocumentType.TEXT
            and self.metadata.get("content_source") == URL_CRAWL_SOURCE
        )

    @property
    def name(self) -> str:
        return self.source.get("name") or "document.pdf"

    @property
    def media_type(self) -> str:
        return self.source.get("media_type") or "application/pdf"

    def to_block(self) -> dict:
        return {"type": self.type.value, "source": dict(self.source)}


@dataclass(frozen=True)
class ContentExample:
    """A stylistic example of previously published content."""
    content: str
    platform: str = ""
    title: str = ""
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class KnowledgeSnippet:
    """A retrieved knowledge string tagged with its provenance."""
    kind: KnowledgeKind
    text: str
    source: Optional[str] = None


def coerce_document(doc: Any) -> DocumentRef:
    """Accept either a DocumentRef or a raw block dict."""
    if isinstance(doc, DocumentRef):
        return doc
    return DocumentRef.from_dict(doc)
