"""Input and output records of prompt assembly."""

from dataclasses import dataclass, field
from typing import Optional, Union

from models.document import ContentExample, DocumentRef

RequestLike = Union[str, dict, None]


@dataclass
class AssemblyContext:
    """Everything one assembly call may draw on.

    Each optional field contributes one section (or one block) to the
    assembled prompt only when it is set.
    """

    # Role text for the system prompt. Required; placeholders are localized
    # and the current date is appended.
    system_role: str
    # What the user asked for. Strings are localized; dicts are formatted in
    # a fixed field order.
    request: RequestLike = None
    # Step-by-step instructions for this task, placed right after the request.
    task_instructions: Optional[str] = None
    # Personal guidance from the user, wrapped in <instructions>.
    instructions: Optional[str] = None
    # Hard limits the output must respect.
    constraints: Optional[str] = None
    # Formatting rules for the output.
    formatting: Optional[str] = None
    # Passive context hints (e.g. "web search results are available").
    tool_instructions: list[str] = field(default_factory=list)
    # Background knowledge, joined into one <knowledge> block in order.
    knowledge: list[str] = field(default_factory=list)
    # Documents sent as typed content blocks in their own message.
    documents: list[DocumentRef] = field(default_factory=list)
    # Stylistic examples; only used for allow-listed platforms.
    examples: list[ContentExample] = field(default_factory=list)
    # How the response should be structured, always the last section.
    output_format: Optional[str] = None
    # Locale for placeholders and the date line.
    locale: str = "de-DE"
    # Tool declarations passed through to the generation service.
    tools: list[dict] = field(default_factory=list)
    # Route used to phrase extraction questions ("social", "presse", ...).
    route_type: str = "social"
    # Compact file attachments into a knowledge capsule before assembly.
    enable_doc_extraction: bool = False
    # Documents chosen via vector search; their presence disables extraction.
    selected_document_ids: list[str] = field(default_factory=list)
    # Enrichment metadata passed through to the result untouched.
    enrichment_metadata: Optional[dict] = None

    @property
    def platforms(self) -> list[str]:
        if isinstance(self.request, dict) and isinstance(self.request.get("platforms"), list):
            return [str(p or "").lower() for p in self.request["platforms"]]
        return []

    @property
    def topic(self) -> str:
        if isinstance(self.request, dict):
            req = self.request
            return str(req.get("thema") or req.get("theme") or req.get("details") or "")
        return str(self.request or "")


@dataclass
class AssembledPrompt:
    system: str
    messages: list[dict] = field(default_factory=list)
    tools: list[dict] = field(default_factory=list)
    enrichment_metadata: Optional[dict] = None
