"""Pure builders that turn an AssemblyContext into system text and messages."""

import logging
from collections import Counter
from datetime import date
from typing import Iterable, Optional

from assembly.context import AssembledPrompt, AssemblyContext, RequestLike
from assembly.localization import DEFAULT_LOCALE, format_full_date, localize_placeholders
from config.exceptions import PromptAssemblyError
from models.document import ContentExample, DocumentRef, coerce_document
from models.enums import DocumentType

logger = logging.getLogger(__name__)

EXAMPLES_ALLOWED_PLATFORMS = frozenset({"facebook", "instagram"})

SECTION_DELIMITER = "\n\n---\n\n"
DOCUMENTS_INTRO = "Hier sind Dokumente als Hintergrundinformation:"

# Request fields rendered first, in this order, with their labels
_ORDERED_REQUEST_FIELDS = (
    (("thema", "theme"), "Thema"),
    (("details",), "Details"),
    (("platforms",), "Plattformen"),
    (("zitatgeber",), "Zitatgeber"),
    (("textForm",), "Textform"),
)
_SKIPPED_REQUEST_FIELDS = frozenset(
    {"thema", "theme", "details", "platforms", "zitatgeber", "textForm", "presseabbinder"}
)


def build_system_text(system_role: str, locale: str = DEFAULT_LOCALE, today: Optional[date] = None) -> str:
    """Localize the system role and append the current date."""
    if not system_role or not system_role.strip():
        raise PromptAssemblyError("System role is required")

    current_date = format_full_date(today, locale)
    system = f"{localize_placeholders(system_role, locale)}\n\nAktuelles Datum: {current_date}"
    logger.debug("System text built (locale=%s, date=%s)", locale, current_date)
    return system


def _crawl_attribution(doc: DocumentRef) -> str:
    title = doc.metadata.get("title") or "Crawled Content"
    url = doc.metadata.get("url") or ""
    return f"[Source: {title}{f' - {url}' if url else ''}]"


def build_document_blocks(documents: Iterable) -> Optional[list[dict]]:
    """Build typed content blocks for documents, or None when there are none."""
    documents = [coerce_document(d) for d in documents or []]
    if not documents:
        return None

    blocks: list[dict] = [{"type": "text", "text": DOCUMENTS_INTRO}]
    for doc in documents:
        if doc.type in (DocumentType.DOCUMENT, DocumentType.IMAGE) and doc.source:
            blocks.append({"type": doc.type.value, "source": dict(doc.source)})
        elif doc.type == DocumentType.TEXT and doc.source.get("text"):
            text = doc.source["text"]
            if doc.is_crawled_text:
                text = f"{_crawl_attribution(doc)}\n\n{text}"
            blocks.append({"type": "text", "text": text})

    logger.debug("Document blocks: %s", dict(Counter(b["type"] for b in blocks)))
    return blocks


def format_examples(examples: Iterable[ContentExample]) -> str:
    examples = [ex for ex in examples or [] if ex and ex.content]
    if not examples:
        return ""
    body = "".join(f"{ex.content}\n" for ex in examples)
    return f"<examples>\nBEISPIEL:\n{body}</examples>"


def _render_value(value, locale: str) -> str:
    if isinstance(value, str):
        return localize_placeholders(value, locale)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def format_request(request: RequestLike, locale: str = DEFAULT_LOCALE) -> str:
    """Render the request; dicts get a stable field order."""
    if request is None:
        return ""
    if isinstance(request, str):
        return localize_placeholders(request, locale)

    parts = []
    for keys, label in _ORDERED_REQUEST_FIELDS:
        value = next((request[k] for k in keys if request.get(k)), None)
        if value:
            parts.append(f"{label}: {_render_value(value, locale)}")

    for key, value in request.items():
        if key in _SKIPPED_REQUEST_FIELDS or not value:
            continue
        parts.append(f"{key}: {_render_value(value, locale)}")

    return "\n".join(parts)


def examples_allowed(platforms: list[str]) -> bool:
    """Examples are used only when every requested platform is allow-listed."""
    return bool(platforms) and all(p in EXAMPLES_ALLOWED_PLATFORMS for p in platforms)


def build_main_user_content(
    request: RequestLike = None,
    task_instructions: Optional[str] = None,
    instructions: Optional[str] = None,
    constraints: Optional[str] = None,
    formatting: Optional[str] = None,
    examples: Optional[list[ContentExample]] = None,
    tool_instructions: Optional[list[str]] = None,
    knowledge: Optional[list[str]] = None,
    output_format: Optional[str] = None,
    locale: str = DEFAULT_LOCALE,
) -> Optional[str]:
    """Concatenate the present sections in their fixed order."""
    parts = []

    request_text = format_request(request, locale)
    if request_text:
        parts.append(f"<request>\n{request_text}\n</request>")
    if task_instructions:
        parts.append(localize_placeholders(task_instructions, locale))
    if instructions:
        parts.append(f"<instructions>\n{localize_placeholders(instructions, locale)}\n</instructions>")
    if constraints:
        parts.append(localize_placeholders(constraints, locale))
    if formatting:
        parts.append(localize_placeholders(formatting, locale))

    examples_text = format_examples(examples or [])
    if examples_text:
        parts.append(examples_text)

    if tool_instructions:
        parts.append(" ".join(localize_placeholders(t, locale) for t in tool_instructions))
    if knowledge:
        joined = "\n\n".join(localize_placeholders(k, locale) for k in knowledge)
        parts.append(f"<knowledge>\n{joined}\n</knowledge>")
    if output_format:
        parts.append(localize_placeholders(output_format, locale))

    logger.debug("Main user content built (sections=%d, locale=%s)", len(parts), locale)
    return SECTION_DELIMITER.join(parts) if parts else None


def assemble_prompt(
    ctx: AssemblyContext,
    knowledge: Optional[list[str]] = None,
    documents: Optional[list[DocumentRef]] = None,
    examples: Optional[list[ContentExample]] = None,
    today: Optional[date] = None,
) -> AssembledPrompt:
    """Assemble a prompt without any I/O.

    ``knowledge``, ``documents`` and ``examples`` override the context's own
    values; the async assembler uses them to pass the capsule-adjusted lists.
    """
    locale = ctx.locale or DEFAULT_LOCALE
    system = build_system_text(ctx.system_role, locale, today)

    messages: list[dict] = []
    doc_blocks = build_document_blocks(ctx.documents if documents is None else documents)
    if doc_blocks:
        messages.append({"role": "user", "content": doc_blocks})

    use_examples = examples_allowed(ctx.platforms)
    logger.debug(
        "Examples %s for platforms=[%s]",
        "included" if use_examples else "skipped",
        ",".join(ctx.platforms),
    )

    main_user = build_main_user_content(
        request=ctx.request,
        task_instructions=ctx.task_instructions,
        instructions=ctx.instructions,
        constraints=ctx.constraints,
        formatting=ctx.formatting,
        examples=(ctx.examples if examples is None else examples) if use_examples else [],
        tool_instructions=ctx.tool_instructions,
        knowledge=ctx.knowledge if knowledge is None else knowledge,
        output_format=ctx.output_format,
        locale=locale,
    )
    if main_user:
        messages.append({"role": "user", "content": [{"type": "text", "text": main_user}]})

    logger.debug("Prompt assembled with %d messages, %d tools", len(messages), len(ctx.tools))
    return AssembledPrompt(
        system=system,
        messages=messages,
        tools=list(ctx.tools),
        enrichment_metadata=ctx.enrichment_metadata,
    )
