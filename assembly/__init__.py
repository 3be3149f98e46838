"""Assembly package: prompt context records, builders and localization.

The async ``PromptAssembler`` lives in ``assembly.engine``.
"""

from assembly.builder import (
    EXAMPLES_ALLOWED_PLATFORMS,
    SECTION_DELIMITER,
    assemble_prompt,
    build_document_blocks,
    build_main_user_content,
    build_system_text,
    examples_allowed,
    format_examples,
    format_request,
)
from assembly.context import AssembledPrompt, AssemblyContext
from assembly.localization import format_full_date, localize_placeholders

__all__ = [
    "EXAMPLES_ALLOWED_PLATFORMS",
    "SECTION_DELIMITER",
    "assemble_prompt",
    "build_document_blocks",
    "build_main_user_content",
    "build_system_text",
    "examples_allowed",
    "format_examples",
    "format_request",
    "AssembledPrompt",
    "AssemblyContext",
    "format_full_date",
    "localize_placeholders",
]
