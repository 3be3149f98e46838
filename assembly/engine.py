"""Async prompt assembly with knowledge extraction and example retrieval."""

import asyncio
import logging
from datetime import date
from typing import Optional, Protocol, runtime_checkable

from assembly.builder import EXAMPLES_ALLOWED_PLATFORMS, assemble_prompt, examples_allowed
from assembly.context import AssembledPrompt, AssemblyContext
from config.settings import Settings
from extraction.capsule import CapsuleResult, KnowledgeExtractor
from models.document import ContentExample, coerce_document

logger = logging.getLogger(__name__)


@runtime_checkable
class ExampleStore(Protocol):
    """Source of stylistic examples per platform."""

    async def get_examples(
        self, platform: str, query: str, limit: int = 2, locale: str = "de-DE"
    ) -> list[ContentExample]:
        ...


class PromptAssembler:
    """Builds model-ready prompts from an AssemblyContext.

    Collaborators are optional: without an extractor attachments are always
    sent as-is, without an example store only caller-supplied examples are used.
    """

    def __init__(
        self,
        extractor: Optional[KnowledgeExtractor] = None,
        example_store: Optional[ExampleStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.extractor = extractor
        self.example_store = example_store

    async def fetch_examples(self, ctx: AssemblyContext) -> list[ContentExample]:
        """Fetch examples for every allow-listed platform concurrently."""
        if self.example_store is None:
            return []
        platforms = [p for p in ctx.platforms if p in EXAMPLES_ALLOWED_PLATFORMS]
        if not platforms:
            return []

        results = await asyncio.gather(
            *(
                self.example_store.get_examples(
                    platform,
                    ctx.topic,
                    limit=self.settings.examples_per_platform,
                    locale=ctx.locale,
                )
                for platform in platforms
            ),
            return_exceptions=True,
        )

        examples: list[ContentExample] = []
        for platform, result in zip(platforms, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Failed to fetch %s examples: %s", platform, result)
                continue
            examples.extend(result)
        logger.debug("Fetched %d examples for platforms=%s", len(examples), platforms)
        return examples

    async def assemble(self, ctx: AssemblyContext, today: Optional[date] = None) -> AssembledPrompt:
        if self.extractor is not None:
            capsule = await self.extractor.process(ctx)
        else:
            capsule = CapsuleResult(
                documents=[coerce_document(d) for d in ctx.documents],
                knowledge=list(ctx.knowledge),
            )
        if capsule.used:
            logger.info("Knowledge capsule used; file attachments suppressed")

        examples = list(ctx.examples)
        if examples_allowed(ctx.platforms) and not examples:
            examples = await self.fetch_examples(ctx)

        return assemble_prompt(
            ctx,
            knowledge=capsule.knowledge,
            documents=capsule.documents,
            examples=examples,
            today=today,
        )
