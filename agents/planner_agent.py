"""Planner Agent: drafts the strategic plan from the enriched request."""

import logging
import re
from typing import Optional

from agents.base_agent import BaseAgent
from assembly.context import AssemblyContext
from assembly.engine import PromptAssembler
from config.exceptions import LLMResponseParseError
from config.settings import Settings
from models.enums import GeneratorType
from models.workflow import EnrichedContext, PlanData, WorkflowInput
from tools.generation import GenerationOptions, GenerationService

logger = logging.getLogger(__name__)

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")
_MARKDOWN_PREFIX_RE = re.compile(r"^\s*(?:#{1,6}\s+|[-*•]\s+|\d+\.\s+)")

WEB_SEARCH_HINT = (
    "Hinweis: Die Hintergrundinformationen enthalten aktuelle Ergebnisse einer "
    "Websuche. Nutze sie für Fakten und Zahlen."
)


def extract_plan_summary(plan_text: str, sentences: int = 2) -> str:
    """Return the first ``sentences`` sentences of the plan as a summary."""
    lines = [_MARKDOWN_PREFIX_RE.sub("", line).replace("**", "").strip() for line in plan_text.splitlines()]
    flat = " ".join(line for line in lines if line)
    parts = [p for p in _SENTENCE_END_RE.split(flat) if p]
    return " ".join(parts[:sentences]).strip()


class PlannerAgent(BaseAgent):
    """Generates the original plan with one model call."""

    def __init__(
        self,
        generation: GenerationService,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(generation, assembler, settings)
        self._template = self._load_prompt("plan")

    def build_context(self, inp: WorkflowInput, enriched: EnrichedContext) -> AssemblyContext:
        gt = inp.generator_type
        return AssemblyContext(
            system_role=self._section(self._template, "System Prompt", gt),
            request=inp.request_payload(),
            task_instructions=self._section(self._template, "Task Instructions", gt),
            instructions=inp.instructions or None,
            tool_instructions=[WEB_SEARCH_HINT] if enriched.web_search_results else [],
            knowledge=enriched.knowledge,
            documents=list(enriched.documents),
            output_format=self._section(self._template, "Output Format", gt),
            locale=inp.locale,
            route_type=inp.route_type,
            enable_doc_extraction=bool(enriched.metadata.get("enable_doc_extraction", False)),
            selected_document_ids=list(inp.selected_document_ids),
            enrichment_metadata=enriched.metadata,
        )

    async def generate_plan(self, inp: WorkflowInput, enriched: EnrichedContext) -> PlanData:
        """Generate the original plan.

        Raises:
            LLMResponseParseError: If the model returns an empty plan.
        """
        prompt = await self._assemble(self.build_context(inp, enriched))
        request_type = "pr_plan_generation" if inp.generator_type == GeneratorType.PR else "antrag_plan_generation"
        response = await self._generate(
            request_type,
            prompt,
            GenerationOptions(
                max_tokens=self.settings.plan_max_tokens,
                temperature=self.settings.plan_temperature,
                top_p=self.settings.default_top_p,
                model=self.settings.llm_model_planning,
            ),
            use_privacy_mode=inp.use_privacy_mode,
        )

        plan_text = (response.text or "").strip()
        if not plan_text:
            raise LLMResponseParseError("Plan generation returned no text", raw_response=response.text or "")

        summary = extract_plan_summary(plan_text)
        logger.info(f"Plan generated: {len(plan_text)} chars")
        return PlanData(
            original_plan=plan_text,
            plan_summary=summary,
            confidence_score=self.settings.default_confidence_score,
        )
