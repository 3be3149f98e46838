"""Production Agent: writes the final content from the approved plan."""

import logging
from typing import Optional

from agents.base_agent import BaseAgent
from assembly.context import AssemblyContext
from assembly.engine import PromptAssembler
from config.exceptions import LLMResponseParseError
from config.settings import Settings
from models.enums import GeneratorType
from models.workflow import CurrentPlan, EnrichedContext, ProductionData, WorkflowInput
from tools.generation import GenerationOptions, GenerationService

logger = logging.getLogger(__name__)


class ProductionAgent(BaseAgent):
    """Generates the final content guided by the current plan."""

    def __init__(
        self,
        generation: GenerationService,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(generation, assembler, settings)
        self._template = self._load_prompt("production")

    def build_context(self, inp: WorkflowInput, enriched: EnrichedContext, plan: CurrentPlan) -> AssemblyContext:
        gt = inp.generator_type
        return AssemblyContext(
            system_role=self._section(self._template, "System Prompt", gt),
            request=inp.request_payload(),
            task_instructions=self._section(self._template, "Task Instructions", gt),
            instructions=inp.instructions or None,
            knowledge=[f"## Genehmigter strategischer Plan\n{plan.text}", *enriched.knowledge],
            documents=list(enriched.documents),
            output_format=self._section(self._template, "Output Format", gt),
            locale=inp.locale,
            route_type=inp.route_type,
            enable_doc_extraction=bool(enriched.metadata.get("enable_doc_extraction", False)),
            selected_document_ids=list(inp.selected_document_ids),
            enrichment_metadata=enriched.metadata,
        )

    async def produce(self, inp: WorkflowInput, enriched: EnrichedContext, plan: CurrentPlan) -> ProductionData:
        """Generate the final content.

        Returns:
            ProductionData whose metadata names the plan version used.
        """
        prompt = await self._assemble(self.build_context(inp, enriched, plan))
        request_type = "pr_production" if inp.generator_type == GeneratorType.PR else "antrag_production"
        response = await self._generate(
            request_type,
            prompt,
            GenerationOptions(
                max_tokens=self.settings.production_max_tokens,
                temperature=self.settings.production_temperature,
                top_p=self.settings.default_top_p,
                model=self.settings.llm_model_production,
            ),
            use_privacy_mode=inp.use_privacy_mode,
        )

        content = (response.text or "").strip()
        if not content:
            raise LLMResponseParseError("Production returned no content", raw_response=response.text or "")

        logger.info(f"Content produced: {len(content)} chars from {plan.version.value} plan")
        return ProductionData(
            content=content,
            metadata={
                "plan_version": plan.version.value,
                "approved_plan_used": True,
                "approved_plan_preview": plan.text[:100],
                "model": response.metadata.get("model"),
            },
        )
