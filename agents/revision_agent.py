"""Revision Agent: revises the plan from answers and applies corrections."""

import logging
from typing import Optional, Union

from agents.base_agent import BaseAgent
from assembly.context import AssemblyContext
from assembly.engine import PromptAssembler
from config.exceptions import LLMResponseParseError
from config.settings import Settings
from models.enums import GeneratorType
from models.workflow import (
    CorrectedPlanData,
    CurrentPlan,
    Question,
    RevisedPlanData,
    WorkflowInput,
)
from tools.generation import GenerationOptions, GenerationService

logger = logging.getLogger(__name__)

SKIP_ANSWER = "Überspringen"

Answer = Union[str, list[str]]


def format_qa_pairs(questions: list[Question], answers: dict[str, Answer]) -> str:
    """Format answered questions as Q/A pairs, dropping skipped ones."""
    pairs = []
    for question in questions:
        answer = answers.get(question.id)
        if answer is None:
            continue
        if isinstance(answer, (list, tuple)):
            values = [str(a).strip() for a in answer if str(a).strip() and a != SKIP_ANSWER]
            answer_text = ", ".join(values)
        else:
            answer_text = "" if answer == SKIP_ANSWER else str(answer).strip()
        if not answer_text:
            continue
        pairs.append(f"**F:** {question.text}\n**A:** {answer_text}")
    return "\n\n".join(pairs)


def diff_plans(original: str, revised: str) -> str:
    """Describe how much the revised plan differs in length from the original."""
    if original.strip() == revised.strip():
        return "Keine Änderungen"
    if not original:
        return "Plan neu erstellt"
    change = round((len(revised) - len(original)) / len(original) * 100)
    if change > 0:
        return f"Plan um {change}% erweitert"
    if change < 0:
        return f"Plan um {abs(change)}% gekürzt"
    return "Plan inhaltlich überarbeitet"


class RevisionAgent(BaseAgent):
    """Produces revised and corrected plan versions."""

    def __init__(
        self,
        generation: GenerationService,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(generation, assembler, settings)
        self._revision_template = self._load_prompt("revision")
        self._correction_template = self._load_prompt("correction")

    def _options(self) -> GenerationOptions:
        return GenerationOptions(
            max_tokens=self.settings.revision_max_tokens,
            temperature=self.settings.revision_temperature,
            top_p=self.settings.default_top_p,
            model=self.settings.llm_model_revision,
        )

    def _context(self, template: str, inp: WorkflowInput, knowledge: list[str]) -> AssemblyContext:
        gt = inp.generator_type
        return AssemblyContext(
            system_role=self._section(template, "System Prompt", gt),
            request=inp.request_payload(),
            task_instructions=self._section(template, "Task Instructions", gt),
            instructions=inp.instructions or None,
            knowledge=knowledge,
            output_format=self._section(template, "Output Format", gt),
            locale=inp.locale,
            route_type=inp.route_type,
        )

    async def _run(self, request_type: str, ctx: AssemblyContext, inp: WorkflowInput) -> str:
        prompt = await self._assemble(ctx)
        response = await self._generate(request_type, prompt, self._options(), inp.use_privacy_mode)
        text = (response.text or "").strip()
        if not text:
            raise LLMResponseParseError(f"{request_type} returned no text", raw_response=response.text or "")
        return text

    async def revise(
        self,
        inp: WorkflowInput,
        original_plan: str,
        questions: list[Question],
        answers: dict[str, Answer],
    ) -> RevisedPlanData:
        """Revise the original plan using the user's answers."""
        qa_context = format_qa_pairs(questions, answers)
        ctx = self._context(
            self._revision_template,
            inp,
            [
                f"## Ursprünglicher Plan\n{original_plan}",
                f"## Antworten aus dem Verständnisgespräch\n{qa_context or 'Keine Antworten'}",
            ],
        )
        request_type = "pr_plan_revision" if inp.generator_type == GeneratorType.PR else "antrag_plan_revision"
        revised = await self._run(request_type, ctx, inp)

        changes = diff_plans(original_plan, revised)
        logger.info(f"Plan revised: {changes}")
        return RevisedPlanData(revised_plan=revised, changes=changes, answers=dict(answers))

    async def correct(self, inp: WorkflowInput, current: CurrentPlan, correction_text: str) -> CorrectedPlanData:
        """Apply a free-text correction to the currently authoritative plan."""
        ctx = self._context(
            self._correction_template,
            inp,
            [
                f"## Aktueller Plan\n{current.text}",
                f"## Korrekturwunsch\n{correction_text}",
            ],
        )
        corrected = await self._run("plan_correction", ctx, inp)

        logger.info(f"Plan corrected (based on {current.version.value} plan)")
        return CorrectedPlanData(
            corrected_plan=corrected,
            correction_text=correction_text,
            based_on=current.version,
        )
