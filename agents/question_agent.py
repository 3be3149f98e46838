"""Question Agent: decides whether the plan needs clarification questions."""

import logging
import re
from typing import Optional

from agents.base_agent import BaseAgent
from assembly.context import AssemblyContext
from assembly.engine import PromptAssembler
from config.settings import Settings
from models.enums import QuestionType
from models.workflow import Question, QuestionsData, WorkflowInput
from tools.generation import GenerationOptions, GenerationResponse, GenerationService
from tools.llm_client import parse_json_response

logger = logging.getLogger(__name__)

QUESTION_TOOL = {
    "name": "decide_clarification",
    "description": "Entscheidet, ob Rückfragen zum Plan nötig sind, und liefert sie.",
    "input_schema": {
        "type": "object",
        "properties": {
            "needsClarification": {"type": "boolean"},
            "confidenceReason": {"type": "string"},
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "text": {"type": "string"},
                        "type": {"type": "string", "enum": [t.value for t in QuestionType]},
                        "options": {"type": "array", "items": {"type": "string"}},
                        "rationale": {"type": "string"},
                    },
                    "required": ["text"],
                },
            },
        },
        "required": ["needsClarification"],
    },
}

# "# Title", "### Title" or a line that is only "**Title**"; option lines never count
_HEADING_RE = re.compile(
    r"^\s*(?:#{1,6}\s+(?!Option\s+[A-Za-z]\s*[:)])(?P<md>.+?)\s*#*\s*"
    r"|\*\*(?!Option\s+[A-Za-z]\s*[:)])(?P<bold>[^*]+?)\*\*:?\s*)$"
)
_OPTION_RE = re.compile(
    r"\*{0,2}Option\s+(?P<letter>[A-Za-z])\*{0,2}\s*[:)]\s*\*{0,2}\s*(?P<text>.+?)\s*$",
    re.MULTILINE,
)


def _split_sections(plan_text: str) -> list[tuple[str, str]]:
    """Split a plan into (title, body) pairs on markdown or bold headings."""
    sections: list[tuple[str, list[str]]] = []
    title, body = "", []
    for line in plan_text.splitlines():
        match = _HEADING_RE.match(line)
        if match:
            sections.append((title, body))
            title = (match.group("md") or match.group("bold")).strip().rstrip(":")
            body = []
        else:
            body.append(line)
    sections.append((title, body))
    return [(t, "\n".join(b)) for t, b in sections if t or any(line.strip() for line in b)]


def extract_option_questions(plan_text: str, max_questions: int = 5, max_options: int = 4) -> list[Question]:
    """Synthesize multiple-choice questions from "Option X:" markers in a plan.

    Every section with at least two markers yields one question asking the
    user to pick an option for that section.
    """
    questions: list[Question] = []
    for title, body in _split_sections(plan_text or ""):
        options = [m.group("text").strip().rstrip("*").strip() for m in _OPTION_RE.finditer(body)]
        options = [o for o in options if o]
        if len(options) < 2:
            continue
        label = title or "den Plan"
        questions.append(Question(
            id=f"fallback_{len(questions) + 1}",
            text=f"Welche Option bevorzugst du für „{label}“?",
            question_type=QuestionType.MULTIPLE_CHOICE,
            options=options[:max_options],
            rationale=f"Der Plan nennt mehrere Optionen für „{label}“.",
        ))
        if len(questions) >= max_questions:
            break
    return questions


def parse_questions(raw_questions) -> list[Question]:
    """Convert model question dicts to Question records, skipping empty ones."""
    questions = []
    for i, raw in enumerate(raw_questions or [], start=1):
        if isinstance(raw, str):
            raw = {"text": raw}
        if not isinstance(raw, dict):
            continue
        text = str(raw.get("text") or raw.get("question") or raw.get("questionText") or "").strip()
        if not text:
            continue
        options = [str(o) for o in raw.get("options") or [] if str(o).strip()]
        try:
            qtype = QuestionType(raw.get("type") or raw.get("questionType") or "")
        except ValueError:
            qtype = QuestionType.MULTIPLE_CHOICE if options else QuestionType.TEXT
        questions.append(Question(
            id=str(raw.get("id") or f"q{i}"),
            text=text,
            question_type=qtype,
            options=options,
            rationale=str(raw.get("rationale") or raw.get("clarificationPurpose") or ""),
        ))
    return questions


def read_decision(response: GenerationResponse) -> Optional[dict]:
    """Return the tool-call decision, or None when the response is unusable."""
    for call in response.tool_calls or []:
        decision = call.get("input") or call.get("arguments")
        if isinstance(decision, dict):
            return decision
    if response.text:
        try:
            return parse_json_response(response.text)
        except ValueError:
            return None
    return None


class QuestionAgent(BaseAgent):
    """Asks the model for clarification questions, with a rule-based fallback."""

    def __init__(
        self,
        generation: GenerationService,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(generation, assembler, settings)
        self._template = self._load_prompt("questions")

    def build_context(self, inp: WorkflowInput, plan_text: str) -> AssemblyContext:
        gt = inp.generator_type
        return AssemblyContext(
            system_role=self._section(self._template, "System Prompt", gt),
            request={"thema": inp.content, "plan": plan_text},
            task_instructions=self._section(self._template, "Task Instructions", gt),
            output_format=self._section(self._template, "Output Format", gt),
            locale=inp.locale,
            tools=[QUESTION_TOOL],
            route_type=inp.route_type,
        )

    def fallback(self, plan_text: str, reason: str) -> QuestionsData:
        questions = extract_option_questions(
            plan_text,
            max_questions=self.settings.max_fallback_questions,
            max_options=self.settings.max_question_options,
        )
        if questions:
            logger.info(f"Fallback extractor produced {len(questions)} questions ({reason})")
            return QuestionsData(
                needs_clarification=True,
                questions=questions,
                question_round=1,
                confidence_reason="Der Plan enthält offene Optionen.",
                source="fallback",
            )
        return QuestionsData(
            needs_clarification=False,
            questions=[],
            question_round=0,
            confidence_reason=reason,
            source="fallback",
        )

    async def generate_questions(self, inp: WorkflowInput, plan_text: str) -> QuestionsData:
        """Decide on clarification questions for the current plan.

        A decision without ``needsClarification`` ends the phase as is. Malformed
        output, or a request for clarification without usable questions, is
        recovered by scanning the plan for option markers; only
        generation-service failures propagate.
        """
        prompt = await self._assemble(self.build_context(inp, plan_text))
        response = await self._generate(
            "plan_question_generation",
            prompt,
            GenerationOptions(
                max_tokens=self.settings.questions_max_tokens,
                temperature=self.settings.questions_temperature,
                top_p=self.settings.default_top_p,
                tool_choice="any",
                model=self.settings.llm_model_questions,
            ),
            use_privacy_mode=inp.use_privacy_mode,
        )

        decision = read_decision(response)
        if decision is None:
            logger.warning("Question decision was malformed, using fallback extractor")
            return self.fallback(plan_text, "Antwort des Modells nicht auswertbar")

        reason = str(decision.get("confidenceReason") or "Plan ist klar und vollständig")
        if not decision.get("needsClarification"):
            logger.info(f"Model sees no need for clarification: {reason}")
            return QuestionsData(
                needs_clarification=False,
                questions=[],
                question_round=0,
                confidence_reason=reason,
                source="model",
            )

        questions = parse_questions(decision.get("questions"))
        if not questions:
            return self.fallback(plan_text, reason)

        logger.info(f"Model asked {len(questions)} clarification questions")
        return QuestionsData(
            needs_clarification=True,
            questions=questions,
            question_round=1,
            confidence_reason=reason,
            source="model",
        )
