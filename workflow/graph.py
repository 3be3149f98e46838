"""LangGraph StateGraph: orchestrates the plan-mode generation workflow."""

import logging
import time
from typing import Awaitable, Callable, Optional

from langgraph.graph import StateGraph, START, END

from agents.planner_agent import PlannerAgent
from agents.production_agent import ProductionAgent
from agents.question_agent import QuestionAgent
from agents.revision_agent import RevisionAgent
from assembly.engine import ExampleStore, PromptAssembler
from config.exceptions import (
    ValidationError,
    WorkflowStateError,
    error_kind_for,
)
from config.settings import Settings, get_settings
from extraction.capsule import ExtractionService, KnowledgeExtractor
from extraction.uploader import DocumentUploader, FileHost
from memory.enricher import ContextEnricher, EnrichmentService, KnowledgeBase
from models.enums import Phase
from models.workflow import ProductionData, WorkflowInput
from tools.generation import GenerationService

from workflow.conditions import (
    route_after_correction,
    route_after_enrich,
    route_after_plan,
    route_after_production,
    route_after_questions,
    route_after_revision,
    route_entry,
)
from workflow.plan_resolution import resolve_current_plan
from workflow.state import QUESTIONS_SKIPPED, PlanModeState, merge_update
from workflow.transitions import (
    ENTRY_POINTS,
    HANDLE_ERROR,
    RESUME_ANSWERS,
    RESUME_CORRECTION,
    graph_edges,
)

logger = logging.getLogger(__name__)

PhaseFn = Callable[[WorkflowInput, PlanModeState, "WorkflowResources"], Awaitable[dict]]


# ---------------------------------------------------------------------------
# Shared resources: injected collaborators plus lazily built agents
# ---------------------------------------------------------------------------

class WorkflowResources:
    """Collaborators and agents shared by all nodes of one orchestrator."""

    def __init__(
        self,
        generation: GenerationService,
        enrichment_service: Optional[EnrichmentService] = None,
        knowledge_base: Optional[KnowledgeBase] = None,
        file_host: Optional[FileHost] = None,
        extraction_service: Optional[ExtractionService] = None,
        example_store: Optional[ExampleStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.generation = generation
        self.enrichment_service = enrichment_service
        self.knowledge_base = knowledge_base
        self.file_host = file_host
        self.extraction_service = extraction_service or generation
        self.example_store = example_store
        self._settings = settings
        self._enricher = None
        self._assembler = None
        self._planner = None
        self._questioner = None
        self._reviser = None
        self._producer = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def enricher(self) -> ContextEnricher:
        if self._enricher is None:
            self._enricher = ContextEnricher(self.enrichment_service, self.knowledge_base, self.settings)
        return self._enricher

    @property
    def assembler(self) -> PromptAssembler:
        if self._assembler is None:
            extractor = KnowledgeExtractor(
                self.extraction_service,
                DocumentUploader(self.file_host, self.settings),
                self.settings,
            )
            self._assembler = PromptAssembler(extractor, self.example_store, self.settings)
        return self._assembler

    @property
    def planner(self) -> PlannerAgent:
        if self._planner is None:
            self._planner = PlannerAgent(self.generation, self.assembler, self.settings)
        return self._planner

    @property
    def questioner(self) -> QuestionAgent:
        if self._questioner is None:
            self._questioner = QuestionAgent(self.generation, self.assembler, self.settings)
        return self._questioner

    @property
    def reviser(self) -> RevisionAgent:
        if self._reviser is None:
            self._reviser = RevisionAgent(self.generation, self.assembler, self.settings)
        return self._reviser

    @property
    def producer(self) -> ProductionAgent:
        if self._producer is None:
            self._producer = ProductionAgent(self.generation, self.assembler, self.settings)
        return self._producer


# ---------------------------------------------------------------------------
# Phase functions: (input, state, resources) -> partial update.
# They may raise; the node wrapper turns exceptions into error updates.
# ---------------------------------------------------------------------------

async def enrich(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Gather documents, knowledge and framing for all later phases."""
    if not inp.content or not inp.content.strip():
        raise ValidationError("Request content is empty")
    enriched = await r.enricher.enrich(inp)
    return {"enriched_context": enriched}


async def plan(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Generate the original plan."""
    enriched = state.get("enriched_context")
    if enriched is None:
        raise WorkflowStateError("Plan requires enriched context", phase=Phase.PLAN.value)
    plan_data = await r.planner.generate_plan(inp, enriched)
    return {"plan_data": plan_data, "total_ai_calls": 1}


async def questions(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Ask for clarification questions unless disabled by configuration."""
    current = resolve_current_plan(state)
    if current is None:
        raise WorkflowStateError("Questions require a plan", phase=Phase.QUESTIONS.value)

    if not r.settings.questions_enabled:
        logger.info("Clarification disabled, skipping questions")
        return {"phases_executed": [QUESTIONS_SKIPPED]}

    questions_data = await r.questioner.generate_questions(inp, current.text)
    return {"questions_data": questions_data, "total_ai_calls": 1}


async def revision(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Revise the plan with the submitted answers."""
    plan_data = state.get("plan_data")
    questions_data = state.get("questions_data")
    if (
        plan_data is None
        or questions_data is None
        or not questions_data.needs_clarification
        or not questions_data.questions
        or state.get("current_phase") != Phase.QUESTIONS
    ):
        raise WorkflowStateError("No questions are pending", phase=Phase.REVISION.value)

    known_ids = {q.id for q in questions_data.questions}
    submitted = state.get("pending_answers") or {}
    answers = {qid: a for qid, a in submitted.items() if qid in known_ids}
    ignored = set(submitted) - known_ids
    if ignored:
        logger.warning(f"Ignoring answers for unknown questions: {sorted(ignored)}")

    # Answers refer to the questions asked about the original plan, so revision starts from it
    revised = await r.reviser.revise(inp, plan_data.original_plan, questions_data.questions, answers)
    return {
        "revised_plan_data": revised,
        "total_ai_calls": 1,
        "resume_action": None,
        "pending_answers": {},
    }


async def correction(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Apply a free-text correction to the current plan."""
    current = resolve_current_plan(state)
    if current is None:
        raise WorkflowStateError("Correction requires a plan", phase=Phase.CORRECTION.value)
    correction_text = (state.get("pending_correction") or "").strip()
    if not correction_text:
        raise ValidationError("Correction text is empty")

    corrected = await r.reviser.correct(inp, current, correction_text)
    return {
        "corrected_plan_data": corrected,
        "total_ai_calls": 1,
        "resume_action": None,
        "pending_correction": "",
    }


async def production(inp: WorkflowInput, state: PlanModeState, r: WorkflowResources) -> dict:
    """Generate the final content from the authoritative plan."""
    current = resolve_current_plan(state)
    if state.get("plan_data") is None or current is None:
        raise WorkflowStateError("Production requires a plan", phase=Phase.PRODUCTION.value)
    enriched = state.get("enriched_context")
    if enriched is None:
        raise WorkflowStateError("Production requires enriched context", phase=Phase.PRODUCTION.value)

    started = time.monotonic()
    result = await r.producer.produce(inp, enriched, current)
    metadata = {
        **result.metadata,
        "execution_time_ms": int((time.monotonic() - started) * 1000),
        "ai_calls_count": state.get("total_ai_calls", 0) + 1,
    }
    return {
        "production_data": ProductionData(content=result.content, metadata=metadata),
        "total_ai_calls": 1,
    }


def _node(phase: Phase, fn: PhaseFn, resources: WorkflowResources):
    """Wrap a phase function as a graph node that never raises past its boundary.

    Successful runs append the phase to phases_executed and record timing;
    failures become an error update. Cancellation propagates untouched.
    """

    async def node(state: PlanModeState) -> dict:
        logger.info(f"Entering node: {phase.value}")
        started = time.monotonic()
        inp = state.get("workflow_input")
        try:
            if inp is None:
                raise WorkflowStateError("State has no workflow input", phase=phase.value)
            update = await fn(inp, state, resources)
        except Exception as e:
            elapsed = int((time.monotonic() - started) * 1000)
            logger.error(f"Phase {phase.value} failed: {e}")
            return {
                "error": f"{phase.value} failed: {e}",
                "error_kind": error_kind_for(e),
                "current_phase": Phase.ERROR,
                "phase_timings": {phase.value: elapsed},
            }

        update.setdefault("phases_executed", [phase.value])
        update["phase_timings"] = {phase.value: int((time.monotonic() - started) * 1000)}
        update["current_phase"] = Phase.COMPLETED if phase == Phase.PRODUCTION else phase
        return update

    node.__name__ = phase.value
    return node


async def handle_error(state: PlanModeState) -> dict:
    """Terminal node: log the failure and end the run."""
    logger.info("Entering node: handle_error")
    kind = state.get("error_kind")
    logger.error(
        f"Workflow ended with error ({kind.value if kind else 'unknown'}): {state.get('error', '')}"
    )
    return {"current_phase": Phase.ERROR}


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

_PHASES: list[tuple[Phase, PhaseFn, Callable[[PlanModeState], str]]] = [
    (Phase.ENRICH, enrich, route_after_enrich),
    (Phase.PLAN, plan, route_after_plan),
    (Phase.QUESTIONS, questions, route_after_questions),
    (Phase.REVISION, revision, route_after_revision),
    (Phase.CORRECTION, correction, route_after_correction),
    (Phase.PRODUCTION, production, route_after_production),
]


def build_graph(resources: WorkflowResources):
    """Build and return the compiled LangGraph workflow.

    Args:
        resources: Collaborators shared by all nodes.
    """
    graph = StateGraph(PlanModeState)

    for phase, fn, _ in _PHASES:
        graph.add_node(phase.value, _node(phase, fn, resources))
    graph.add_node(HANDLE_ERROR, handle_error)

    # Entry: enrich for new runs, revision/correction when resuming
    graph.add_conditional_edges(
        START,
        route_entry,
        {node: node for node in ENTRY_POINTS.values()},
    )

    for phase, _, router in _PHASES:
        graph.add_conditional_edges(phase.value, router, graph_edges(phase))

    # Error -> END
    graph.add_edge(HANDLE_ERROR, END)

    return graph.compile()


class PlanModeOrchestrator:
    """Runs the plan-mode workflow and its two resume entry points.

    All entry points return the final state; failures are reported through
    ``error`` and ``error_kind`` instead of being raised.
    """

    def __init__(
        self,
        generation: GenerationService,
        enrichment_service: Optional[EnrichmentService] = None,
        knowledge_base: Optional[KnowledgeBase] = None,
        file_host: Optional[FileHost] = None,
        extraction_service: Optional[ExtractionService] = None,
        example_store: Optional[ExampleStore] = None,
        settings: Optional[Settings] = None,
        callback=None,
    ):
        self.resources = WorkflowResources(
            generation,
            enrichment_service=enrichment_service,
            knowledge_base=knowledge_base,
            file_host=file_host,
            extraction_service=extraction_service,
            example_store=example_store,
            settings=settings,
        )
        self.callback = callback
        self._app = build_graph(self.resources)

    async def start(self, workflow_input: WorkflowInput) -> PlanModeState:
        """Run enrich -> plan -> questions and, if no answers are needed, production."""
        logger.info(
            f"Starting workflow: generator={workflow_input.generator_type.value}, "
            f"locale={workflow_input.locale}"
        )
        initial_state: PlanModeState = {
            "workflow_input": workflow_input,
            "current_phase": Phase.ENRICH,
            "phases_executed": [],
            "phase_timings": {},
            "total_ai_calls": 0,
            "resume_action": None,
        }
        return await self._run(initial_state)

    async def submit_answers(self, state: PlanModeState, answers: dict) -> PlanModeState:
        """Resume a run that is waiting for answers: revision -> production."""
        if state.get("current_phase") == Phase.ERROR:
            logger.warning("Ignoring answers for a failed workflow")
            return state
        return await self._run({
            **state,
            "resume_action": RESUME_ANSWERS,
            "pending_answers": dict(answers or {}),
        })

    async def submit_correction(self, state: PlanModeState, correction_text: str) -> PlanModeState:
        """Resume with a correction of the current plan: correction -> production."""
        if state.get("current_phase") == Phase.ERROR:
            logger.warning("Ignoring correction for a failed workflow")
            return state
        return await self._run({
            **state,
            "resume_action": RESUME_CORRECTION,
            "pending_correction": correction_text or "",
        })

    async def _run(self, state: PlanModeState) -> PlanModeState:
        if self.callback is not None:
            final_state = await _run_with_callback(self._app, state, self.callback)
        else:
            final_state = await self._app.ainvoke(state)
        logger.info(
            f"Workflow run finished: phase={final_state.get('current_phase')}, "
            f"ai_calls={final_state.get('total_ai_calls', 0)}"
        )
        return final_state


async def run_workflow(
    workflow_input: WorkflowInput,
    generation: GenerationService,
    settings: Optional[Settings] = None,
    callback=None,
    **collaborators,
) -> PlanModeState:
    """Build an orchestrator and start a workflow for one request.

    Args:
        workflow_input: The request to process.
        generation: Model backend used by every phase.
        settings: Optional Settings; defaults to get_settings().
        callback: Optional WorkflowCallback for progress reporting.
        **collaborators: enrichment_service, knowledge_base, file_host,
            extraction_service or example_store.

    Returns:
        Final workflow state dict.
    """
    orchestrator = PlanModeOrchestrator(generation, settings=settings, callback=callback, **collaborators)
    return await orchestrator.start(workflow_input)


async def _run_with_callback(app, initial_state: dict, callback) -> dict:
    """Run the workflow using astream() and emit progress callbacks.

    Args:
        app: Compiled LangGraph application.
        initial_state: Initial workflow state.
        callback: WorkflowCallback instance.

    Returns:
        Accumulated final state dict.
    """
    accumulated: dict = dict(initial_state)

    async for event in app.astream(initial_state):
        # Each event is {node_name: state_update_dict}
        for node_name, node_update in event.items():
            if node_name == "__end__":
                continue

            if isinstance(node_update, dict):
                accumulated = merge_update(accumulated, node_update)

            callback.on_node_exit(node_name, accumulated)

            if isinstance(node_update, dict) and node_update.get("error"):
                callback.on_error(node_name, node_update["error"])

    callback.on_workflow_complete(accumulated)
    return accumulated
