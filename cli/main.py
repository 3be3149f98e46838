"""CLI entry point: planmode content generation.

Usage:
  planmode run "Thema ..."            plan, ask questions, write the content
  planmode run "..." --correct "..."  correct the plan instead of answering
  planmode add-example ...            store a stylistic example
  planmode add-knowledge ...          store a framing snippet
  planmode --help                     list all commands
"""

import asyncio
import base64
import logging
import mimetypes
import sys
from pathlib import Path

import click

from agents.revision_agent import SKIP_ANSWER
from cli.theme import (
    app_header,
    command_panel,
    error_panel,
    get_console,
    markdown_panel,
    questions_table,
    stats_line,
    success_panel,
)
from config.logging_config import setup_logging
from config.settings import Settings
from models.document import DocumentRef
from models.enums import DocumentType, GeneratorType, Phase
from models.workflow import WorkflowInput

console = get_console()


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = Settings()
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """planmode: plan-first generation of social media posts, press releases and motions.

    \b
    Examples:
      planmode run "Neue Radwege in der Innenstadt" -p instagram -p facebook
      planmode run "Kostenloser ÖPNV für Schüler:innen" -g antrag
    """
    _init_logging(verbose)


def _load_attachment(path: Path) -> DocumentRef:
    media_type = mimetypes.guess_type(path.name)[0] or "application/pdf"
    doc_type = DocumentType.IMAGE if media_type.startswith("image/") else DocumentType.DOCUMENT
    return DocumentRef(
        type=doc_type,
        source={
            "type": "base64",
            "media_type": media_type,
            "name": path.name,
            "data": base64.b64encode(path.read_bytes()).decode("ascii"),
        },
    )


def _build_orchestrator(settings: Settings, callback):
    from memory.chroma_store import ChromaExampleStore, ChromaKnowledgeBase, ChromaStore
    from memory.enricher import NullEnrichmentService
    from tools.agent_sdk_client import AgentSDKClient
    from workflow.graph import PlanModeOrchestrator

    store = ChromaStore(settings.chroma_persist_dir)
    llm = AgentSDKClient(settings)
    return PlanModeOrchestrator(
        llm,
        enrichment_service=NullEnrichmentService(),
        knowledge_base=ChromaKnowledgeBase(store),
        extraction_service=AgentSDKClient(
            settings, model=settings.llm_model_extraction, strict_attachments=True
        ),
        example_store=ChromaExampleStore(store),
        settings=settings,
        callback=callback,
    )


def _ask_answers(questions: list) -> dict:
    """Prompt for each question; a number picks an option, empty input skips."""
    answers = {}
    for i, q in enumerate(questions, start=1):
        raw = click.prompt(f"Antwort {i}", default="", show_default=False).strip()
        if not raw:
            answers[q.id] = SKIP_ANSWER
        elif raw.isdigit() and q.options and 1 <= int(raw) <= len(q.options):
            answers[q.id] = q.options[int(raw) - 1]
        else:
            answers[q.id] = raw
    return answers


def _print_result(state: dict) -> bool:
    """Print the final state; returns False when the run failed."""
    if state.get("current_phase") == Phase.ERROR:
        kind = state.get("error_kind")
        console.print(error_panel(
            f"Fehler ({kind.value if kind else 'unbekannt'})",
            state.get("error", ""),
        ))
        return False

    production = state.get("production_data")
    if production is not None:
        version = production.metadata.get("plan_version", "")
        console.print(markdown_panel("Ergebnis", production.content, subtitle=f"Plan: {version}"))
    console.print(f"  {stats_line(state)}")
    return True


async def _run(orchestrator, workflow_input: WorkflowInput, correction: str, interactive: bool) -> dict:
    state = await orchestrator.start(workflow_input)
    if state.get("current_phase") == Phase.ERROR:
        return state

    plan_data = state.get("plan_data")
    if plan_data is not None:
        console.print(markdown_panel("Strategischer Plan", plan_data.original_plan, subtitle=plan_data.plan_summary))

    questions = state.get("questions_data")
    awaiting = (
        state.get("current_phase") == Phase.QUESTIONS
        and questions is not None
        and questions.needs_clarification
        and questions.questions
    )

    if correction:
        return await orchestrator.submit_correction(state, correction)
    if awaiting:
        console.print(questions_table(questions.questions))
        if not interactive:
            console.print("[warning]Rückfragen offen, alle werden übersprungen (--no-input)[/]")
            answers = {q.id: SKIP_ANSWER for q in questions.questions}
        else:
            # Live progress display and prompts cannot share the terminal
            orchestrator.callback.stop()
            answers = _ask_answers(questions.questions)
            orchestrator.callback.start()
        return await orchestrator.submit_answers(state, answers)
    return state


@cli.command()
@click.argument("content")
@click.option("--generator", "-g", default="pr", type=click.Choice([g.value for g in GeneratorType]),
              help="pr: Social Media/Presse, antrag: parlamentarische Initiative")
@click.option("--platform", "-p", "platforms", multiple=True, help="Zielplattform (mehrfach möglich)")
@click.option("--request-type", "-t", default="", help="Untertyp, z.B. kleine_anfrage")
@click.option("--file", "-f", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Datei als Anhang (mehrfach möglich)")
@click.option("--instructions", "-i", default="", help="Eigene Anweisungen")
@click.option("--locale", "-l", default=None, help="Locale, z.B. de-DE oder de-AT")
@click.option("--correct", "correction", default="", help="Plan korrigieren statt Rückfragen zu beantworten")
@click.option("--web-search", is_flag=True, help="Websuche aktivieren")
@click.option("--skip-questions", is_flag=True, help="Keine Rückfragen stellen")
@click.option("--no-input", is_flag=True, help="Rückfragen nicht interaktiv beantworten")
def run(content, generator, platforms, request_type, files, instructions, locale, correction,
        web_search, skip_questions, no_input):
    """Plan, clarify and write content for CONTENT.

    Example:
      planmode run "Neue Radwege in der Innenstadt" -p instagram
    """
    from workflow.callbacks import RichProgressCallback

    settings = Settings(questions_enabled=False) if skip_questions else Settings()
    workflow_input = WorkflowInput(
        content=content,
        generator_type=GeneratorType(generator),
        locale=locale or settings.default_locale,
        request_type=request_type,
        platforms=tuple(p.lower() for p in platforms),
        attachments=tuple(_load_attachment(f) for f in files),
        instructions=instructions,
        enable_web_search=web_search,
    )

    console.print(app_header())
    console.print()
    fields = {"Thema": content, "Generator": generator}
    if platforms:
        fields["Plattformen"] = ", ".join(platforms)
    if files:
        fields["Anhänge"] = ", ".join(f.name for f in files)
    console.print(command_panel("Neue Anfrage", fields))
    console.print()

    callback = RichProgressCallback(console=console)
    orchestrator = _build_orchestrator(settings, callback)

    callback.start()
    try:
        final_state = asyncio.run(_run(orchestrator, workflow_input, correction, interactive=not no_input))
    except KeyboardInterrupt:
        console.print("\n[warning]Abgebrochen[/]")
        sys.exit(130)
    finally:
        callback.stop()

    if not _print_result(final_state):
        sys.exit(1)


@cli.command(name="add-example")
@click.option("--platform", "-p", required=True, help="Plattform, z.B. instagram")
@click.option("--title", "-t", default="", help="Titel des Beispiels")
@click.option("--locale", "-l", default="de-DE", help="Locale des Beispiels")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def add_example(platform, title, locale, source):
    """Store the text in SOURCE as a stylistic example for PLATFORM."""
    from memory.chroma_store import ChromaStore

    settings = Settings()
    store = ChromaStore(settings.chroma_persist_dir)
    doc_id = store.add_example(platform, source.read_text(encoding="utf-8"), title=title or source.stem, locale=locale)
    console.print(success_panel("Beispiel gespeichert", f"  [stat.label]ID:[/] {doc_id}\n  [stat.label]Plattform:[/] {platform}"))


@cli.command(name="add-knowledge")
@click.option("--collection", "-c", default=None, help="Sammlung (Standard: erste Framing-Sammlung)")
@click.option("--source-name", "-s", default="", help="Quellenangabe")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def add_knowledge(collection, source_name, source):
    """Store the text in SOURCE as a framing snippet."""
    from memory.chroma_store import ChromaStore

    settings = Settings()
    collection = collection or settings.framing_collections[0]
    store = ChromaStore(settings.chroma_persist_dir)
    doc_id = store.add_knowledge(collection, source.read_text(encoding="utf-8"), source=source_name or source.name)
    console.print(success_panel("Wissen gespeichert", f"  [stat.label]ID:[/] {doc_id}\n  [stat.label]Sammlung:[/] {collection}"))


if __name__ == "__main__":
    cli()
