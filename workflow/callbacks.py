"""Workflow progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Protocol, runtime_checkable

from models.enums import Phase

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkflowCallback(Protocol):
    """Protocol for workflow progress callbacks.

    Implement this protocol to hook into the workflow execution lifecycle.
    """

    def on_node_exit(self, node: str, state: dict) -> None:
        """Called after a node finishes executing with the current accumulated state."""
        ...

    def on_error(self, node: str, error: str) -> None:
        """Called when a node reports an error."""
        ...

    def on_workflow_complete(self, final_state: dict) -> None:
        """Called when a run (start or resume) finishes."""
        ...


def _phase_name(state: dict) -> str:
    phase = state.get("current_phase")
    return phase.value if isinstance(phase, Phase) else str(phase or "")


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_node_exit(self, node: str, state: dict) -> None:
        logger.debug("← node: %s", node)

    def on_error(self, node: str, error: str) -> None:
        logger.error("Workflow error in '%s': %s", node, error)

    def on_workflow_complete(self, final_state: dict) -> None:
        logger.info(
            "Workflow run complete: phase=%s, ai_calls=%d",
            _phase_name(final_state),
            final_state.get("total_ai_calls", 0),
        )


class RichProgressCallback:
    """Progress callback that renders a Rich live progress display in the terminal."""

    _NODE_LABELS: dict[str, str] = {
        "enrich": "Hintergrundinformationen sammeln",
        "plan": "Strategischen Plan erstellen",
        "questions": "Rückfragen prüfen",
        "revision": "Plan überarbeiten",
        "correction": "Korrektur anwenden",
        "production": "Text erstellen",
        "handle_error": "Fehler behandeln",
    }

    # astream fires after each node completes, so show the step entering next
    _ENTERING_LABEL: dict[str, str] = {
        "enrich": "Strategischen Plan erstellen",
        "plan": "Rückfragen prüfen",
        "questions": "Text erstellen",
        "revision": "Text erstellen",
        "correction": "Text erstellen",
    }

    def __init__(self, console=None):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
        """
        self._console = console
        self._progress = None
        self._task_id = None

    def start(self):
        """Start the progress display. Call before running the workflow."""
        from rich.console import Console
        from rich.progress import Progress, SpinnerColumn, TextColumn

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("[dim]Starte...[/]", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_node_exit(self, node: str, state: dict) -> None:
        if not self._progress:
            return
        if node == "questions":
            questions = state.get("questions_data")
            if questions is not None and questions.needs_clarification and questions.questions:
                label = "Warte auf Antworten"
            else:
                label = self._ENTERING_LABEL[node]
        else:
            label = self._ENTERING_LABEL.get(node, self._NODE_LABELS.get(node, node))
        calls = state.get("total_ai_calls", 0)
        self._progress.update(self._task_id, description=f"[dim]{label}[/] [cyan]({calls} KI-Aufrufe)[/]")

    def on_error(self, node: str, error: str) -> None:
        if not self._progress:
            return
        self._progress.update(self._task_id, description=f"[red]Fehler ({node}): {error[:80]}[/]")

    def on_workflow_complete(self, final_state: dict) -> None:
        if not self._progress:
            return
        phase = final_state.get("current_phase")
        if phase == Phase.COMPLETED:
            description = "[bold green]Fertig![/]"
        elif phase == Phase.ERROR:
            description = "[bold red]Abgebrochen[/]"
        else:
            description = "[yellow]Rückfragen offen[/]"
        self._progress.update(self._task_id, description=description)
