"""Rich theme and render helpers for the planmode CLI."""

from typing import Optional

from rich import box
from rich.console import Console, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

PLANMODE_THEME = Theme({
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "question.id": "blue",
})


def get_console() -> Console:
    return Console(theme=PLANMODE_THEME)


def app_header(title: str = "planmode") -> Rule:
    return Rule(title=f"[bold]{title}[/]", style="dim")


def _panel(body: RenderableType, title: str, border: str = "dim", subtitle: Optional[str] = None) -> Panel:
    return Panel(body, title=title, subtitle=subtitle, box=box.ROUNDED, border_style=border, padding=(0, 2))


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Show the parameters of a request as a two-column grid.

    Args:
        title: Panel title (e.g. "Neue Anfrage").
        fields: Ordered label -> value pairs; empty values are left out.
    """
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="stat.label")
    grid.add_column(style="stat.value")
    for label, value in fields.items():
        if value:
            grid.add_row(f"{label}:", str(value))
    return _panel(grid, f"[bold]{title}[/]")


def success_panel(title: str, body: str) -> Panel:
    return _panel(body, f"[success]{title}[/]", border="green")


def error_panel(title: str, body: str) -> Panel:
    return _panel(body, f"[error]{title}[/]", border="red")


def markdown_panel(title: str, text: str, subtitle: str = "") -> Panel:
    """Render plans and final content as Markdown."""
    return _panel(Markdown(text), f"[bold]{title}[/]", subtitle=f"[muted]{subtitle}[/]" if subtitle else None)


def questions_table(questions: list) -> Table:
    """Return a Table listing clarification questions with their options."""
    table = Table(box=box.SIMPLE_HEAVY, show_lines=False, padding=(0, 1))
    table.add_column("#", style="question.id", no_wrap=True)
    table.add_column("Frage")
    table.add_column("Optionen", style="accent")

    for i, q in enumerate(questions, start=1):
        options = "\n".join(f"{n}) {opt}" for n, opt in enumerate(q.options, start=1))
        table.add_row(str(i), q.text, options or "[muted]freie Antwort[/]")
    return table


def stats_line(state: dict) -> str:
    """Return a one-line summary of phases, AI calls and timings."""
    phases = " → ".join(state.get("phases_executed", []))
    total_ms = sum(state.get("phase_timings", {}).values())
    return (
        f"[stat.label]Phasen:[/] {phases}  [muted]|[/]  "
        f"[stat.label]KI-Aufrufe:[/] [stat.value]{state.get('total_ai_calls', 0)}[/]  [muted]|[/]  "
        f"[stat.label]Dauer:[/] [stat.value]{total_ms / 1000:.1f}s[/]"
    )
