"""
adapters.cli.render - Rich renderables for reports and history.

Pure presentation: takes domain objects, returns nothing but console output.
"""

from __future__ import annotations

from datetime import datetime
from urllib.parse import quote_plus

from rich import box
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from context_lens.domain.models import AnalysisResult, FullAnalysisResponse, HistoryItem


def shopping_url(query: str) -> str:
    return f"https://www.google.com/search?tbm=shop&q={quote_plus(query)}"


def web_search_url(object_name: str) -> str:
    return f"https://www.google.com/search?q={quote_plus(object_name + ' fix')}"


def format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {escape(str(s))}" for i, s in enumerate(items, 1)) or "[dim]none[/dim]"


def _plain(value) -> Text | None:
    """Model text as a literal cell, or None when blank."""
    return Text(str(value)) if value else None


def render_report(console: Console, response: FullAnalysisResponse) -> None:
    """Print a full diagnostic report, or the raw-text fallback."""
    data = response.data
    if data is None:
        console.print(Panel(
            Text(response.raw_text or "(empty response)"),
            title="Could not read a structured report, showing raw model output",
            border_style="yellow",
        ))
        _render_sources(console, response)
        return

    _render_header(console, data)

    if data.safety_warning:
        console.print(Panel(
            Text(str(data.safety_warning)),
            title="Safety Warning",
            border_style="bold red",
        ))

    console.print(Panel(_numbered(data.likely_causes), title="Likely Causes", border_style="blue"))
    console.print(Panel(_numbered(data.steps), title="Steps to Fix", border_style="green"))

    est = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    est.add_column("Field", style="bold")
    est.add_column("Value")
    est.add_row("Estimated cost", _plain(data.estimation.price_range) or "[dim]—[/dim]")
    est.add_row("Estimated time", _plain(data.estimation.time_estimate) or "[dim]—[/dim]")
    est.add_row("Currency", _plain(data.estimation.currency) or "[dim]—[/dim]")
    console.print(Panel(est, title="Estimate", border_style="magenta"))

    links = []
    if data.product_search_query:
        links.append(f"[bold]Find on Google Shopping:[/bold] {escape(shopping_url(data.product_search_query))}")
    links.append(f"[bold]Search the web:[/bold] {escape(web_search_url(str(data.object_name)))}")
    console.print(Panel("\n".join(links), title="Next Steps", border_style="cyan"))

    _render_sources(console, response)


def _render_header(console: Console, data: AnalysisResult) -> None:
    score = data.confidence_score or 0
    style = "green" if isinstance(score, (int, float)) and score > 80 else "yellow"
    header = Group(
        Text(str(data.object_name), style="bold"),
        Text(str(data.issue_detected)),
        Text(str(data.importance), style="dim"),
        Text(f"{score}% Confidence", style=f"bold {style}"),
    )
    console.print(Panel(header, title="Identification", border_style=style))


def _render_sources(console: Console, response: FullAnalysisResponse) -> None:
    if not response.grounding_sources:
        return
    lines = [f"• {escape(s.title or s.uri)}\n  [dim]{escape(s.uri)}[/dim]" for s in response.grounding_sources]
    console.print(Panel("\n".join(lines), title="Sources", border_style="dim"))


def render_history(console: Console, history: list[HistoryItem]) -> None:
    if not history:
        console.print("[dim]No past analyses.[/dim]")
        return
    t = Table(box=box.SIMPLE_HEAD, title="Scan History")
    t.add_column("#", justify="right")
    t.add_column("ID", style="dim")
    t.add_column("When")
    t.add_column("Object", style="bold")
    t.add_column("Note")
    for i, item in enumerate(history, 1):
        data = item.result.data
        t.add_row(
            str(i),
            item.id[:8],
            format_timestamp(item.timestamp),
            Text(str(data.object_name)) if data else "[yellow]unparsed[/yellow]",
            Text(item.note) if item.note else "[dim]—[/dim]",
        )
    console.print(t)
