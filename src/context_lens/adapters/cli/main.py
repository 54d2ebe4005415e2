"""
adapters.cli.main - Terminal adapter for Context Lens.

Forwards user intents to the AppController and renders its state. Each
invocation starts the controller, which reloads the profile and history
from ~/.context-lens/ (or CONTEXT_LENS_HOME).

Commands
--------
  login          Create the local profile (display name + currency)
  logout         Forget the profile and its history
  whoami         Show the current profile
  analyze        Analyze an image, optionally with a note
  history        List past analyses (newest first)
  show           Re-open a past analysis
  delete         Remove one past analysis
  clear-history  Remove all past analyses, stay logged in

Usage
-----
  context-lens login --username Dana --currency EUR
  context-lens analyze photo.jpg --note "cracked screen"
  context-lens show 1
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from context_lens import __version__
from context_lens.adapters.cli.render import render_history, render_report
from context_lens.application.controller import AppController
from context_lens.application.state import LOADING_MESSAGES
from context_lens.domain.exceptions import InvalidSelectionError
from context_lens.domain.models import SUPPORTED_CURRENCIES, HistoryItem
from context_lens.factory import ServiceFactory
from context_lens.infrastructure.config import Settings

console = Console()
app = typer.Typer(
    help="Context Lens: photograph an object, get a diagnostic report.",
    add_completion=False,
    no_args_is_help=True,
)

_LOADING_INTERVAL = 2.0


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _make_controller(settings: Optional[Settings] = None) -> AppController:
    settings = settings or Settings.from_env()
    _setup_logging(settings.log_level)
    controller = ServiceFactory(settings).create_controller()
    controller.start()
    return controller


def _require_login(controller: AppController) -> None:
    if not controller.state.is_logged_in:
        console.print(
            "[bold red]Not logged in.[/bold red] Run [bold]login[/bold] first."
        )
        raise typer.Exit(code=1)


def _resolve_item(controller: AppController, ref: str) -> HistoryItem:
    """Find a history item by 1-based list position, full id, or id prefix."""
    history = controller.state.history
    if ref.isdigit() and 1 <= int(ref) <= len(history):
        return history[int(ref) - 1]
    matches = [h for h in history if h.id == ref] or [h for h in history if h.id.startswith(ref)]
    if len(matches) != 1:
        console.print(f"[bold red]No unique history item matches '{escape(ref)}'.[/bold red]")
        raise typer.Exit(code=1)
    return matches[0]


async def _run_with_status(controller: AppController):
    """Await the analysis while cycling the loading messages."""
    messages = itertools.cycle(LOADING_MESSAGES)
    with console.status(f"[bold cyan]{next(messages)}", spinner="dots") as status:
        task = asyncio.ensure_future(controller.submit_analysis())
        while not task.done():
            await asyncio.wait({task}, timeout=_LOADING_INTERVAL)
            if not task.done():
                status.update(f"[bold cyan]{next(messages)}")
        return task.result()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"context-lens v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Profile
# ---------------------------------------------------------------------------

@app.command()
def login(
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Display name."),
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="ISO currency code."),
) -> None:
    """Create the local profile."""
    settings = Settings.from_env()
    controller = _make_controller(settings)
    if username is None:
        username = Prompt.ask("[bold]Your name[/bold]")
    if currency is None:
        for code, label in SUPPORTED_CURRENCIES.items():
            console.print(f"  [bold]{code}[/bold]  {label}")
        currency = Prompt.ask(
            "[bold]Preferred currency[/bold]",
            default=settings.default_currency,
        )
    try:
        profile = controller.login(username, currency)
    except ValueError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)
    console.print(
        f"[bold green]Welcome, {escape(profile.username)}![/bold green] "
        f"Prices will be quoted in [bold]{profile.currency}[/bold]."
    )


@app.command()
def logout(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Forget the profile and its history."""
    controller = _make_controller()
    user = controller.state.user
    if user is None:
        console.print("[dim]Not currently logged in.[/dim]")
        return
    if yes or Confirm.ask(
        f"Sign out [bold]{escape(user.username)}[/bold]? This also deletes your history."
    ):
        controller.logout()
        console.print("[green]Logged out.[/green]")


@app.command()
def whoami() -> None:
    """Show the current profile."""
    controller = _make_controller()
    user = controller.state.user
    if user is None:
        console.print("[dim]Not logged in.[/dim]")
        return
    console.print(
        f"Logged in as [bold]{escape(user.username)}[/bold] "
        f"(currency {user.currency}, {len(controller.state.history)} saved analyses)"
    )


# ---------------------------------------------------------------------------
# Commands: Analysis
# ---------------------------------------------------------------------------

@app.command()
def analyze(
    image: str = typer.Argument(..., help="Path to a photo (PNG, JPG, WEBP; up to 10 MB)."),
    note: str = typer.Option("", "--note", "-n", help="What seems to be wrong?"),
) -> None:
    """Analyze an image and save the report to history."""
    controller = _make_controller()
    _require_login(controller)
    try:
        controller.select_file(image)
    except InvalidSelectionError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)
    controller.set_note(note)

    response = asyncio.run(_run_with_status(controller))
    if response is None:
        console.print(f"[bold red]{escape(controller.state.error or '')}[/bold red]")
        raise typer.Exit(code=1)
    render_report(console, response)


# ---------------------------------------------------------------------------
# Commands: History
# ---------------------------------------------------------------------------

@app.command()
def history() -> None:
    """List past analyses, newest first."""
    controller = _make_controller()
    _require_login(controller)
    render_history(console, controller.state.history)


@app.command()
def show(ref: str = typer.Argument(..., help="List position, id, or id prefix.")) -> None:
    """Re-open a past analysis."""
    controller = _make_controller()
    _require_login(controller)
    item = controller.select_history_item(_resolve_item(controller, ref))
    if item.note:
        console.print(f"[dim]Note:[/dim] {escape(item.note)}")
    render_report(console, controller.state.result)


@app.command()
def delete(ref: str = typer.Argument(..., help="List position, id, or id prefix.")) -> None:
    """Remove one past analysis."""
    controller = _make_controller()
    _require_login(controller)
    item = _resolve_item(controller, ref)
    remaining = controller.delete_history_item(item.id)
    console.print(f"[green]Deleted.[/green] {len(remaining)} analyses left.")


@app.command("clear-history")
def clear_history(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Remove all past analyses; the profile is kept."""
    controller = _make_controller()
    _require_login(controller)
    if yes or Confirm.ask("Delete all saved analyses?"):
        controller.clear_history()
        console.print("[green]History cleared.[/green]")


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Context Lens CLI"""


if __name__ == "__main__":
    app()
