"""
DockDock - CLI Entry Point.

Usage:
    dockdock onboard         Run the onboarding wizard in the terminal
    dockdock serve           Start the onboarding API server
    dockdock health          Check configuration
    dockdock --help          Show help
"""

import asyncio
import logging

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

from onboarding import OnboardingError, Step, StepController
from onboarding.catalog import MULTI_SELECT_OPTIONS, SCALAR_OPTIONS
from onboarding.state import CATEGORY_STEPS

app = typer.Typer(
    name="dockdock",
    help="DockDock - reading preference onboarding.",
    add_completion=False,
)
console = Console()


@app.command()
def onboard(
    token: str = typer.Option(None, "--token", "-t", help="Backend access token (defaults to DOCKDOCK_API_TOKEN)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show wizard logs"),
) -> None:
    """Walk through the onboarding wizard and submit your preferences."""
    from dockdock.config import settings

    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    console.print(
        Panel.fit(
            "[bold green]Welcome to DockDock[/bold green]\n"
            "Tell us what you like to read and we'll build your reading profile.\n\n"
            "[dim]Type option numbers to toggle them.[/dim]\n"
            "[dim]'n' next, 'b' back, 'q' quit.[/dim]",
            title="Onboarding",
            border_style="green",
        )
    )

    try:
        asyncio.run(_run_wizard(token))
    except KeyboardInterrupt:
        console.print("\n\n[dim]Onboarding interrupted. Nothing was saved.[/dim]")


async def _run_wizard(token: str | None) -> None:
    from dockdock.client import CollaboratorError, create_client
    from dockdock.config import settings

    async with create_client(token) as client:
        try:
            if await client.fetch_onboarding_status():
                console.print("[yellow]You have already completed onboarding. Starting again.[/yellow]")
        except CollaboratorError as e:
            console.print(f"[dim]Could not check onboarding status: {e.message}[/dim]")

        controller = StepController(
            client,
            book_limit=settings.genre_book_limit,
            analyzing_delay=settings.analyzing_delay_seconds,
        )
        with Live(Spinner("dots", text="Loading genres..."), console=console, transient=True):
            await controller.start()

        while not controller.closed and not controller.state.completed:
            _render_step(controller)
            command = console.input("\n[bold blue]>[/bold blue] ").strip().lower()

            try:
                if command in ("q", "quit", "exit"):
                    controller.close()
                    console.print("\n[dim]Onboarding abandoned. Nothing was saved.[/dim]")
                    return
                if command in ("n", "next", ""):
                    await _go_next(controller)
                elif command in ("b", "back"):
                    if await controller.back() is None:
                        console.print("\n[dim]Left onboarding.[/dim]")
                        return
                elif command == "r" and controller.step == Step.GENRE:
                    await controller.load_genres(force=True)
                else:
                    _apply_selection(controller, command)
            except OnboardingError as e:
                console.print(f"[red]{e.message}[/red]")

        if controller.completion is not None:
            destination = controller.completion.destination.value
            console.print(f"\n[bold green]Preferences saved![/bold green] Next stop: {destination}")
            report = controller.outcome.report if controller.outcome else None
            if report is not None and report.id:
                console.print(f"[dim]Report id: {report.id}[/dim]")


async def _go_next(controller: StepController) -> None:
    if controller.step == Step.GENRE:
        with Live(Spinner("dots", text="Loading books..."), console=console, transient=True):
            await controller.next()
    elif controller.step == Step.THEME:
        with Live(Spinner("dots", text="Analyzing your taste..."), console=console, transient=True):
            await controller.next()
        if controller.state.error:
            console.print(f"[red]{controller.state.error}[/red]")
    else:
        await controller.next()


def _step_options(controller: StepController) -> list[tuple[str, str, str]]:
    """Numbered options for the current step as (category, id, label)."""
    state = controller.state
    step = controller.step
    if step == Step.GENRE:
        return [("genres", g.id, f"{g.icon} {g.display_name}".strip()) for g in state.genre_catalog]
    if step == Step.BOOKS:
        return [("books", b.id, f"{b.title} - {b.author}") for b in state.current_books()]

    categories = [c for c, owner in CATEGORY_STEPS.items() if owner == step and c not in ("genres", "books")]
    options = []
    for category in categories:
        source = MULTI_SELECT_OPTIONS.get(category) or SCALAR_OPTIONS[category]
        options.extend((category, o["id"], f"{o['icon']} {o['label']}") for o in source)
    return options


def _is_selected(controller: StepController, category: str, option_id: str) -> bool:
    value = getattr(controller.state, category if category != "books" else "selected_books")
    if hasattr(value, "contains"):
        return value.contains(option_id)
    return value.value == option_id


def _render_step(controller: StepController) -> None:
    state = controller.state
    title = state.step.value.title()
    if state.step == Step.BOOKS:
        title = f"Books for {state.current_genre()} ({state.cursor.position + 1}/{state.cursor.size()})"

    table = Table(title=f"{title}  [dim]{controller.progress:.0f}%[/dim]", show_header=False)
    table.add_column("#", style="dim", width=3)
    table.add_column("Option")
    table.add_column("Group", style="dim")
    for i, (category, option_id, label) in enumerate(_step_options(controller), start=1):
        mark = "[green]*[/green]" if _is_selected(controller, category, option_id) else " "
        table.add_row(str(i), f"{mark} {label}", category)
    console.print(table)

    if state.step == Step.PURPOSE and state.purposes.is_full():
        console.print("[dim]Maximum of 3 purposes selected.[/dim]")
    if state.step == Step.GENRE and not state.genre_catalog:
        console.print("[dim]No genres loaded. Type 'r' to retry.[/dim]")
    if state.error:
        console.print(f"[red]{state.error}[/red]")


def _apply_selection(controller: StepController, command: str) -> None:
    options = _step_options(controller)
    for token in command.replace(",", " ").split():
        if not token.isdigit() or not 1 <= int(token) <= len(options):
            console.print(f"[red]Unknown option: {token}[/red]")
            continue
        category, option_id, _ = options[int(token) - 1]
        if category in ("preferred_length", "reading_pace", "preferred_difficulty"):
            current = getattr(controller.state, category).value
            controller.choose(category, None if current == option_id else option_id)
        else:
            controller.toggle(category, option_id)


@app.command()
def health() -> None:
    """Check configuration and backend reachability."""
    from dockdock.config import get_settings

    console.print("\n[bold]DockDock Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.dockdock_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.dockdock_api_base_url.startswith(("http://", "https://")):
            console.print(f"[green]OK[/green] Backend URL: {settings.dockdock_api_base_url}")
        else:
            console.print("[red]FAIL[/red] Backend URL missing or invalid")
            raise typer.Exit(1)

        if settings.dockdock_api_token:
            console.print("[green]OK[/green] API token configured")
        else:
            console.print("[dim]INFO[/dim] No API token; 'onboard' needs --token")

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from dockdock import __version__

    console.print(f"DockDock version {__version__}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the onboarding API server."""
    import os

    import uvicorn

    # Hosting platforms set PORT
    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]DockDock Onboarding API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "dockdock.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
