"""Main CLI application using Typer."""
import asyncio
import sys

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..llm import BackendSettings, create_backend
from ..personas import available_modes, opening_line, resolve_persona
from ..session import (
    ConsoleInput,
    InputSourceFailure,
    SessionConfig,
    TherapySession,
    read_piped,
)
from .presenter import Presenter
from .providers import (
    configure_logging,
    get_backend_settings,
    get_default_model,
    get_default_provider,
)

# Load environment variables
load_dotenv()

EXAMPLES = """
Examples:

  $ therapy                     Start a CBT session with default provider

  $ therapy --mode trauma       Start a trauma-informed session

  $ therapy -m person -p openai Start a person-centered session with OpenAI

  $ echo "I can't sleep" | therapy   Ask a single question and exit
"""

# Create Typer app
app = typer.Typer(
    name="therapy",
    help="Interactive AI therapy session in your terminal",
    add_completion=False,
)

# Console for rich output
console = Console()


def _stdin_is_piped() -> bool:
    return not sys.stdin.isatty()


def _run_session(
    config: SessionConfig,
    piped: bool,
    settings: BackendSettings | None = None,
) -> None:
    """Run one session to completion, rendering its events."""
    if settings is None:
        settings = get_backend_settings(console)
    presenter = Presenter(console, verbose=config.verbose, interactive=not piped)

    async def _session():
        session = TherapySession(config, settings=settings, backend_factory=create_backend)
        try:
            if piped:
                events = session.run_piped(read_piped(sys.stdin))
            else:
                events = session.run(ConsoleInput(console))
            async for event in events:
                presenter.render(event)
        except (KeyboardInterrupt, asyncio.CancelledError):
            presenter.close()
            ended = session.interrupt()
            if ended:
                presenter.render(ended)
        finally:
            presenter.close()
            await session.close()

    asyncio.run(_session())


@app.callback(invoke_without_command=True, epilog=EXAMPLES)
def main_command(
    ctx: typer.Context,
    mode: str = typer.Option(
        "cbt",
        "--mode",
        "-m",
        help="Therapy mode (cbt, person, trauma)"
    ),
    provider: str | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="AI provider (openai, ollama) [default: $PROVIDER or ollama]"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        help="Specific model to use [default: $THERAPY_MODEL or provider default]"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed logs"
    ),
):
    """Start a therapy session.

    Reads one message from stdin and exits when input is piped, otherwise
    runs an interactive conversation. Type 'exit', 'quit', or 'bye' to leave.
    """
    if ctx.invoked_subcommand is not None:
        return

    configure_logging(verbose)
    settings = get_backend_settings(console)
    config = SessionConfig(
        mode=mode,
        provider=provider or get_default_provider(),
        model=model or get_default_model(),
        verbose=verbose,
    )

    console.print("🧠 [bold]AI Therapy Session[/bold]")
    console.print(
        f"[dim]Mode: {config.mode.upper()} | Provider: {config.provider.upper()}[/dim]\n"
    )

    try:
        _run_session(config, piped=_stdin_is_piped(), settings=settings)
    except InputSourceFailure as e:
        console.print(f"[red]Session error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def modes():
    """List the available therapy modes."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Mode", style="cyan", width=8)
    table.add_column("Opening line")

    for name in available_modes():
        table.add_row(name, opening_line(resolve_persona(name)))

    console.print(table)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
