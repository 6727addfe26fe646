"""CLI commands for LearnBook.

Commands:
- serve: run the Web API with uvicorn
- init-db: create the SQLite schema
- status: show which AI providers and integrations are configured
- ask: send one prompt through the provider fallback chain
- curriculum: look up subjects, chapters or topics
"""

from pathlib import Path

import typer
from rich.console import Console

from learnbook.config import load_app_config
from learnbook.core.curriculum import CurriculumError, CurriculumRequest, lookup_curriculum
from learnbook.db.database import init_db as do_init_db
from learnbook.integrations import youtube
from learnbook.llm.client import LLMError, LLMRateLimitError, get_ai_client

app = typer.Typer(
    name="learnbook",
    help="AI study planning backend: curricula, notes, videos and schedules.",
    no_args_is_help=True,
)

console = Console()


def _truncate(text: str, max_len: int = 120) -> str:
    text = " ".join(str(text).split())
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    console.print(f"[blue]LearnBook API on http://{host}:{port}[/blue]")
    uvicorn.run("learnbook.web.api:app", host=host, port=port, reload=reload)


@app.command(name="init-db")
def init_db(
    db_path: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Create the database schema."""
    path = Path(db_path or load_app_config().paths["db_path"])
    do_init_db(path)
    console.print(f"[green]✓ Database ready[/green] [dim]{path}[/dim]")


@app.command()
def status() -> None:
    """Show configured providers and integrations."""
    from rich.table import Table

    config = load_app_config()
    providers = get_ai_client().status()
    api_key, engine_id = config.search.get_credentials()
    client_id, client_secret = config.oauth.get_client()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Component", style="cyan")
    table.add_column("Detail")
    table.add_column("Configured", justify="center")

    def mark(ok: bool) -> str:
        return "[green]✓[/green]" if ok else "[red]✗[/red]"

    for role in ("primary", "fallback"):
        info = providers[role]
        table.add_row(f"AI {role}", f"{info['name']} ({info['model']})", mark(info["configured"]))
    table.add_row("Web search", "Google Custom Search", mark(bool(api_key and engine_id)))
    table.add_row("Videos", "YouTube Data API v3", mark(youtube.is_configured()))
    table.add_row("Google export", "OAuth token refresh", mark(bool(client_id and client_secret)))

    console.print(table)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt text"),
    fast: bool = typer.Option(False, "--fast", help="Smaller token budget"),
) -> None:
    """Send a prompt through the provider chain and print the reply."""
    try:
        reply = get_ai_client().generate(prompt, fast=fast)
    except LLMRateLimitError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(code=2)
    except LLMError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(reply)


@app.command()
def curriculum(
    search_type: str = typer.Argument(..., help="subjects, chapters or topics"),
    board: str = typer.Option(..., "--board", "-b", help="Board or university, e.g. CBSE"),
    grade: str = typer.Option(..., "--grade", "-g", help="Class or year, e.g. 'Class 10'"),
    subject: str | None = typer.Option(None, "--subject", "-s", help="Subject name"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Chapter (for topics)"),
    country: str = typer.Option("India", "--country"),
    level: str = typer.Option("school", "--level", help="school or college"),
    program: str | None = typer.Option(None, "--program", help="Course/program (college)"),
) -> None:
    """Look up subjects, chapters or topics for a board and grade."""
    request = CurriculumRequest(
        search_type=search_type,
        board=board,
        class_grade=grade,
        country=country,
        education_level=level,
        subject=subject,
        course_program=program,
        chapter_name=chapter,
    )

    try:
        result = lookup_curriculum(request)
    except CurriculumError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    except LLMError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if result.is_fallback:
        console.print("[yellow]⚠ Could not parse the model reply; showing defaults[/yellow]")

    for i, item in enumerate(result.data, start=1):
        name = item.get("name", "?") if isinstance(item, dict) else str(item)
        description = item.get("description", "") if isinstance(item, dict) else ""
        console.print(f"  [cyan]{i:>2}.[/cyan] {name}")
        if description:
            console.print(f"      [dim]{_truncate(description)}[/dim]")

    console.print(f"\n[dim]source: {result.source}[/dim]")


if __name__ == "__main__":
    app()
