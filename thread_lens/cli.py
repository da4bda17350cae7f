import asyncio
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from thread_lens.config import settings
from thread_lens.errors import ThreadLensError
from thread_lens.models import Thread
from thread_lens.platforms.x.source import XSource
from thread_lens.service import ThreadLensService
from thread_lens.utils.log import configure_logging

app = typer.Typer(help="Fetch X posts and rebuild self-reply threads.")
console = Console()


def _service(max_posts: int) -> ThreadLensService:
    return ThreadLensService(
        XSource(settings.camofox_url, settings.nitter_instance),
        max_posts=max_posts,
    )


def _print_thread(index: int, thread: Thread) -> None:
    body = "\n\n".join(f"[dim]{p.time_ago or p.id}[/] {escape(p.text)}" for p in thread)
    console.print(Panel(body, title=f"Thread {index} · {len(thread)} posts", title_align="left"))


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    start_browser: bool = typer.Option(False, "--start-browser", help="Start the camofox-browser container first"),
):
    """Run the HTTP API."""
    import uvicorn

    from thread_lens.api.server import create_app
    from thread_lens.utils.docker import ensure_camofox_running, stop_camofox_if_started

    configure_logging(settings.is_production)
    if start_browser:
        ensure_camofox_running(settings.camofox_port)
    try:
        uvicorn.run(create_app(), host=host, port=port, log_config=None)
    finally:
        stop_camofox_if_started()


@app.command()
def threads(
    username: str = typer.Argument(help="X username, with or without @"),
    max_posts: int = typer.Option(settings.max_posts, "--max-posts", "-n", help="Posts to scan for threads"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
):
    """Print the threads a user started and ended."""
    configure_logging(settings.is_production, logging.DEBUG if debug else logging.WARNING)
    username = username.lstrip("@")

    with console.status(f"[bold green]Fetching posts for @{username}..."):
        try:
            result = asyncio.run(_service(max_posts).get_cached_or_fetch("threads", username))
        except ThreadLensError as exc:
            console.print(f"[bold red]Error:[/] {exc}")
            if exc.fix:
                console.print(f"[dim]{exc.fix}[/]")
            raise typer.Exit(1)

    if not result.data:
        console.print(f"[yellow]No threads found for @{username}[/]")
        return
    for i, thread in enumerate(result.data, 1):
        _print_thread(i, thread)


@app.command()
def profile(username: str = typer.Argument(help="X username, with or without @")):
    """Print a user's profile."""
    configure_logging(settings.is_production, logging.WARNING)
    username = username.lstrip("@")

    with console.status("[bold green]Fetching profile from Nitter..."):
        try:
            result = asyncio.run(_service(settings.max_posts).get_cached_or_fetch("profile", username))
        except ThreadLensError as exc:
            console.print(f"[bold red]Error:[/] {exc}")
            if exc.fix:
                console.print(f"[dim]{exc.fix}[/]")
            raise typer.Exit(1)

    table = Table(show_header=False)
    for field, value in result.data.model_dump().items():
        table.add_row(field, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
