#!/usr/bin/env python3
"""Command-line interface for mediagrab.

Thin wrapper around the server and the core pipeline:
- ``serve`` runs the HTTP API under uvicorn
- ``info`` prints a video's details and streams
- ``download`` runs one job in-process with a live status line
"""

import asyncio
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from mediagrab import __version__
from mediagrab.config import get_config
from mediagrab.core.jobs import JobState, JobStatus
from mediagrab.core.metadata import MetadataLookupError, lookup_metadata
from mediagrab.core.pipeline import DownloadPipeline, DownloadRequest, MediaType
from mediagrab.logging import setup_logging
from mediagrab.utils import format_duration, format_size

console = Console()

POLL_INTERVAL = 0.5


@click.group()
@click.version_option(__version__, prog_name="mediagrab")
def main() -> None:
    """Fetch online video and audio as tracked download jobs."""
    setup_logging()


@main.command()
@click.option("--host", default=None, help="Host to bind to (default: from config)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: from config)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the mediagrab API server.

    Examples:
        mediagrab serve
        mediagrab serve --host 0.0.0.0 --port 8080
    """
    import uvicorn

    config = get_config()
    host = host or config.host
    port = port or config.port

    console.print(f"[green]Starting mediagrab server on {host}:{port}...[/green]")
    console.print(f"[dim]API docs available at: http://{host}:{port}/docs[/dim]")

    # One worker: jobs live in process memory
    uvicorn.run(
        "mediagrab.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@main.command()
@click.argument("url")
def info(url: str) -> None:
    """Show a video's details and available streams."""
    config = get_config()
    pipeline = DownloadPipeline.from_config(config)

    try:
        details = asyncio.run(
            lookup_metadata(pipeline.source, url, config.description_chars)
        )
    except MetadataLookupError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[bold]{details['title']}[/bold]")
    console.print(
        f"[dim]{details['uploader'] or 'Unknown'} · "
        f"{format_duration(details['duration'])} · "
        f"{details['view_count']:,} views[/dim]"
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Stream")
    table.add_column("Quality")
    table.add_column("Height", justify="right")
    table.add_column("Audio kbps", justify="right")
    table.add_column("Content")
    for fmt in details["formats"]:
        content = " + ".join(
            kind
            for kind, present in (("video", fmt["hasVideo"]), ("audio", fmt["hasAudio"]))
            if present
        )
        table.add_row(
            fmt["streamId"],
            fmt["qualityLabel"] or "-",
            str(fmt["height"] or "-"),
            str(fmt["audioBitrate"] or "-"),
            content or "-",
        )
    console.print(table)


async def _run_download(pipeline: DownloadPipeline, request: DownloadRequest) -> JobState:
    job_id = pipeline.submit(request)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting...", total=None)
        while True:
            state = pipeline.store.get(job_id)
            assert state is not None
            progress.update(task, description=state.message)
            if state.status.is_terminal:
                return state
            await asyncio.sleep(POLL_INTERVAL)


@main.command()
@click.argument("url")
@click.option(
    "--type",
    "media_type",
    type=click.Choice([m.value for m in MediaType]),
    default=MediaType.VIDEO.value,
    show_default=True,
    help="Produce an MP3 (audio) or an MP4 (video)",
)
@click.option(
    "--quality",
    default="best",
    show_default=True,
    help="best, worst, an audio bitrate ceiling, or a stream ID",
)
@click.option("--folder", default="", help="Subfolder of the download root")
def download(url: str, media_type: str, quality: str, folder: str) -> None:
    """Download a video or its audio track."""
    pipeline = DownloadPipeline.from_config(get_config())

    async def run() -> JobState:
        title = await pipeline.resolve_title(url)
        request = DownloadRequest(
            url=url,
            media_type=MediaType(media_type),
            quality=quality,
            folder=folder,
            title=title,
        )
        return await _run_download(pipeline, request)

    state = asyncio.run(run())
    if state.status == JobStatus.ERROR:
        console.print(f"[red]Error:[/red] {state.message}")
        raise SystemExit(1)

    path = pipeline.output_dir(folder) / state.output_file
    console.print(
        f"[green]✓[/green] {state.message} [bold]{path}[/bold] "
        f"[dim]({format_size(path.stat().st_size)})[/dim]"
    )


if __name__ == "__main__":
    main()
