import asyncio
import logging
from typing import List, Optional

import typer
from rich.console import Console

from tcoder.commands import common
from tcoder.commands.play import play_output
from tcoder.commands.render import presets_table, qualities_table
from tcoder.commands.status import show_job_status
from tcoder.commands.transcode import transcode_file
from tcoder.core.config import get_settings, resolve_server_url
from tcoder.core.errors import TcoderClientError
from tcoder.models.job import Preset, VideoQuality

# Creating the main Typer instance
app = typer.Typer(help="Tcoder CLI", no_args_is_help=True)
console = Console()


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _server_url(ctx: typer.Context) -> str:
    return ctx.obj["server_url"]


@app.callback()
def main(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(None, "--server", "-s", help="tcoder server URL (uses TCODER_SERVER_URL env var if not specified)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """
    Tcoder CLI: upload videos for transcoding and follow the jobs.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = {
        "settings": settings,
        "server_url": server.rstrip("/") if server else resolve_server_url(settings),
    }


@app.command()
def ping(ctx: typer.Context):
    """Connectivity check to the tcoder server."""
    server_url = _server_url(ctx)
    console.print("[yellow]📡 Contacting tcoder server...[/yellow]")

    async def _ping() -> bool:
        async with common.build_client(server_url, ctx.obj["settings"]) as client:
            return await client.ping()

    try:
        alive = asyncio.run(_ping())
    except TcoderClientError as e:
        console.print(f"[bold red]❌ Connection Failed:[/bold red] {e.message}")
        raise typer.Exit(1)

    if alive:
        console.print("[bold green]🏓 PONG![/bold green] Server is alive.")
    else:
        console.print("[yellow]⚠️ Server responded, but /health is not OK[/yellow]")
        raise typer.Exit(1)


@app.command()
def transcode(
    ctx: typer.Context,
    file_path: str = typer.Argument(..., help="Path to the video file to transcode"),
    preset: Optional[Preset] = typer.Option(None, "--preset", "-p", help="Transcoding preset"),
    qualities: Optional[List[VideoQuality]] = typer.Option(None, "--quality", "-q", help="Output quality; repeat for several (server default if omitted)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Upload without asking for confirmation"),
    preview: bool = typer.Option(False, "--preview", help="Open the local file in a media player before uploading"),
    play: Optional[VideoQuality] = typer.Option(None, "--play", help="Open this output quality in a media player when done"),
    player: Optional[str] = typer.Option(None, "--player", help="Media player to use (vlc, mpv)")
):
    """
    Upload a video and follow its transcoding job.

    Polls the job status until the outputs are ready or the job fails.
    """
    transcode_file(
        file_path,
        server_url=_server_url(ctx),
        settings=ctx.obj["settings"],
        preset=preset,
        qualities=qualities or None,
        yes=yes,
        preview=preview,
        play_quality=play,
        player=player,
    )


@app.command()
def status(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="ID of the job to check"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep polling until the job completes or fails")
):
    """
    Check the status of a transcoding job.
    """
    show_job_status(job_id, server_url=_server_url(ctx), settings=ctx.obj["settings"], watch=watch)


@app.command()
def presets():
    """
    List transcoding presets and supported output qualities.
    """
    console.print(presets_table())
    console.print(qualities_table())


@app.command()
def play(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="ID of a completed job"),
    quality: Optional[VideoQuality] = typer.Option(None, "--quality", "-q", help="Output quality to play (highest if omitted)"),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Media player to use (vlc, mpv)")
):
    """
    Stream a transcoded output to VLC or mpv.

    Uses the CDN URL when the server provides one.
    """
    play_output(job_id, server_url=_server_url(ctx), settings=ctx.obj["settings"], quality=quality, player=player)


if __name__ == "__main__":
    app()
