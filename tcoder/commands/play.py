# Play command - open a transcoded output or a local preview in VLC/mpv

import asyncio
import os
import shutil
import subprocess
from typing import Optional

import typer
from rich.console import Console

from tcoder.commands import common
from tcoder.core.config import Settings
from tcoder.core.errors import TcoderClientError
from tcoder.models.job import JobStatus, VideoQuality

console = Console()

WINDOWS_VLC_PATHS = [
    "/mnt/c/Program Files/VideoLAN/VLC/vlc.exe",
    "/mnt/c/Program Files (x86)/VideoLAN/VLC/vlc.exe",
]


def find_player(player: Optional[str] = None) -> Optional[str]:
    """Return the player command to use, or None if nothing is installed"""
    if player:
        return player
    for candidate in ("vlc", "mpv", "cvlc"):
        if shutil.which(candidate):
            return candidate
    for path in WINDOWS_VLC_PATHS:
        if os.path.exists(path):
            return path
    return None


def launch_player(url: str, player: Optional[str] = None) -> bool:
    """
    Launch a media player on a URL without waiting for it.

    Returns False (after printing the URL for manual playback) when no
    player could be started.
    """
    player_cmd = find_player(player)
    if not player_cmd:
        console.print("[red]No media player found![/red]")
        console.print("[yellow]Install VLC or mpv, or specify with --player[/yellow]")
        console.print("\n[dim]Manual playback: Open this URL in your browser or player:[/dim]")
        console.print(f"[cyan]{url}[/cyan]")
        return False

    console.print(f"[green]Opening in {player_cmd}...[/green]")
    try:
        subprocess.Popen(
            [player_cmd, url],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        console.print(f"[red]Failed to launch player: {e}[/red]")
        console.print("\n[dim]Manual playback URL:[/dim]")
        console.print(f"[cyan]{url}[/cyan]")
        return False
    return True


def play_output(
    job_id: str,
    server_url: str,
    settings: Settings,
    quality: Optional[VideoQuality] = None,
    player: Optional[str] = None,
):
    """
    Stream a transcoded output of a completed job.

    Uses the CDN URL when the server reports one. Without a quality the
    highest available output is played.
    """
    try:
        job = asyncio.run(_fetch_job(job_id, server_url, settings))
    except TcoderClientError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)

    if job.status != JobStatus.COMPLETED:
        console.print(f"[yellow]Job {job_id} is {job.status.value}; no outputs to play yet[/yellow]")
        raise typer.Exit(1)

    if quality:
        output = job.output_for(quality)
        if output is None:
            available = ", ".join(o.quality.value for o in job.outputs or [])
            console.print(f"[yellow]Warning: {quality.value} output not available[/yellow]")
            console.print(f"[dim]Available qualities: {available or 'None'}[/dim]")
            raise typer.Exit(1)
    else:
        outputs = sorted(job.outputs or [], key=lambda o: VideoQuality.ordered().index(o.quality))
        if not outputs:
            console.print(f"[yellow]Job {job_id} completed without outputs[/yellow]")
            raise typer.Exit(1)
        output = outputs[-1]

    console.print(f"[blue]Streaming {output.quality.value} of job {job_id}...[/blue]")
    console.print(f"[dim]URL: {output.playback_url}[/dim]")
    if not launch_player(output.playback_url, player):
        raise typer.Exit(1)


async def _fetch_job(job_id: str, server_url: str, settings: Settings):
    async with common.build_client(server_url, settings) as client:
        return await client.get_status(job_id)
