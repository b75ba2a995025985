# Status command - show a job's transcoding status once or keep watching it

import asyncio
from typing import List, Optional, Tuple

import typer
from rich.console import Console

from tcoder.commands import common
from tcoder.commands.render import job_panel, outputs_table
from tcoder.core.config import Settings
from tcoder.core.errors import TcoderClientError
from tcoder.models.job import Job, JobStatus
from tcoder.services.poller import StatusPoller

console = Console()


def print_job(job: Job):
    if job.status == JobStatus.COMPLETED:
        console.print(f"[green]✅ Job {job.job_id} completed[/green]")
        console.print(outputs_table(job.outputs or []))
    elif job.status == JobStatus.FAILED:
        console.print(f"[red]❌ Job {job.job_id} failed:[/red] {job.error or 'Transcoding failed'}")
    else:
        console.print(job_panel(job))


def show_job_status(job_id: str, server_url: str, settings: Settings, watch: bool = False):
    """
    Get transcoding status for a job; exits 1 when the job failed

    Args:
        job_id: ID of the job to check
        server_url: tcoder server URL
        settings: Client settings (poll interval, timeouts)
        watch: If True, keep polling until the job completes or fails
    """
    if watch:
        console.print("[dim]Watching for updates... Press Ctrl+C to stop[/dim]\n")
        try:
            errors, last = asyncio.run(_watch(job_id, server_url, settings))
        except KeyboardInterrupt:
            console.print("\n[dim]Stopped watching[/dim]")
            return
        if errors:
            console.print(f"[red]❌ {errors[0]}[/red]")
            raise typer.Exit(1)
        if last is not None and last.status == JobStatus.FAILED:
            raise typer.Exit(1)
        return

    try:
        job = asyncio.run(_fetch(job_id, server_url, settings))
    except TcoderClientError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)
    print_job(job)
    if job.status == JobStatus.FAILED:
        raise typer.Exit(1)


async def _fetch(job_id: str, server_url: str, settings: Settings) -> Job:
    async with common.build_client(server_url, settings) as client:
        return await client.get_status(job_id)


async def _watch(job_id: str, server_url: str, settings: Settings) -> Tuple[List[str], Optional[Job]]:
    errors: List[str] = []
    seen: List[Job] = []

    def on_status(job: Job):
        seen.append(job)
        print_job(job)

    async with common.build_client(server_url, settings) as client:
        poller = StatusPoller(client.get_status, interval=settings.poll_interval)
        handle = poller.start(job_id, on_status=on_status, on_error=errors.append)
        try:
            await handle.wait()
        finally:
            poller.stop()
    return errors, (seen[-1] if seen else None)
