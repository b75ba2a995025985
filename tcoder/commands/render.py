# Rendering helpers - draw orchestrator state, job outputs and catalogs with rich

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tcoder.core.presets import PRESET_INFO, QUALITY_PRESETS, describe_preset, describe_quality, describe_status
from tcoder.models.job import Job, JobOutput, JobStatus
from tcoder.services.orchestrator import OrchestratorState, RenderState

console = Console()


def status_style(status: Optional[JobStatus]) -> str:
    """Rich markup for a job status"""
    if status is None:
        return "[dim]-[/dim]"
    if status == JobStatus.COMPLETED:
        return "[green]completed[/green]"
    if status == JobStatus.RUNNING:
        return "[yellow]running[/yellow]"
    if status in (JobStatus.PENDING, JobStatus.QUEUED):
        return f"[blue]{status.value}[/blue]"
    if status == JobStatus.UPLOADING:
        return "[cyan]uploading[/cyan]"
    if status == JobStatus.FAILED:
        return "[red]failed[/red]"
    return f"[dim]{status.value}[/dim]"


def format_size(size_bytes: Optional[int]) -> str:
    """Format bytes to human readable size"""
    if size_bytes is None:
        return "-"
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def job_panel(job: Job, display_status: Optional[JobStatus] = None) -> Panel:
    """Status indicator, description, preset and worker of an in-flight job"""
    status = display_status or job.status
    label, description = describe_status(status)

    lines = [
        f"[bold]{label}[/bold]",
        f"[dim]{description}[/dim]",
        "",
        f"Preset: {job.preset.value} [dim]({describe_preset(job.preset)})[/dim]",
    ]
    if job.machine_id:
        lines.append(f"Worker: {job.machine_id}")
    return Panel("\n".join(lines), title=f"Job {job.job_id}", subtitle=status_style(status))


def outputs_table(outputs: List[JobOutput]) -> Table:
    table = Table(title="Outputs")
    table.add_column("Quality", style="magenta", no_wrap=True)
    table.add_column("Resolution", style="dim")
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("CDN URL", style="green", overflow="fold")

    for output in outputs:
        table.add_row(
            output.quality.value,
            describe_quality(output.quality),
            output.url,
            output.cdn_url or "-",
        )
    return table


def render_state(state: RenderState) -> None:
    """Print one orchestrator snapshot"""
    if state.state == OrchestratorState.IDLE:
        if state.error:
            console.print(f"[red]❌ {state.error}[/red]")
        return

    if state.state == OrchestratorState.FILE_SELECTED:
        if state.error:
            console.print(f"[red]❌ {state.error}[/red]")
        else:
            console.print(f"[blue]🎬 Selected:[/blue] {state.file_name} ({state.content_type}, {format_size(state.file_size)})")
            if state.preview:
                console.print(f"[dim]Preview: {state.preview.uri}[/dim]")
        return

    if state.state == OrchestratorState.UPLOADING:
        label, description = describe_status(JobStatus.UPLOADING)
        console.print(f"[cyan]📤 {label}[/cyan] [dim]{description}[/dim]")
        return

    if state.state == OrchestratorState.POLLING and state.job:
        console.print(job_panel(state.job, state.display_status))
        return

    if state.state == OrchestratorState.COMPLETED and state.job:
        console.print(f"[green]✅ Transcoding completed![/green] [dim]{state.job.job_id}[/dim]")
        console.print(outputs_table(state.outputs))
        return

    if state.state == OrchestratorState.FAILED:
        job_id = f" [dim]{state.job_id}[/dim]" if state.job_id else ""
        console.print(f"[red]❌ Transcoding failed:[/red] {state.error}{job_id}")


def presets_table() -> Table:
    table = Table(title="Presets")
    table.add_column("Preset", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for preset, (name, description) in PRESET_INFO.items():
        table.add_row(preset.value, name, description)
    return table


def qualities_table() -> Table:
    table = Table(title="Supported Qualities")
    table.add_column("Quality", style="magenta", no_wrap=True)
    table.add_column("Resolution")
    table.add_column("Video", justify="right")
    table.add_column("Audio", justify="right")
    for quality, preset in QUALITY_PRESETS.items():
        table.add_row(
            quality.value,
            f"{preset['width']}x{preset['height']}",
            preset["video_bitrate"],
            preset["audio_bitrate"],
        )
    return table
