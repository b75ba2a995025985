# Transcode command - select a video, confirm, upload it and follow the job to its result

import asyncio
import os
from typing import List, Optional, Tuple

import typer
from rich.console import Console

from tcoder.commands import common
from tcoder.commands.play import launch_player
from tcoder.commands.render import render_state
from tcoder.core.config import Settings
from tcoder.core.errors import TcoderError, ValidationError
from tcoder.models.file import SelectedFile
from tcoder.models.job import Preset, VideoQuality
from tcoder.services.orchestrator import JobOrchestrator, OrchestratorState, RenderState
from tcoder.services.preview_service import PreviewManager

console = Console()


class StatePrinter:
    """Listener that prints a snapshot only when something visible changed"""

    def __init__(self):
        self._last: Optional[Tuple] = None

    def __call__(self, state: RenderState):
        key = (state.state, state.display_status, state.error, state.job_id)
        if key == self._last:
            return
        self._last = key
        render_state(state)


def transcode_file(
    file_path: str,
    server_url: str,
    settings: Settings,
    preset: Optional[Preset] = None,
    qualities: Optional[List[VideoQuality]] = None,
    yes: bool = False,
    preview: bool = False,
    play_quality: Optional[VideoQuality] = None,
    player: Optional[str] = None,
):
    """
    Upload a video to tcoder and wait for the transcoded outputs.

    Args:
        file_path: Path to the local video file
        server_url: tcoder server URL
        settings: Client settings (poll interval, timeouts, preview dir)
        preset: Transcoding preset; settings.default_preset when None
        qualities: Output qualities; server default when None
        yes: Upload without asking for confirmation
        preview: Open the local file in a media player before confirming
        play_quality: Open this output in a media player once completed
        player: Media player command (vlc, mpv)
    """
    # Validate file exists
    if not os.path.exists(file_path):
        console.print(f"[red]❌ File not found: {file_path}[/red]")
        raise typer.Exit(1)

    # Check if it's a file (not directory)
    if not os.path.isfile(file_path):
        console.print(f"[red]❌ Path is not a file: {file_path}[/red]")
        raise typer.Exit(1)

    try:
        selected = SelectedFile.from_path(file_path)
    except OSError as e:
        console.print(f"[red]❌ Cannot read {file_path}: {e}[/red]")
        raise typer.Exit(1)

    try:
        final = asyncio.run(
            _run_job(selected, server_url, settings, preset, qualities, yes, preview, player)
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️ Interrupted, job no longer followed[/yellow]")
        raise typer.Exit(1)

    if final.state == OrchestratorState.COMPLETED:
        if play_quality:
            output = final.job.output_for(play_quality)
            if output is None:
                console.print(f"[yellow]Warning: {play_quality.value} output not available[/yellow]")
            else:
                launch_player(output.playback_url, player)
        return

    if final.state == OrchestratorState.IDLE and not final.error:
        console.print("[yellow]Upload cancelled.[/yellow]")
        return

    raise typer.Exit(1)


async def _run_job(
    selected: SelectedFile,
    server_url: str,
    settings: Settings,
    preset: Optional[Preset],
    qualities: Optional[List[VideoQuality]],
    yes: bool,
    preview: bool,
    player: Optional[str],
) -> RenderState:
    async with common.build_client(server_url, settings) as client:
        orchestrator = JobOrchestrator(
            client,
            preview_manager=PreviewManager(settings.preview_dir),
            poll_interval=settings.poll_interval,
            default_preset=Preset(settings.default_preset),
        )
        async with orchestrator:
            if preset is not None:
                orchestrator.set_preset(preset)
            if qualities:
                orchestrator.set_qualities(qualities)
            orchestrator.subscribe(StatePrinter())

            try:
                state = orchestrator.select_file(selected)
            except TcoderError:
                # Not a video, or the preview could not be written; already printed
                return orchestrator.snapshot()

            if preview and state.preview:
                launch_player(state.preview.uri, player)

            # typer.confirm blocks the event loop; only safe while no poll task runs
            while True:
                if not yes and not typer.confirm(
                    f"Upload {selected.name} with preset '{state.preset.value}'?", default=True
                ):
                    return orchestrator.cancel_selection()

                try:
                    state = await orchestrator.confirm_upload()
                except ValidationError:
                    return orchestrator.snapshot()

                if state.state != OrchestratorState.FILE_SELECTED:
                    break
                # Upload failed; the file and its preview are still selected
                if yes or not typer.confirm("Try again?", default=False):
                    return state

            return await orchestrator.wait_until_settled()
