# Job orchestrator - drives one selected file through upload, polling and the final result

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple

from tcoder.core.errors import InvalidTransitionError, TcoderClientError, TcoderError, ValidationError
from tcoder.models.file import PreviewReference, SelectedFile
from tcoder.models.job import Job, JobOutput, JobStatus, Preset, UploadResult, VideoQuality
from tcoder.services.poller import DEFAULT_POLL_INTERVAL, StatusPoller
from tcoder.services.preview_service import PreviewManager

logger = logging.getLogger(__name__)

NOT_A_VIDEO_MESSAGE = "Please select a video file"
NO_QUALITY_MESSAGE = "Select at least one quality"


class JobClient(Protocol):
    """What the orchestrator needs from the upload / status adapter"""

    def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        preset: Preset = Preset.DEFAULT,
        qualities: Optional[List[VideoQuality]] = None,
    ) -> Awaitable[UploadResult]: ...

    def get_status(self, job_id: str) -> Awaitable[Job]: ...


class OrchestratorState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    UPLOADING = "uploading"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


BUSY_STATES = (OrchestratorState.UPLOADING, OrchestratorState.POLLING)
TERMINAL_STATES = (OrchestratorState.COMPLETED, OrchestratorState.FAILED)


@dataclass(frozen=True)
class RenderState:
    """Immutable snapshot of everything a view needs to draw the current job"""

    state: OrchestratorState
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    file_size: Optional[int] = None
    preview: Optional[PreviewReference] = None
    job: Optional[Job] = None
    display_status: Optional[JobStatus] = None
    error: Optional[str] = None
    preset: Preset = Preset.DEFAULT
    qualities: Optional[Tuple[VideoQuality, ...]] = None

    @property
    def job_id(self) -> Optional[str]:
        return self.job.job_id if self.job else None

    @property
    def outputs(self) -> List[JobOutput]:
        if self.state != OrchestratorState.COMPLETED or self.job is None:
            return []
        return list(self.job.outputs or [])

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


Listener = Callable[[RenderState], None]


class JobOrchestrator:
    """
    State machine over a single job slot:

        idle -> file_selected -> uploading -> polling -> completed | failed

    with reset() from any state back to idle. The orchestrator is the only
    owner of the preview reference and of the poller; every path that drops
    the selected file goes through PreviewManager.release() and every path
    that starts polling stops the previous run first.
    """

    def __init__(
        self,
        client: JobClient,
        preview_manager: Optional[PreviewManager] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        default_preset: Preset = Preset.DEFAULT,
        poller: Optional[StatusPoller] = None,
    ):
        self._client = client
        self._previews = preview_manager or PreviewManager()
        self._poller = poller or StatusPoller(client.get_status, interval=poll_interval)
        self._default_preset = Preset(default_preset)

        self._state = OrchestratorState.IDLE
        self._file: Optional[SelectedFile] = None
        self._job: Optional[Job] = None
        self._error: Optional[str] = None
        self._preset = self._default_preset
        self._qualities: Optional[List[VideoQuality]] = None

        # Bumped whenever the selected file is replaced or dropped; results
        # of work started under an older epoch are discarded.
        self._epoch = 0
        self._listeners: List[Listener] = []
        self._settled = asyncio.Event()
        self._settled.set()

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def poller(self) -> StatusPoller:
        return self._poller

    @property
    def previews(self) -> PreviewManager:
        return self._previews

    def snapshot(self) -> RenderState:
        display_status = None
        if self._state == OrchestratorState.UPLOADING:
            display_status = JobStatus.UPLOADING
        elif self._job is not None:
            display_status = self._job.status

        return RenderState(
            state=self._state,
            file_name=self._file.name if self._file else None,
            content_type=self._file.content_type if self._file else None,
            file_size=self._file.size if self._file else None,
            preview=self._previews.current,
            job=self._job,
            display_status=display_status,
            error=self._error,
            preset=self._preset,
            qualities=tuple(self._qualities) if self._qualities is not None else None,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a fresh RenderState after every change"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_until_settled(self) -> RenderState:
        """Wait while an upload or polling run is in progress"""
        await self._settled.wait()
        return self.snapshot()

    # -- selection and options ---------------------------------------------

    def select_file(self, file: SelectedFile) -> RenderState:
        """
        Select a local file for upload.

        A non-video file leaves the state untouched and surfaces a
        validation error; a video replaces any previous selection.
        """
        self._require(OrchestratorState.IDLE, OrchestratorState.FILE_SELECTED, event="select a file")

        if not file.is_video():
            logger.info("Rejected %s (%s): not a video", file.name, file.content_type)
            self._error = NOT_A_VIDEO_MESSAGE
            self._publish()
            raise ValidationError(NOT_A_VIDEO_MESSAGE)

        self._epoch += 1
        try:
            self._previews.acquire(file)
        except OSError as e:
            self._file = None
            self._error = f"Could not prepare preview: {e}"
            self._set_state(OrchestratorState.IDLE)
            raise TcoderError(self._error)

        self._file = file
        self._error = None
        logger.info("Selected %s (%s, %d bytes)", file.name, file.content_type, file.size)
        self._set_state(OrchestratorState.FILE_SELECTED)
        return self.snapshot()

    def cancel_selection(self) -> RenderState:
        """Drop the selected file before uploading it"""
        self._require(OrchestratorState.FILE_SELECTED, event="cancel the selection")
        return self.reset()

    def set_preset(self, preset: Preset) -> RenderState:
        self._require(OrchestratorState.IDLE, OrchestratorState.FILE_SELECTED, event="change the preset")
        self._preset = Preset(preset)
        self._publish()
        return self.snapshot()

    def set_qualities(self, qualities: Optional[List[VideoQuality]]) -> RenderState:
        """Choose output qualities; None lets the server pick its defaults"""
        self._require(OrchestratorState.IDLE, OrchestratorState.FILE_SELECTED, event="change the qualities")
        if qualities is None:
            self._qualities = None
        else:
            chosen = {VideoQuality(q) for q in qualities}
            self._qualities = [q for q in VideoQuality.ordered() if q in chosen]
        self._publish()
        return self.snapshot()

    def toggle_quality(self, quality: VideoQuality) -> RenderState:
        quality = VideoQuality(quality)
        current = list(self._qualities or [])
        if quality in current:
            current.remove(quality)
        else:
            current.append(quality)
        return self.set_qualities(current)

    # -- upload and polling ------------------------------------------------

    async def confirm_upload(self) -> RenderState:
        """
        Upload the selected file.

        On success polling starts; on failure the orchestrator returns to
        file_selected with the file and preview kept so the user can retry.
        """
        self._require(OrchestratorState.FILE_SELECTED, event="upload")

        if self._qualities is not None and not self._qualities:
            self._error = NO_QUALITY_MESSAGE
            self._publish()
            raise ValidationError(NO_QUALITY_MESSAGE)

        file = self._file
        epoch = self._epoch
        self._error = None
        self._set_state(OrchestratorState.UPLOADING)

        try:
            result = await self._client.upload(
                file.data,
                filename=file.name,
                content_type=file.content_type,
                preset=self._preset,
                qualities=list(self._qualities) if self._qualities else None,
            )
        except TcoderClientError as e:
            return self._upload_failed(epoch, e.message)
        except Exception as e:
            logger.exception("Unexpected error uploading %s", file.name)
            return self._upload_failed(epoch, f"Upload failed: {e}")

        if epoch != self._epoch or self._state != OrchestratorState.UPLOADING:
            logger.info("Discarding upload result for job %s: selection changed", result.job_id)
            return self.snapshot()

        self._job = Job(job_id=result.job_id, status=JobStatus.QUEUED, preset=self._preset)
        self._start_polling(result.job_id)
        self._set_state(OrchestratorState.POLLING)
        return self.snapshot()

    def _upload_failed(self, epoch: int, message: str) -> RenderState:
        if epoch != self._epoch or self._state != OrchestratorState.UPLOADING:
            return self.snapshot()
        logger.warning("Upload of %s failed: %s", self._file.name, message)
        self._error = message
        self._set_state(OrchestratorState.FILE_SELECTED)
        return self.snapshot()

    def _start_polling(self, job_id: str) -> None:
        # Only call site that starts the poller
        self._poller.stop()
        self._poller.start(job_id, on_status=self._on_status, on_error=self._on_poll_error)

    def _on_status(self, job: Job) -> None:
        current = self._job
        if self._state != OrchestratorState.POLLING or current is None:
            return
        if job.job_id != current.job_id:
            logger.debug("Ignoring status for superseded job %s", job.job_id)
            return
        if current.is_terminal:
            return

        self._job = job
        if job.status == JobStatus.COMPLETED:
            self._set_state(OrchestratorState.COMPLETED)
        elif job.status == JobStatus.FAILED:
            self._error = job.error or "Transcoding failed"
            self._set_state(OrchestratorState.FAILED)
        else:
            self._publish()

    def _on_poll_error(self, message: str) -> None:
        if self._state != OrchestratorState.POLLING:
            return
        if self._job is not None:
            self._job = self._job.model_copy(update={"status": JobStatus.FAILED, "error": message})
        self._error = message
        self._set_state(OrchestratorState.FAILED)

    # -- teardown ----------------------------------------------------------

    def reset(self) -> RenderState:
        """
        Return to idle from any state: stop polling, release the preview and
        forget the job. Also used for "upload another" and "try again".
        """
        self._epoch += 1
        self._poller.stop()
        self._previews.release()
        self._file = None
        self._job = None
        self._error = None
        self._preset = self._default_preset
        self._qualities = None
        logger.debug("Orchestrator reset")
        self._set_state(OrchestratorState.IDLE)
        return self.snapshot()

    async def aclose(self) -> None:
        """Tear down: same cleanup as reset(), then let the poll task unwind"""
        self._epoch += 1
        self._poller.stop()
        self._previews.release()
        self._settled.set()
        await self._poller.wait()

    async def __aenter__(self) -> "JobOrchestrator":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    # -- helpers -----------------------------------------------------------

    def _require(self, *states: OrchestratorState, event: str) -> None:
        if self._state not in states:
            raise InvalidTransitionError(event, self._state.value)

    def _set_state(self, state: OrchestratorState) -> None:
        if state != self._state:
            logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state
        if state in BUSY_STATES:
            self._settled.clear()
        else:
            self._settled.set()
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, snapshot.state.value)
