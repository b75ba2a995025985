# Status poller - query a job's status at a fixed delay until it reaches a terminal state

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from tcoder.core.errors import PollerStateError, TcoderClientError
from tcoder.models.job import Job

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0

StatusFetcher = Callable[[str], Awaitable[Job]]
StatusCallback = Callable[[Job], None]
ErrorCallback = Callable[[str], None]


class PollerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


class PollHandle:
    """Cancellable handle for one polling run over a single job"""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self._cancelled = False
        self._finished = False
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._finished)

    def cancel(self) -> None:
        """
        Stop polling. Safe to call at any time and more than once; once it
        returns no callback of this handle will run again.
        """
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the run has finished or been cancelled"""
        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class StatusPoller:
    """
    Polls one job at a time.

    The next query is scheduled `interval` seconds after the previous one
    completed, so queries never overlap and results arrive in issue order.
    """

    def __init__(self, fetch_status: StatusFetcher, interval: float = DEFAULT_POLL_INTERVAL):
        self._fetch_status = fetch_status
        self.interval = interval
        self._handle: Optional[PollHandle] = None
        self.queries_issued = 0

    @property
    def state(self) -> PollerState:
        if self._handle is None:
            return PollerState.IDLE
        return PollerState.ACTIVE if self._handle.active else PollerState.STOPPED

    @property
    def job_id(self) -> Optional[str]:
        return self._handle.job_id if self._handle else None

    def start(self, job_id: str, on_status: StatusCallback, on_error: ErrorCallback) -> PollHandle:
        """
        Begin polling a job; the first query is issued right away.

        Args:
            job_id: Job to poll
            on_status: Called with every status received
            on_error: Called once with a message if a query fails

        Returns:
            The handle controlling this run
        """
        if self._handle is not None and self._handle.active:
            raise PollerStateError(f"Already polling job {self._handle.job_id}; stop it first")

        handle = PollHandle(job_id)
        self._handle = handle
        handle._task = asyncio.get_running_loop().create_task(
            self._run(handle, on_status, on_error),
            name=f"poll-{job_id}",
        )
        logger.info("Started polling job %s every %.1fs", job_id, self.interval)
        return handle

    async def wait(self) -> None:
        """Wait for the current run, if any, to finish or unwind after stop()"""
        if self._handle is not None:
            await self._handle.wait()

    def stop(self) -> None:
        """Cancel the current run, including a pending delayed query"""
        if self._handle is not None and self._handle.active:
            logger.info("Stopped polling job %s", self._handle.job_id)
        if self._handle is not None:
            self._handle.cancel()

    async def _run(self, handle: PollHandle, on_status: StatusCallback, on_error: ErrorCallback) -> None:
        while True:
            self.queries_issued += 1
            try:
                job = await self._fetch_status(handle.job_id)
            except TcoderClientError as e:
                message = e.message
            except Exception as e:
                logger.exception("Unexpected error polling job %s", handle.job_id)
                message = f"Status query failed: {e}"
            else:
                message = None

            if handle.cancelled:
                return

            if message is not None:
                handle._finished = True
                logger.warning("Polling job %s failed: %s", handle.job_id, message)
                on_error(message)
                return

            if job.is_terminal:
                handle._finished = True
                logger.info("Job %s reached %s", handle.job_id, job.status.value)
            try:
                on_status(job)
            except Exception as e:
                logger.exception("Status callback failed for job %s", handle.job_id)
                if handle.cancelled:
                    return
                handle._finished = True
                on_error(f"Status handler failed: {e}")
                return
            if not handle.active:
                return

            await asyncio.sleep(self.interval)
            if handle.cancelled:
                return
