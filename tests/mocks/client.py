"""Test doubles for the tcoder API client."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from tcoder.core.errors import UploadError
from tcoder.models.file import SelectedFile
from tcoder.models.job import Job, JobOutput, JobStatus, Preset, UploadResult, VideoQuality


def make_job(job_id: str = "abc", status: JobStatus = JobStatus.RUNNING, **fields: Any) -> Job:
    return Job(job_id=job_id, status=status, **fields)


def completed_job(job_id: str = "abc", outputs: list[JobOutput] | None = None) -> Job:
    if outputs is None:
        outputs = [JobOutput(quality=VideoQuality.Q360P, url="u1")]
    return Job(job_id=job_id, status=JobStatus.COMPLETED, outputs=outputs)


def video_file(name: str = "clip.mp4", content_type: str = "video/mp4") -> SelectedFile:
    return SelectedFile(name=name, content_type=content_type, data=b"\x00\x00\x00\x18ftypmp42")


class FakeJobClient:
    """
    Scripted stand-in for TcoderClient.

    Status responses are served in order; the last one repeats once the
    script runs out. Items may be Jobs or exceptions to raise. Gates let a
    test hold an upload or a status query open until it releases them.
    """

    def __init__(
        self,
        job_id: str = "abc",
        statuses: list[Job | Exception] | None = None,
        upload_error: Exception | None = None,
    ) -> None:
        self.job_id = job_id
        self.statuses: list[Job | Exception] = list(statuses or [make_job(job_id)])
        self.upload_error = upload_error
        self.upload_calls: list[dict[str, Any]] = []
        self.status_calls: list[str] = []
        self.upload_gate: asyncio.Event | None = None
        self.status_gate: asyncio.Event | None = None
        self.closed = False

    async def __aenter__(self) -> "FakeJobClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        self.closed = True

    async def ping(self) -> bool:
        return True

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        preset: Preset = Preset.DEFAULT,
        qualities: list[VideoQuality] | None = None,
    ) -> UploadResult:
        self.upload_calls.append(
            {
                "data": data,
                "filename": filename,
                "content_type": content_type,
                "preset": preset,
                "qualities": qualities,
            }
        )
        if self.upload_gate is not None:
            await self.upload_gate.wait()
        if self.upload_error is not None:
            raise self.upload_error
        return UploadResult(job_id=self.job_id)

    async def get_status(self, job_id: str) -> Job:
        self.status_calls.append(job_id)
        if self.status_gate is not None:
            await self.status_gate.wait()
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item


class FailingUploadClient(FakeJobClient):
    def __init__(self, message: str = "Upload failed: Server returned 500") -> None:
        super().__init__(upload_error=UploadError(message, status_code=500))


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until predicate() holds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
