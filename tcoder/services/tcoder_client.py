# Tcoder API client - upload a video to the transcoding server and query job status

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from tcoder.core.errors import StatusQueryError, TcoderClientError, UploadError
from tcoder.models.job import Job, Preset, UploadResult, VideoQuality

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    """Pull a human readable message out of an error response"""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            if data.get(key):
                return str(data[key])
    return f"Server returned {response.status_code}"


class TcoderClient:
    """
    Async HTTP client for the tcoder job API.

    The underlying httpx.AsyncClient lives as long as this object; pass one
    in (e.g. with a MockTransport) or let the client create its own.
    """

    def __init__(
        self,
        base_url: str,
        request_timeout: float = 30.0,
        upload_timeout: float = 600.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.upload_timeout = upload_timeout
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(request_timeout, connect=30.0))

    async def __aenter__(self) -> "TcoderClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def ping(self) -> bool:
        """Return True when GET /health answers 200"""
        try:
            response = await self._http.get(f"{self.base_url}/health", timeout=5.0)
        except httpx.HTTPError as e:
            raise TcoderClientError(f"Cannot connect to server at {self.base_url}: {e}")
        return response.status_code == 200

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        preset: Preset = Preset.DEFAULT,
        qualities: Optional[List[VideoQuality]] = None,
    ) -> UploadResult:
        """
        Upload a video and create a transcoding job.

        Args:
            data: Raw file bytes
            filename: Original filename
            content_type: MIME type, already validated by the caller
            preset: Transcoding preset for the job
            qualities: Requested output qualities; server default when None

        Returns:
            UploadResult carrying the server-assigned job id
        """
        form = {
            "filename": filename,
            "contentType": content_type,
            "preset": Preset(preset).value,
        }
        if qualities:
            form["qualities"] = ",".join(VideoQuality(q).value for q in qualities)

        logger.info("Uploading %s (%d bytes, %s, preset=%s)", filename, len(data), content_type, form["preset"])

        try:
            response = await self._http.post(
                f"{self.base_url}/upload",
                files={"file": (filename, data, content_type)},
                data=form,
                timeout=httpx.Timeout(self.upload_timeout, connect=30.0),
            )
        except httpx.TimeoutException:
            raise UploadError("Upload timeout")
        except httpx.HTTPError as e:
            raise UploadError(f"Upload failed: cannot connect to server at {self.base_url} ({e})")

        if response.status_code not in (200, 201, 202):
            raise UploadError(f"Upload failed: {_error_detail(response)}", status_code=response.status_code)

        try:
            result = UploadResult.model_validate(response.json())
        except (ValueError, PydanticValidationError):
            raise UploadError("Upload failed: server returned invalid response")

        logger.info("Upload accepted, job %s", result.job_id)
        return result

    async def get_status(self, job_id: str) -> Job:
        """
        Fetch the current status record of a job.

        Args:
            job_id: Identifier returned by upload()

        Returns:
            The Job as reported by the server
        """
        try:
            response = await self._http.get(f"{self.base_url}/jobs/{job_id}")
        except httpx.TimeoutException:
            raise StatusQueryError("Status request timed out")
        except httpx.HTTPError as e:
            raise StatusQueryError(f"Cannot connect to server at {self.base_url} ({e})")

        if response.status_code == 404:
            raise StatusQueryError(f"Job {job_id} not found", status_code=404)
        if response.status_code != 200:
            raise StatusQueryError(f"Status query failed: {_error_detail(response)}", status_code=response.status_code)

        try:
            data = response.json()
            # Status records may omit the id the caller already knows
            if isinstance(data, dict):
                data.setdefault("jobId", job_id)
            job = Job.model_validate(data)
        except (ValueError, PydanticValidationError) as e:
            raise StatusQueryError(f"Server returned invalid job status: {e}")

        logger.debug("Job %s status: %s", job.job_id, job.status.value)
        return job
