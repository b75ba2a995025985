# Job model - status, preset and outputs of one transcoding request as reported by the server

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class JobStatus(str, Enum):
    UPLOADING = "uploading"
    QUEUED = "queued"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class Preset(str, Enum):
    DEFAULT = "default"
    WEB_OPTIMIZED = "web-optimized"
    HLS = "hls"
    HLS_ADAPTIVE = "hls-adaptive"


class VideoQuality(str, Enum):
    Q144P = "144p"
    Q360P = "360p"
    Q720P = "720p"

    @classmethod
    def ordered(cls) -> List["VideoQuality"]:
        return [cls.Q144P, cls.Q360P, cls.Q720P]


class _ApiModel(BaseModel):
    """Accepts the server's camelCase keys as well as snake_case"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class JobOutput(_ApiModel):
    quality: VideoQuality
    url: str
    cdn_url: Optional[str] = None

    @property
    def playback_url(self) -> str:
        """CDN URL when the server provides one, origin URL otherwise"""
        return self.cdn_url or self.url


class Job(_ApiModel):
    """
    One transcoding job as reported by GET /jobs/{jobId}.

    outputs are only present on completed jobs and error only on failed
    ones; records that break this are rejected.
    """

    job_id: str = Field(min_length=1)
    status: JobStatus
    preset: Preset = Preset.DEFAULT
    outputs: Optional[List[JobOutput]] = None
    error: Optional[str] = None
    machine_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_terminal_fields(self) -> "Job":
        if self.outputs is not None and self.status != JobStatus.COMPLETED:
            raise ValueError(f"outputs present on a job with status '{self.status.value}'")
        if self.error is not None and self.status != JobStatus.FAILED:
            raise ValueError(f"error present on a job with status '{self.status.value}'")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def output_for(self, quality: VideoQuality) -> Optional[JobOutput]:
        for output in self.outputs or []:
            if output.quality == quality:
                return output
        return None


class UploadResult(_ApiModel):
    """Response of POST /upload"""

    job_id: str = Field(min_length=1)
