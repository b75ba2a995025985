from tcoder.models.file import PreviewReference, SelectedFile
from tcoder.models.job import Job, JobOutput, JobStatus, Preset, UploadResult, VideoQuality

__all__ = [
    "Job",
    "JobOutput",
    "JobStatus",
    "Preset",
    "PreviewReference",
    "SelectedFile",
    "UploadResult",
    "VideoQuality",
]
