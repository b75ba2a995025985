# Display catalogs: transcoding presets, output qualities and job status labels

from typing import Dict, Tuple

from tcoder.models.job import JobStatus, Preset, VideoQuality

# Quality presets: quality -> (width, height, video_bitrate, audio_bitrate)
# Display only; the server decides the actual encoding settings.
QUALITY_PRESETS = {
    VideoQuality.Q144P: {"width": 256, "height": 144, "video_bitrate": "100k", "audio_bitrate": "64k"},
    VideoQuality.Q360P: {"width": 640, "height": 360, "video_bitrate": "400k", "audio_bitrate": "96k"},
    VideoQuality.Q720P: {"width": 1280, "height": 720, "video_bitrate": "1500k", "audio_bitrate": "128k"},
}

PRESET_INFO: Dict[Preset, Tuple[str, str]] = {
    Preset.DEFAULT: ("Default", "Standard quality outputs"),
    Preset.WEB_OPTIMIZED: ("Web Optimized", "Optimized for web streaming"),
    Preset.HLS: ("HLS", "HLS streaming format"),
    Preset.HLS_ADAPTIVE: ("HLS Adaptive", "Adaptive bitrate HLS"),
}

# Terminal statuses are rendered by the outputs / error views instead
STATUS_INFO: Dict[JobStatus, Tuple[str, str]] = {
    JobStatus.UPLOADING: ("Uploading", "Uploading video to storage..."),
    JobStatus.QUEUED: ("Queued", "Added to transcoding queue"),
    JobStatus.PENDING: ("Pending", "Waiting for transcoding worker..."),
    JobStatus.RUNNING: ("Transcoding", "Video is being transcoded"),
}


def describe_quality(quality: VideoQuality) -> str:
    """e.g. '640x360, 400k video, 96k audio'"""
    preset = QUALITY_PRESETS[quality]
    return (
        f"{preset['width']}x{preset['height']}, "
        f"{preset['video_bitrate']} video, {preset['audio_bitrate']} audio"
    )


def describe_preset(preset: Preset) -> str:
    return PRESET_INFO[preset][1]


def describe_status(status: JobStatus) -> Tuple[str, str]:
    """(label, description) for a status, with a generic fallback"""
    return STATUS_INFO.get(status, (status.value.capitalize(), "Processing..."))
