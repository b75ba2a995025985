# Shared command helpers - build the API client from settings

from tcoder.core.config import Settings
from tcoder.services.tcoder_client import TcoderClient


def build_client(server_url: str, settings: Settings) -> TcoderClient:
    """Create the API client used by a command; closed by the command when done"""
    return TcoderClient(
        server_url,
        request_timeout=settings.request_timeout,
        upload_timeout=settings.upload_timeout,
    )
