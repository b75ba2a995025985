# Client settings and environment variable loading (Pydantic BaseSettings)

import logging
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

import requests
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from tcoder.models.job import Preset

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8787"

# Load the .env.client from the package folder, like a regular .env
env_path = Path(__file__).parent.parent / ".env.client"
load_dotenv(env_path)


class Settings(BaseSettings):
    """Client settings with environment variable support (TCODER_ prefix)"""

    # Server selection
    server_url: Optional[str] = Field(default=None)
    local_url: Optional[str] = Field(default=None)
    remote_url: Optional[str] = Field(default=None)

    # Polling: delay between the end of one status query and the next
    poll_interval: float = Field(default=3.0, gt=0)

    # HTTP timeouts (seconds)
    request_timeout: float = Field(default=30.0, gt=0)
    upload_timeout: float = Field(default=600.0, gt=0)

    # Submission defaults
    default_preset: Preset = Field(default=Preset.DEFAULT)

    # Where preview files are written before upload
    preview_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))

    log_level: str = Field(default="WARNING")

    class Config:
        env_prefix = "TCODER_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def resolve_server_url(settings: Settings) -> str:
    """
    Auto-detect best server URL.
    Priority: TCODER_SERVER_URL > TCODER_LOCAL_URL (if reachable) > TCODER_REMOTE_URL
    """
    if settings.server_url:
        return settings.server_url.rstrip("/")

    local_url = settings.local_url.rstrip("/") if settings.local_url else None
    remote_url = settings.remote_url.rstrip("/") if settings.remote_url else None

    # If only one is configured, use it
    if local_url and not remote_url:
        return local_url
    if remote_url and not local_url:
        return remote_url

    # If both are configured, try local first with quick timeout
    if local_url and remote_url:
        try:
            response = requests.get(f"{local_url}/health", timeout=1.5)
            if response.status_code == 200:
                logger.debug("Using local server %s", local_url)
                return local_url
        except requests.exceptions.RequestException as e:
            logger.debug("Local server %s not reachable: %s", local_url, e)
        logger.debug("Using remote server %s", remote_url)
        return remote_url

    return DEFAULT_SERVER_URL


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
