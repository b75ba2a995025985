from __future__ import annotations

import os
from pathlib import Path

import pytest

os.environ.setdefault("TCODER_SERVER_URL", "http://tcoder.test")
os.environ.setdefault("TCODER_POLL_INTERVAL", "0.01")

from tcoder.core.config import get_settings
from tcoder.services.preview_service import PreviewManager


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def preview_dir(tmp_path: Path) -> Path:
    path = tmp_path / "previews"
    path.mkdir()
    return path


@pytest.fixture
def previews(preview_dir: Path) -> PreviewManager:
    return PreviewManager(preview_dir)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
