# File models - the locally selected video and its revocable preview reference

import mimetypes
import os
from dataclasses import dataclass, field
from pathlib import Path

VIDEO_MIME_PREFIX = "video/"


@dataclass(frozen=True)
class SelectedFile:
    """A local file picked for upload: raw bytes, MIME type and name"""

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @classmethod
    def from_path(cls, file_path: str) -> "SelectedFile":
        """Read a file from disk, guessing its MIME type from the filename"""
        path = Path(file_path)
        guessed_type, _ = mimetypes.guess_type(path.name)
        content_type = guessed_type or "application/octet-stream"
        return cls(name=path.name, content_type=content_type, data=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.data)

    def is_video(self) -> bool:
        """Check if file is a video based on MIME type"""
        return self.content_type.startswith(VIDEO_MIME_PREFIX)


@dataclass(eq=False)
class PreviewReference:
    """
    Playable local copy of a SelectedFile.

    The reference is revoked by its PreviewManager; after that the backing
    file no longer exists and `released` is True.
    """

    path: Path
    file_name: str
    released: bool = False

    @property
    def uri(self) -> str:
        return self.path.resolve().as_uri()

    @property
    def exists(self) -> bool:
        return not self.released and os.path.exists(self.path)
