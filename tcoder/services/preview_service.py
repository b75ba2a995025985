# Preview service - local playable copy of the selected file, at most one live at a time

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from tcoder.models.file import PreviewReference, SelectedFile

logger = logging.getLogger(__name__)


class PreviewManager:
    """
    Owns the single preview reference of a selected file.

    acquire() always revokes the held reference before creating a new one,
    so there is never more than one preview file on disk per manager.
    """

    def __init__(self, preview_dir: Optional[Path] = None):
        self.preview_dir = Path(preview_dir) if preview_dir else Path(tempfile.gettempdir())
        self._current: Optional[PreviewReference] = None

    @property
    def current(self) -> Optional[PreviewReference]:
        return self._current

    @property
    def live_count(self) -> int:
        return 1 if self._current is not None and not self._current.released else 0

    def acquire(self, file: SelectedFile) -> PreviewReference:
        """
        Write the file bytes to a fresh preview file and hold a reference to it.

        Args:
            file: The selected file to preview

        Returns:
            The new reference; any previously held one is already revoked
        """
        self.release()

        self.preview_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(file.name).suffix
        fd, path = tempfile.mkstemp(
            prefix=f"tcoder_preview_{os.getpid()}_",
            suffix=suffix,
            dir=self.preview_dir,
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(file.data)
        except OSError:
            os.remove(path)
            raise

        self._current = PreviewReference(path=Path(path), file_name=file.name)
        logger.debug("Acquired preview %s for %s", path, file.name)
        return self._current

    def release(self, reference: Optional[PreviewReference] = None) -> None:
        """
        Revoke a preview reference; defaults to the held one.

        Releasing None or an already released reference is a no-op.
        """
        if reference is None:
            reference = self._current
        if reference is None or reference.released:
            return

        reference.released = True
        if reference is self._current:
            self._current = None
        try:
            os.remove(reference.path)
            logger.debug("Released preview %s", reference.path)
        except FileNotFoundError:
            pass
