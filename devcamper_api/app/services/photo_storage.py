"""
Storage for uploaded bootcamp photos.

``save`` persists the bytes under the given file name and returns the
name the photo is known by afterwards.  ``LocalPhotoStorage`` writes
into a directory on disk.
"""

import abc
import logging
from pathlib import Path

from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)


class PhotoStorage(abc.ABC):
    @abc.abstractmethod
    def save(self, filename: str, content: bytes) -> str:
        ...


class LocalPhotoStorage(PhotoStorage):
    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)

    def save(self, filename: str, content: bytes) -> str:
        target = self.directory / Path(filename).name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            logger.error("Cannot write photo %s: %s", target, exc)
            raise UpstreamError("Problem with file upload") from exc
        logger.info("Stored photo %s (%d bytes)", target, len(content))
        return target.name
