"""
Filesystem storage for generated audio.
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ttsrelay.config import AUDIO_DIR, PUBLIC_BASE_URL
from ttsrelay.services.backends.base import AudioArtifact

logger = logging.getLogger(__name__)


@dataclass
class StoredArtifact:
    path: Path
    url: str
    size_bytes: int


class ArtifactStore:
    """
    Writes audio to the audio directory and builds the public URL for it.

    Files are named after the job id and served by the /audio static route.
    """

    def __init__(self, directory: Path = AUDIO_DIR, base_url: str = PUBLIC_BASE_URL, url_prefix: str = '/audio'):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip('/')
        self.url_prefix = url_prefix

    def path_for(self, job_id: str, extension: str) -> Path:
        return self.directory / f'{job_id}.{extension}'

    def url_for(self, filename: str) -> str:
        return f'{self.base_url}{self.url_prefix}/{filename}'

    def _write(self, path: Path, data: bytes) -> int:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path.stat().st_size

    async def save(self, job_id: str, artifact: AudioArtifact) -> StoredArtifact:
        """
        Persist audio for a job. Raises OSError if the write fails.

        A partially written file is removed before the error propagates.
        """
        path = self.path_for(job_id, artifact.extension)
        loop = asyncio.get_running_loop()
        try:
            size = await loop.run_in_executor(None, self._write, path, artifact.data)
        except Exception:
            self.delete(path)
            raise
        return StoredArtifact(path=path, url=self.url_for(path.name), size_bytes=size)

    def delete(self, path: Optional[Union[str, Path]]) -> bool:
        """
        Remove an audio file.

        Returns True if a file was removed. Missing files and OS errors are
        logged, never raised.
        """
        if not path:
            return False
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning('Could not delete audio file %s: %s', path, e)
            return False
        logger.info('Cleaned up audio file: %s', path)
        return True

    def describe(self) -> dict:
        """Directory status for the health endpoint."""
        info = {'path': str(self.directory), 'exists': self.directory.exists(), 'files': []}
        if info['exists']:
            try:
                info['files'] = sorted(p.name for p in self.directory.iterdir() if p.is_file())
            except OSError as e:
                info['error'] = str(e)
        return info
