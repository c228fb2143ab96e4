"""
Synthesis backend interface.

A backend turns text into audio bytes. The dispatcher depends only on this
interface, so local engines and remote providers are interchangeable.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List

# report(status, progress): lets a backend announce sub-stages of a job
ProgressCallback = Callable[[str, int], bool]


@dataclass
class AudioArtifact:
    """Audio produced by a backend, not yet persisted."""
    data: bytes
    media_type: str = 'audio/wav'
    extension: str = 'wav'


class SynthesisBackend(ABC):
    """Abstract TTS boundary."""

    name: str = 'backend'

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Fast local capability check.

        Must not perform network calls or block; a backend that is not
        ready is skipped without being attempted.
        """
        raise NotImplementedError

    @abstractmethod
    async def synthesize(self, text: str, voice: str, report: ProgressCallback) -> AudioArtifact:
        """
        Synthesize text to audio.

        Raises on any failure; the dispatcher treats exceptions and empty
        output the same way.
        """
        raise NotImplementedError

    def voices(self) -> List[str]:
        """Voice ids this backend knows about."""
        return []
