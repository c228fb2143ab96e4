"""
Remote HTTP TTS provider used as the fallback backend.
"""
import logging
from typing import Optional

import httpx

from ttsrelay.config import (
    FALLBACK_ENABLED,
    FALLBACK_LANGUAGE,
    FALLBACK_TIMEOUT_SECONDS,
    FALLBACK_TTS_URL,
    FALLBACK_USER_AGENT,
)
from ttsrelay.errors import SynthesisError
from ttsrelay.models.job import JobStatus
from ttsrelay.services.backends.base import AudioArtifact, ProgressCallback, SynthesisBackend

logger = logging.getLogger(__name__)


class GoogleTranslateBackend(SynthesisBackend):
    """
    Google Translate TTS over HTTP.

    Slower than the local model and dependent on the network, but needs no
    local assets. Returns MP3 audio.
    """

    name = 'google-translate'

    def __init__(
        self,
        url: str = FALLBACK_TTS_URL,
        language: str = FALLBACK_LANGUAGE,
        user_agent: str = FALLBACK_USER_AGENT,
        timeout: float = FALLBACK_TIMEOUT_SECONDS,
        enabled: bool = FALLBACK_ENABLED,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.language = language
        self.user_agent = user_agent
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport

    def is_ready(self) -> bool:
        return self.enabled and bool(self.url)

    async def synthesize(self, text: str, voice: str, report: ProgressCallback) -> AudioArtifact:
        params = {
            'ie': 'UTF-8',
            'tl': self.language,
            'client': 'tw-ob',
            'q': text,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                self.url,
                params=params,
                headers={'User-Agent': self.user_agent},
            )

        if response.status_code >= 400:
            raise SynthesisError(f'TTS API error: {response.status_code}')
        if not response.content:
            raise SynthesisError('TTS API returned no audio')

        report(JobStatus.generating_audio.value, 80)
        logger.debug('Fetched %d bytes from %s', len(response.content), self.url)

        return AudioArtifact(
            data=response.content,
            media_type='audio/mpeg',
            extension='mp3',
        )
