"""
Pytest fixtures for testing.
"""
import asyncio
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ttsrelay.errors import SynthesisError
from ttsrelay.models.job import JobStatus
from ttsrelay.services.artifact_store import ArtifactStore
from ttsrelay.services.backends.base import AudioArtifact, SynthesisBackend
from ttsrelay.services.dispatcher import JobDispatcher, get_dispatcher
from ttsrelay.services.janitor import Janitor, get_janitor
from ttsrelay.services.job_store import JobStore, get_job_store


class FakeBackend(SynthesisBackend):
    """Scriptable backend: ready or not, succeeds, raises, hangs or returns nothing."""

    def __init__(
        self,
        name: str,
        ready: bool = True,
        fail_with: Optional[str] = None,
        delay: float = 0.0,
        audio: bytes = b'RIFF' + b'\x00' * 40,
        stages: Optional[List[tuple]] = None,
        extension: str = 'wav',
    ):
        self.name = name
        self.ready = ready
        self.fail_with = fail_with
        self.delay = delay
        self.audio = audio
        self.extension = extension
        self.stages = stages if stages is not None else [
            (JobStatus.loading_model.value, 20),
            (JobStatus.generating_audio.value, 80),
        ]
        self.calls = []

    def is_ready(self) -> bool:
        return self.ready

    async def synthesize(self, text, voice, report):
        self.calls.append((text, voice))
        for status, progress in self.stages:
            report(status, progress)
            await asyncio.sleep(0)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise SynthesisError(self.fail_with)
        return AudioArtifact(data=self.audio, media_type=f'audio/{self.extension}', extension=self.extension)

    def voices(self):
        return ['default']


async def wait_for_terminal(job, timeout: float = 2.0):
    """Poll a job until it reaches completed or failed."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not job.is_terminal:
        if loop.time() > deadline:
            raise AssertionError(f'{job!r} did not finish within {timeout}s')
        await asyncio.sleep(0.01)
    return job


@pytest.fixture
def audio_dir(tmp_path):
    """Temporary audio directory."""
    path = tmp_path / 'audio'
    path.mkdir()
    return path


@pytest.fixture
def artifact_store(audio_dir):
    return ArtifactStore(directory=audio_dir, base_url='http://test')


@pytest.fixture
def job_store():
    return JobStore()


@pytest_asyncio.fixture
async def janitor(job_store, artifact_store):
    janitor = Janitor(job_store, artifact_store, artifact_retention=60, job_retention=3600, sweep_interval=3600)
    yield janitor
    await janitor.stop()


@pytest.fixture
def primary():
    return FakeBackend('primary')


@pytest.fixture
def secondary():
    return FakeBackend('secondary')


@pytest_asyncio.fixture
async def dispatcher(job_store, primary, secondary, artifact_store, janitor):
    dispatcher = JobDispatcher(
        job_store,
        [primary, secondary],
        artifact_store,
        janitor=janitor,
        max_text_length=500,
        attempt_timeout=1.0,
    )
    yield dispatcher
    await dispatcher.stop(timeout=1.0)


@pytest_asyncio.fixture
async def client(dispatcher, job_store, janitor):
    """Create a test client with injected services."""
    from server import app

    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_job_store] = lambda: job_store
    app.dependency_overrides[get_janitor] = lambda: janitor

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def voices_dir(tmp_path):
    """Create a temporary voices directory with test voice files."""
    voices = tmp_path / 'voices'
    voices.mkdir()

    (voices / 'Jerry_Seinfeld.wav').write_bytes(b'RIFF' + b'\x00' * 40)
    (voices / 'Custom_Voice.wav').write_bytes(b'RIFF' + b'\x00' * 40)

    return voices
