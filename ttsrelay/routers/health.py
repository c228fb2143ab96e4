"""
Health check endpoint.
"""
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends

from ttsrelay.config import APP_VERSION, VOICES_DIR
from ttsrelay.models.job import utcnow
from ttsrelay.schemas.job import CamelModel
from ttsrelay.services.dispatcher import JobDispatcher, get_dispatcher
from ttsrelay.services.job_store import JobStore, get_job_store


router = APIRouter(tags=['health'])

_STARTED_AT = time.monotonic()


class BackendStatus(CamelModel):
    name: str
    role: str
    ready: bool
    voices: List[str]


class DirectoryStatus(CamelModel):
    path: str
    exists: bool
    files: List[str]
    error: Optional[str] = None


class HealthResponse(CamelModel):
    """Health check response schema."""
    status: str
    version: str
    uptime: float
    timestamp: datetime
    base_url: str
    model_loaded: bool
    available_voices: List[str]
    backends: List[BackendStatus]
    audio_directory: DirectoryStatus
    voices_directory: DirectoryStatus
    active_jobs: int
    tracked_jobs: int


def _voices_directory(path: Path) -> DirectoryStatus:
    status = DirectoryStatus(path=str(path), exists=path.is_dir(), files=[])
    if status.exists:
        try:
            status.files = sorted(p.name for p in path.glob('*.wav'))
        except OSError as e:
            status.error = str(e)
    return status


@router.get('/health', response_model=HealthResponse)
async def health_check(
    dispatcher: JobDispatcher = Depends(get_dispatcher),
    store: JobStore = Depends(get_job_store),
) -> HealthResponse:
    """
    Report uptime, backend readiness, audio and voice prompt directories.

    Fast response: readiness checks are local only.
    """
    backends = [
        BackendStatus(
            name=backend.name,
            role='primary' if index == 0 else 'fallback',
            ready=backend.is_ready(),
            voices=backend.voices(),
        )
        for index, backend in enumerate(dispatcher.backends)
    ]

    return HealthResponse(
        status='ok',
        version=APP_VERSION,
        uptime=round(time.monotonic() - _STARTED_AT, 3),
        timestamp=utcnow(),
        base_url=dispatcher.artifacts.base_url,
        model_loaded=backends[0].ready,
        available_voices=sorted({voice for backend in backends for voice in backend.voices}),
        backends=backends,
        audio_directory=DirectoryStatus(**dispatcher.artifacts.describe()),
        voices_directory=_voices_directory(Path(getattr(dispatcher.backends[0], 'voices_dir', VOICES_DIR))),
        active_jobs=dispatcher.active_jobs,
        tracked_jobs=len(store),
    )
