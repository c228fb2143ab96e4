"""
Job model for TTS generation tasks.
"""
import uuid
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, enum.Enum):
    """Status states for TTS jobs, in happy-path order."""
    queued = 'queued'
    processing = 'processing'
    loading_model = 'loading_model'
    generating_audio = 'generating_audio'
    finalizing = 'finalizing'
    completed = 'completed'
    failed = 'failed'


TERMINAL_STATUSES = frozenset({JobStatus.completed.value, JobStatus.failed.value})

# Position of each non-failure status along the happy path
STATUS_ORDER = {
    status.value: index
    for index, status in enumerate(JobStatus)
    if status is not JobStatus.failed
}


@dataclass
class Job:
    """
    Represents a TTS generation job.

    Attributes:
        id: Unique job identifier (UUID)
        text: The text to synthesize
        voice: Requested voice id
        status: Current job status
        progress: Percentage in [0, 100]
        provider: Backend that produced (or is attempting) the audio
        created_at: Job creation timestamp
        completed_at: When job reached completed or failed
        audio_url: Public link to the generated audio
        audio_path: Path to generated audio file
        media_type: Content type of the generated audio
        error: Failure reason if failed
        duration_ms: Time taken for processing
        file_size_bytes: Size of generated audio file
    """
    text: str
    voice: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: str = JobStatus.queued.value
    progress: int = 0
    provider: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    audio_url: Optional[str] = None
    audio_path: Optional[str] = None
    media_type: Optional[str] = None
    error: Optional[str] = None
    duration_ms: Optional[int] = None
    file_size_bytes: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f'<Job {self.id} status={self.status} progress={self.progress}>'
