"""
Job status and progress bookkeeping.
"""
import logging
from typing import Optional

from ttsrelay.config import FALLBACK_PROGRESS
from ttsrelay.errors import InvalidTransitionError
from ttsrelay.models.job import Job, JobStatus, STATUS_ORDER, utcnow

logger = logging.getLogger(__name__)


class ProgressReporter:
    """
    Applies state-machine transitions to a Job in place.

    Status moves forward along queued -> processing -> loading_model ->
    generating_audio -> finalizing -> completed, progress never decreases,
    and failed is reachable from any non-terminal state. The one exception
    is fallback(), which restarts a job on the next backend.
    """

    def advance(self, job: Job, status: str, progress: int):
        status = JobStatus(status).value
        self._check_open(job)

        if status in (JobStatus.completed.value, JobStatus.failed.value):
            raise InvalidTransitionError(f'Use complete() or fail() to reach {status}')
        if status == JobStatus.queued.value:
            raise InvalidTransitionError('Jobs cannot return to queued')
        if not 0 < progress < 100:
            raise InvalidTransitionError(f'Progress {progress} out of range for {status}')
        if STATUS_ORDER[status] < STATUS_ORDER[job.status]:
            raise InvalidTransitionError(f'Cannot move job {job.id} from {job.status} back to {status}')
        if progress < job.progress:
            raise InvalidTransitionError(
                f'Progress for job {job.id} cannot decrease ({job.progress} -> {progress})'
            )

        job.status = status
        job.progress = progress

    def hint(self, job: Job, status: str, progress: int) -> bool:
        """
        Apply a stage reported by a backend if it moves the job forward.

        After a fallback reset a backend may announce stages the job has
        already passed; those are ignored. Returns True if applied.
        """
        status = JobStatus(status).value
        self._check_open(job)
        if STATUS_ORDER.get(status, -1) < STATUS_ORDER[job.status] or progress < job.progress:
            logger.debug('Ignoring stale stage %s/%d for job %s', status, progress, job.id)
            return False
        self.advance(job, status, progress)
        return True

    def fallback(self, job: Job, provider: str, progress: int = FALLBACK_PROGRESS):
        """Hand the job to the next backend, resetting progress to its starting point."""
        self._check_open(job)
        if not 0 < progress < 100:
            raise InvalidTransitionError(f'Fallback progress {progress} out of range')

        logger.info('Job %s falling back to %s', job.id, provider)
        job.provider = provider
        job.status = JobStatus.generating_audio.value
        job.progress = progress

    def complete(
        self,
        job: Job,
        provider: str,
        audio_url: str,
        audio_path: Optional[str] = None,
        media_type: Optional[str] = None,
        file_size_bytes: Optional[int] = None,
    ):
        self._check_open(job)
        if not audio_url:
            raise InvalidTransitionError('Completed jobs need an audio reference')

        job.provider = provider
        job.audio_url = audio_url
        job.audio_path = audio_path
        job.media_type = media_type
        job.file_size_bytes = file_size_bytes
        job.error = None
        job.progress = 100
        job.completed_at = utcnow()
        job.status = JobStatus.completed.value

    def fail(self, job: Job, error: str):
        self._check_open(job)

        job.error = error or 'Unknown error'
        job.audio_url = None
        job.audio_path = None
        job.completed_at = utcnow()
        job.status = JobStatus.failed.value

    @staticmethod
    def _check_open(job: Job):
        if job.is_terminal:
            raise InvalidTransitionError(f'Job {job.id} is already {job.status}')
