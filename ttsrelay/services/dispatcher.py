"""
Job dispatch: validation, background processing and backend fallback.
"""
import asyncio
import functools
import logging
import time
from typing import List, Optional, Sequence, Set

from fastapi import Request

from ttsrelay.config import ATTEMPT_TIMEOUT_SECONDS, DEFAULT_VOICE, FALLBACK_PROGRESS, MAX_TEXT_LENGTH
from ttsrelay.errors import SynthesisError, TextValidationError
from ttsrelay.models.job import Job, JobStatus
from ttsrelay.services.artifact_store import ArtifactStore
from ttsrelay.services.backends.base import SynthesisBackend
from ttsrelay.services.job_store import JobStore
from ttsrelay.services.janitor import Janitor
from ttsrelay.services.progress import ProgressReporter

logger = logging.getLogger(__name__)


class JobDispatcher:
    """
    Owns every job from queued to a terminal state.

    Each submitted job gets its own asyncio task; the request that created
    it does not wait for it. Backends are tried in order, each at most once,
    and the first success wins:

        1. a backend whose is_ready() is false is skipped;
        2. an attempt that raises, returns no audio, cannot be stored or
           runs past the attempt deadline moves on to the next backend;
        3. running out of backends marks the job failed.

    Moving to any backend after the first resets progress to the fallback
    starting point.
    """

    def __init__(
        self,
        store: JobStore,
        backends: Sequence[SynthesisBackend],
        artifacts: ArtifactStore,
        janitor: Optional[Janitor] = None,
        reporter: Optional[ProgressReporter] = None,
        max_text_length: int = MAX_TEXT_LENGTH,
        default_voice: str = DEFAULT_VOICE,
        attempt_timeout: float = ATTEMPT_TIMEOUT_SECONDS,
        fallback_progress: int = FALLBACK_PROGRESS,
    ):
        if not backends:
            raise ValueError('At least one synthesis backend is required')
        self.store = store
        self.backends: List[SynthesisBackend] = list(backends)
        self.artifacts = artifacts
        self.janitor = janitor
        self.reporter = reporter or ProgressReporter()
        self.max_text_length = max_text_length
        self.default_voice = default_voice
        self.attempt_timeout = attempt_timeout
        self.fallback_progress = fallback_progress
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def validate(self, text: Optional[str]) -> str:
        """Check request text before any job exists."""
        if text is None or not text.strip():
            raise TextValidationError('Text is required')
        if len(text) > self.max_text_length:
            raise TextValidationError(
                f'Text is too long. Maximum {self.max_text_length} characters.',
                details={'length': len(text), 'max': self.max_text_length},
            )
        return text

    async def submit(self, text: Optional[str], voice: Optional[str] = None) -> Job:
        """
        Validate, create a queued job and start processing it.

        Returns immediately with the queued job.
        """
        text = self.validate(text)
        job = await self.store.create(text=text, voice=voice or self.default_voice)
        logger.info('Created job %s (%d chars, voice=%s)', job.id, len(text), job.voice)

        task = asyncio.create_task(self.process(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job

    async def process(self, job: Job):
        """Run a job to a terminal state. Never raises."""
        start_time = time.monotonic()
        try:
            await self._run(job)
        except asyncio.CancelledError:
            if not job.is_terminal:
                self.reporter.fail(job, 'Processing cancelled during shutdown')
            raise
        except Exception as e:
            logger.exception('Error processing job %s', job.id)
            if not job.is_terminal:
                self.reporter.fail(job, f'Internal error: {e}')
        finally:
            job.duration_ms = int((time.monotonic() - start_time) * 1000)
            if job.is_terminal and self.janitor is not None:
                self.janitor.schedule_deletion(job.id)

    async def _run(self, job: Job):
        self.reporter.advance(job, JobStatus.processing.value, 10)

        failures = []
        for index, backend in enumerate(self.backends):
            if index == 0:
                job.provider = backend.name
            else:
                self.reporter.fallback(job, backend.name, self.fallback_progress)

            if not backend.is_ready():
                logger.warning('Backend %s unavailable for job %s', backend.name, job.id)
                failures.append(f'{backend.name}: unavailable')
                continue

            error = await self._attempt(job, backend)
            if error is None:
                return

            logger.warning('Backend %s failed for job %s: %s', backend.name, job.id, error)
            failures.append(f'{backend.name}: {error}')

        self.reporter.fail(job, 'All synthesis backends failed: ' + '; '.join(failures))
        logger.error('Job %s failed: %s', job.id, job.error)

    async def _attempt(self, job: Job, backend: SynthesisBackend) -> Optional[str]:
        """Run one backend for a job. Returns None once the job is settled, else the failure reason."""
        report = functools.partial(self.reporter.hint, job)
        try:
            artifact = await asyncio.wait_for(
                backend.synthesize(job.text, job.voice, report),
                timeout=self.attempt_timeout,
            )
            if artifact is None or not artifact.data:
                raise SynthesisError('no audio returned')

            self.reporter.advance(job, JobStatus.finalizing.value, 90)
            if job.id not in self.store:
                self._discard(job)
                return None
            stored = await self.artifacts.save(job.id, artifact)
            if job.id not in self.store:
                self.artifacts.delete(stored.path)
                self._discard(job)
                return None
        except asyncio.TimeoutError:
            return f'timed out after {self.attempt_timeout:g}s'
        except Exception as e:
            return str(e) or e.__class__.__name__

        self.reporter.complete(
            job,
            provider=backend.name,
            audio_url=stored.url,
            audio_path=str(stored.path),
            media_type=artifact.media_type,
            file_size_bytes=stored.size_bytes,
        )
        logger.info('Job %s completed by %s', job.id, backend.name)
        return None

    def _discard(self, job: Job):
        """Close out a job whose record was purged while it was still running."""
        logger.info('Job %s was removed while processing, discarding its audio', job.id)
        self.reporter.fail(job, 'Job expired before completion')

    async def stop(self, timeout: float = 5.0):
        """Wait for in-flight jobs, cancelling whatever is still running after timeout."""
        tasks = list(self._tasks)
        if not tasks:
            return
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def get_dispatcher(request: Request) -> JobDispatcher:
    return request.app.state.dispatcher
