"""
Expiry of jobs and their audio files.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from fastapi import Request

from ttsrelay.config import ARTIFACT_RETENTION_SECONDS, JOB_RETENTION_SECONDS, SWEEP_INTERVAL_SECONDS
from ttsrelay.models.job import utcnow
from ttsrelay.services.artifact_store import ArtifactStore
from ttsrelay.services.job_store import JobStore

logger = logging.getLogger(__name__)


class Janitor:
    """
    Deletes expired jobs and their artifacts.

    Two mechanisms run side by side:
        - a deferred delete armed when a job reaches a terminal state,
          firing after the artifact retention window;
        - a periodic sweep removing any job older than the job retention
          window, covering jobs whose timer never got armed.

    Cleanup is best-effort: failures are logged, never raised.
    """

    def __init__(
        self,
        store: JobStore,
        artifacts: ArtifactStore,
        artifact_retention: float = ARTIFACT_RETENTION_SECONDS,
        job_retention: float = JOB_RETENTION_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    ):
        self.store = store
        self.artifacts = artifacts
        self.artifact_retention = artifact_retention
        self.job_retention = job_retention
        self.sweep_interval = sweep_interval
        self._timers: Dict[str, asyncio.Task] = {}
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def pending_deletions(self) -> int:
        return len(self._timers)

    async def start(self):
        """Start the periodic sweep."""
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self):
        """Stop the sweep and drop pending timers."""
        self._running = False
        tasks = list(self._timers.values())
        if self._task:
            tasks.append(self._task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        self._task = None

    def schedule_deletion(self, job_id: str, delay: Optional[float] = None):
        """Arm the deferred delete for a job. Re-arming replaces the old timer."""
        delay = self.artifact_retention if delay is None else delay
        previous = self._timers.pop(job_id, None)
        if previous:
            previous.cancel()
        self._timers[job_id] = asyncio.create_task(self._purge_later(job_id, delay))

    async def _purge_later(self, job_id: str, delay: float):
        try:
            await asyncio.sleep(delay)
            await self.purge(job_id)
        finally:
            if self._timers.get(job_id) is asyncio.current_task():
                del self._timers[job_id]

    async def purge(self, job_id: str) -> bool:
        """Delete a job record and its audio file. Returns True if the job existed."""
        try:
            job = await self.store.delete(job_id)
            if job is None:
                return False
            self.artifacts.delete(job.audio_path)
            logger.info('Cleaned up job: %s', job_id)
            return True
        except Exception:
            logger.exception('Cleanup error for job %s', job_id)
            return False

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Delete every job created before the retention window. Returns the count."""
        cutoff = (now or utcnow()) - timedelta(seconds=self.job_retention)
        stale = await self.store.find(lambda job: job.created_at < cutoff)

        removed = 0
        for job in stale:
            if await self.purge(job.id):
                removed += 1
        if removed:
            logger.info('Sweep removed %d stale jobs', removed)
        return removed

    async def _sweep_loop(self):
        while self._running:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception:
                # Log but don't crash the loop
                logger.exception('Error in janitor sweep')


def get_janitor(request: Request) -> Janitor:
    return request.app.state.janitor
