"""
In-memory job store.
"""
import asyncio
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request

from ttsrelay.models.job import Job


class JobStore:
    """
    Process-wide mapping from job id to Job.

    Insert and delete hold an asyncio.Lock. Jobs are mutated in place by the
    single task processing them, so readers may observe any intermediate
    state but never a job from another id.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    async def create(self, text: str, voice: str) -> Job:
        """Create a queued job and make it reachable by id."""
        job = Job(text=text, voice=voice)
        async with self._lock:
            self._jobs[job.id] = job
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    async def delete(self, job_id: str) -> Optional[Job]:
        """Remove a job. Deleting an unknown id is a no-op."""
        async with self._lock:
            return self._jobs.pop(job_id, None)

    async def find(self, predicate: Callable[[Job], bool]) -> List[Job]:
        """Return a snapshot of the jobs matching predicate."""
        async with self._lock:
            return [job for job in self._jobs.values() if predicate(job)]

    async def list(self, limit: int = 50, offset: int = 0) -> Tuple[List[Job], int]:
        """Return a page of jobs ordered newest first, plus the total count."""
        # Insertion order is creation order
        async with self._lock:
            jobs = list(reversed(self._jobs.values()))
        return jobs[offset:offset + limit], len(jobs)


def get_job_store(request: Request) -> JobStore:
    """
    Dependency returning the store created at application startup.

    Usage:
        @router.get('/api/job/{job_id}')
        async def get_job(job_id: str, store: JobStore = Depends(get_job_store)):
            ...
    """
    return request.app.state.job_store
