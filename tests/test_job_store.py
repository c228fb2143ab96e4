"""
Job store tests.
"""
import asyncio

import pytest

from ttsrelay.models.job import JobStatus
from ttsrelay.services.job_store import JobStore


class TestJobStore:
    """Tests for JobStore CRUD operations."""

    @pytest.mark.asyncio
    async def test_create_assigns_queued_job(self, job_store: JobStore):
        """Test create returns a queued job reachable by id."""
        job = await job_store.create(text='Hello', voice='default')

        assert job.status == JobStatus.queued.value
        assert job.progress == 0
        assert job.created_at is not None
        assert await job_store.get(job.id) is job
        assert len(job_store) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, job_store: JobStore):
        """Test unknown ids are not found."""
        assert await job_store.get('nonexistent-id') is None

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, job_store: JobStore):
        """Test deleting twice is a no-op the second time."""
        job = await job_store.create(text='Hello', voice='default')

        assert await job_store.delete(job.id) is job
        assert await job_store.delete(job.id) is None
        assert await job_store.get(job.id) is None

    @pytest.mark.asyncio
    async def test_find_filters_by_predicate(self, job_store: JobStore):
        """Test find returns only matching jobs."""
        first = await job_store.create(text='one', voice='a')
        await job_store.create(text='two', voice='b')

        found = await job_store.find(lambda job: job.voice == 'a')

        assert found == [first]

    @pytest.mark.asyncio
    async def test_list_newest_first_with_pagination(self, job_store: JobStore):
        """Test list orders newest first and respects limit/offset."""
        jobs = [await job_store.create(text=f'Job {i}', voice='default') for i in range(5)]

        page, total = await job_store.list(limit=2, offset=1)

        assert total == 5
        assert [job.id for job in page] == [jobs[3].id, jobs[2].id]

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, job_store: JobStore):
        """Test concurrent inserts neither collide nor get lost."""
        jobs = await asyncio.gather(*[
            job_store.create(text=f'Job {i}', voice='default') for i in range(50)
        ])

        assert len({job.id for job in jobs}) == 50
        assert len(job_store) == 50
