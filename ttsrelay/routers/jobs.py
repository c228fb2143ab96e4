"""
Job endpoints for TTS generation.
"""
from pathlib import Path

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import FileResponse

from ttsrelay.config import ESTIMATED_TIME
from ttsrelay.errors import AudioNotAvailableError, JobInProgressError, JobNotFoundError
from ttsrelay.models.job import Job, JobStatus
from ttsrelay.schemas.job import TTSRequest, JobAccepted, JobResponse, JobListResponse
from ttsrelay.services.dispatcher import JobDispatcher, get_dispatcher
from ttsrelay.services.janitor import Janitor, get_janitor
from ttsrelay.services.job_store import JobStore, get_job_store


router = APIRouter(prefix='/api', tags=['jobs'])


async def _require_job(store: JobStore, job_id: str) -> Job:
    job = await store.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return job


@router.post('/tts', response_model=JobAccepted, status_code=202)
async def create_job(
    request: TTSRequest,
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> JobAccepted:
    """
    Create a new TTS generation job.

    Returns immediately with the job id; poll /api/job/{id} for the outcome.
    """
    job = await dispatcher.submit(request.text, request.voice)

    return JobAccepted(
        job_id=job.id,
        status=JobStatus.queued.value,
        estimated_time=ESTIMATED_TIME,
        text_length=len(job.text),
        max_length=dispatcher.max_text_length,
    )


@router.get('/jobs', response_model=JobListResponse)
async def list_jobs(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    store: JobStore = Depends(get_job_store),
) -> JobListResponse:
    """List tracked jobs, newest first."""
    jobs, total = await store.list(limit=limit, offset=offset)

    return JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get('/job/{job_id}', response_model=JobResponse)
async def get_job(
    job_id: str,
    store: JobStore = Depends(get_job_store),
) -> JobResponse:
    """
    Get details for a specific job.

    Returns status, progress, provider and the audio URL once completed.
    """
    job = await _require_job(store, job_id)
    return JobResponse.model_validate(job)


@router.get('/download/{job_id}')
async def download_job_audio(
    job_id: str,
    store: JobStore = Depends(get_job_store),
):
    """
    Stream the audio file for a completed job.

    Raises:
        404: Job not found, audio not ready, or file already removed
    """
    job = await _require_job(store, job_id)

    if job.status != JobStatus.completed.value:
        raise AudioNotAvailableError(f'Audio not ready. Job status: {job.status}')

    if not job.audio_path or not Path(job.audio_path).exists():
        raise AudioNotAvailableError('Audio file not found')

    voice_part = job.voice or 'default'
    timestamp_part = job.created_at.strftime('%Y%m%d-%H%M%S')
    filename = f'{voice_part}-{timestamp_part}{Path(job.audio_path).suffix}'

    return FileResponse(
        path=job.audio_path,
        media_type=job.media_type or 'application/octet-stream',
        filename=filename,
    )


@router.delete('/job/{job_id}', status_code=204)
async def delete_job(
    job_id: str,
    store: JobStore = Depends(get_job_store),
    janitor: Janitor = Depends(get_janitor),
):
    """
    Delete a finished job and its audio file ahead of its retention window.

    Raises:
        404: Job not found
        409: Job still processing
    """
    job = await _require_job(store, job_id)
    if not job.is_terminal:
        raise JobInProgressError(f'Job is still {job.status}')
    await janitor.purge(job_id)
    return Response(status_code=204)
