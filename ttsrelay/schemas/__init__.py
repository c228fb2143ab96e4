"""
Pydantic schemas for API request/response validation.
"""
from ttsrelay.schemas.job import TTSRequest, JobAccepted, JobResponse, JobListResponse

__all__ = [
    'TTSRequest',
    'JobAccepted',
    'JobResponse',
    'JobListResponse',
]
