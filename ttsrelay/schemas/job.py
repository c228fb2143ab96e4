"""
Pydantic schemas for Job API operations.

Responses use camelCase keys on the wire (jobId, createdAt, audioUrl).
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TTSRequest(BaseModel):
    """
    Schema for a synthesis request.

    Text is optional here so that missing and over-long text are both
    reported by the dispatcher as 400 errors.
    """
    text: Optional[str] = Field(None, description='The text to synthesize')
    voice: Optional[str] = Field(None, description='Voice id (null = default voice)')


class JobAccepted(CamelModel):
    """Schema returned when a job is queued."""
    job_id: str
    status: str
    estimated_time: str
    text_length: int
    max_length: int


class JobResponse(CamelModel):
    """Schema for job response."""
    id: str
    text: str
    voice: str
    status: str
    progress: int
    provider: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime]
    audio_url: Optional[str]
    media_type: Optional[str]
    error: Optional[str]
    duration_ms: Optional[int]
    file_size_bytes: Optional[int]


class JobListResponse(CamelModel):
    """Schema for paginated job list response."""
    jobs: List[JobResponse]
    total: int
    limit: int
    offset: int
