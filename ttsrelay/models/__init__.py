"""
Domain models.
"""
from ttsrelay.models.job import Job, JobStatus, TERMINAL_STATUSES

__all__ = ['Job', 'JobStatus', 'TERMINAL_STATUSES']
