"""
Exception types raised across the relay.

Routers raise the request-level errors; server.py maps them onto JSON
responses. Backend-level errors never leave the dispatcher.
"""
from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for relay errors."""
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.message, **self.details}


class TextValidationError(RelayError):
    """Request text is missing, blank or too long."""
    status_code = 400


class JobNotFoundError(RelayError):
    """Unknown or already expired job id."""
    status_code = 404

    def __init__(self, job_id: str):
        super().__init__('Job not found')
        self.job_id = job_id


class AudioNotAvailableError(RelayError):
    """Job exists but has no downloadable audio."""
    status_code = 404


class JobInProgressError(RelayError):
    """Operation needs a finished job."""
    status_code = 409


class SynthesisError(RelayError):
    """A synthesis backend could not produce audio."""


class InvalidTransitionError(RelayError):
    """A job status/progress change would break the job state machine."""
