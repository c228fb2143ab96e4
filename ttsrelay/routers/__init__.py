"""
FastAPI routers.
"""
from ttsrelay.routers.health import router as health_router
from ttsrelay.routers.jobs import router as jobs_router

__all__ = ['health_router', 'jobs_router']
