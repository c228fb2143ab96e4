#!/usr/bin/env python3
"""
ttsrelay FastAPI Server

A job-based TTS relay: local Chatterbox TurboTTS first, remote provider as
fallback. Clients submit text, receive a job id and poll for the result.
"""
import os

# Keep torch from spawning its own worker pools
os.environ['OMP_NUM_THREADS'] = '1'
os.environ['MKL_NUM_THREADS'] = '1'

# Suppress tokenizers parallelism warning
os.environ['TOKENIZERS_PARALLELISM'] = 'false'

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.staticfiles import StaticFiles

from ttsrelay.config import (
    APP_NAME,
    APP_VERSION,
    AUDIO_DIR,
    CHATTERBOX_ENABLED,
    LOG_LEVEL,
    PUBLIC_BASE_URL,
    SERVER_HOST,
    SERVER_PORT,
    ensure_directories,
)
from ttsrelay.errors import RelayError
from ttsrelay.routers import health_router, jobs_router
from ttsrelay.services.artifact_store import ArtifactStore
from ttsrelay.services.backends import ChatterboxBackend, GoogleTranslateBackend
from ttsrelay.services.dispatcher import JobDispatcher
from ttsrelay.services.janitor import Janitor
from ttsrelay.services.job_store import JobStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup:
        - Create data directories
        - Load the local TTS model (if enabled and available)
        - Build job store, backends, dispatcher and janitor
        - Start the janitor sweep

    Shutdown:
        - Let in-flight jobs finish
        - Stop the janitor
        - Release model resources
    """
    print(f'Starting {APP_NAME} v{APP_VERSION}...')
    ensure_directories()

    primary = ChatterboxBackend()
    fallback = GoogleTranslateBackend()

    if CHATTERBOX_ENABLED:
        print('Loading Chatterbox model...')
        try:
            primary.load_model()
            print('Model loaded!')

            voices = primary.scan_voices()
            if voices:
                print(f'Available voices: {", ".join(voices.keys())}')
            else:
                print(f'No voice prompts found in {primary.voices_dir}, using the default voice')
        except Exception as e:
            # Not fatal: every job will go straight to the fallback provider
            print(f'Model not loaded, jobs will use {fallback.name}: {e}')
    else:
        print(f'Chatterbox disabled, jobs will use {fallback.name}')

    store = JobStore()
    artifacts = ArtifactStore()
    janitor = Janitor(store, artifacts)
    dispatcher = JobDispatcher(store, [primary, fallback], artifacts, janitor=janitor)

    app.state.job_store = store
    app.state.janitor = janitor
    app.state.dispatcher = dispatcher

    await janitor.start()

    print(f'Server ready at http://{SERVER_HOST}:{SERVER_PORT}')
    print(f'Audio served from {AUDIO_DIR} at {PUBLIC_BASE_URL}/audio')
    print('API documentation available at /docs')

    yield

    print('Shutting down...')
    await dispatcher.stop()
    await janitor.stop()
    primary.cleanup()
    print('Shutdown complete.')


app = FastAPI(
    title=APP_NAME,
    description='A job-based TTS relay with local synthesis and remote fallback.',
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Register routers
app.include_router(health_router)
app.include_router(jobs_router)

# Generated audio, linked from job.audioUrl
app.mount('/audio', StaticFiles(directory=str(AUDIO_DIR), check_dir=False), name='audio')


if __name__ == '__main__':
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    uvicorn.run(
        app,
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_level=LOG_LEVEL,
    )
