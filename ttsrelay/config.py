"""
Application configuration and paths.

Every value can be overridden through an environment variable.
"""
import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Application identity
APP_NAME = 'ttsrelay'
APP_VERSION = '0.1.0'

# Server configuration
SERVER_HOST = os.environ.get('TTS_HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('PORT', '3000'))
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'info')

# Base URL used to build artifact links handed back to clients
PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL', f'http://{SERVER_HOST}:{SERVER_PORT}').rstrip('/')

# Paths
DATA_DIR = Path(os.environ.get('TTS_DATA_DIR', str(Path.home() / '.ttsrelay')))

# Audio storage (served under /audio)
AUDIO_DIR = DATA_DIR / 'audio'

# Voice prompts for the local model
VOICES_DIR = DATA_DIR / 'voices'

# Request policy
MAX_TEXT_LENGTH = int(os.environ.get('TTS_MAX_TEXT_LENGTH', '500'))
DEFAULT_VOICE = os.environ.get('TTS_DEFAULT_VOICE', 'default')
ESTIMATED_TIME = '10-30 seconds'

# Dispatch policy
ATTEMPT_TIMEOUT_SECONDS = float(os.environ.get('TTS_ATTEMPT_TIMEOUT', '60'))
FALLBACK_PROGRESS = 60

# Retention
ARTIFACT_RETENTION_SECONDS = float(os.environ.get('TTS_ARTIFACT_RETENTION', str(5 * 60)))
JOB_RETENTION_SECONDS = float(os.environ.get('TTS_JOB_RETENTION', str(60 * 60)))
SWEEP_INTERVAL_SECONDS = float(os.environ.get('TTS_SWEEP_INTERVAL', str(60 * 60)))

# Local model configuration
CHATTERBOX_ENABLED = _env_bool('CHATTERBOX_ENABLED', True)
MODEL_DEVICE = os.environ.get('TTS_MODEL_DEVICE', 'cpu')

# Clear GPU cache after each generation (reduces peak memory, slight overhead)
MODEL_AGGRESSIVE_MEMORY = _env_bool('TTS_MODEL_AGGRESSIVE_MEMORY', True)

# Remote fallback provider
FALLBACK_ENABLED = _env_bool('FALLBACK_ENABLED', True)
FALLBACK_TTS_URL = os.environ.get('FALLBACK_TTS_URL', 'https://translate.google.com/translate_tts')
FALLBACK_LANGUAGE = os.environ.get('FALLBACK_LANGUAGE', 'en')
FALLBACK_USER_AGENT = os.environ.get(
    'FALLBACK_USER_AGENT',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
)
FALLBACK_TIMEOUT_SECONDS = float(os.environ.get('FALLBACK_TIMEOUT', '30'))


def ensure_directories():
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    AUDIO_DIR.mkdir(parents=True, exist_ok=True)
    VOICES_DIR.mkdir(parents=True, exist_ok=True)
