"""
Synthesis backends, in fallback order: local model first, remote provider second.
"""
from ttsrelay.services.backends.base import AudioArtifact, ProgressCallback, SynthesisBackend
from ttsrelay.services.backends.chatterbox import ChatterboxBackend, Voice
from ttsrelay.services.backends.remote import GoogleTranslateBackend

__all__ = [
    'AudioArtifact',
    'ProgressCallback',
    'SynthesisBackend',
    'ChatterboxBackend',
    'Voice',
    'GoogleTranslateBackend',
]
