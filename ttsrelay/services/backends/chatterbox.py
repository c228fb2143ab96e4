"""
Local Chatterbox TurboTTS backend.

The primary backend: fast when the model is loaded, unavailable otherwise.
torch, torchaudio and chatterbox are imported lazily so the relay can run
with the fallback provider alone.
"""
import asyncio
import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

from ttsrelay.config import VOICES_DIR, MODEL_DEVICE, MODEL_AGGRESSIVE_MEMORY
from ttsrelay.errors import SynthesisError
from ttsrelay.models.job import JobStatus
from ttsrelay.services.backends.base import AudioArtifact, ProgressCallback, SynthesisBackend

logger = logging.getLogger(__name__)


class Voice:
    """Represents a voice prompt file for the local model."""
    def __init__(self, id: str, display_name: str, file_path: str, duration: Optional[float] = None):
        self.id = id
        self.display_name = display_name
        self.file_path = file_path
        self.duration = duration


class ChatterboxBackend(SynthesisBackend):
    """
    Encapsulates Chatterbox model state and generation logic.

    Uses asyncio.Lock plus a single-worker executor so only one generation
    touches the model at a time (the model is not thread-safe).
    """

    name = 'chatterbox'

    def __init__(
        self,
        voices_dir: Path = VOICES_DIR,
        device: str = MODEL_DEVICE,
        aggressive_memory: bool = MODEL_AGGRESSIVE_MEMORY,
    ):
        self.voices_dir = Path(voices_dir)
        self.device = device
        self.aggressive_memory = aggressive_memory
        self.model = None
        self.default_conds = None
        self._voices: Dict[str, Voice] = {}
        self._lock = asyncio.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1)
        # Generation left running on the worker after its caller gave up
        self._abandoned: Optional[Future] = None
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """Check if the model is loaded."""
        return self._loaded and self.model is not None

    @property
    def is_busy(self) -> bool:
        """True while a timed-out generation still holds the worker thread."""
        return self._abandoned is not None and not self._abandoned.done()

    def is_ready(self) -> bool:
        return self.is_loaded and not self.is_busy

    def load_model(self):
        """
        Load the Chatterbox TurboTTS model.

        Must be called from the main thread during startup. The Perth
        watermarker is swapped for its dummy before chatterbox is imported.
        """
        import perth
        perth.PerthImplicitWatermarker = perth.DummyWatermarker

        from chatterbox.tts_turbo import ChatterboxTurboTTS

        self.model = ChatterboxTurboTTS.from_pretrained(device=self.device)
        self.default_conds = self.model.conds
        self._loaded = True

    def scan_voices(self) -> Dict[str, Voice]:
        """
        Scan the voices directory for prompt files.

        The filename stem is both id and display name:
            C3-PO.wav -> id=C3-PO
        """
        self._voices = {}

        if self.voices_dir.exists():
            for f in self.voices_dir.glob('*.wav'):
                self._voices[f.stem] = Voice(
                    id=f.stem,
                    display_name=f.stem,
                    file_path=str(f),
                )

        return self._voices

    def get_voice(self, voice_id: str) -> Optional[Voice]:
        return self._voices.get(voice_id)

    def voices(self) -> List[str]:
        return list(self._voices.keys())

    def _generate_sync(self, text: str, voice_path: Optional[str] = None):
        """
        Synchronous generation method to run in executor.

        Returns tuple of (wav_tensor, sample_rate).
        """
        import torch

        with torch.inference_mode():
            if voice_path:
                wav = self.model.generate(text, audio_prompt_path=voice_path)
            else:
                # Restore default voice conditionals
                self.model.conds = self.default_conds
                wav = self.model.generate(text)

            # Let MPS finish before the tensors are freed
            if torch.backends.mps.is_available():
                torch.mps.synchronize()

        wav_cpu = wav.cpu()
        del wav

        if self.aggressive_memory and torch.backends.mps.is_available():
            torch.mps.empty_cache()

        return wav_cpu, self.model.sr

    async def _run_on_worker(self, fn, *args):
        """
        Run fn on the model worker thread.

        A running thread cannot be interrupted, so when the caller is cancelled
        the work is remembered and the backend reports not ready until it ends.
        """
        future = self._executor.submit(fn, *args)
        try:
            return await asyncio.wrap_future(future)
        except asyncio.CancelledError:
            if not future.cancel():
                logger.warning('Chatterbox generation abandoned, worker busy until it finishes')
                self._abandoned = future
            raise

    @staticmethod
    def _encode_wav(wav, sample_rate: int) -> bytes:
        import torchaudio as ta

        buffer = io.BytesIO()
        ta.save(buffer, wav, sample_rate, format='wav')
        return buffer.getvalue()

    async def synthesize(self, text: str, voice: str, report: ProgressCallback) -> AudioArtifact:
        if not self.is_loaded:
            raise SynthesisError('Chatterbox model is not loaded')

        report(JobStatus.loading_model.value, 20)

        voice_path = None
        prompt = self.get_voice(voice) if voice else None
        if prompt:
            voice_path = prompt.file_path
        elif voice:
            logger.debug('Voice %s not found, using default conditionals', voice)

        report(JobStatus.loading_model.value, 40)

        async with self._lock:
            if self.is_busy:
                raise SynthesisError('Chatterbox worker is still busy with a timed-out generation')
            report(JobStatus.generating_audio.value, 60)
            wav, sr = await self._run_on_worker(self._generate_sync, text, voice_path)
            report(JobStatus.generating_audio.value, 80)
            data = await self._run_on_worker(self._encode_wav, wav, sr)

        return AudioArtifact(data=data, media_type='audio/wav', extension='wav')

    def cleanup(self):
        """Clean up resources."""
        self._executor.shutdown(wait=False)
        self.model = None
        self.default_conds = None
        self._loaded = False
