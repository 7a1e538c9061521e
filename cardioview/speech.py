"""
Voice capture: microphone speech segmented with Silero VAD and transcribed
with the Eleven Labs Speech-to-Text API.
"""
import asyncio
import io
import logging
import os
import threading
import time
import wave
from typing import Callable, Iterator, Optional, Protocol, Set

import numpy as np

logger = logging.getLogger(__name__)

# Audio configuration
CHUNK = 1024
CHANNELS = 1
RATE = 16000  # 16kHz for optimal VAD performance
SAMPLE_WIDTH = 2  # paInt16
VAD_WINDOW_SIZE = 512  # Silero VAD needs exactly 512 samples at 16kHz
ACCUMULATE_CHUNKS = 2

# VAD configuration
SPEECH_THRESHOLD = 0.5
SILENCE_DURATION_THRESHOLD = 1.0  # seconds of silence that end an utterance
MIN_SPEECH_DURATION = 0.5

PERMISSION_DENIED_MESSAGE = "Permiso de micrófono denegado."
UNAVAILABLE_MESSAGE = "Reconocimiento de voz no disponible."

TextCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


class RecognizerProto(Protocol):
    """Speech-to-text backend driven by VoiceCapture."""

    def start(self, on_text: TextCallback, on_error: ErrorCallback) -> None:
        """Open the microphone and begin emitting final utterances."""
        ...

    def stop(self) -> None:
        """Stop listening without blocking the caller."""
        ...

    def close(self) -> None:
        """Wait for workers to exit and release the audio device."""
        ...


class VoiceCapture:
    """
    Activation-flag wrapper around a recognizer.

    ``start`` and ``stop`` are idempotent. Utterances are lower-cased,
    trimmed and handed to ``on_utterance`` on the event loop thread.
    """

    def __init__(self, recognizer: Optional[RecognizerProto], on_utterance: TextCallback,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize voice capture.

        Args:
            recognizer: Speech backend, or None when voice is unavailable
            on_utterance: Receives each final utterance
            loop: Event loop to deliver utterances on; called inline if None
        """
        self.recognizer = recognizer
        self.on_utterance = on_utterance
        self.loop = loop
        self.error: Optional[str] = None if recognizer is not None else UNAVAILABLE_MESSAGE
        self._listening = False

    @property
    def is_listening(self) -> bool:
        return self._listening

    def set_active(self, active: bool) -> None:
        """Follow the activation flag (shaka gesture or manual toggle)."""
        if active:
            self.start()
        else:
            self.stop()

    def start(self) -> None:
        if self._listening:
            return
        if self.recognizer is None:
            self.error = UNAVAILABLE_MESSAGE
            return

        try:
            self.recognizer.start(self._handle_text, self._handle_error)
        except OSError as e:
            # PortAudio reports a denied or missing microphone as OSError
            logger.warning("⚠️ Microphone unavailable: %s", e)
            self.error = PERMISSION_DENIED_MESSAGE
            return

        self._listening = True
        self.error = None
        logger.info("🎤 Microphone started")

    def stop(self) -> None:
        if not self._listening:
            return
        self.recognizer.stop()
        self._listening = False
        logger.info("🔇 Microphone stopped")

    def shutdown(self) -> None:
        """Stop and release the recognizer. Blocking; run off the event loop."""
        self.stop()
        if self.recognizer is not None:
            self.recognizer.close()

    def _deliver(self, callback: Callable, *args) -> None:
        if self.loop is not None:
            self.loop.call_soon_threadsafe(callback, *args)
        else:
            callback(*args)

    def _handle_text(self, text: str) -> None:
        text = text.lower().strip()
        if not text:
            return
        logger.info("📝 Speech recognized: %s", text)
        self._deliver(self.on_utterance, text)

    def _handle_error(self, error: Exception) -> None:
        self._deliver(self._record_error, error)

    def _record_error(self, error: Exception) -> None:
        logger.warning("⚠️ Speech recognition error: %s", error)
        self._listening = False
        if isinstance(error, OSError):
            self.error = PERMISSION_DENIED_MESSAGE
        else:
            self.error = UNAVAILABLE_MESSAGE


def load_vad_model():
    """Load the Silero VAD model through torch.hub."""
    import torch

    logger.info("🔧 Loading Silero VAD model...")
    model, _utils = torch.hub.load(
        repo_or_dir='snakers4/silero-vad',
        model='silero_vad',
        force_reload=False,
        onnx=False
    )
    logger.info("✅ Silero VAD model loaded successfully!")
    return model


def frames_to_wav(frames, sample_rate: int = RATE) -> io.BytesIO:
    """Wrap int16 PCM samples in an in-memory WAV file."""
    wav_buffer = io.BytesIO()
    wf = wave.open(wav_buffer, 'wb')
    wf.setnchannels(CHANNELS)
    wf.setsampwidth(SAMPLE_WIDTH)
    wf.setframerate(sample_rate)
    wf.writeframes(np.array(frames, dtype=np.int16).tobytes())
    wf.close()
    wav_buffer.seek(0)
    return wav_buffer


class ElevenLabsRecognizer:
    """
    Microphone recognizer backed by Silero VAD and Eleven Labs STT.

    Every ``start`` opens its own stream and worker thread with its own stop
    event. ``stop`` only signals; the worker closes its stream when it exits,
    so a quick stop/start never shares a stream between two workers.
    """

    def __init__(self, client, vad_model, audio, sample_format: int,
                 language_code: str = "spa", model_id: str = "scribe_v1"):
        """
        Initialize the recognizer with already loaded backends.

        Args:
            client: Eleven Labs client
            vad_model: Silero VAD model
            audio: PyAudio instance, owned by the recognizer
            sample_format: PyAudio sample format for the input stream
            language_code: Transcription language
            model_id: Eleven Labs speech-to-text model
        """
        self.client = client
        self.language_code = language_code
        self.model_id = model_id

        self._vad_model = vad_model
        self._audio = audio
        self._sample_format = sample_format
        self._stop_event: Optional[threading.Event] = None
        self._workers: Set[threading.Thread] = set()
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, api_key: Optional[str] = None, language_code: str = "spa",
                 model_id: str = "scribe_v1") -> "ElevenLabsRecognizer":
        """
        Build a recognizer from ELEVEN_LABS_API_KEY. Slow: loads the VAD model.

        Raises:
            ValueError: If no API key is configured
        """
        api_key = api_key or os.getenv("ELEVEN_LABS_API_KEY")
        if not api_key:
            raise ValueError("ELEVEN_LABS_API_KEY not found in environment variables")

        import pyaudio
        from elevenlabs.client import ElevenLabs

        return cls(
            client=ElevenLabs(api_key=api_key),
            vad_model=load_vad_model(),
            audio=pyaudio.PyAudio(),
            sample_format=pyaudio.paInt16,
            language_code=language_code,
            model_id=model_id
        )

    @property
    def active_workers(self) -> int:
        with self._lock:
            return sum(worker.is_alive() for worker in self._workers)

    def start(self, on_text: TextCallback, on_error: ErrorCallback) -> None:
        stream = self._audio.open(
            format=self._sample_format,
            channels=CHANNELS,
            rate=RATE,
            input=True,
            frames_per_buffer=CHUNK
        )

        stop_event = threading.Event()
        self._stop_event = stop_event
        worker = threading.Thread(target=self._run, args=(stream, stop_event, on_text, on_error), daemon=True)
        with self._lock:
            self._workers.add(worker)
        worker.start()

    def stop(self) -> None:
        """Signal the current worker; it finishes on its own thread."""
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Join every worker still running. Returns True once all have exited."""
        with self._lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout)
        return self.active_workers == 0

    def close(self) -> None:
        self.stop()
        if not self.wait_stopped(timeout=2.0):
            logger.warning("⚠️ Speech worker still running at shutdown")
        self._audio.terminate()

    def _run(self, stream, stop_event: threading.Event,
             on_text: TextCallback, on_error: ErrorCallback) -> None:
        try:
            for audio_data in self._speech_segments(stream, stop_event):
                text = self._transcribe(audio_data)
                if text and not stop_event.is_set():
                    on_text(text)
        except Exception as e:
            logger.error("❌ Recognizer stopped: %s", e)
            if not stop_event.is_set():
                on_error(e)
        finally:
            stream.stop_stream()
            stream.close()
            with self._lock:
                self._workers.discard(threading.current_thread())

    def _is_speech(self, audio_frame: np.ndarray) -> bool:
        import torch

        audio_tensor = torch.from_numpy(audio_frame.astype(np.float32))
        peak = audio_tensor.abs().max()
        if peak > 0:
            audio_tensor = audio_tensor / peak
        return self._vad_model(audio_tensor, RATE).item() > SPEECH_THRESHOLD

    def _speech_segments(self, stream, stop_event: threading.Event) -> Iterator[io.BytesIO]:
        """Yield one WAV buffer per utterance bounded by VAD silence."""
        accumulator = []
        speech_frames = []
        speech_active = False
        silence_start: Optional[float] = None

        while not stop_event.is_set():
            data = stream.read(CHUNK, exception_on_overflow=False)
            accumulator.extend(np.frombuffer(data, dtype=np.int16))

            if len(accumulator) < VAD_WINDOW_SIZE * ACCUMULATE_CHUNKS:
                continue

            is_speech = self._is_speech(np.array(accumulator[-VAD_WINDOW_SIZE:]))
            now = time.time()

            if is_speech:
                if not speech_active:
                    logger.debug("🗣️ Speech detected")
                    speech_active = True
                    speech_frames = []
                speech_frames.extend(accumulator)
                silence_start = None
            elif speech_active:
                speech_frames.extend(accumulator)
                if silence_start is None:
                    silence_start = now
                if now - silence_start >= SILENCE_DURATION_THRESHOLD:
                    if len(speech_frames) / RATE >= MIN_SPEECH_DURATION:
                        yield frames_to_wav(speech_frames)
                    speech_active = False
                    speech_frames = []
                    silence_start = None

            accumulator = []

    def _transcribe(self, audio_data: io.BytesIO) -> Optional[str]:
        try:
            transcription = self.client.speech_to_text.convert(
                file=audio_data,
                model_id=self.model_id,
                tag_audio_events=False,
                language_code=self.language_code,
                diarize=False
            )
        except Exception as e:
            logger.error("❌ Error transcribing audio: %s", e)
            return None
        return transcription.text
