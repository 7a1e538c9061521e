"""
Test cases for voice capture activation and utterance delivery.
"""
import asyncio
import os
import threading
import time
import unittest
import sys
from pathlib import Path
from unittest import mock

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardioview.speech import (
    CHUNK, PERMISSION_DENIED_MESSAGE, UNAVAILABLE_MESSAGE,
    ElevenLabsRecognizer, VoiceCapture, frames_to_wav,
)

from fake_services import FakeRecognizer


class TestVoiceCapture(unittest.TestCase):

    def setUp(self):
        self.recognizer = FakeRecognizer()
        self.utterances = []
        self.capture = VoiceCapture(self.recognizer, self.utterances.append)

    def test_start_is_idempotent(self):
        self.capture.start()
        self.capture.start()

        self.assertTrue(self.capture.is_listening)
        self.assertEqual(self.recognizer.start_calls, 1)

    def test_stop_is_idempotent(self):
        self.capture.stop()
        self.capture.start()
        self.capture.stop()
        self.capture.stop()

        self.assertFalse(self.capture.is_listening)
        self.assertEqual(self.recognizer.stop_calls, 1)

    def test_set_active_follows_flag(self):
        self.capture.set_active(True)
        self.assertTrue(self.capture.is_listening)
        self.capture.set_active(True)
        self.capture.set_active(False)
        self.assertFalse(self.capture.is_listening)
        self.assertEqual(self.recognizer.start_calls, 1)

    def test_permission_denied(self):
        capture = VoiceCapture(FakeRecognizer(fail_with=OSError("Invalid input device")), self.utterances.append)

        capture.start()

        self.assertFalse(capture.is_listening)
        self.assertEqual(capture.error, PERMISSION_DENIED_MESSAGE)

    def test_unavailable_recognizer(self):
        capture = VoiceCapture(None, self.utterances.append)

        capture.set_active(True)

        self.assertFalse(capture.is_listening)
        self.assertEqual(capture.error, UNAVAILABLE_MESSAGE)

    def test_utterances_normalized(self):
        self.capture.start()

        self.recognizer.on_text("  Venas Pulmonares ")
        self.recognizer.on_text("   ")

        self.assertEqual(self.utterances, ["venas pulmonares"])

    def test_recognizer_error_stops_listening(self):
        self.capture.start()

        self.recognizer.on_error(RuntimeError("network"))

        self.assertFalse(self.capture.is_listening)
        self.assertEqual(self.capture.error, UNAVAILABLE_MESSAGE)

    def test_shutdown_closes_recognizer(self):
        self.capture.start()

        self.capture.shutdown()

        self.assertFalse(self.capture.is_listening)
        self.assertEqual(self.recognizer.stop_calls, 1)
        self.assertEqual(self.recognizer.close_calls, 1)


class TestVoiceCaptureLoop(unittest.IsolatedAsyncioTestCase):

    async def test_delivers_on_event_loop(self):
        recognizer = FakeRecognizer()
        received = []
        capture = VoiceCapture(recognizer, lambda text: received.append((text, threading.get_ident())),
                               loop=asyncio.get_running_loop())
        capture.start()

        worker = threading.Thread(target=recognizer.on_text, args=("Aorta",))
        worker.start()
        worker.join()
        await asyncio.sleep(0.01)

        self.assertEqual(received, [("aorta", threading.get_ident())])


class FakeStream:
    """Input stream that records which threads read from it."""

    def __init__(self):
        self.readers = set()
        self.stop_calls = 0
        self.close_calls = 0

    def read(self, frames, exception_on_overflow=True):
        self.readers.add(threading.get_ident())
        return b"\x00\x00" * frames

    def stop_stream(self):
        self.stop_calls += 1

    def close(self):
        self.close_calls += 1


class FakeAudio:
    def __init__(self):
        self.streams = []
        self.terminated = False

    def open(self, **kwargs):
        stream = FakeStream()
        self.streams.append(stream)
        return stream

    def terminate(self):
        self.terminated = True


class SlowRecognizer(ElevenLabsRecognizer):
    """Yields one utterance per run and holds it in transcription until released."""

    def __init__(self):
        super().__init__(client=None, vad_model=None, audio=FakeAudio(), sample_format=8)
        self.release = threading.Event()
        self.transcribing = threading.Semaphore(0)

    def _speech_segments(self, stream, stop_event):
        stream.read(CHUNK)
        yield frames_to_wav([0] * 160)
        while not stop_event.is_set():
            stream.read(CHUNK)
            time.sleep(0.001)

    def _transcribe(self, audio_data):
        self.transcribing.release()
        self.release.wait(5.0)
        return "Aorta"


class TestElevenLabsRecognizer(unittest.TestCase):
    """Test worker lifecycle with fake audio and transcription."""

    def setUp(self):
        self.recognizer = SlowRecognizer()
        self.texts = []
        self.errors = []

    def tearDown(self):
        self.recognizer.release.set()
        self.recognizer.stop()
        self.recognizer.wait_stopped(timeout=2.0)

    def test_restart_during_transcription(self):
        recognizer = self.recognizer
        recognizer.start(self.texts.append, self.errors.append)
        self.assertTrue(recognizer.transcribing.acquire(timeout=2.0))

        started = time.monotonic()
        recognizer.stop()
        self.assertLess(time.monotonic() - started, 0.5)

        recognizer.start(self.texts.append, self.errors.append)
        self.assertTrue(recognizer.transcribing.acquire(timeout=2.0))
        self.assertEqual(recognizer.active_workers, 2)

        recognizer.stop()
        recognizer.release.set()
        self.assertTrue(recognizer.wait_stopped(timeout=2.0))

        first, second = recognizer._audio.streams
        # Each worker reads only its own stream and closes it exactly once
        self.assertEqual(len(first.readers), 1)
        self.assertEqual(len(second.readers), 1)
        self.assertNotEqual(first.readers, second.readers)
        for stream in (first, second):
            self.assertEqual(stream.stop_calls, 1)
            self.assertEqual(stream.close_calls, 1)

        # Both transcriptions finished after their run was stopped
        self.assertEqual(self.texts, [])
        self.assertEqual(self.errors, [])

    def test_delivers_text_while_running(self):
        recognizer = self.recognizer
        recognizer.start(self.texts.append, self.errors.append)
        self.assertTrue(recognizer.transcribing.acquire(timeout=2.0))

        recognizer.release.set()
        deadline = time.monotonic() + 2.0
        while not self.texts and time.monotonic() < deadline:
            time.sleep(0.01)

        recognizer.stop()
        self.assertTrue(recognizer.wait_stopped(timeout=2.0))
        self.assertEqual(self.texts, ["Aorta"])

    def test_close_releases_audio(self):
        self.recognizer.start(self.texts.append, self.errors.append)
        self.recognizer.release.set()

        self.recognizer.close()

        self.assertEqual(self.recognizer.active_workers, 0)
        self.assertTrue(self.recognizer._audio.terminated)

    def test_from_env_requires_api_key(self):
        with mock.patch.dict(os.environ, {"ELEVEN_LABS_API_KEY": ""}):
            with self.assertRaises(ValueError):
                ElevenLabsRecognizer.from_env()


class TestFramesToWav(unittest.TestCase):

    def test_wav_header(self):
        buffer = frames_to_wav([0] * 160)
        data = buffer.getvalue()

        self.assertEqual(data[:4], b"RIFF")
        self.assertEqual(data[8:12], b"WAVE")
        self.assertEqual(len(data), 44 + 160 * 2)


if __name__ == '__main__':
    unittest.main()
