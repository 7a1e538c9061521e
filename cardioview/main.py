"""
Main application: hand, voice and click control of the heart viewer.
"""
import asyncio
import logging
import sys
from typing import Callable, Optional, Set

from dotenv import load_dotenv

from .catalog import ANATOMY_DATA, find_part
from .commands import Command, CommandDispatcher, default_rules
from .config import CameraConfig, TextServiceConfig, load_config
from .gestures import GesturePipeline
from .session import StudySession
from .speech import ElevenLabsRecognizer, VoiceCapture
from .text_service import BackendTextService, GeminiTextService, TextServiceProto
from .types import (
    AnatomicalPart, AppMode, ClosePanelCommand, GestureMode, HandFrame,
    SelectPartCommand, SwitchModeCommand, ViewerProto,
)
from .viewer_mock import MockViewer

logger = logging.getLogger(__name__)

MAX_BACKOFF_S = 8.0

MODE_LABELS = {
    GestureMode.IDLE: "Esperando Mano...",
    GestureMode.ROTATING: "Rotando",
    GestureMode.ZOOMING: "Zoom",
    GestureMode.LOCKED: "Pausado",
    GestureMode.VOICE: "Voz",
}

# BGR
MODE_COLORS = {
    GestureMode.IDLE: (128, 128, 128),
    GestureMode.ROTATING: (212, 212, 45),
    GestureMode.ZOOMING: (250, 165, 96),
    GestureMode.LOCKED: (68, 68, 239),
    GestureMode.VOICE: (153, 72, 236),
}


def build_text_service(cfg: TextServiceConfig) -> TextServiceProto:
    """Pick the text backend named in the config."""
    if cfg.backend == "gemini":
        return GeminiTextService(model=cfg.model)
    return BackendTextService(cfg.backend_url, timeout_s=cfg.timeout_s)


async def open_camera(cfg: CameraConfig, capture_factory: Optional[Callable] = None):
    """
    Open the camera, polling with exponential backoff until it is ready.

    Args:
        cfg: Camera settings; ``open_retries`` of 0 keeps polling forever
        capture_factory: Callable returning a capture for an index

    Returns:
        An opened capture object
    """
    if capture_factory is None:
        import cv2
        capture_factory = cv2.VideoCapture

    delay = cfg.retry_backoff_s
    attempt = 0
    while True:
        attempt += 1
        cap = capture_factory(cfg.index)
        if cap.isOpened():
            return cap
        cap.release()

        if cfg.open_retries and attempt >= cfg.open_retries:
            raise RuntimeError(f"Failed to open camera {cfg.index} after {attempt} attempts")

        logger.warning("📷 Camera %d not ready (attempt %d), retrying in %.1fs", cfg.index, attempt, delay)
        await asyncio.sleep(delay)
        delay = min(delay * 2, MAX_BACKOFF_S)


class CardioViewApp:
    """Main application class wiring input sources to the viewer."""

    def __init__(self, config_path: Optional[str] = None, viewer: Optional[ViewerProto] = None,
                 text_service: Optional[TextServiceProto] = None, enable_voice: bool = True):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.viewer = viewer or MockViewer()
        self.text_service = text_service or build_text_service(self.config.text_service)

        self.pipeline = GesturePipeline(self.config)
        self.session = StudySession(ANATOMY_DATA, self.text_service)
        self.dispatcher = CommandDispatcher(ANATOMY_DATA, default_rules(self.config.voice))
        self.voice = VoiceCapture(None, self.on_utterance)
        self.enable_voice = enable_voice and self.config.voice.enabled

        self.voice_manual = False
        self.model_error = False
        self._tasks: Set[asyncio.Task] = set()
        self._stop = asyncio.Event()

    # ----- input handlers -----

    def on_landmarks(self, landmarks: Optional[HandFrame]) -> None:
        """Detection callback for one camera frame."""
        self.pipeline.on_landmarks(landmarks)
        self.update_voice_activation()

    def on_utterance(self, text: str) -> None:
        """Handle one final utterance from voice capture."""
        command = self.dispatcher.dispatch(text)
        if command is not None:
            self.handle_command(command)

    def on_hotspot_click(self, part_id: str) -> None:
        """Handle a click on a hotspot in the viewer."""
        part = find_part(part_id)
        if part is None:
            logger.warning("Unknown hotspot %s", part_id)
            return
        self.select(part)

    def on_model_error(self) -> None:
        """The viewer failed to load the heart model."""
        logger.error("❌ Viewer could not load the model")
        self.model_error = True

    def handle_command(self, command: Command) -> None:
        if isinstance(command, ClosePanelCommand):
            self.session.close_panel()
        elif isinstance(command, SwitchModeCommand):
            self._spawn(self.session.set_mode(command.mode))
        elif isinstance(command, SelectPartCommand):
            self.select(command.part)

    def select(self, part: AnatomicalPart) -> None:
        self.session.resolve(part)
        if self.session.mode is AppMode.EXPLORE and self.session.selected_part is part:
            self._spawn(self.session.load_clinical_context())

    def toggle_voice(self) -> None:
        self.voice_manual = not self.voice_manual
        self.update_voice_activation()

    def update_voice_activation(self) -> None:
        active = self.pipeline.mode is GestureMode.VOICE or self.voice_manual
        self.voice.set_active(active)

    async def publish_orbit(self, orbit: str, mode: GestureMode) -> None:
        """Apply the integrated orbit only while the gesture drives the camera."""
        if mode.drives_camera:
            await self.viewer.set_camera_orbit(orbit)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ----- main loop -----

    async def _create_voice(self) -> VoiceCapture:
        """Build voice capture; the recognizer loads its VAD model off the event loop."""
        loop = asyncio.get_running_loop()
        recognizer = None
        if self.enable_voice:
            try:
                recognizer = await asyncio.to_thread(
                    ElevenLabsRecognizer.from_env,
                    language_code=self.config.voice.language_code,
                    model_id=self.config.voice.stt_model
                )
            except ValueError as e:
                logger.warning("⚠️ Voice disabled: %s", e)
            except ImportError as e:
                logger.warning("⚠️ Voice disabled, install the 'voice' extra: %s", e)
        return VoiceCapture(recognizer, self.on_utterance, loop=loop)

    async def _shutdown(self, physics: asyncio.Task, cap, tracker, close_windows: Callable[[], None]) -> None:
        """Release every resource, then collect the physics task."""
        self._stop.set()
        for task in list(self._tasks):
            task.cancel()
        try:
            await asyncio.to_thread(self.voice.shutdown)
        finally:
            cap.release()
            tracker.close()
            close_windows()

        try:
            await physics
        except Exception as e:
            logger.error("❌ Physics loop failed: %s", e)

    async def run(self):
        """Run the camera loop and the physics loop until 'q' is pressed."""
        import cv2
        from .landmarks import HandsTracker

        self.voice = await self._create_voice()
        cap = await open_camera(self.config.camera)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        tracker = HandsTracker(
            max_num_hands=self.config.mediapipe.max_num_hands,
            model_complexity=self.config.mediapipe.model_complexity,
            min_detection_conf=self.config.mediapipe.min_detection_confidence,
            min_tracking_conf=self.config.mediapipe.min_tracking_confidence
        )

        await self.viewer.load_hotspots(list(ANATOMY_DATA))

        logger.info("Starting %s", self.config.display.window_name)
        logger.info("🎯 Open palm = rotate | Index = zoom | Fist = stop | Shaka = voice")
        logger.info("Keys: e explore, x quiz, n next case, c close, v voice, q quit")

        physics = asyncio.create_task(self.pipeline.run_physics(self.publish_orbit, self._stop))

        def capture():
            ok, frame = cap.read()
            return ok, frame, (tracker.process(frame) if ok else None)

        try:
            while not self._stop.is_set():
                ok, frame, landmarks = await asyncio.to_thread(capture)
                if not ok:
                    logger.error("Failed to read frame from camera")
                    break

                self.on_landmarks(landmarks)

                if landmarks and self.config.display.show_landmarks:
                    frame = tracker.draw_landmarks(frame, landmarks)
                if self.config.display.mirror:
                    frame = cv2.flip(frame, 1)
                self._draw_hud(cv2, frame)
                cv2.imshow(self.config.display.window_name, frame)

                self._handle_key(cv2.waitKey(1) & 0xFF)
        finally:
            await self._shutdown(physics, cap, tracker, cv2.destroyAllWindows)

    def _handle_key(self, key: int) -> None:
        if key == ord('q'):
            self._stop.set()
        elif key == ord('v'):
            self.toggle_voice()
        elif key == ord('e'):
            self.handle_command(SwitchModeCommand(AppMode.EXPLORE))
        elif key == ord('x'):
            self.handle_command(SwitchModeCommand(AppMode.QUIZ))
        elif key == ord('c'):
            self.handle_command(ClosePanelCommand())
        elif key == ord('n'):
            self._spawn(self.session.next_case())

    def _draw_hud(self, cv2, frame) -> None:
        mode = self.pipeline.mode
        height = frame.shape[0]
        session = self.session

        cv2.putText(frame, MODE_LABELS[mode], (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, MODE_COLORS[mode], 2)
        cv2.putText(frame, f"{session.mode.value} | quiz: {session.quiz_status.value}", (10, 55),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        if session.selected_part is not None:
            cv2.putText(frame, session.selected_part.label, (10, 80),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        if self.voice.is_listening:
            cv2.putText(frame, "ESCUCHANDO...", (10, height - 40), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 255), 2)
        elif self.voice.error and (self.voice_manual or mode is GestureMode.VOICE):
            cv2.putText(frame, self.voice.error, (10, height - 40), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 255), 1)
        cv2.putText(frame, self.pipeline.orbit_output, (10, height - 15), cv2.FONT_HERSHEY_SIMPLEX, 0.4, (200, 200, 200), 1)


async def main():
    """Entry point for the application."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s | %(message)s")

    use_voice = "--no-voice" not in sys.argv

    try:
        app = CardioViewApp(enable_voice=use_voice)
        await app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except RuntimeError as e:
        logger.error("Error: %s", e)


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
