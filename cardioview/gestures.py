"""
Gesture recognition classes that turn hand landmarks into camera orbit motion.
"""
import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional

from .config import Cfg, GestureConfig, MotionConfig
from .landmarks import finger_states, pinch_distance
from .types import CameraOrbitState, ControlState, GestureMode, GestureReading, HandFrame

logger = logging.getLogger(__name__)

LANDMARK_COUNT = 21

OrbitPublisher = Callable[[str, GestureMode], Awaitable[None]]


class GestureClassifier:
    """
    Maps one hand frame to a GestureMode plus raw control deltas.

    Stateless: the reading depends only on the frame passed in. Rules are
    evaluated in a fixed order and the first match wins:

    1. VOICE    - thumb and pinky out, index/middle/ring curled ("shaka")
    2. LOCKED   - closed fist, thumb curled
    3. ZOOMING  - index is the only one of the four fingers out
    4. ROTATING - three or more of the four fingers out
    5. IDLE     - anything else
    """

    def __init__(self, cfg: GestureConfig):
        """Initialize the classifier with gesture constants."""
        self.cfg = cfg
        self._rules = (
            (self._is_shaka, self._voice_reading),
            (self._is_fist, self._locked_reading),
            (self._is_index_only, self._zoom_reading),
            (self._is_open_palm, self._rotate_reading),
        )

    def classify(self, landmarks: Optional[HandFrame]) -> GestureReading:
        """
        Classify a single frame.

        Args:
            landmarks: 21 normalized landmarks of the first hand, or None

        Returns:
            GestureReading for this frame
        """
        if landmarks is None or len(landmarks) < LANDMARK_COUNT:
            # Hand lost: stop and pin the zoom target to avoid a snap on reacquire
            return GestureReading(mode=GestureMode.IDLE, hand_present=False, reset_zoom=True)

        fingers = finger_states(landmarks)
        for matches, build in self._rules:
            if matches(fingers):
                return build(landmarks)

        return GestureReading(mode=GestureMode.IDLE, hand_present=True)

    @staticmethod
    def _four_fingers(fingers: dict) -> int:
        return sum(fingers[name] for name in ("index", "middle", "ring", "pinky"))

    def _is_shaka(self, fingers: dict) -> bool:
        return (fingers["thumb"] and fingers["pinky"] and
                not fingers["index"] and not fingers["middle"] and not fingers["ring"])

    def _is_fist(self, fingers: dict) -> bool:
        return self._four_fingers(fingers) == 0 and not fingers["thumb"]

    def _is_index_only(self, fingers: dict) -> bool:
        return fingers["index"] and self._four_fingers(fingers) == 1

    def _is_open_palm(self, fingers: dict) -> bool:
        return self._four_fingers(fingers) >= 3

    def _voice_reading(self, landmarks: HandFrame) -> GestureReading:
        return GestureReading(mode=GestureMode.VOICE, hand_present=True, reset_zoom=True)

    def _locked_reading(self, landmarks: HandFrame) -> GestureReading:
        return GestureReading(mode=GestureMode.LOCKED, hand_present=True, reset_zoom=True, brake=True)

    def _zoom_reading(self, landmarks: HandFrame) -> GestureReading:
        target = self.cfg.zoom_far - pinch_distance(landmarks) * self.cfg.zoom_scale
        return GestureReading(mode=GestureMode.ZOOMING, hand_present=True, zoom_target=target)

    def _rotate_reading(self, landmarks: HandFrame) -> GestureReading:
        knuckle = landmarks[self.cfg.reference_landmark]
        hand_x = 1.0 - knuckle[0]  # mirror so the preview behaves like a mirror
        hand_y = knuckle[1]

        dx = self._apply_deadzone(hand_x - 0.5)
        dy = self._apply_deadzone(hand_y - 0.5)

        return GestureReading(
            mode=GestureMode.ROTATING,
            hand_present=True,
            d_azimuth=-dx * self.cfg.azimuth_gain,
            d_polar=-dy * self.cfg.polar_gain,
        )

    def _apply_deadzone(self, offset: float) -> float:
        return 0.0 if abs(offset) < self.cfg.deadzone else offset


class MotionIntegrator:
    """
    Advances the camera orbit from raw control at a fixed tick rate.

    Features:
    - Exponential smoothing of angular rates
    - Polar clamp away from the poles
    - Exponential approach to the zoom target
    - Radius clamp regardless of target
    """

    def __init__(self, cfg: MotionConfig):
        """Initialize the integrator with motion constants."""
        self.cfg = cfg

    def initial_orbit(self) -> CameraOrbitState:
        return CameraOrbitState(
            azimuth=self.cfg.initial_azimuth,
            polar=self.cfg.initial_polar,
            radius=self.cfg.initial_radius,
        )

    @property
    def min_polar(self) -> float:
        return self.cfg.polar_margin

    @property
    def max_polar(self) -> float:
        return math.pi - self.cfg.polar_margin

    def tick(self, state: ControlState) -> str:
        """
        Advance smoothed velocity and orbit by one tick.

        Reads ``state.raw``; writes only ``state.smoothed`` and ``state.orbit``.

        Returns:
            Orbit descriptor for the viewer
        """
        raw = state.raw
        smoothed = state.smoothed
        orbit = state.orbit
        alpha = self.cfg.smoothing_alpha

        if raw.brake:
            smoothed.azimuth_rate = 0.0
            smoothed.polar_rate = 0.0

        smoothed.azimuth_rate += (raw.d_azimuth - smoothed.azimuth_rate) * alpha
        smoothed.polar_rate += (raw.d_polar - smoothed.polar_rate) * alpha

        orbit.azimuth += smoothed.azimuth_rate
        orbit.polar += smoothed.polar_rate
        orbit.polar = max(self.min_polar, min(self.max_polar, orbit.polar))

        if raw.zoom_target != 0:
            orbit.radius += (raw.zoom_target - orbit.radius) * self.cfg.zoom_rate
        orbit.radius = max(self.cfg.min_radius, min(self.cfg.max_radius, orbit.radius))

        return orbit.descriptor()


class GesturePipeline:
    """
    Owns the shared control state and bridges the two drivers.

    The detection callback (``on_landmarks``) runs at camera rate and only
    writes mode and raw control. The physics loop (``run_physics``) runs at
    a fixed rate and only writes smoothed velocity and orbit.
    """

    def __init__(self, cfg: Cfg):
        """Initialize the pipeline from the full configuration."""
        self.cfg = cfg
        self.classifier = GestureClassifier(cfg.gestures)
        self.integrator = MotionIntegrator(cfg.motion)
        self.state = ControlState(orbit=self.integrator.initial_orbit())
        self.state.raw.zoom_target = self.state.orbit.radius
        self.orbit_output = self.state.orbit.descriptor()

    @property
    def mode(self) -> GestureMode:
        return self.state.mode

    def on_landmarks(self, landmarks: Optional[HandFrame]) -> GestureReading:
        """Detection callback: classify a frame and store its raw control."""
        reading = self.classifier.classify(landmarks)
        self.apply(reading)
        return reading

    def apply(self, reading: GestureReading) -> None:
        """Write a reading into the raw half of the shared state."""
        state = self.state
        raw = state.raw

        if reading.mode is not state.mode:
            logger.debug("Gesture mode %s -> %s", state.mode.value, reading.mode.value)

        state.mode = reading.mode
        state.hand_present = reading.hand_present
        raw.d_azimuth = reading.d_azimuth
        raw.d_polar = reading.d_polar
        raw.brake = reading.brake

        if reading.reset_zoom:
            raw.zoom_target = state.orbit.radius
        elif reading.zoom_target is not None:
            raw.zoom_target = reading.zoom_target

    def tick(self) -> str:
        """Run one physics step and remember the published descriptor."""
        self.orbit_output = self.integrator.tick(self.state)
        return self.orbit_output

    async def run_physics(self, publish: Optional[OrbitPublisher] = None,
                          stop: Optional[asyncio.Event] = None) -> None:
        """
        Fixed-rate physics loop, independent of camera frame delivery.

        Args:
            publish: Awaited with (descriptor, mode) after every tick
            stop: Event that ends the loop once set
        """
        period = 1.0 / self.cfg.motion.tick_hz
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while stop is None or not stop.is_set():
            orbit = self.tick()
            if publish is not None:
                await publish(orbit, self.state.mode)

            next_tick += period
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind; resync instead of bursting ticks
                next_tick = loop.time()
                delay = 0.0
            await asyncio.sleep(delay)
