"""
Configuration management for the CardioView viewer.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    open_retries: int  # 0 retries forever
    retry_backoff_s: float


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class GestureConfig:
    """Gesture classification constants."""
    deadzone: float
    azimuth_gain: float
    polar_gain: float
    zoom_far: float
    zoom_scale: float
    reference_landmark: int


@dataclass
class MotionConfig:
    """Camera motion integration settings."""
    tick_hz: float
    smoothing_alpha: float
    zoom_rate: float
    polar_margin: float
    min_radius: float
    max_radius: float
    initial_azimuth: float
    initial_polar: float
    initial_radius: float


@dataclass
class VoiceConfig:
    """Voice capture and command phrase settings."""
    enabled: bool
    language_code: str
    stt_model: str
    close_phrases: List[str]
    explore_phrases: List[str]
    quiz_phrases: List[str]


@dataclass
class TextServiceConfig:
    """Clinical text service settings."""
    backend: str  # "backend" or "gemini"
    backend_url: str
    model: str
    timeout_s: float


@dataclass
class ServerConfig:
    """Text backend server settings."""
    host: str
    port: int


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    mirror: bool
    window_name: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    gestures: GestureConfig
    motion: MotionConfig
    voice: VoiceConfig
    text_service: TextServiceConfig
    server: ServerConfig
    display: DisplayConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps'],
        open_retries=camera_data['open_retries'],
        retry_backoff_s=float(camera_data['retry_backoff_s'])
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        max_num_hands=mp_data['max_num_hands'],
        model_complexity=mp_data['model_complexity'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence']
    )

    gestures_data = data['gestures']
    gestures = GestureConfig(
        deadzone=float(gestures_data['deadzone']),
        azimuth_gain=float(gestures_data['azimuth_gain']),
        polar_gain=float(gestures_data['polar_gain']),
        zoom_far=float(gestures_data['zoom_far']),
        zoom_scale=float(gestures_data['zoom_scale']),
        reference_landmark=gestures_data['reference_landmark']
    )

    motion_data = data['motion']
    motion = MotionConfig(
        tick_hz=float(motion_data['tick_hz']),
        smoothing_alpha=float(motion_data['smoothing_alpha']),
        zoom_rate=float(motion_data['zoom_rate']),
        polar_margin=float(motion_data['polar_margin']),
        min_radius=float(motion_data['min_radius']),
        max_radius=float(motion_data['max_radius']),
        initial_azimuth=float(motion_data['initial_azimuth']),
        initial_polar=float(motion_data['initial_polar']),
        initial_radius=float(motion_data['initial_radius'])
    )

    voice_data = data['voice']
    voice = VoiceConfig(
        enabled=voice_data['enabled'],
        language_code=voice_data['language_code'],
        stt_model=voice_data['stt_model'],
        close_phrases=list(voice_data['close_phrases']),
        explore_phrases=list(voice_data['explore_phrases']),
        quiz_phrases=list(voice_data['quiz_phrases'])
    )

    text_data = data['text_service']
    text_service = TextServiceConfig(
        backend=text_data['backend'],
        backend_url=text_data['backend_url'],
        model=text_data['model'],
        timeout_s=float(text_data['timeout_s'])
    )

    server_data = data['server']
    server = ServerConfig(
        host=server_data['host'],
        port=server_data['port']
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        mirror=display_data['mirror'],
        window_name=display_data['window_name']
    )

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        gestures=gestures,
        motion=motion,
        voice=voice,
        text_service=text_service,
        server=server,
        display=display
    )
