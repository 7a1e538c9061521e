"""
Type definitions for the CardioView gesture, voice and quiz system.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable


# One landmark is (x, y) or (x, y, z) in normalized image space.
Landmark = Tuple[float, ...]
HandFrame = Sequence[Landmark]


class GestureMode(Enum):
    """Discrete interaction modes recognized from a single hand frame."""
    IDLE = "IDLE"
    ROTATING = "ROTATING"
    ZOOMING = "ZOOMING"
    LOCKED = "LOCKED"
    VOICE = "VOICE"

    @property
    def drives_camera(self) -> bool:
        """True when the viewer should follow the integrated orbit."""
        return self in (GestureMode.ROTATING, GestureMode.ZOOMING)


class AppMode(Enum):
    """Top-level study mode."""
    EXPLORE = "EXPLORE"
    QUIZ = "QUIZ"


class QuizStatus(Enum):
    """Quiz round status."""
    IDLE = "IDLE"
    LOADING = "LOADING"
    WAITING_FOR_USER = "WAITING_FOR_USER"
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"


@dataclass
class GestureReading:
    """Result of classifying one hand frame."""
    mode: GestureMode
    hand_present: bool
    d_azimuth: float = 0.0
    d_polar: float = 0.0
    zoom_target: Optional[float] = None  # None leaves the current target alone
    reset_zoom: bool = False  # snap the target to the current radius
    brake: bool = False  # stop residual motion on the next tick


@dataclass
class ControlVelocity:
    """Raw per-frame control, written only by the detection callback."""
    d_azimuth: float = 0.0
    d_polar: float = 0.0
    zoom_target: float = 0.0  # 0 means no zoom target is active
    brake: bool = False


@dataclass
class SmoothedVelocity:
    """Exponentially damped angular rates, written only by the physics tick."""
    azimuth_rate: float = 0.0
    polar_rate: float = 0.0


@dataclass
class CameraOrbitState:
    """Camera position around the model's look-at point."""
    azimuth: float = 0.0
    polar: float = math.pi / 2
    radius: float = 100.0

    def descriptor(self) -> str:
        """Orbit string understood by the viewer: azimuth, polar, radius%."""
        return f"{self.azimuth}rad {self.polar}rad {self.radius}%"


@dataclass
class ControlState:
    """
    Shared record between the detection callback and the physics tick.

    The callback writes ``mode`` and ``raw``; the tick writes ``smoothed``
    and ``orbit``.
    """
    mode: GestureMode = GestureMode.IDLE
    hand_present: bool = False
    raw: ControlVelocity = field(default_factory=ControlVelocity)
    smoothed: SmoothedVelocity = field(default_factory=SmoothedVelocity)
    orbit: CameraOrbitState = field(default_factory=CameraOrbitState)


@dataclass(frozen=True)
class AnatomicalPart:
    """Static catalog entry bound to one hotspot on the heart model."""
    id: str
    label: str
    description: str
    position: str  # data-surface string understood by the viewer
    normal: str
    keywords: Tuple[str, ...]


@dataclass
class ClosePanelCommand:
    """Command to close the detail panel."""


@dataclass
class SwitchModeCommand:
    """Command to switch between explore and quiz mode."""
    mode: AppMode


@dataclass
class SelectPartCommand:
    """Command to resolve a catalog entry, exactly like a hotspot click."""
    part: AnatomicalPart


@runtime_checkable
class ViewerProto(Protocol):
    """Abstract protocol for the 3D surface that renders the heart model."""

    async def set_camera_orbit(self, orbit: str) -> None:
        """Apply an orbit descriptor such as ``"0rad 1.57rad 100%"``."""
        ...

    async def load_hotspots(self, parts: List[AnatomicalPart]) -> None:
        """Place one clickable hotspot per catalog entry."""
        ...
