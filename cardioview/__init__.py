"""
CardioView Hand Control

A Python service that reads webcam frames, detects hand landmarks using MediaPipe,
and turns gestures, voice commands and hotspot clicks into camera motion,
clinical notes and quiz rounds for an interactive heart model.
"""

__version__ = "0.1.0"
__author__ = "Healthcare Intake Assistant Team"

from .types import (
    GestureMode, AppMode, QuizStatus, AnatomicalPart, CameraOrbitState,
    ClosePanelCommand, SwitchModeCommand, SelectPartCommand, ViewerProto,
)
from .config import load_config, Cfg
from .catalog import ANATOMY_DATA, find_part
from .commands import CommandDispatcher, default_rules
from .gestures import GestureClassifier, MotionIntegrator, GesturePipeline
from .session import StudySession
from .viewer_mock import MockViewer

__all__ = [
    "GestureMode",
    "AppMode",
    "QuizStatus",
    "AnatomicalPart",
    "CameraOrbitState",
    "ClosePanelCommand",
    "SwitchModeCommand",
    "SelectPartCommand",
    "ViewerProto",
    "load_config",
    "Cfg",
    "ANATOMY_DATA",
    "find_part",
    "CommandDispatcher",
    "default_rules",
    "GestureClassifier",
    "MotionIntegrator",
    "GesturePipeline",
    "StudySession",
    "MockViewer",
]
