"""
Hand landmark detection and finger geometry using MediaPipe.
"""
import math
import numpy as np
from typing import Optional, List, Tuple

from .types import HandFrame

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8

# (tip, proximal joint) per finger
FINGER_JOINTS = {
    "thumb": (4, 2),
    "index": (8, 6),
    "middle": (12, 10),
    "ring": (16, 14),
    "pinky": (20, 18),
}

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
]


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, max_num_hands: int = 1, model_complexity: int = 1,
                 min_detection_conf: float = 0.6, min_tracking_conf: float = 0.6):
        """
        Initialize the hands tracker.

        Args:
            max_num_hands: Maximum number of hands to detect
            model_complexity: MediaPipe landmark model complexity (0 or 1)
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
        """
        # Vision deps ship in the optional ``vision`` extra.
        import cv2
        import mediapipe as mp

        self._cv2 = cv2
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )

    def process(self, frame_bgr: np.ndarray) -> Optional[List[Tuple[float, float, float]]]:
        """
        Process a frame and return hand landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            List of 21 (x, y, z) coordinates in [0..1] range, or None if no hand detected
        """
        frame_rgb = self._cv2.cvtColor(frame_bgr, self._cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if results.multi_hand_landmarks:
            # Only the first detected hand drives the camera
            hand_landmarks = results.multi_hand_landmarks[0]
            return [(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark]

        return None

    def draw_landmarks(self, frame: np.ndarray, landmarks: HandFrame) -> np.ndarray:
        """
        Draw hand connections and landmarks on the frame.

        Args:
            frame: Input frame
            landmarks: 21 normalized landmarks

        Returns:
            Frame with landmarks drawn
        """
        cv2 = self._cv2
        height, width = frame.shape[:2]
        points = [(int(lm[0] * width), int(lm[1] * height)) for lm in landmarks]

        for a, b in HAND_CONNECTIONS:
            cv2.line(frame, points[a], points[b], (68, 68, 239), 2, cv2.LINE_AA)
        for px, py in points:
            cv2.circle(frame, (px, py), 2, (255, 255, 255), -1)

        return frame

    def close(self) -> None:
        self.hands.close()


def distance_2d(a, b) -> float:
    """Euclidean distance between two landmarks in the image plane."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def is_finger_extended(landmarks: HandFrame, tip_idx: int, joint_idx: int) -> bool:
    """
    Radial extension test: the tip lies farther from the wrist than its joint.

    Args:
        landmarks: List of 21 hand landmarks
        tip_idx: Fingertip landmark index
        joint_idx: Proximal joint landmark index

    Returns:
        True if the finger is extended
    """
    wrist = landmarks[WRIST]
    return distance_2d(landmarks[tip_idx], wrist) > distance_2d(landmarks[joint_idx], wrist)


def finger_states(landmarks: HandFrame) -> dict:
    """Extension state for every finger, keyed by name."""
    return {
        name: is_finger_extended(landmarks, tip, joint)
        for name, (tip, joint) in FINGER_JOINTS.items()
    }


def pinch_distance(landmarks: HandFrame) -> float:
    """Normalized distance between the thumb tip and the index tip."""
    return distance_2d(landmarks[THUMB_TIP], landmarks[INDEX_TIP])
