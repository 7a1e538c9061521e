"""
Synthetic hand frames for gesture tests.
"""
from typing import Iterable, List, Optional, Tuple

WRIST_XY = (0.5, 0.9)

# x column per finger; joints sit at y=0.6, tips at 0.3 (extended) or 0.75 (curled)
FINGER_COLUMNS = {
    "thumb": (4, 2, 0.3),
    "index": (8, 6, 0.4),
    "middle": (12, 10, 0.5),
    "ring": (16, 14, 0.6),
    "pinky": (20, 18, 0.7),
}

OPEN_PALM = ("thumb", "index", "middle", "ring", "pinky")
SHAKA = ("thumb", "pinky")
FIST: Tuple[str, ...] = ()


def make_hand(extended: Iterable[str], knuckle: Tuple[float, float] = (0.5, 0.5),
              thumb_tip: Optional[Tuple[float, float]] = None) -> List[Tuple[float, float, float]]:
    """
    Build 21 normalized landmarks with the named fingers extended.

    Args:
        extended: Finger names that should read as extended
        knuckle: Raw (unmirrored) position of the middle knuckle, landmark 9
        thumb_tip: Optional override for landmark 4, used to set pinch distance
    """
    extended = set(extended)
    landmarks = [(0.5, 0.5, 0.0)] * 21
    landmarks[0] = (WRIST_XY[0], WRIST_XY[1], 0.0)

    for name, (tip, joint, x) in FINGER_COLUMNS.items():
        landmarks[joint] = (x, 0.6, 0.0)
        landmarks[tip] = (x, 0.3 if name in extended else 0.75, 0.0)

    landmarks[9] = (knuckle[0], knuckle[1], 0.0)
    if thumb_tip is not None:
        landmarks[4] = (thumb_tip[0], thumb_tip[1], 0.0)

    return landmarks
