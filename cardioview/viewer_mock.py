"""
Mock viewer implementation for running without a 3D surface.
"""
import logging
from typing import List, Optional

from .types import AnatomicalPart

logger = logging.getLogger(__name__)


class MockViewer:
    """Mock viewer that records camera updates instead of rendering them."""

    def __init__(self):
        """Initialize the mock viewer."""
        self.orbit_count = 0
        self.last_orbit: Optional[str] = None
        self.hotspots: List[AnatomicalPart] = []

    async def set_camera_orbit(self, orbit: str) -> None:
        """Remember the orbit instead of moving a camera."""
        self.orbit_count += 1
        self.last_orbit = orbit
        logger.debug("[MockViewer] camera-orbit=%s (update #%d)", orbit, self.orbit_count)

    async def load_hotspots(self, parts: List[AnatomicalPart]) -> None:
        """Remember the hotspot catalog."""
        self.hotspots = list(parts)
        logger.info("[MockViewer] %d hotspots loaded", len(self.hotspots))

    def reset_counters(self) -> None:
        """Reset update counters for testing."""
        self.orbit_count = 0
        self.last_orbit = None
