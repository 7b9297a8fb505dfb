# obstacle_monitor.py
# Polls the obstacle sensor feed and classifies what it reports.
# Debounced and fail-open: a skipped or failed poll reads as "no obstacles".

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ..data_models import DangerLevel, Obstacle, ObstacleReport
from ..navigation.nav_config import NavConfig

logger = logging.getLogger(__name__)


class ObstacleMonitor:
    """
    Rate-limited client for the detector's status endpoint.

    One instance is shared by every call site (pre-turn check, in-motion
    watch, avoidance re-checks) so the debounce holds across all of them.

    Args:
        config:  NavConfig with sensor URL, timeout and thresholds.
        session: Optional requests.Session (injectable for tests).
        clock:   Monotonic time source in seconds.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or NavConfig()
        self.session = session or requests.Session()
        self._clock = clock
        self._last_check = float("-inf")
        self.latest: Optional[ObstacleReport] = None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def in_center_band(self, obs: Obstacle) -> bool:
        lo, hi = self.config.center_band
        return obs.center_x is not None and lo <= obs.center_x <= hi

    def is_dangerous(self, obs: Obstacle) -> bool:
        cfg = self.config
        if obs.danger_level is DangerLevel.HIGH:
            return True
        if obs.area is not None and obs.area > cfg.danger_area_px:
            return True
        if obs.distance_from_center is not None and obs.distance_from_center < cfg.in_path_offset_px:
            return True
        return (
            self.in_center_band(obs)
            and obs.distance_m is not None
            and obs.distance_m < cfg.danger_distance_m
        )

    def dangerous(self, obstacles: List[Obstacle]) -> List[Obstacle]:
        return [obs for obs in obstacles if self.is_dangerous(obs)]

    def blocking(self, obstacles: List[Obstacle]) -> List[Obstacle]:
        """Obstacles that still block the way ahead: high threat or centred."""
        return [
            obs for obs in obstacles
            if obs.danger_level is DangerLevel.HIGH or self.in_center_band(obs)
        ]

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _fetch(self) -> Optional[List[Dict[str, Any]]]:
        """Blocking GET of the feed; None when it cannot be read."""
        try:
            response = self.session.get(self.config.sensor_url, timeout=self.config.sensor_timeout_s)
        except requests.RequestException as e:
            logger.warning(f"Obstacle check failed: {e}")
            return None

        if not response.ok:
            logger.warning(f"Obstacle detection API not responding (HTTP {response.status_code})")
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Obstacle feed returned invalid JSON: {e}")
            return None

        obstacles = data.get("obstacles") if isinstance(data, dict) else None
        return obstacles if isinstance(obstacles, list) else []

    def _parse(self, entries: List[Any]) -> List[Obstacle]:
        """Convert feed entries, skipping any that are malformed."""
        obstacles: List[Obstacle] = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping non-object obstacle entry: {entry!r}")
                continue
            try:
                obstacles.append(Obstacle.from_dict(entry))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed obstacle entry {entry!r}: {e}")
        return obstacles

    async def poll_obstacles(self) -> List[Obstacle]:
        """
        Current obstacles, or [] when debounced or the feed is unavailable.

        Never raises.
        """
        now = self._clock()
        if now - self._last_check < self.config.obstacle_check_interval_s:
            return []
        self._last_check = now

        try:
            raw = await asyncio.to_thread(self._fetch)
        except Exception as e:
            logger.warning(f"Obstacle check failed: {e}")
            raw = None

        obstacles = self._parse(raw or [])
        self.latest = ObstacleReport(
            timestamp=now,
            obstacles=obstacles,
            dangerous=self.dangerous(obstacles),
            ok=raw is not None,
        )
        if obstacles:
            logger.info(f"Detected {len(obstacles)} objects: {self.latest.labels}")
        return obstacles

    def health(self) -> bool:
        """True when the detector's /health endpoint answers 2xx."""
        try:
            response = self.session.get(self.config.sensor_health_url, timeout=self.config.sensor_timeout_s)
        except requests.RequestException as e:
            logger.warning(f"Detection server not available: {e}")
            return False
        return bool(response.ok)
