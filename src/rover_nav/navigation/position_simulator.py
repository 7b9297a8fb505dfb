# position_simulator.py
# Keeps the rover's simulated pose (coordinate + bearing) in step with the
# commands it executes. Used for progress estimation and map animation only;
# it never reads real GPS.

import logging
import math
from typing import Optional

from .geo_utils import calculate_bearing, destination_point, normalize_bearing
from .models import Coord, Maneuver, RobotCommand, RouteStep, SimulatedPose
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class PositionSimulator:
    """
    Deterministic dead-reckoning on a spherical Earth.

    Usage:
        sim = PositionSimulator(config)
        sim.initialize(Coord(43.6532, -79.3832))
        pose = sim.apply_movement(RobotCommand.FORWARD, 120.0)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._pose: Optional[SimulatedPose] = None
        self._start: Optional[Coord] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self, start: Optional[Coord] = None, bearing_deg: float = 0.0) -> SimulatedPose:
        """Place the rover at start (or the configured default), facing bearing_deg."""
        if start is None:
            start = Coord(*self.config.default_start)
        self._start = start
        self._pose = SimulatedPose(position=start, bearing_deg=normalize_bearing(bearing_deg))
        logger.info(f"Simulated rover initialized at {start.lat:.6f}, {start.lon:.6f}")
        return self._pose

    @property
    def pose(self) -> SimulatedPose:
        if self._pose is None:
            return self.initialize()
        return self._pose

    @property
    def start(self) -> Optional[Coord]:
        return self._start

    # ------------------------------------------------------------------
    # Scaling and turn angles
    # ------------------------------------------------------------------

    def simulated_distance(self, real_distance_m: float) -> float:
        """
        Compress a real leg length into the centimetre-scale band used on the map.

        Monotonic non-decreasing and saturating; zero for non-positive input.
        """
        if not real_distance_m or real_distance_m <= 0 or math.isnan(real_distance_m):
            return 0.0
        cfg = self.config
        scaled = cfg.sim_min_step_m + cfg.sim_gain_m * math.log1p(real_distance_m)
        return min(cfg.sim_max_step_m, scaled)

    def turn_angle(self, maneuver: Maneuver) -> float:
        """Default rotation magnitude for a maneuver family."""
        angles = self.config.turn_angles
        value = maneuver.value
        if maneuver.is_roundabout:
            return angles["roundabout"]
        if value.startswith("ramp"):
            return angles["ramp"]
        if "slight" in value:
            return angles["slight"]
        if "sharp" in value:
            return angles["sharp"]
        return angles["normal"]

    def _turned_bearing(self, bearing: float, command: RobotCommand,
                        step: Optional[RouteStep]) -> float:
        if step is not None and step.has_geometry and step.start != step.end:
            # Geometry wins over the maneuver default
            return calculate_bearing(step.start.lat, step.start.lon, step.end.lat, step.end.lon)

        angle = self.turn_angle(step.maneuver if step else Maneuver.UNKNOWN)
        if command is RobotCommand.LEFT:
            return normalize_bearing(bearing - angle)
        return normalize_bearing(bearing + angle)

    # ------------------------------------------------------------------
    # Core method
    # ------------------------------------------------------------------

    def apply_movement(
        self,
        command: RobotCommand,
        real_distance_m: float,
        step: Optional[RouteStep] = None,
    ) -> SimulatedPose:
        """
        Advance the pose by one executed command.

        Args:
            command:         Executed robot command.
            real_distance_m: Distance of the real route leg.
            step:            Route step, for maneuver type and geometry.

        Returns:
            The new SimulatedPose.
        """
        pose = self.pose
        position, bearing = pose.position, pose.bearing_deg

        if command.is_turn:
            bearing = self._turned_bearing(bearing, command, step)
            # A turn step with a distance also carries its forward leg
            travel_bearing = bearing
        elif command is RobotCommand.BACKWARD:
            travel_bearing = normalize_bearing(bearing + 180.0)
        else:
            travel_bearing = bearing

        sim_m = self.simulated_distance(real_distance_m)
        if sim_m > 0:
            lat, lon = destination_point(
                position.lat, position.lon, travel_bearing, sim_m,
                radius_m=self.config.earth_radius_m,
            )
            if not (math.isnan(lat) or math.isnan(lon)):
                position = Coord(lat, lon)

        self._pose = SimulatedPose(position=position, bearing_deg=normalize_bearing(bearing))
        logger.debug(
            f"{command.value} {real_distance_m}m -> "
            f"{position.lat:.8f}, {position.lon:.8f} @ {self._pose.bearing_deg:.1f}°"
        )
        return self._pose
