# route_tracker.py
# Compares the rover's (simulated) position to the active step's end point.
# Reports progress only; the StepCoordinator decides whether to advance.

from typing import Optional

from .geo_utils import haversine_distance
from .models import Coord, NavigationState, ProgressResult, RouteStatus
from .nav_config import NavConfig


class RouteTracker:
    """
    Read-only progress checker over a NavigationState.

    Usage:
        tracker = RouteTracker(state, config)

        # On every pose update:
        result = tracker.check_progress(sim.pose.position)
    """

    def __init__(self, state: NavigationState, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._state = state

    def check_progress(self, position: Coord) -> ProgressResult:
        """
        Compare position to the current step's end coordinate.

        Args:
            position: Current geographic position.

        Returns:
            ProgressResult; WAYPOINT_HIT means the end point is within waypoint_threshold_m.
        """
        state = self._state
        if not state.active:
            return ProgressResult(
                status=RouteStatus.INACTIVE,
                message="No active route.",
            )

        target = state.current_step
        if target is None:
            return ProgressResult(
                status=RouteStatus.FINISHED,
                message="No steps left to check.",
            )

        if target.end is None:
            return ProgressResult(
                status=RouteStatus.PROGRESSING,
                message=f"Step {state.current_step_index + 1} has no end point.",
                current_step=target,
            )

        dist = haversine_distance(
            position.lat, position.lon,
            target.end.lat, target.end.lon,
        )

        if dist < self.config.waypoint_threshold_m:
            return ProgressResult(
                status=RouteStatus.WAYPOINT_HIT,
                message=f"Step {state.current_step_index + 1} completed",
                distance_to_next=dist,
                current_step=target,
            )

        return ProgressResult(
            status=RouteStatus.PROGRESSING,
            message=f"{dist:.1f} m remaining",
            distance_to_next=dist,
            current_step=target,
        )
