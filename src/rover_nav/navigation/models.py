# models.py
# Shared data structures and enums used across the navigation modules.

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate."""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(d: Optional[dict]) -> Optional["Coord"]:
        """Accepts both ``lon`` and the directions-style ``lng`` key."""
        if not d:
            return None
        lon = d.get("lon", d.get("lng"))
        if d.get("lat") is None or lon is None:
            return None
        return Coord(float(d["lat"]), float(lon))


# ---------------------------------------------------------------------------
# Maneuvers and robot commands
# ---------------------------------------------------------------------------

class Maneuver(Enum):
    STRAIGHT          = "straight"
    TURN_SLIGHT_LEFT  = "turn-slight-left"
    TURN_LEFT         = "turn-left"
    TURN_SHARP_LEFT   = "turn-sharp-left"
    TURN_SLIGHT_RIGHT = "turn-slight-right"
    TURN_RIGHT        = "turn-right"
    TURN_SHARP_RIGHT  = "turn-sharp-right"
    RAMP_LEFT         = "ramp-left"
    RAMP_RIGHT        = "ramp-right"
    ROUNDABOUT_LEFT   = "roundabout-left"
    ROUNDABOUT_RIGHT  = "roundabout-right"
    UNKNOWN           = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Maneuver":
        """Map a raw maneuver string to the enum; anything unrecognised is UNKNOWN."""
        if isinstance(value, Maneuver):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_left(self) -> bool:
        return self.value.endswith("-left")

    @property
    def is_right(self) -> bool:
        return self.value.endswith("-right")

    @property
    def is_roundabout(self) -> bool:
        return self.value.startswith("roundabout")


class RobotCommand(Enum):
    FORWARD  = "forward"
    BACKWARD = "backward"
    LEFT     = "left"
    RIGHT    = "right"

    @property
    def is_turn(self) -> bool:
        return self in (RobotCommand.LEFT, RobotCommand.RIGHT)


# ---------------------------------------------------------------------------
# Route step
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RouteStep:
    """A single navigation instruction in a route."""
    step_id: int
    text: str
    maneuver: Maneuver
    distance_meters: float
    start: Optional[Coord] = None
    end: Optional[Coord] = None

    def __post_init__(self) -> None:
        if self.distance_meters < 0:
            raise ValueError(f"distance_meters must be >= 0, got {self.distance_meters}")

    @property
    def has_geometry(self) -> bool:
        return self.start is not None and self.end is not None

    def to_dict(self) -> dict:
        return {
            "step_id": self.step_id,
            "text": self.text,
            "maneuver": self.maneuver.value,
            "distance_meters": self.distance_meters,
            "start": self.start.to_dict() if self.start else None,
            "end": self.end.to_dict() if self.end else None,
        }

    @staticmethod
    def from_dict(d: dict) -> "RouteStep":
        return RouteStep(
            step_id=d["step_id"],
            text=d["text"],
            maneuver=Maneuver.parse(d.get("maneuver")),
            distance_meters=float(d["distance_meters"]),
            start=Coord.from_dict(d.get("start")),
            end=Coord.from_dict(d.get("end")),
        )


# ---------------------------------------------------------------------------
# Navigation run state
# ---------------------------------------------------------------------------

class NavPhase(Enum):
    IDLE              = "idle"
    ANNOUNCING        = "announcing"
    MOVING            = "moving"
    OBSTACLE_HANDLING = "obstacle_handling"
    ADVANCING         = "advancing"
    COMPLETE          = "complete"
    HALTED            = "halted"


class CompletionSource(Enum):
    MOVEMENT = "movement"
    POSITION = "position"


@dataclass
class NavigationState:
    """
    Mutable state of one navigation run.

    Owned by the StepCoordinator; collaborators receive it by reference and
    only touch the motion flags (in_progress / stop_only_mode).
    """
    steps: List[RouteStep] = field(default_factory=list)
    current_step_index: int = 0
    active: bool = False
    step_locked: bool = False
    in_progress: bool = False
    stop_only_mode: bool = False
    phase: NavPhase = NavPhase.IDLE
    last_completion_time: float = float("-inf")
    halt_reason: Optional[str] = None

    def reset(self, steps: List[RouteStep]) -> None:
        """Load a new route and start from step 0."""
        self.steps = list(steps)
        self.current_step_index = 0
        self.active = True
        self.step_locked = False
        self.in_progress = False
        self.stop_only_mode = False
        self.phase = NavPhase.IDLE
        self.last_completion_time = float("-inf")
        self.halt_reason = None

    def release_motion_flags(self) -> None:
        self.in_progress = False
        self.stop_only_mode = False

    @property
    def is_complete(self) -> bool:
        return bool(self.steps) and self.current_step_index >= len(self.steps)

    @property
    def current_step(self) -> Optional[RouteStep]:
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None

    @property
    def remaining_steps(self) -> int:
        return max(0, len(self.steps) - self.current_step_index)


@dataclass(frozen=True)
class SimulatedPose:
    """Internally tracked rover pose, decoupled from real GPS."""
    position: Coord
    bearing_deg: float = 0.0


# ---------------------------------------------------------------------------
# Progress status
# ---------------------------------------------------------------------------

class RouteStatus(Enum):
    INACTIVE     = "inactive"
    PROGRESSING  = "progressing"
    WAYPOINT_HIT = "waypoint_hit"
    FINISHED     = "finished"


@dataclass
class ProgressResult:
    """Returned by RouteTracker.check_progress() on every position update."""
    status: RouteStatus
    message: str
    distance_to_next: Optional[float] = None   # metres
    current_step: Optional[RouteStep] = None
