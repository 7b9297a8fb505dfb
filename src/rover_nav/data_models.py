"""Shared data models for the perception -> navigation contract.

These dataclasses describe what the obstacle sensor feed reports and how the
avoidance layer records what it did. Keep them stable and versioned together
with the rest of the codebase.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ==================== ENUMS ====================
class DangerLevel(Enum):
    """Threat classification reported by the detector."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2

    @classmethod
    def parse(cls, raw: Any) -> "DangerLevel":
        """Accept LOW/MEDIUM/HIGH, safe/warning/danger, or the numeric level 0-2."""

        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool) and raw in (0, 1, 2):
            return cls(raw)
        value = str(raw if raw is not None else "").strip().lower()
        if value in ("high", "danger", "critical"):
            return cls.HIGH
        if value in ("medium", "warning", "caution"):
            return cls.MEDIUM
        return cls.LOW


class AvoidanceStrategy(Enum):
    """Avoidance behaviours the strategist can run."""

    STOP_AND_WAIT = "stop_and_wait"
    DETOUR_LEFT = "detour_left"
    DETOUR_RIGHT = "detour_right"
    REVERSE_AND_RETRY = "reverse_and_retry"
    EMERGENCY_STOP = "emergency_stop"


# ==================== DATA CLASSES ====================
@dataclass(frozen=True)
class Obstacle:
    """One detection result from the obstacle sensor feed."""

    class_label: str
    center_x: Optional[float] = None  # Horizontal pixel position
    center_y: Optional[float] = None
    danger_level: DangerLevel = DangerLevel.LOW
    area: Optional[float] = None  # Bounding box area in pixels
    distance_from_center: Optional[float] = None  # Pixels from the frame centre line
    distance_m: Optional[float] = None  # Range estimate, when the detector has one

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Obstacle":
        """Build from one entry of the feed's ``obstacles`` array."""

        center = d.get("center")
        if not isinstance(center, (list, tuple)):
            center = []
        return Obstacle(
            class_label=str(d.get("type") or d.get("class") or "unknown"),
            center_x=_as_float(center[0]) if len(center) > 0 else None,
            center_y=_as_float(center[1]) if len(center) > 1 else None,
            danger_level=DangerLevel.parse(d.get("danger_level") or d.get("threat_level")),
            area=_as_float(d.get("area")),
            distance_from_center=_as_float(d.get("distance_from_center")),
            distance_m=_as_float(d.get("distance")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON/logging friendly dict."""

        return {
            "type": self.class_label,
            "center": [self.center_x, self.center_y],
            "danger_level": self.danger_level.name,
            "area": self.area,
            "distance_from_center": self.distance_from_center,
            "distance": self.distance_m,
        }


@dataclass
class ObstacleReport:
    """Result of one real poll of the sensor feed."""

    timestamp: float
    obstacles: List[Obstacle] = field(default_factory=list)
    dangerous: List[Obstacle] = field(default_factory=list)
    ok: bool = True  # False when the feed could not be reached

    @property
    def labels(self) -> List[str]:
        """Distinct class labels, in first-seen order."""

        return list(dict.fromkeys(obs.class_label for obs in self.obstacles))


@dataclass(frozen=True)
class AvoidanceAttempt:
    """Transient record of one strategy execution."""

    strategy: AvoidanceStrategy
    outcome: bool
    retry_depth: int = 0


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
