# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Turn angle defaults per maneuver family (degrees)
# ---------------------------------------------------------------------------

TURN_ANGLES: Dict[str, float] = {
    "slight":     30.0,
    "normal":     90.0,
    "sharp":     120.0,
    "ramp":       45.0,
    "roundabout": 270.0,
}

MOVING_CLASSES: Tuple[str, ...] = ("person", "dog", "cat")


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Motion
    turn_duration_s: float = 0.3
    min_move_duration_s: float = 0.03
    max_move_duration_s: float = 2.0
    duration_reference_m: float = 50.0      # sqrt(d / ref) * gain
    duration_gain: float = 5.0
    step_pause_s: float = 1.0               # settle time between steps
    turn_settle_s: float = 0.5              # pause between a turn and its forward leg

    # Obstacle sensor feed
    sensor_host: str = "10.37.117.213"
    sensor_port: int = 5005
    sensor_path: str = "/detection_status"
    sensor_timeout_s: float = 1.0
    obstacle_check_interval_s: float = 1.5  # debounce between real polls
    monitor_sample_period_s: float = 0.5    # upper bound on the in-motion sampling period
    monitor_samples: int = 4                # samples across one planned move

    # Obstacle classification (camera pixel space)
    danger_area_px: float = 5000.0
    in_path_offset_px: float = 50.0
    danger_distance_m: float = 2.0
    frame_split_x: float = 160.0
    center_band: Tuple[float, float] = (120.0, 200.0)
    moving_classes: Tuple[str, ...] = MOVING_CLASSES

    # Avoidance
    max_retry_attempts: int = 3
    wait_attempts: int = 10
    wait_interval_s: float = 3.0
    detour_turn_s: float = 0.5
    detour_forward_s: float = 1.0
    detour_settle_s: float = 0.5
    reverse_s: float = 0.5
    reverse_settle_s: float = 1.0

    # Speech
    speech_ms_per_char: float = 80.0
    speech_margin_ms: float = 2000.0
    speech_rate: int = 150
    robot_name: str = "Kibo"

    # Position simulation
    default_start: Tuple[float, float] = (43.6532, -79.3832)
    earth_radius_m: float = 6_378_137.0
    sim_min_step_m: float = 0.01            # simulated displacement band (centimetres)
    sim_gain_m: float = 0.01
    sim_max_step_m: float = 0.10
    turn_angles: Dict[str, float] = field(default_factory=lambda: dict(TURN_ANGLES))

    # Position-based progress tracking
    waypoint_threshold_m: float = 100.0
    completion_cooldown_s: float = 3.0

    # Motor command endpoint
    motor_host: str = "10.37.117.213"
    motor_port: int = 5001
    motor_path: str = "/robot/command"
    motor_timeout_s: float = 5.0

    # Logging
    log_dir: Optional[str] = None           # None keeps the session in memory only
    route_filename: str = "active_route.json"
    session_filename: str = "nav_session.jsonl"
    summary_size: int = 200

    @property
    def route_filepath(self) -> Optional[str]:
        if self.log_dir is None:
            return None
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def session_filepath(self) -> Optional[str]:
        if self.log_dir is None:
            return None
        return os.path.join(self.log_dir, self.session_filename)

    @property
    def sensor_url(self) -> str:
        return f"http://{self.sensor_host}:{self.sensor_port}{self.sensor_path}"

    @property
    def sensor_health_url(self) -> str:
        return f"http://{self.sensor_host}:{self.sensor_port}/health"

    @property
    def motor_url(self) -> str:
        return f"http://{self.motor_host}:{self.motor_port}{self.motor_path}"

    def speech_timeout_s(self, text: str) -> float:
        """Caller-enforced upper bound for one announcement."""
        return (len(text) * self.speech_ms_per_char + self.speech_margin_ms) / 1000.0
