"""
Rover Navigation - Step Coordinator
===================================

Turns a multi-step route into timed motor commands for a small wheeled
rover, watches an obstacle feed while it moves, and picks an avoidance
strategy when something blocks the way.

Key Features:
- Announce-then-move sequencing with a speech timeout
- Obstacle polling raced against each straight move
- Bounded detour / wait / reverse avoidance with emergency-stop fallback
- Simulated pose for map animation, decoupled from real GPS
"""

__version__ = "0.1.0"

from .data_models import AvoidanceStrategy, DangerLevel, Obstacle
from .navigation.coordinator import StepCoordinator, compute_duration, derive_command
from .navigation.events import NavigationEvents
from .navigation.models import Coord, Maneuver, NavigationState, RobotCommand, RouteStep
from .navigation.nav_config import NavConfig
from .navigation.position_simulator import PositionSimulator
from .perception.avoidance import AvoidanceStrategist, determine_avoidance_strategy
from .perception.obstacle_monitor import ObstacleMonitor

__all__ = [
    'StepCoordinator', 'compute_duration', 'derive_command',
    'NavConfig', 'NavigationEvents',
    'Coord', 'Maneuver', 'NavigationState', 'RobotCommand', 'RouteStep',
    'PositionSimulator',
    'ObstacleMonitor', 'AvoidanceStrategist', 'determine_avoidance_strategy',
    'AvoidanceStrategy', 'DangerLevel', 'Obstacle',
]
