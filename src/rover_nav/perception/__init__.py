from .avoidance import AvoidanceStrategist, determine_avoidance_strategy, partition_obstacles
from .obstacle_monitor import ObstacleMonitor

__all__ = [
    "ObstacleMonitor",
    "AvoidanceStrategist",
    "determine_avoidance_strategy",
    "partition_obstacles",
]
