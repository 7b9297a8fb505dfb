# avoidance.py
# Chooses and runs an obstacle avoidance strategy.
#
# Strategies (chosen by determine_avoidance_strategy):
#   detour_left / detour_right: turn, advance, re-check, turn back
#   stop_and_wait:              hold position until the centre band clears
#   reverse_and_retry:          back up and re-check
#   emergency_stop:             universal fallback, always fails the step

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

import numpy as np

from ..data_models import AvoidanceAttempt, AvoidanceStrategy, Obstacle
from ..hardware.motors import MotorDriver
from ..navigation.announcements import EMERGENCY_MESSAGE, WAIT_MESSAGE, obstacle_announcement
from ..navigation.models import NavigationState, NavPhase, RobotCommand
from ..navigation.nav_config import NavConfig
from ..tts_stt.tts import Announcer
from .obstacle_monitor import ObstacleMonitor

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def partition_obstacles(
    obstacles: List[Obstacle],
    config: Optional[NavConfig] = None,
) -> Tuple[List[Obstacle], List[Obstacle], List[Obstacle]]:
    """
    Split obstacles into (left, center, right) by horizontal position.

    The centre band takes precedence; the rest fall left or right of the
    frame split. Obstacles without a centre are in none of the groups.
    """
    cfg = config or NavConfig()
    if not obstacles:
        return [], [], []

    xs = np.array(
        [np.nan if obs.center_x is None else obs.center_x for obs in obstacles],
        dtype=float,
    )
    known = ~np.isnan(xs)
    lo, hi = cfg.center_band
    with np.errstate(invalid="ignore"):
        center = known & (xs >= lo) & (xs <= hi)
        left = known & ~center & (xs < cfg.frame_split_x)
        right = known & ~center & (xs > cfg.frame_split_x)

    def pick(mask: np.ndarray) -> List[Obstacle]:
        return [obstacles[i] for i in np.flatnonzero(mask)]

    return pick(left), pick(center), pick(right)


def determine_avoidance_strategy(
    obstacles: List[Obstacle],
    config: Optional[NavConfig] = None,
) -> AvoidanceStrategy:
    """
    Pick a strategy for the given obstacles. Pure function of its input.

    First match wins:
      1. Centre clear, obstacles on one side only -> detour to the other side.
      2. Centre blocked -> detour toward the side with strictly fewer obstacles.
      3. A moving class (person/dog/cat) is present -> stop and wait.
      4. Otherwise -> detour right.
    """
    cfg = config or NavConfig()
    left, center, right = partition_obstacles(obstacles, cfg)

    if not center:
        if left and not right:
            return AvoidanceStrategy.DETOUR_RIGHT
        if right and not left:
            return AvoidanceStrategy.DETOUR_LEFT
    else:
        if len(left) < len(right):
            return AvoidanceStrategy.DETOUR_LEFT
        if len(right) < len(left):
            return AvoidanceStrategy.DETOUR_RIGHT

    moving = {label.lower() for label in cfg.moving_classes}
    if any(obs.class_label.lower() in moving for obs in obstacles):
        return AvoidanceStrategy.STOP_AND_WAIT

    return AvoidanceStrategy.DETOUR_RIGHT


class AvoidanceStrategist:
    """
    Runs avoidance strategies against the motors and the obstacle monitor.

    Every public coroutine resolves to a bool and never raises past
    handle_obstacles(); failures end in emergency_stop().

    Args:
        motors:    Motor driver.
        monitor:   Shared ObstacleMonitor (same debounce as the coordinator).
        announcer: Announcement service.
        state:     NavigationState of the current run (motion flags only).
        config:    NavConfig.
        note:      Callback for the operator-facing running log.
        sleep:     Awaitable delay, replaceable in tests.
    """

    def __init__(
        self,
        motors: MotorDriver,
        monitor: ObstacleMonitor,
        announcer: Announcer,
        state: NavigationState,
        config: Optional[NavConfig] = None,
        note: Optional[Callable[[str], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.motors = motors
        self.monitor = monitor
        self.announcer = announcer
        self.state = state
        self.config = config or NavConfig()
        self._note = note or (lambda message: None)
        self._sleep = sleep
        self.history: List[AvoidanceAttempt] = []

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def determine_strategy(self, obstacles: List[Obstacle]) -> AvoidanceStrategy:
        return determine_avoidance_strategy(obstacles, self.config)

    async def handle_obstacles(self, obstacles: List[Obstacle]) -> bool:
        """
        Announce, choose a strategy, run it.

        Returns:
            True when the way ahead is clear again.
        """
        self.state.phase = NavPhase.OBSTACLE_HANDLING
        labels = [obs.class_label for obs in obstacles]
        self._note(f"Obstacles detected: {', '.join(labels)}")
        await self.announcer.announce(obstacle_announcement(labels))

        strategy = self.determine_strategy(obstacles)
        logger.info(f"Avoidance strategy: {strategy.value}")
        started = len(self.history)

        try:
            success = await self.execute(strategy, obstacles)
        except Exception:
            logger.exception("Obstacle avoidance error")
            success = False

        if not success and not self._emergency_since(started):
            success = await self.emergency_stop()

        if success:
            self._note("Obstacle avoided - resuming navigation")
        else:
            self._note("Cannot safely avoid obstacles - navigation paused")
        return success

    async def execute(self, strategy: AvoidanceStrategy, obstacles: List[Obstacle]) -> bool:
        if strategy is AvoidanceStrategy.STOP_AND_WAIT:
            return await self.stop_and_wait(obstacles)
        if strategy is AvoidanceStrategy.DETOUR_LEFT:
            return await self.detour(RobotCommand.LEFT)
        if strategy is AvoidanceStrategy.DETOUR_RIGHT:
            return await self.detour(RobotCommand.RIGHT)
        if strategy is AvoidanceStrategy.REVERSE_AND_RETRY:
            return await self.reverse_and_retry()
        return await self.emergency_stop()

    def reset(self) -> None:
        """Forget attempts from a previous route."""
        self.history.clear()

    def _emergency_since(self, index: int) -> bool:
        return any(a.strategy is AvoidanceStrategy.EMERGENCY_STOP for a in self.history[index:])

    def _record(self, strategy: AvoidanceStrategy, outcome: bool, depth: int = 0) -> bool:
        self.history.append(AvoidanceAttempt(strategy=strategy, outcome=outcome, retry_depth=depth))
        return outcome

    # ------------------------------------------------------------------
    # Strategy implementations
    # ------------------------------------------------------------------

    async def stop_and_wait(self, obstacles: List[Obstacle]) -> bool:
        """
        Hold still and re-check the centre band.

        Escalates to a right detour after wait_attempts re-checks.
        """
        logger.info("Stop and wait: waiting for obstacles to clear")
        await self.motors.stop()
        await self.announcer.announce(WAIT_MESSAGE)

        for attempt in range(self.config.wait_attempts):
            await self._sleep(self.config.wait_interval_s)
            still_blocked = self.monitor.blocking(await self.monitor.poll_obstacles())
            if not still_blocked:
                logger.info("Path cleared - resuming movement")
                return self._record(AvoidanceStrategy.STOP_AND_WAIT, True, attempt)
            logger.info(f"Still waiting... {len(still_blocked)} obstacles remaining")

        self._record(AvoidanceStrategy.STOP_AND_WAIT, False, self.config.wait_attempts)
        logger.info("Wait timeout - trying detour strategy")
        return await self.detour(RobotCommand.RIGHT)

    async def detour(self, direction: RobotCommand, depth: int = 0) -> bool:
        """
        Sidestep toward direction, re-check, and turn back on success.

        A still-blocked centre retries toward the opposite side, at most
        max_retry_attempts detours in total before the emergency stop.
        """
        strategy = (AvoidanceStrategy.DETOUR_LEFT if direction is RobotCommand.LEFT
                    else AvoidanceStrategy.DETOUR_RIGHT)
        cfg = self.config
        logger.info(f"Detour {direction.value} (attempt {depth + 1}/{cfg.max_retry_attempts})")

        turn, turn_back = (
            (self.motors.turn_left, self.motors.turn_right)
            if direction is RobotCommand.LEFT
            else (self.motors.turn_right, self.motors.turn_left)
        )

        if not await turn(cfg.detour_turn_s):
            return self._record(strategy, False, depth)
        await self._sleep(cfg.detour_settle_s)

        if not await self.motors.move_forward(cfg.detour_forward_s):
            return self._record(strategy, False, depth)
        await self._sleep(cfg.detour_settle_s)

        ahead = await self.monitor.poll_obstacles()
        if any(self.monitor.in_center_band(obs) for obs in ahead):
            self._record(strategy, False, depth)
            if depth + 1 >= cfg.max_retry_attempts:
                logger.warning("Detour retries exhausted")
                return await self.emergency_stop()
            opposite = RobotCommand.RIGHT if direction is RobotCommand.LEFT else RobotCommand.LEFT
            logger.info(f"Path still blocked after detour - trying {opposite.value}")
            return await self.detour(opposite, depth + 1)

        if not await turn_back(cfg.detour_turn_s):
            return self._record(strategy, False, depth)

        logger.info(f"Detour {direction.value} successful - path clear")
        return self._record(strategy, True, depth)

    async def reverse_and_retry(self) -> bool:
        """Back up, re-check, fall through to a right detour when still blocked."""
        logger.info("Reverse and retry: backing up and reassessing")
        if not await self.motors.move_backward(self.config.reverse_s):
            return self._record(AvoidanceStrategy.REVERSE_AND_RETRY, False)
        await self._sleep(self.config.reverse_settle_s)

        if not await self.monitor.poll_obstacles():
            logger.info("Obstacles cleared after reverse - resuming forward")
            return self._record(AvoidanceStrategy.REVERSE_AND_RETRY, True)

        self._record(AvoidanceStrategy.REVERSE_AND_RETRY, False)
        return await self.detour(RobotCommand.RIGHT)

    async def emergency_stop(self) -> bool:
        """Stop, ask for help, drop the motion flags. Always False."""
        logger.warning("Emergency stop: cannot safely proceed")
        await self.motors.stop()
        self.state.release_motion_flags()
        self.state.halt_reason = "manual assistance needed"
        self._note("Navigation paused - manual assistance needed")
        await self.announcer.announce(EMERGENCY_MESSAGE)
        return self._record(AvoidanceStrategy.EMERGENCY_STOP, False)
