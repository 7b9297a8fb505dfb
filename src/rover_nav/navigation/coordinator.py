# coordinator.py
# Step-by-step route execution: announce -> move with monitoring ->
# update simulated pose -> advance or halt.
# Owns the NavigationState; every other module only reads it or flips the
# motion flags.

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

import numpy as np

from ..data_models import Obstacle
from ..hardware.motors import MotorDriver
from ..perception.avoidance import AvoidanceStrategist
from ..perception.obstacle_monitor import ObstacleMonitor
from ..tts_stt.tts import Announcer
from .announcements import ARRIVAL_MESSAGE, movement_announcement
from .events import NAV_END, NAV_HALTED, NAV_START, NAV_STEP, NavigationEvents
from .models import (
    CompletionSource, Coord, NavigationState, NavPhase, ProgressResult,
    RobotCommand, RouteStatus, RouteStep,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .position_simulator import PositionSimulator
from .route_tracker import RouteTracker

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


# ---------------------------------------------------------------------------
# Step -> command helpers
# ---------------------------------------------------------------------------

def compute_duration(distance_m: float, config: Optional[NavConfig] = None) -> float:
    """
    Motor run time for a leg of distance_m metres.

    sqrt-shaped, monotonic non-decreasing, clipped to
    [min_move_duration_s, max_move_duration_s].
    """
    cfg = config or NavConfig()
    try:
        d = float(distance_m)
    except (TypeError, ValueError):
        d = 0.0
    if not d > 0:
        d = 0.0
    scaled = np.sqrt(d / cfg.duration_reference_m) * cfg.duration_gain
    return float(np.clip(scaled, cfg.min_move_duration_s, cfg.max_move_duration_s))


def derive_command(step: RouteStep) -> RobotCommand:
    """Instruction text wins over the maneuver; anything else goes forward."""
    text = step.text.lower()
    if "turn left" in text:
        return RobotCommand.LEFT
    if "turn right" in text:
        return RobotCommand.RIGHT
    if step.maneuver.is_left:
        return RobotCommand.LEFT
    if step.maneuver.is_right:
        return RobotCommand.RIGHT
    return RobotCommand.FORWARD


def _discard_result(task: "asyncio.Future") -> None:
    # An abandoned motor call or obstacle watch may still finish or fail; nobody waits for it.
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned task failed: {task.exception()}")


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class StepCoordinator:
    """
    Drives a route one step at a time.

    Typical lifecycle:
        nav = StepCoordinator(config, motors=SimulatedMotors())
        nav.events.subscribe(NAV_END, on_arrival)
        await nav.start_route(steps)

    Collaborators default to harmless no-op implementations (silent
    announcer, motors that succeed immediately) so only what is available
    needs to be passed in.

    Args:
        config:     NavConfig; defaults to NavConfig().
        motors:     Motor Command Interface.
        monitor:    Shared ObstacleMonitor.
        announcer:  Announcement service.
        simulator:  PositionSimulator.
        events:     Event bus for navigation signals.
        nav_logger: Route persistence and running summary.
        clock:      Monotonic time source (completion cooldown).
        sleep:      Awaitable delay, replaceable in tests.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        motors: Optional[MotorDriver] = None,
        monitor: Optional[ObstacleMonitor] = None,
        announcer: Optional[Announcer] = None,
        simulator: Optional[PositionSimulator] = None,
        events: Optional[NavigationEvents] = None,
        nav_logger: Optional[NavLogger] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or NavConfig()
        self.state = NavigationState()
        self.events = events or NavigationEvents()
        self.motors = motors or MotorDriver()
        self.monitor = monitor or ObstacleMonitor(self.config)
        self.announcer = announcer or Announcer(self.config)
        self.simulator = simulator or PositionSimulator(self.config)
        self.nav_logger = nav_logger or NavLogger(self.config, self.events)
        self.tracker = RouteTracker(self.state, self.config)
        self.strategist = AvoidanceStrategist(
            self.motors, self.monitor, self.announcer, self.state, self.config,
            note=self._note, sleep=sleep,
        )
        self._clock = clock
        self._sleep = sleep
        self._run_id = 0

    # ------------------------------------------------------------------
    # Read-only views for the UI
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state.active

    @property
    def current_position(self) -> Coord:
        return self.simulator.pose.position

    @property
    def progress_fraction(self) -> float:
        """Share of the route distance already completed, in [0, 1]."""
        state = self.state
        steps = state.steps
        if not steps:
            return 1.0 if state.phase is NavPhase.COMPLETE else 0.0
        if state.is_complete:
            return 1.0
        index = state.current_step_index
        total = sum(s.distance_meters for s in steps)
        if total <= 0:
            return index / len(steps)
        return sum(s.distance_meters for s in steps[:index]) / total

    # ------------------------------------------------------------------
    # Route control
    # ------------------------------------------------------------------

    async def start_route(self, steps: List[RouteStep], origin: Optional[Coord] = None) -> bool:
        """
        Reset state, place the simulated rover, and run the route to the end.

        Args:
            steps:  Ordered route steps; an empty list completes immediately.
            origin: Starting point; falls back to the first step's start.

        Returns:
            True if the route completed, False if it was halted.
        """
        if self.is_active:
            logger.warning("Starting a new route while another is active")

        self._run_id += 1
        self.state.reset(steps)
        self.strategist.reset()

        if origin is None and steps and steps[0].start is not None:
            origin = steps[0].start
        self.simulator.initialize(origin)

        self.nav_logger.save_route(self.state.steps)
        self.events.emit(NAV_START, steps=len(steps))
        self.nav_logger.log_event(NAV_START, steps=len(steps))
        self._note("Step-by-step navigation started")
        self._note(f"Total steps: {len(steps)}")

        run_id = self._run_id
        next_index: Optional[int] = 0
        while next_index is not None and run_id == self._run_id:
            next_index = await self.run_step(next_index)

        return self.state.phase is NavPhase.COMPLETE

    async def run_step(self, index: int) -> Optional[int]:
        """
        Execute one step.

        Returns:
            Index of the next step to run, or None when the run is over
            (completed, halted, or stopped from outside).
        """
        state = self.state
        if not state.active:
            return None

        if index >= len(state.steps):
            await self._finish()
            return None

        run_id = self._run_id
        step = state.steps[index]
        command = derive_command(step)
        duration = compute_duration(step.distance_meters, self.config)

        logger.info(
            f"Step {index + 1} of {len(state.steps)}: {step.text} "
            f"({command.value}, {step.distance_meters:g}m, {duration:.3f}s)"
        )
        self.events.emit(NAV_STEP, index=index, total=len(state.steps),
                         remaining=state.remaining_steps,
                         command=command.value, instruction=step.text)
        self.nav_logger.log_event(NAV_STEP, index=index, command=command.value,
                                  distance_m=step.distance_meters)

        try:
            ok = await self.execute_movement(command, duration, step.distance_meters, step)
        except Exception:
            logger.exception(f"Robot movement error on step {index + 1}")
            ok = False

        if not state.active or run_id != self._run_id:
            return None

        if not ok:
            await self._halt(state.halt_reason or "movement failed")
            return None

        state.phase = NavPhase.ADVANCING
        self.check_progress()
        self.complete_step(index, CompletionSource.MOVEMENT)

        # The transition stays locked until the settle pause is over
        try:
            await self._sleep(self.config.step_pause_s)
        finally:
            state.step_locked = False

        if not state.active or run_id != self._run_id:
            return None
        return state.current_step_index

    def complete_step(self, index: int, source: CompletionSource = CompletionSource.MOVEMENT) -> bool:
        """
        Advance past step index, at most once.

        Ignored when the step is not the current one, a transition is already
        in flight, or a position signal lands inside the cooldown window.
        A successful completion leaves step_locked set; run_step() releases
        it after the settle pause.

        Returns:
            True if current_step_index was incremented.
        """
        state = self.state
        if not state.active or state.step_locked or index != state.current_step_index:
            return False

        now = self._clock()
        if (source is CompletionSource.POSITION
                and now - state.last_completion_time < self.config.completion_cooldown_s):
            return False

        state.step_locked = True
        state.current_step_index += 1
        state.last_completion_time = now
        self._note(f"Step {index + 1} completed")
        self.nav_logger.log_event("navigation:step_completed", index=index, source=source.value)
        return True

    def check_progress(self) -> ProgressResult:
        """Position-based completion check against the simulated pose."""
        result = self.tracker.check_progress(self.simulator.pose.position)
        if result.status is RouteStatus.WAYPOINT_HIT:
            self.complete_step(self.state.current_step_index, CompletionSource.POSITION)
        return result

    async def stop_navigation(self, reason: str = "stopped by user") -> None:
        """Halt the run from outside (voice STOP, UI button)."""
        if not self.state.active:
            await self.motors.stop()
            return
        self._note("Robot stopped")
        await self._halt(reason)

    # ------------------------------------------------------------------
    # Voice command gating
    # ------------------------------------------------------------------

    def accepts_voice_command(self, command: str) -> bool:
        """While moving only 'stop' is honoured."""
        if self.state.stop_only_mode:
            return (command or "").strip().lower() == "stop"
        return True

    async def handle_voice_command(self, command: str) -> bool:
        """
        Gate and apply a spoken command.

        Returns:
            True if the command was accepted.
        """
        if not self.accepts_voice_command(command):
            self._note(f"Ignored '{command}' - say STOP to halt")
            return False
        if (command or "").strip().lower() == "stop":
            await self.stop_navigation()
        return True

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    async def execute_movement(
        self,
        command: RobotCommand,
        duration: float,
        distance_m: float,
        step: Optional[RouteStep] = None,
    ) -> bool:
        """
        Announce, then move while watching for obstacles.

        The announcement is always awaited (finished, failed or timed out)
        before any motor command is sent.

        Returns:
            True if the net movement, avoidance included, succeeded.
        """
        state = self.state
        state.in_progress = True
        state.stop_only_mode = True

        state.phase = NavPhase.ANNOUNCING
        announcement = movement_announcement(command, distance_m, step, self.config.robot_name)
        self._note(announcement)
        await self.announcer.announce(announcement)

        if not state.active:
            return False

        state.phase = NavPhase.MOVING
        result = False
        try:
            if command.is_turn:
                result = await self._turn_then_advance(command, duration, distance_m)
            else:
                result = await self.move_with_monitoring(command, duration)
        finally:
            self.simulator.apply_movement(command, distance_m, step)

        if result:
            self._note(f"{command.value} {distance_m:g}m completed safely")
        return result

    async def move_with_monitoring(self, command: RobotCommand, duration: float) -> bool:
        """
        Race a straight move against the obstacle watch.

        If danger shows up first the rover is stopped, the pending motor call
        is abandoned, and the avoidance outcome is returned instead.
        """
        drive = self.motors.move_backward if command is RobotCommand.BACKWARD else self.motors.move_forward
        motion = asyncio.ensure_future(drive(duration))
        watch = asyncio.ensure_future(self._watch_for_danger(duration))
        try:
            done, _ = await asyncio.wait({motion, watch}, return_when=asyncio.FIRST_COMPLETED)

            if watch in done and watch.result():
                dangerous = watch.result()
                motion.add_done_callback(_discard_result)
                logger.warning("Dangerous obstacles detected during movement")
                self.nav_logger.log_event("navigation:obstacles",
                                          obstacles=[obs.to_dict() for obs in dangerous])
                await self.motors.stop()
                return await self.strategist.handle_obstacles(dangerous)

            return bool(await motion)
        finally:
            watch.add_done_callback(_discard_result)
            if not watch.done():
                watch.cancel()

    async def _watch_for_danger(self, duration: float) -> List[Obstacle]:
        cfg = self.config
        interval = min(cfg.monitor_sample_period_s, duration / max(1, cfg.monitor_samples))
        elapsed = 0.0
        while elapsed < duration and self.state.active:
            dangerous = self.monitor.dangerous(await self.monitor.poll_obstacles())
            if dangerous:
                return dangerous
            if interval <= 0:
                break
            await self._sleep(interval)
            elapsed += interval
        return []

    async def _turn_then_advance(self, command: RobotCommand, duration: float, distance_m: float) -> bool:
        obstacles = await self.monitor.poll_obstacles()
        if obstacles:
            logger.warning("Obstacles detected before turn")
            if not await self.strategist.handle_obstacles(obstacles):
                return False
            self.state.phase = NavPhase.MOVING

        turn = self.motors.turn_left if command is RobotCommand.LEFT else self.motors.turn_right
        result = await turn(self.config.turn_duration_s)

        if result and distance_m > 0:
            await self._sleep(self.config.turn_settle_s)
            result = await self.move_with_monitoring(RobotCommand.FORWARD, duration)
        return bool(result)

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    async def _finish(self) -> None:
        state = self.state
        state.active = False
        state.release_motion_flags()
        state.phase = NavPhase.COMPLETE

        self.events.emit(NAV_END, steps=len(state.steps))
        self.nav_logger.log_event(NAV_END, steps=len(state.steps))
        self._note(f"All {len(state.steps)} steps completed!")
        self._note(ARRIVAL_MESSAGE)
        await self.announcer.announce(ARRIVAL_MESSAGE)

    async def _halt(self, reason: str) -> None:
        state = self.state
        state.active = False
        state.release_motion_flags()
        state.step_locked = False
        state.phase = NavPhase.HALTED
        state.halt_reason = reason

        try:
            await self.motors.stop()
        except Exception:
            logger.exception("Stop command failed while halting")

        self.events.emit(NAV_HALTED, index=state.current_step_index, reason=reason)
        self.nav_logger.log_event(NAV_HALTED, index=state.current_step_index, reason=reason)
        self._note(f"Navigation halted at step {state.current_step_index + 1}: {reason}")

    def _note(self, message: str) -> None:
        self.nav_logger.add_to_summary(message)
