import asyncio

import pytest

from conftest import RecordingMotors, detection, feed, no_sleep
from rover_nav.data_models import AvoidanceStrategy, DangerLevel, Obstacle
from rover_nav.navigation.announcements import EMERGENCY_MESSAGE
from rover_nav.navigation.models import NavigationState, RobotCommand
from rover_nav.navigation.nav_config import NavConfig
from rover_nav.perception.avoidance import (
    AvoidanceStrategist, determine_avoidance_strategy, partition_obstacles,
)
from rover_nav.perception.obstacle_monitor import ObstacleMonitor
from rover_nav.tts_stt.tts import Announcer


def obstacle(label, x, level=DangerLevel.LOW):
    return Obstacle(label, x, 100.0, level)


def make_strategist(config, session):
    motors = RecordingMotors()
    state = NavigationState()
    state.reset([])
    state.in_progress = state.stop_only_mode = True
    strategist = AvoidanceStrategist(
        motors, ObstacleMonitor(config, session=session), Announcer(config), state, config,
        sleep=no_sleep,
    )
    return strategist, motors


# ---------------------------------------------------------------------------
# Strategy selection
# ---------------------------------------------------------------------------

def test_partition_gives_centre_band_precedence():
    items = [obstacle("a", 100), obstacle("b", 150), obstacle("c", 200),
             obstacle("d", 250), Obstacle("e")]
    left, center, right = partition_obstacles(items)
    assert [o.class_label for o in left] == ["a"]
    assert [o.class_label for o in center] == ["b", "c"]
    assert [o.class_label for o in right] == ["d"]


def test_left_only_detours_right():
    assert determine_avoidance_strategy([obstacle("bench", 100)]) is AvoidanceStrategy.DETOUR_RIGHT


def test_right_only_detours_left():
    assert determine_avoidance_strategy([obstacle("bench", 260)]) is AvoidanceStrategy.DETOUR_LEFT


def test_centred_person_waits():
    person = obstacle("person", 150, DangerLevel.HIGH)
    assert determine_avoidance_strategy([person]) is AvoidanceStrategy.STOP_AND_WAIT


def test_centre_blocked_detours_toward_fewer_obstacles():
    items = [obstacle("box", 160), obstacle("bench", 40), obstacle("bin", 80), obstacle("pole", 300)]
    assert determine_avoidance_strategy(items) is AvoidanceStrategy.DETOUR_RIGHT


def test_static_centre_obstacle_defaults_to_right():
    assert determine_avoidance_strategy([obstacle("box", 160)]) is AvoidanceStrategy.DETOUR_RIGHT


def test_selection_is_deterministic():
    items = [obstacle("dog", 130), obstacle("cone", 90), obstacle("cone", 280)]
    assert len({determine_avoidance_strategy(items) for _ in range(20)}) == 1


# ---------------------------------------------------------------------------
# Strategy execution
# ---------------------------------------------------------------------------

@pytest.fixture
def config():
    return NavConfig(obstacle_check_interval_s=0.0, wait_interval_s=0.0,
                     detour_settle_s=0.0, reverse_settle_s=0.0)


def test_detour_turns_back_when_path_clears(config):
    strategist, motors = make_strategist(config, feed([]))

    assert asyncio.run(strategist.detour(RobotCommand.LEFT))
    assert motors.history == [("left", 0.5), ("forward", 1.0), ("right", 0.5)]
    assert strategist.history[-1].strategy is AvoidanceStrategy.DETOUR_LEFT


def test_detour_retries_are_bounded(config):
    strategist, motors = make_strategist(config, feed([detection("box", 160)]))

    assert not asyncio.run(strategist.handle_obstacles([obstacle("box", 160)]))

    turns = [a for a in motors.actions if a in ("left", "right")]
    assert turns == ["right", "left", "right"]
    assert motors.actions[-1] == "stop"
    assert [a.strategy for a in strategist.history].count(AvoidanceStrategy.EMERGENCY_STOP) == 1
    assert [a.retry_depth for a in strategist.history[:3]] == [0, 1, 2]
    assert strategist.announcer.spoken.count(EMERGENCY_MESSAGE) == 1
    assert strategist.state.halt_reason == "manual assistance needed"
    assert not strategist.state.in_progress and not strategist.state.stop_only_mode


def test_wait_succeeds_once_centre_clears(config):
    session = feed([detection("person", 150, level="HIGH")], [detection("person", 20)], [])
    strategist, motors = make_strategist(config, session)

    assert asyncio.run(strategist.stop_and_wait([obstacle("person", 150, DangerLevel.HIGH)]))
    assert motors.actions == ["stop"]
    assert strategist.history[-1].retry_depth == 1


def test_wait_timeout_escalates_to_detour(config):
    config.wait_attempts = 2
    session = feed([detection("dog", 150)], [detection("dog", 150)], [])
    strategist, motors = make_strategist(config, session)

    assert asyncio.run(strategist.stop_and_wait([obstacle("dog", 150)]))
    assert motors.actions == ["stop", "right", "forward", "left"]
    assert [a.strategy for a in strategist.history] == [
        AvoidanceStrategy.STOP_AND_WAIT, AvoidanceStrategy.DETOUR_RIGHT,
    ]


def test_reverse_and_retry(config):
    strategist, motors = make_strategist(config, feed([]))
    assert asyncio.run(strategist.reverse_and_retry())
    assert motors.history == [("backward", 0.5)]

    strategist, motors = make_strategist(config, feed([detection("cone", 60)], []))
    assert asyncio.run(strategist.reverse_and_retry())
    assert motors.actions == ["backward", "right", "forward", "left"]


def test_motor_failure_during_detour_falls_back_to_emergency(config):
    strategist, motors = make_strategist(config, feed([]))
    motors.results["right"] = False

    assert not asyncio.run(strategist.handle_obstacles([obstacle("bench", 90)]))
    assert strategist.history[-1].strategy is AvoidanceStrategy.EMERGENCY_STOP
    assert strategist.announcer.spoken[-1] == EMERGENCY_MESSAGE
