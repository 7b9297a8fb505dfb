import asyncio

import requests

from conftest import FakeResponse, FakeSession
from rover_nav.hardware.motors import HttpMotorClient, MotorDriver, SimulatedMotors
from rover_nav.navigation.nav_config import NavConfig


def test_base_driver_succeeds_without_hardware():
    assert asyncio.run(MotorDriver().turn_left(0.3))


def test_simulated_motors_record_commands():
    motors = SimulatedMotors(time_scale=0)

    async def drive():
        await motors.move_forward(1.2)
        await motors.turn_right(0.3)
        await motors.stop()

    asyncio.run(drive())
    assert motors.history == [("forward", 1.2), ("right", 0.3), ("stop", 0.0)]


def test_http_client_posts_action_and_duration():
    cfg = NavConfig(motor_host="rover.local", motor_port=5001)
    session = FakeSession(post_response=FakeResponse(200, {"success": True}))
    client = HttpMotorClient(cfg, session=session, wait_for_motion=False)

    assert asyncio.run(client.move_backward(0.5))
    assert session.posts == [{
        "url": "http://rover.local:5001/robot/command",
        "json": {"action": "backward", "duration": 0.5},
    }]


def test_http_client_reports_rejected_command():
    session = FakeSession(post_response=FakeResponse(200, {"success": False}))
    client = HttpMotorClient(NavConfig(), session=session, wait_for_motion=False)
    assert not asyncio.run(client.move_forward(1.0))


def test_http_client_failures_return_false():
    for response in (FakeResponse(500, {}), requests.ConnectionError("no route to host")):
        client = HttpMotorClient(NavConfig(), session=FakeSession(post_response=response),
                                 wait_for_motion=False)
        assert not asyncio.run(client.stop())
