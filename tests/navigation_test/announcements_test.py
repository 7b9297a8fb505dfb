from rover_nav.navigation.announcements import (
    movement_announcement, obstacle_announcement, street_name,
)
from rover_nav.navigation.models import Maneuver, RobotCommand, RouteStep


def step(text, maneuver=Maneuver.UNKNOWN, distance=40.0):
    return RouteStep(0, text, maneuver, distance)


def test_street_name_per_command():
    assert street_name(RobotCommand.LEFT, "Turn left onto Main St") == "Main St"
    assert street_name(RobotCommand.RIGHT, "Turn right on King St W, then continue") == "King St W"
    assert street_name(RobotCommand.FORWARD, "Head north on Bay St") == "Bay St"
    assert street_name(RobotCommand.FORWARD, "Continue straight") is None


def test_turn_announcement_names_street_and_distance():
    text = movement_announcement(
        RobotCommand.LEFT, 40, step("Turn left onto Main St", Maneuver.TURN_LEFT),
    )
    assert text == "Kibo will now turn left onto Main St and continue for 40 meters"


def test_turn_announcement_without_street():
    text = movement_announcement(RobotCommand.RIGHT, 12.5, step("Turn right", Maneuver.TURN_RIGHT))
    assert text == "Kibo will now turn right and continue 12.5 meters"


def test_forward_announcement_mentions_obstacle_detection():
    assert "Bay St" in movement_announcement(RobotCommand.FORWARD, 120, step("Head north on Bay St"))
    assert movement_announcement(RobotCommand.FORWARD, 5, None, robot_name="Rover") == \
        "Rover will now move forward 5 meters with obstacle detection active"


def test_roundabout_announcement_has_exit_and_street():
    text = movement_announcement(
        RobotCommand.RIGHT, 80,
        step("At the roundabout, take the 2nd exit onto King St", Maneuver.ROUNDABOUT_RIGHT),
    )
    assert "roundabout" in text
    assert "2 exit" in text
    assert "onto King St" in text


def test_obstacle_announcement_lists_distinct_labels():
    assert obstacle_announcement(["person", "dog", "person"]) == \
        "Obstacles detected: person, dog. Finding safe path."
