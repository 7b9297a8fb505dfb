# announcements.py
# Builds the spoken sentences for each step and each avoidance phase.
# Pure string functions, no I/O.

import re
from typing import Iterable, Optional

from .models import RobotCommand, RouteStep

_NAME = r"([^,\s]+(?:\s+[^,\s]+)*)"

FORWARD_STREET_RE    = re.compile(r"\b(?:onto|on|along|down)\s+" + _NAME, re.IGNORECASE)
LEFT_STREET_RE       = re.compile(r"turn left (?:onto|into|on)\s+" + _NAME, re.IGNORECASE)
RIGHT_STREET_RE      = re.compile(r"turn right (?:onto|into|on)\s+" + _NAME, re.IGNORECASE)
ROUNDABOUT_EXIT_RE   = re.compile(r"take the (\d+)(?:st|nd|rd|th) exit", re.IGNORECASE)
ROUNDABOUT_STREET_RE = re.compile(r"\b(?:onto|on)\s+" + _NAME, re.IGNORECASE)

ARRIVAL_MESSAGE = "You have reached your destination!"
EMERGENCY_MESSAGE = (
    "Cannot safely navigate around obstacles. Please assist or provide new directions."
)
WAIT_MESSAGE = "Stopping to wait for obstacles to clear"


def _match(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text or "")
    return m.group(1).strip() if m else None


def street_name(command: RobotCommand, instruction: str) -> Optional[str]:
    """Street name embedded in the instruction for the given command, if any."""
    if command is RobotCommand.LEFT:
        return _match(LEFT_STREET_RE, instruction)
    if command is RobotCommand.RIGHT:
        return _match(RIGHT_STREET_RE, instruction)
    return _match(FORWARD_STREET_RE, instruction)


def is_roundabout(step: Optional[RouteStep]) -> bool:
    if step is None:
        return False
    return step.maneuver.is_roundabout or "roundabout" in step.text.lower()


def _meters(distance_m: float) -> str:
    return f"{distance_m:g}"


def movement_announcement(
    command: RobotCommand,
    distance_m: float,
    step: Optional[RouteStep] = None,
    robot_name: str = "Kibo",
) -> str:
    """
    Sentence spoken before a step's motion starts.

    Roundabout steps get their own phrasing (exit number + street), turns
    mention the street being turned onto, forward legs the street followed.
    """
    instruction = step.text if step else ""
    meters = _meters(distance_m)

    if is_roundabout(step):
        exit_num = _match(ROUNDABOUT_EXIT_RE, instruction) or "next"
        street = _match(ROUNDABOUT_STREET_RE, instruction)
        if street:
            return (f"{robot_name} will navigate the roundabout, taking the {exit_num} exit "
                    f"onto {street}, continuing for {meters} meters")
        return (f"{robot_name} will navigate the roundabout, taking the {exit_num} exit, "
                f"continuing for {meters} meters")

    street = street_name(command, instruction)

    if command.is_turn:
        side = command.value
        if street and distance_m > 0:
            return f"{robot_name} will now turn {side} onto {street} and continue for {meters} meters"
        if street:
            return f"{robot_name} will now turn {side} onto {street}"
        return f"{robot_name} will now turn {side} and continue {meters} meters"

    if command is RobotCommand.BACKWARD:
        return f"{robot_name} will now back up {meters} meters"

    if street:
        return (f"{robot_name} will now continue forward on {street} for {meters} meters, "
                f"monitoring for obstacles")
    return f"{robot_name} will now move forward {meters} meters with obstacle detection active"


def obstacle_announcement(labels: Iterable[str]) -> str:
    names = list(dict.fromkeys(labels))
    return f"Obstacles detected: {', '.join(names)}. Finding safe path."
