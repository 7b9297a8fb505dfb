# route_parser.py
# Converts an external directions result into RouteStep objects.
#
# Expected shape (the subset we read):
#   {"routes": [{"legs": [{"steps": [
#       {"html_instructions": "Turn <b>left</b> onto <b>Main St</b>",
#        "maneuver": "turn-left",
#        "distance": {"value": 40, "text": "40 m"},
#        "start_location": {"lat": .., "lng": ..},
#        "end_location":   {"lat": .., "lng": ..}}
#   ]}]}]}

import html
import logging
import re
from typing import Any, Dict, List

from .models import Coord, Maneuver, RouteStep

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def strip_markup(text: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    text = _TAG_RE.sub(" ", text or "")
    text = html.unescape(text)
    return _SPACE_RE.sub(" ", text).strip()


def _parse_step(step_id: int, raw: Dict[str, Any]) -> RouteStep:
    text = strip_markup(raw.get("html_instructions") or raw.get("instructions") or "")

    distance = raw.get("distance")
    if isinstance(distance, dict):
        distance = distance.get("value")
    try:
        meters = max(0.0, float(distance or 0.0))
    except (TypeError, ValueError):
        meters = 0.0

    return RouteStep(
        step_id=step_id,
        text=text,
        maneuver=Maneuver.parse(raw.get("maneuver")),
        distance_meters=meters,
        start=Coord.from_dict(raw.get("start_location")),
        end=Coord.from_dict(raw.get("end_location")),
    )


def parse_directions(result: Dict[str, Any], route_index: int = 0) -> List[RouteStep]:
    """
    Flatten one route of a directions result into an ordered step list.

    Args:
        result:      Parsed directions JSON.
        route_index: Which alternative route to use.

    Returns:
        List of RouteStep objects, possibly empty.

    Raises:
        ValueError: If the result has no route at route_index.
    """
    routes = result.get("routes") if isinstance(result, dict) else None
    if not routes or route_index >= len(routes):
        raise ValueError("Directions result contains no usable route.")

    steps: List[RouteStep] = []
    for leg in routes[route_index].get("legs", []):
        for raw in leg.get("steps", []):
            steps.append(_parse_step(len(steps), raw))

    logger.info(f"Parsed {len(steps)} route steps.")
    return steps
