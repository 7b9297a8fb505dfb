# main.py
# Entry point: runs one route through the StepCoordinator.
# Without --route/--directions a short built-in route is driven on
# simulated motors, which is handy for checking announcements and logs.

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .hardware.motors import HttpMotorClient, SimulatedMotors
from .navigation.coordinator import StepCoordinator
from .navigation.events import NAV_END, NAV_HALTED
from .navigation.models import Coord, Maneuver, RouteStep
from .navigation.nav_config import NavConfig
from .navigation.nav_logger import NavLogger
from .navigation.route_parser import parse_directions
from .perception.obstacle_monitor import ObstacleMonitor
from .tts_stt.tts import Announcer, SpeechAnnouncer

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Demo route (Toronto, around Nathan Phillips Square)
# ------------------------------------------------------------------
DEMO_ROUTE = [
    RouteStep(0, "Head north on Bay St", Maneuver.STRAIGHT, 40.0,
              Coord(43.6532, -79.3832), Coord(43.65356, -79.38330)),
    RouteStep(1, "Turn left onto Queen St W", Maneuver.TURN_LEFT, 25.0,
              Coord(43.65356, -79.38330), Coord(43.65365, -79.38360)),
    RouteStep(2, "Turn right onto Elizabeth St", Maneuver.TURN_RIGHT, 15.0,
              Coord(43.65365, -79.38360), Coord(43.65378, -79.38354)),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Step-by-step rover navigation")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--route", help="Saved route JSON (as written by NavLogger)")
    source.add_argument("--directions", help="Directions result JSON")
    parser.add_argument("--simulate", action="store_true",
                        help="Use simulated motors instead of the rover's HTTP endpoint")
    parser.add_argument("--time-scale", type=float, default=1.0,
                        help="Simulated motor time multiplier (0 = instant)")
    parser.add_argument("--silent", action="store_true", help="Do not speak announcements")
    parser.add_argument("--sensor-host", help="Obstacle detector host")
    parser.add_argument("--motor-host", help="Rover command host")
    parser.add_argument("--log-dir", default="logs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def load_steps(args: argparse.Namespace, nav_logger: NavLogger) -> Optional[List[RouteStep]]:
    if args.route:
        return nav_logger.load_route(args.route)
    if args.directions:
        try:
            with open(args.directions, "r", encoding="utf-8") as f:
                return parse_directions(json.load(f))
        except (OSError, ValueError) as e:
            logger.error(f"Could not read directions from {args.directions}: {e}")
            return None
    return list(DEMO_ROUTE)


async def run(args: argparse.Namespace) -> int:
    config = NavConfig(log_dir=args.log_dir)
    if args.sensor_host:
        config.sensor_host = args.sensor_host
    if args.motor_host:
        config.motor_host = args.motor_host

    nav_logger = NavLogger(config)
    steps = load_steps(args, nav_logger)
    if steps is None:
        print("[Main] Could not load a route.")
        return 1

    motors = SimulatedMotors(args.time_scale) if args.simulate else HttpMotorClient(config)
    announcer = Announcer(config) if args.silent else SpeechAnnouncer(config)

    nav = StepCoordinator(
        config,
        motors=motors,
        monitor=ObstacleMonitor(config),
        announcer=announcer,
        nav_logger=nav_logger,
    )
    nav_logger.events = nav.events
    nav.events.subscribe(NAV_END, lambda **_: print("  ✓  Destination reached. Navigation ended."))
    nav.events.subscribe(NAV_HALTED, lambda reason, **_: print(f"  ⚠  Navigation halted: {reason}"))

    print(f"[Main] Route ready: {len(steps)} steps.")
    completed = await nav.start_route(steps)

    pos = nav.current_position
    print("\n--- Session complete ---")
    print(f"    Progress: {nav.progress_fraction:.0%}  Pose: {pos.lat:.6f}, {pos.lon:.6f}")
    print(f"    Log files written to: {config.log_dir}/")

    if isinstance(announcer, SpeechAnnouncer):
        announcer.close()
    return 0 if completed else 2


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n[Main] Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
