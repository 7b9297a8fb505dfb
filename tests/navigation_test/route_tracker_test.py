from rover_nav.navigation.models import Coord, Maneuver, NavigationState, RouteStatus, RouteStep
from rover_nav.navigation.nav_config import NavConfig
from rover_nav.navigation.route_tracker import RouteTracker

END = Coord(43.6532, -79.3832)


def make_tracker(steps):
    state = NavigationState()
    state.reset(steps)
    return state, RouteTracker(state, NavConfig(waypoint_threshold_m=100.0))


def test_inactive_state():
    state, tracker = make_tracker([RouteStep(0, "Go", Maneuver.STRAIGHT, 10.0, end=END)])
    state.active = False
    assert tracker.check_progress(END).status is RouteStatus.INACTIVE


def test_waypoint_hit_inside_threshold():
    _, tracker = make_tracker([RouteStep(0, "Go", Maneuver.STRAIGHT, 10.0, end=END)])
    result = tracker.check_progress(Coord(43.6535, -79.3832))
    assert result.status is RouteStatus.WAYPOINT_HIT
    assert result.distance_to_next < 100.0


def test_progressing_when_far_or_without_end_point():
    _, tracker = make_tracker([RouteStep(0, "Go", Maneuver.STRAIGHT, 10.0, end=END)])
    far = tracker.check_progress(Coord(43.70, -79.3832))
    assert far.status is RouteStatus.PROGRESSING
    assert far.distance_to_next > 1000

    _, tracker = make_tracker([RouteStep(0, "Go", Maneuver.STRAIGHT, 10.0)])
    assert tracker.check_progress(END).status is RouteStatus.PROGRESSING


def test_finished_past_last_step():
    state, tracker = make_tracker([RouteStep(0, "Go", Maneuver.STRAIGHT, 10.0, end=END)])
    state.current_step_index = 1
    assert tracker.check_progress(END).status is RouteStatus.FINISHED
