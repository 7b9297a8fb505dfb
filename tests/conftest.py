# conftest.py
# In-memory fakes for the rover's HTTP endpoints, motors and clock, plus a
# zero-delay NavConfig so coordinator runs finish instantly.

import asyncio
from typing import Any, Dict, List, Optional

import pytest
import requests

from rover_nav.hardware.motors import MotorDriver
from rover_nav.navigation.nav_config import NavConfig

INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else b"{}"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    """
    Stands in for requests.Session.

    get() walks through `responses` and keeps returning the last one; an
    Exception instance in the list is raised instead of returned.
    """

    def __init__(self, responses: Optional[List[Any]] = None, post_response: Any = None) -> None:
        self.responses = list(responses or [FakeResponse(200, {"obstacles": []})])
        self.post_response = post_response if post_response is not None else FakeResponse(200, {"success": True})
        self.gets: List[str] = []
        self.posts: List[Dict[str, Any]] = []

    def get(self, url: str, timeout: float = None) -> FakeResponse:
        self.gets.append(url)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url: str, json: Dict[str, Any] = None, timeout: float = None) -> FakeResponse:
        self.posts.append({"url": url, "json": json})
        if isinstance(self.post_response, Exception):
            raise self.post_response
        return self.post_response


def feed(*obstacle_lists: List[Dict[str, Any]]) -> FakeSession:
    """Session whose successive polls report the given obstacle lists."""
    return FakeSession([FakeResponse(200, {"obstacles": obs}) for obs in obstacle_lists])


def detection(label: str, x: float, y: float = 100.0, level: str = "LOW", **extra: Any) -> Dict[str, Any]:
    raw = {"type": label, "center": [x, y], "danger_level": level}
    raw.update(extra)
    return raw


class RecordingMotors(MotorDriver):
    """Records every primitive; per-action results and real delays are configurable."""

    def __init__(self, results: Optional[Dict[str, bool]] = None,
                 delays: Optional[Dict[str, float]] = None,
                 timeline: Optional[List[str]] = None) -> None:
        self.results = results or {}
        self.delays = delays or {}
        self.history: List[tuple] = []
        self.timeline = timeline if timeline is not None else []

    @property
    def actions(self) -> List[str]:
        return [action for action, _ in self.history]

    async def _drive(self, action: str, duration: float) -> bool:
        self.history.append((action, duration))
        self.timeline.append(f"motor:{action}")
        if self.delays.get(action):
            await asyncio.sleep(self.delays[action])
        return self.results.get(action, True)


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def config(tmp_path) -> NavConfig:
    return NavConfig(
        log_dir=str(tmp_path),
        obstacle_check_interval_s=0.0,
        step_pause_s=0.0,
        turn_settle_s=0.0,
        wait_interval_s=0.0,
        detour_settle_s=0.0,
        reverse_settle_s=0.0,
    )
