# motors.py
# Motor command drivers. Every primitive is a coroutine that resolves to
# True/False once the motion has finished.

import asyncio
import logging
import time
from typing import List, Optional, Tuple

import requests

from ..navigation.nav_config import NavConfig

logger = logging.getLogger(__name__)


class MotorDriver:
    """
    Motor Command Interface with no-op defaults.

    Subclasses override _drive(); the public primitives stay the same.
    """

    async def move_forward(self, duration: float) -> bool:
        return await self._drive("forward", duration)

    async def move_backward(self, duration: float) -> bool:
        return await self._drive("backward", duration)

    async def turn_left(self, duration: float) -> bool:
        return await self._drive("left", duration)

    async def turn_right(self, duration: float) -> bool:
        return await self._drive("right", duration)

    async def stop(self) -> bool:
        return await self._drive("stop", 0.0)

    async def _drive(self, action: str, duration: float) -> bool:
        return True


class SimulatedMotors(MotorDriver):
    """Sleeps for the commanded duration and records every command."""

    def __init__(self, time_scale: float = 1.0) -> None:
        self.time_scale = time_scale
        self.history: List[Tuple[str, float]] = []

    async def _drive(self, action: str, duration: float) -> bool:
        self.history.append((action, duration))
        logger.info(f"[sim] {action} {duration:.2f}s")
        if duration > 0 and self.time_scale > 0:
            await asyncio.sleep(duration * self.time_scale)
        return True


class HttpMotorClient(MotorDriver):
    """
    Sends commands to the rover's HTTP command endpoint.

    POST {"action": ..., "duration": ...} to config.motor_url. The endpoint
    answers immediately, so the client waits out the motion itself.

    Args:
        config:  NavConfig with motor host/port/path and timeout.
        session: Optional requests.Session (injectable for tests).
        wait_for_motion: Sleep for the commanded duration after the POST.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        session: Optional[requests.Session] = None,
        wait_for_motion: bool = True,
    ) -> None:
        self.config = config or NavConfig()
        self.session = session or requests.Session()
        self.wait_for_motion = wait_for_motion

    def _post(self, action: str, duration: float) -> bool:
        try:
            response = self.session.post(
                self.config.motor_url,
                json={"action": action, "duration": duration},
                timeout=self.config.motor_timeout_s,
            )
            response.raise_for_status()
            data = response.json() if response.content else {}
        except requests.RequestException as e:
            logger.error(f"Motor command '{action}' failed: {e}")
            return False
        except ValueError:
            # Non-JSON body on a 2xx response still means the command was taken
            data = {}
        return bool(data.get("success", True)) if isinstance(data, dict) else True

    async def _drive(self, action: str, duration: float) -> bool:
        started = time.monotonic()
        ok = await asyncio.to_thread(self._post, action, duration)
        if ok and self.wait_for_motion and duration > 0:
            remaining = duration - (time.monotonic() - started)
            if remaining > 0:
                await asyncio.sleep(remaining)
        return ok
