import asyncio
import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Deque, Optional

import pyttsx3

from ..navigation.nav_config import NavConfig

logger = logging.getLogger(__name__)

PREFERRED_VOICES = ["Samantha", "Victoria", "Ava", "Moira", "Karen", "Tessa", "Kathy"]


def init_tts(rate: int = 150):
    engine = pyttsx3.init()
    engine.setProperty("rate", rate)
    engine.setProperty("volume", 1.0)

    # Optional: pick a nicer voice when one is installed
    for v in engine.getProperty("voices"):
        if any(p.lower() in (v.name or "").lower() for p in PREFERRED_VOICES):
            engine.setProperty("voice", v.id)
            break

    return engine


class Announcer:
    """
    Announcement Service.

    announce() returns once speech finished, failed, or ran past
    len(text) * ms_per_char + margin. It never raises; speech is advisory.
    The base class is silent and returns immediately.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.spoken: Deque[str] = deque(maxlen=self.config.summary_size)

    async def announce(self, text: str) -> bool:
        """Speak text; True when it finished inside the timeout."""
        text = (text or "").strip()
        if not text:
            return True
        self.spoken.append(text)
        timeout = self.config.speech_timeout_s(text)
        try:
            await asyncio.wait_for(self._speak(text), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Speech timeout after {timeout:.1f}s - proceeding")
            self._interrupt()
        except Exception as e:
            logger.warning(f"Speech error: {e} - proceeding")
        return False

    async def _speak(self, text: str) -> None:
        return None

    def _interrupt(self) -> None:
        """Abort speech still running after a timeout."""
        return None


class SpeechAnnouncer(Announcer):
    """Local text-to-speech through pyttsx3 on one dedicated worker thread."""

    def __init__(self, config: Optional[NavConfig] = None, engine=None) -> None:
        super().__init__(config)
        self._engine = engine
        # pyttsx3 engines are not thread-safe; keep every call on one thread
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tts")

    def _speak_blocking(self, text: str) -> None:
        if self._engine is None:
            self._engine = init_tts(self.config.speech_rate)
        self._engine.say(text)
        self._engine.runAndWait()

    async def _speak(self, text: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._speak_blocking, text)

    def _interrupt(self) -> None:
        # The worker thread is still inside runAndWait(); stop() makes it return
        if self._engine is None:
            return
        try:
            self._engine.stop()
        except Exception as e:
            logger.warning(f"Could not stop speech engine: {e}")

    def close(self) -> None:
        self._executor.shutdown(wait=False)
