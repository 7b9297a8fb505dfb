import asyncio
import threading

from rover_nav.navigation.nav_config import NavConfig
from rover_nav.tts_stt.tts import Announcer, SpeechAnnouncer


class SlowAnnouncer(Announcer):
    async def _speak(self, text):
        await asyncio.sleep(10)


class BrokenAnnouncer(Announcer):
    async def _speak(self, text):
        raise RuntimeError("audio device busy")


class FakeEngine:
    def __init__(self):
        self.said = []

    def say(self, text):
        self.said.append(text)

    def runAndWait(self):
        pass


def test_timeout_scales_with_text_length():
    cfg = NavConfig()
    assert cfg.speech_timeout_s("") == 2.0
    assert cfg.speech_timeout_s("x" * 50) == 6.0


def test_silent_announcer_records_text():
    announcer = Announcer(NavConfig())
    assert asyncio.run(announcer.announce("Kibo will now move forward 5 meters"))
    assert asyncio.run(announcer.announce("   "))
    assert list(announcer.spoken) == ["Kibo will now move forward 5 meters"]


def test_slow_speech_times_out_without_raising():
    announcer = SlowAnnouncer(NavConfig(speech_ms_per_char=0, speech_margin_ms=10))
    assert asyncio.run(announcer.announce("hello")) is False


def test_speech_errors_are_swallowed():
    assert asyncio.run(BrokenAnnouncer(NavConfig()).announce("hello")) is False


def test_speech_announcer_uses_engine_off_the_loop():
    engine = FakeEngine()
    announcer = SpeechAnnouncer(NavConfig(), engine=engine)
    try:
        assert asyncio.run(announcer.announce("Turn left"))
    finally:
        announcer.close()
    assert engine.said == ["Turn left"]


class BlockingEngine(FakeEngine):
    """runAndWait() blocks until stop() is called, like a stuck audio device."""

    def __init__(self):
        super().__init__()
        self.stopped = threading.Event()

    def runAndWait(self):
        self.stopped.wait(5)

    def stop(self):
        self.stopped.set()


def test_timed_out_speech_is_stopped_so_the_next_one_is_not_queued():
    engine = BlockingEngine()
    announcer = SpeechAnnouncer(NavConfig(speech_ms_per_char=0, speech_margin_ms=50), engine=engine)

    async def two_announcements():
        first = await announcer.announce("first")
        engine.stopped.clear()
        engine.runAndWait = lambda: None
        second = await announcer.announce("second")
        return first, second

    try:
        first, second = asyncio.run(two_announcements())
    finally:
        announcer.close()

    assert first is False
    assert second is True
    assert engine.said == ["first", "second"]


def test_spoken_history_is_bounded():
    announcer = Announcer(NavConfig(summary_size=3))
    for i in range(5):
        asyncio.run(announcer.announce(f"line {i}"))
    assert list(announcer.spoken) == ["line 2", "line 3", "line 4"]
