from .tts import Announcer, SpeechAnnouncer, init_tts

__all__ = ["Announcer", "SpeechAnnouncer", "init_tts"]
