"""Model pronunciation playback through the platform text-to-speech engine."""

import logging
import queue
import threading
import time
from typing import Any, Callable, Optional, Sequence

import pyttsx3

logger = logging.getLogger(__name__)

_PREMIUM_MARKERS = ("premium", "enhanced", "natural", "high quality")
_CLASSIC_VOICES = ("Samantha", "Daniel")
_REFRESH = object()


def voice_language(voice: Any) -> str:
    """First language tag of a pyttsx3 voice, normalized to 'en-us' form."""
    for language in getattr(voice, "languages", None) or []:
        if isinstance(language, bytes):
            # espeak prefixes the tag with a priority byte
            language = language.decode("utf-8", errors="ignore")
        language = "".join(ch for ch in str(language) if ch.isprintable()).strip()
        if language:
            return language.lower().replace("_", "-")
    return ""


def select_english_voice(voices: Sequence[Any]) -> Optional[Any]:
    """Pick the best available English voice, or None.

    Ranking: premium/enhanced voices, then Google voices, then the classic
    macOS voices, then any en-US voice, then the first English voice.
    """
    english_voices = [v for v in voices if voice_language(v).startswith("en")]

    if not english_voices:
        return next((v for v in voices if "english" in (v.name or "").lower()), None)

    for voice in english_voices:
        name = (voice.name or "").lower()
        if any(marker in name for marker in _PREMIUM_MARKERS):
            return voice

    for voice in english_voices:
        if "google" in (voice.name or "").lower():
            return voice

    for voice in english_voices:
        if voice.name in _CLASSIC_VOICES:
            return voice

    for voice in english_voices:
        if voice_language(voice) == "en-us":
            return voice

    return english_voices[0]


class SpeechSynthesizer:
    """Speaks reference sentences on a dedicated worker thread.

    The pyttsx3 engine is created and used only on that thread. A new
    request drops any that have not started yet and stops the utterance
    being spoken at its next word boundary.
    """

    def __init__(self,
                 base_words_per_minute: int = 170,
                 voice_refresh_interval: float = 30.0,
                 engine_factory: Callable[[], Any] = pyttsx3.init):
        self.base_words_per_minute = base_words_per_minute
        self.voice_refresh_interval = voice_refresh_interval
        self.engine_factory = engine_factory

        self.task_queue: "queue.Queue" = queue.Queue()
        self.worker_thread: Optional[threading.Thread] = None
        self.is_speaking = False
        self.voices: list = []
        self.last_refresh: Optional[float] = None

        # newest request number and the one being spoken
        self._latest_request = 0
        self._current_request = 0

    def start(self) -> None:
        if self.worker_thread is not None:
            return
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.name = "SpeechSynthesisThread"
        self.worker_thread.start()
        logger.info("Speech synthesizer started")

    def speak(self, text: str, rate: float = 1.0) -> None:
        """Queue ``text`` for playback at ``rate`` times the base speed."""
        if not text:
            return
        self.start()
        self._latest_request += 1
        self._drop_pending()
        self.task_queue.put((text, rate, self._latest_request))

    def refresh_voices(self) -> None:
        """Ask the worker to re-read the voice list (idempotent)."""
        self.start()
        self.task_queue.put(_REFRESH)

    def shutdown(self, timeout: float = 5.0) -> None:
        if self.worker_thread is None:
            return
        self._latest_request += 1
        self._drop_pending()
        self.task_queue.put(None)
        self.worker_thread.join(timeout=timeout)
        if self.worker_thread.is_alive():
            logger.warning("Speech worker did not stop in time")
        self.worker_thread = None

    def _drop_pending(self) -> None:
        while True:
            try:
                self.task_queue.get_nowait()
            except queue.Empty:
                return
            self.task_queue.task_done()

    def _refresh(self, engine: Any, force: bool = False) -> None:
        now = time.monotonic()
        if not force and self.last_refresh is not None \
                and now - self.last_refresh < self.voice_refresh_interval:
            return
        self.voices = list(engine.getProperty('voices') or [])
        self.last_refresh = now
        logger.debug(f"Voice list refreshed: {len(self.voices)} voices")

    def _speak_now(self, engine: Any, text: str, rate: float, request: int) -> None:
        if request != self._latest_request:
            return
        self._current_request = request
        self._refresh(engine)
        voice = select_english_voice(self.voices)
        if voice is not None:
            engine.setProperty('voice', voice.id)
            logger.debug(f"Using voice {voice.name} ({voice_language(voice)})")
        else:
            logger.warning("English voice not found, using default voice")
        engine.setProperty('rate', int(self.base_words_per_minute * rate))

        self.is_speaking = True
        try:
            engine.say(text)
            engine.runAndWait()
        finally:
            self.is_speaking = False

    def _worker_loop(self) -> None:
        try:
            engine = self.engine_factory()
        except Exception as e:
            logger.error(f"Text-to-speech engine unavailable: {e}")
            self.worker_thread = None
            return

        def on_word(name, location, length):
            if self._current_request != self._latest_request:
                engine.stop()

        engine.connect('started-word', on_word)

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                if task is _REFRESH:
                    self._refresh(engine, force=True)
                else:
                    text, rate, request = task
                    self._speak_now(engine, text, rate, request)
            except Exception as e:
                logger.error(f"Speech synthesis failed: {e}", exc_info=True)
            finally:
                self.task_queue.task_done()
        logger.debug("Speech worker exiting")
