"""Unit tests for voice selection and the speech synthesizer."""

import threading
import time

import pytest
from types import SimpleNamespace
from unittest.mock import Mock

from erepi.services.speech_service import SpeechSynthesizer, select_english_voice, voice_language


def voice(name, languages=(), voice_id=None):
    return SimpleNamespace(id=voice_id or name, name=name, languages=list(languages))


@pytest.mark.unit
class TestVoiceSelection:
    """Test cases for select_english_voice."""

    def test_premium_voice_preferred(self):
        voices = [voice("Alex", ["en_US"]), voice("Ava (Premium)", ["en_US"]), voice("Google US English", ["en-US"])]
        assert select_english_voice(voices).name == "Ava (Premium)"

    def test_google_voice_before_classic(self):
        voices = [voice("Samantha", ["en_US"]), voice("Google UK English Female", ["en-GB"])]
        assert select_english_voice(voices).name == "Google UK English Female"

    def test_classic_voice_before_plain_en_us(self):
        voices = [voice("Fred", ["en_US"]), voice("Daniel", ["en_GB"])]
        assert select_english_voice(voices).name == "Daniel"

    def test_en_us_before_other_english(self):
        voices = [voice("Moira", ["en_IE"]), voice("Fred", ["en_US"])]
        assert select_english_voice(voices).name == "Fred"

    def test_any_english_voice(self):
        voices = [voice("Kyoko", ["ja_JP"]), voice("Moira", ["en_IE"])]
        assert select_english_voice(voices).name == "Moira"

    def test_name_fallback_without_language_tags(self):
        voices = [voice("Microsoft Haruka"), voice("Microsoft Zira Desktop - English (United States)")]
        assert select_english_voice(voices).name.startswith("Microsoft Zira")

    def test_no_english_voice(self):
        assert select_english_voice([voice("Kyoko", ["ja_JP"])]) is None
        assert select_english_voice([]) is None

    def test_espeak_language_bytes(self):
        assert voice_language(voice("english", [b"\x05en-us"])) == "en-us"
        assert voice_language(voice("none")) == ""


@pytest.mark.unit
class TestSpeechSynthesizer:
    """Test cases for SpeechSynthesizer."""

    @pytest.fixture
    def engine(self):
        engine = Mock()
        engine.getProperty.return_value = [voice("Kyoko", ["ja_JP"]), voice("Samantha", ["en_US"], "com.samantha")]
        return engine

    def test_speak_uses_english_voice_and_rate(self, engine):
        synthesizer = SpeechSynthesizer(base_words_per_minute=200, engine_factory=lambda: engine)

        synthesizer.speak("How are you?", rate=0.5)
        synthesizer.task_queue.join()
        synthesizer.shutdown()

        engine.setProperty.assert_any_call('voice', "com.samantha")
        engine.setProperty.assert_any_call('rate', 100)
        engine.say.assert_called_once_with("How are you?")
        engine.runAndWait.assert_called_once()
        assert synthesizer.is_speaking is False

    def test_empty_text_is_ignored(self, engine):
        synthesizer = SpeechSynthesizer(engine_factory=lambda: engine)
        synthesizer.speak("")
        assert synthesizer.worker_thread is None

    def test_refresh_voices_rereads_list(self, engine):
        synthesizer = SpeechSynthesizer(voice_refresh_interval=3600, engine_factory=lambda: engine)

        synthesizer.refresh_voices()
        synthesizer.task_queue.join()
        synthesizer.refresh_voices()
        synthesizer.task_queue.join()
        synthesizer.shutdown()

        assert engine.getProperty.call_count == 2
        assert len(synthesizer.voices) == 2
        assert synthesizer.last_refresh is not None

    def test_voice_list_cached_between_utterances(self, engine):
        synthesizer = SpeechSynthesizer(voice_refresh_interval=3600, engine_factory=lambda: engine)

        synthesizer.speak("One.")
        synthesizer.task_queue.join()
        synthesizer.speak("Two.")
        synthesizer.task_queue.join()
        synthesizer.shutdown()

        assert engine.getProperty.call_count == 1
        assert engine.say.call_count == 2

    def test_engine_failure_is_contained(self, engine):
        engine.runAndWait.side_effect = RuntimeError("audio device busy")
        synthesizer = SpeechSynthesizer(engine_factory=lambda: engine)

        synthesizer.speak("How are you?")
        synthesizer.task_queue.join()

        assert synthesizer.is_speaking is False
        synthesizer.speak("Again.")
        synthesizer.task_queue.join()
        synthesizer.shutdown()
        assert engine.say.call_count == 2

    def test_new_request_stops_current_utterance(self, engine):
        word_callbacks = []
        engine.connect.side_effect = lambda topic, callback: word_callbacks.append(callback)
        stopped = threading.Event()
        engine.stop.side_effect = stopped.set
        speaking = threading.Event()

        def run_and_wait():
            # a long utterance: up to 50 words unless stopped
            stopped.clear()
            speaking.set()
            for location in range(50):
                if stopped.is_set():
                    return
                for callback in word_callbacks:
                    callback("utterance", location, 1)
                time.sleep(0.01)

        engine.runAndWait.side_effect = run_and_wait
        synthesizer = SpeechSynthesizer(engine_factory=lambda: engine)

        synthesizer.speak("First sentence.")
        assert speaking.wait(timeout=1.0)
        synthesizer.speak("Second sentence.")
        synthesizer.task_queue.join()
        synthesizer.shutdown()

        engine.connect.assert_called_once()
        assert engine.connect.call_args[0][0] == 'started-word'
        assert engine.stop.call_count >= 1
        assert [c.args[0] for c in engine.say.call_args_list] == ["First sentence.", "Second sentence."]
        assert synthesizer.is_speaking is False
