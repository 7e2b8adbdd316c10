"""Unit tests for the terminal practice screen."""

import asyncio
import pytest
from unittest.mock import Mock
from rich.console import Console

from erepi.models.practice import PracticeState
from erepi.models.question import Question
from erepi.models.ui import PracticeStatus
from erepi.ui.practice_screen import KEY_HELP, PracticeScreen, level_meter, render_status, status_line


def render_text(status):
    console = Console(record=True, width=160)
    console.print(render_status(status))
    return console.export_text()


@pytest.mark.unit
class TestStatusLine:
    """Test cases for status_line priority."""

    def test_recording_first(self):
        status = PracticeStatus(is_recording=True, recording_seconds=2.34,
                                loading_status="Downloading model...")
        assert status_line(status) == "Recording... 2.3s"

    def test_loading_status_while_model_not_ready(self):
        status = PracticeStatus(is_model_ready=False, loading_status="Downloading model...",
                                status_message="Transcribing...")
        assert status_line(status) == "Downloading model..."

    def test_processing(self):
        status = PracticeStatus(is_model_ready=True, is_processing=True, status_message="Transcribing...")
        assert status_line(status) == "Processing..."

    def test_status_message(self):
        status = PracticeStatus(is_model_ready=True, status_message="Correct!")
        assert status_line(status) == "Correct!"


@pytest.mark.unit
class TestRenderStatus:
    """Test cases for render_status."""

    def test_idle_screen(self):
        text = render_text(PracticeStatus())
        assert "press [n]" in text
        assert "BEGINNER" in text
        assert "model loading" in text

    def test_question_and_result(self):
        status = PracticeStatus(
            state=PracticeState.VERDICTED,
            question=Question("How are you?", "元気ですか？"),
            is_model_ready=True,
            transcribed_text="how are you",
            is_correct=True,
            status_message="Correct!",
            can_record=True,
        )

        text = render_text(status)

        assert "How are you?" in text
        assert 'Your speech: "how are you"' in text
        assert "Correct!" in text
        assert "model ready" in text
        assert "record unavailable" not in text

    def test_record_unavailable_hint(self):
        text = render_text(PracticeStatus(question=Question("Hi.", ""), can_record=False))
        assert "record unavailable" in text

    def test_level_meter_shown_while_recording(self):
        status = PracticeStatus(question=Question("Hi.", ""), is_recording=True,
                                recording_seconds=1.0, peak_level=0.5, can_record=True)

        text = render_text(status)

        assert "Recording... 1.0s" in text
        assert "Peak " + level_meter(0.5) in text

    def test_level_meter_hidden_when_not_recording(self):
        text = render_text(PracticeStatus(question=Question("Hi.", ""), peak_level=0.5))
        assert "Peak" not in text

    def test_level_meter_scale(self):
        assert level_meter(0.0) == "░" * 20
        assert level_meter(0.5) == "█" * 10 + "░" * 10
        assert level_meter(1.7) == "█" * 20


@pytest.mark.unit
class TestPracticeScreenKeys:
    """Test cases for key dispatch."""

    def test_keys_dispatch_on_loop(self):
        session = Mock()
        screen = PracticeScreen(session, console=Console(record=True))

        async def scenario():
            loop = asyncio.get_running_loop()
            screen.quit_event = asyncio.Event()
            assert screen._on_key(loop, "n") is True
            assert screen._on_key(loop, "r") is True
            assert screen._on_key(loop, "x") is True
            await asyncio.sleep(0)
            assert screen._on_key(loop, "q") is False
            await asyncio.sleep(0)
            return screen.quit_event.is_set()

        quit_requested = asyncio.run(scenario())

        assert quit_requested
        session.generate_question.assert_called_once()
        session.record.assert_called_once()

    def test_key_help_lists_commands(self):
        for key in "nrpulq":
            assert f"[{key}]" in KEY_HELP


@pytest.mark.unit
class TestKeyboardInputHandler:
    """Test cases for KeyboardInputHandler."""

    def test_loop_stops_when_callback_declines(self):
        from unittest.mock import patch
        from erepi.ui.keyboard_input import KeyboardInputHandler

        keys = []
        handler = KeyboardInputHandler(lambda key: keys.append(key) or key != "q")
        with patch.object(handler, '_get_key', side_effect=["n", None, "r", "q", "x"]):
            handler.running = True
            handler._input_loop()

        assert keys == ["n", "r", "q"]
        assert handler.running is False
