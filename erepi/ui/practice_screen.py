"""Terminal practice screen built with rich."""

import asyncio
import logging
from typing import Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..models.ui import PracticeStatus
from ..services.practice_service import PracticeSession
from ..services.publisher import PRACTICE_STATUS_TOPIC
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)

KEY_HELP = "[n] new question  [r] record/stop  [p] model audio  [u] my recording  [l] level  [q] quit"
METER_WIDTH = 20


def status_line(status: PracticeStatus) -> str:
    """The single progress line under the result."""
    if status.is_recording:
        return f"Recording... {status.recording_seconds:.1f}s"
    if not status.is_model_ready and status.loading_status:
        return status.loading_status
    if status.is_processing:
        return "Processing..."
    return status.status_message


def level_meter(peak_level: float) -> str:
    filled = int(min(max(peak_level, 0.0), 1.0) * METER_WIDTH)
    return "█" * filled + "░" * (METER_WIDTH - filled)


def render_status(status: PracticeStatus) -> Panel:
    """Build the whole screen for one status snapshot."""
    header = Text.assemble(
        ("Eリピ", "bold blue"), "  |  ",
        (status.level.upper(), "bold magenta"), "  |  ",
        ("model ready", "green") if status.is_model_ready else ("model loading", "yellow"),
    )

    if status.question is None:
        question = Text("Choose a level and press [n] to get a question", style="dim")
    else:
        question = Text.assemble(
            (status.question.english, "bold white"), "\n",
            (status.question.japanese, "dim"),
        )

    parts = [Align.center(header), Text(""), Align.center(question), Text("")]

    if status.transcribed_text:
        if status.is_correct is True:
            style = "bold black on green"
        elif status.is_correct is False:
            style = "bold white on red"
        else:
            style = "bold"
        parts.append(Align.center(Text(f'Your speech: "{status.transcribed_text}"', style=style)))

    line = status_line(status)
    if line:
        parts.append(Align.center(Text(line, style="italic cyan")))
    if status.is_recording:
        parts.append(Align.center(Text(f"Peak {level_meter(status.peak_level)}", style="green")))

    record_hint = "" if status.can_record else "  (record unavailable)"
    parts.extend([Text(""), Align.center(Text(KEY_HELP + record_hint, style="dim"))])
    return Panel(Group(*parts), title="Pronunciation Practice", border_style="bright_blue")


class PracticeScreen:
    """Interactive screen: renders status snapshots and maps keys to commands."""

    def __init__(self, session: PracticeSession, console: Optional[Console] = None,
                 topic: str = PRACTICE_STATUS_TOPIC):
        self.session = session
        self.console = console or Console()
        self.topic = topic
        self.live: Optional[Live] = None
        self.quit_event: Optional[asyncio.Event] = None
        self.actions = {
            "n": session.generate_question,
            "r": session.record,
            " ": session.record,
            "p": session.play_model_audio,
            "u": session.play_user_audio,
            "l": session.cycle_level,
        }

    def _on_status(self, status: PracticeStatus) -> None:
        if self.live is not None:
            self.live.update(render_status(status))

    def _on_key(self, loop: asyncio.AbstractEventLoop, key: str) -> bool:
        """Runs on the input thread; hands the command to the event loop."""
        if key == "q":
            loop.call_soon_threadsafe(self.quit_event.set)
            return False
        action = self.actions.get(key)
        if action is not None:
            loop.call_soon_threadsafe(action)
        return True

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        self.quit_event = asyncio.Event()
        input_handler = KeyboardInputHandler(lambda key: self._on_key(loop, key))

        pub.subscribe(self._on_status, self.topic)
        try:
            with Live(render_status(self.session.snapshot()), console=self.console,
                      refresh_per_second=8) as live:
                self.live = live
                input_handler.start()
                while not self.quit_event.is_set():
                    try:
                        await asyncio.wait_for(self.quit_event.wait(), timeout=0.25)
                    except asyncio.TimeoutError:
                        # duration and level change without status events
                        if self.session.is_recording:
                            live.update(render_status(self.session.snapshot()))
        finally:
            self.live = None
            input_handler.stop()
            pub.unsubscribe(self._on_status, self.topic)
            logger.info("Practice screen closed")
