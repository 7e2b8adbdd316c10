"""Main application entry point for Eリピ."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .audio import AudioCapture, ClipPlayer
from .auto_mode import run_auto_mode
from .config import ErepiConfig
from .models.question import Level
from .services import (
    PracticeSession,
    QuestionBank,
    SpeechSynthesizer,
    StatusPublisher,
    TranscriptionService,
)

logger = logging.getLogger(__name__)

VERSION = __version__


class Application:
    """Wires the practice pipeline together from configuration."""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = ErepiConfig(config_path)
        # Set up logging (override config with command line if specified)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))

        self.session: Optional[PracticeSession] = None
        self.engine = None
        self.speaker: Optional[SpeechSynthesizer] = None
        self._voice_refresh_task: Optional[asyncio.Task] = None

    async def init(self, level: Optional[str] = None) -> None:
        logger.info("Initializing services...")

        question_bank = await QuestionBank.from_source(
            self.config.get_questions_source(),
            level or self.config.get('questions.default_level', Level.BEGINNER.value),
        )

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        capture = AudioCapture(
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
            input_device_index=self.config.get('audio.input_device_index'),
            clip_directory=self.config.get('audio.clip_directory'),
        )

        self.engine = TranscriptionService(self.config).create_engine()
        self.speaker = SpeechSynthesizer(
            base_words_per_minute=self.config.get('speech.base_words_per_minute', 170),
            voice_refresh_interval=self.config.get('speech.voice_refresh_interval_seconds', 30.0),
        )
        publisher = StatusPublisher()

        self.session = PracticeSession(
            capture=capture,
            engine=self.engine,
            question_bank=question_bank,
            speaker=self.speaker,
            player=ClipPlayer(chunk_size=chunk_size),
            status_callback=publisher.get_callback(),
            speech_rate=self.config.get('speech.rate', 1.0),
        )

        # The model loads in the background while the learner reads the question
        self.engine.start_loading()
        self.speaker.start()
        self._voice_refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_voices_periodically(self.speaker.voice_refresh_interval)
        )

    async def _refresh_voices_periodically(self, interval: float) -> None:
        while True:
            self.speaker.refresh_voices()
            await asyncio.sleep(interval)

    async def run(self, auto: bool = False, duration: int = 5) -> int:
        try:
            if auto:
                reached_verdict = await run_auto_mode(self, duration)
                return 0 if reached_verdict else 1

            from .ui.practice_screen import PracticeScreen
            await PracticeScreen(self.session).run()
            return 0
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self._voice_refresh_task is not None:
            self._voice_refresh_task.cancel()
        if self.session is not None:
            self.session.shutdown()
        if self.speaker is not None:
            self.speaker.shutdown()
        if self.engine is not None:
            self.engine.cleanup()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', str(Path.home() / '.erepi' / 'logs' / 'erepi.log'))
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("Eリピ application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


async def _run(args: argparse.Namespace) -> int:
    app = Application(args.config, args.log_level)
    await app.init(args.level)
    return await app.run(auto=args.auto, duration=args.duration)


def main() -> None:
    """Main entry point for Eリピ application."""
    parser = argparse.ArgumentParser(
        description="Eリピ - English pronunciation practice",
        epilog="Keys: n=new question, r=record/stop, p=model audio, u=my recording, l=level, q=quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for erepi.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--level",
        type=str,
        choices=[level.value for level in Level],
        help="Difficulty level to start with (default: from config)"
    )

    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run one unattended attempt: new question, record for --duration seconds, print the verdict and exit"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=5,
        help="Recording duration in seconds for auto mode (default: 5)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Eリピ v{VERSION}"
    )

    args = parser.parse_args()

    try:
        exit_code = asyncio.run(_run(args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    except (ValueError, FileNotFoundError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
