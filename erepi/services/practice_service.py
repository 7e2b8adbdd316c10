"""Practice session: the record → transcribe → compare state machine."""

import asyncio
import logging
from typing import Callable, Optional, Set

from ..audio import AudioCapture, AudioCaptureError, ClipPlayer
from ..comparison import compare_texts, normalize_text
from ..models.audio import AudioClip
from ..models.practice import PracticeState, Verdict
from ..models.question import Question
from ..models.transcription import EngineStatus, TranscriptionResult
from ..models.ui import PracticeStatus
from ..transcription import TranscriptionEngine
from .question_service import QuestionBank
from .speech_service import SpeechSynthesizer

logger = logging.getLogger(__name__)


class PracticeSession:
    """Coordinates capture, transcription and comparison for one learner.

    All methods run on the event loop thread. Every new question and every
    new recording starts a new attempt: the clip, the transcription and the
    verdict are cleared together, and results that arrive for an older
    attempt are dropped.
    """

    def __init__(self,
                 capture: AudioCapture,
                 engine: TranscriptionEngine,
                 question_bank: QuestionBank,
                 speaker: Optional[SpeechSynthesizer] = None,
                 player: Optional[ClipPlayer] = None,
                 status_callback: Optional[Callable[[PracticeStatus], None]] = None,
                 speech_rate: float = 1.0):
        """Initialize practice session.

        Args:
            capture: Microphone capture unit
            engine: Transcription engine (model lifecycle owner)
            question_bank: Source of reference sentences
            speaker: Plays the model pronunciation
            player: Plays back the learner's clip
            status_callback: Receives a PracticeStatus after every change
            speech_rate: Playback rate multiplier for the model pronunciation
        """
        self.capture = capture
        self.engine = engine
        self.question_bank = question_bank
        self.speaker = speaker
        self.player = player
        self.status_callback = status_callback
        self.speech_rate = speech_rate

        self.state = PracticeState.IDLE
        self.transcription: Optional[TranscriptionResult] = None
        self.verdict = Verdict.UNDETERMINED
        self.status_message = ""

        self._attempt_id = 0
        self._pending_attempts: Set[asyncio.Task] = set()
        self._publish_suspended = False

        self.engine.add_status_callback(self._on_engine_status)

    # ------------------------ derived state ------------------------

    @property
    def question(self) -> Optional[Question]:
        return self.question_bank.current_question

    @property
    def clip(self) -> Optional[AudioClip]:
        return self.capture.current_clip

    @property
    def is_recording(self) -> bool:
        return self.capture.is_recording

    @property
    def is_correct(self) -> Optional[bool]:
        return self.verdict.is_correct

    @property
    def transcribed_text(self) -> str:
        return self.transcription.text if self.transcription else ""

    @property
    def can_record(self) -> bool:
        if self.question is None:
            return False
        if self.capture.is_recording:
            return True
        return not self.engine.is_busy and self.state is not PracticeState.TRANSCRIBING

    def snapshot(self) -> PracticeStatus:
        engine_status = self.engine.get_status()
        audio_stats = self.capture.get_recording_stats()
        return PracticeStatus(
            state=self.state,
            level=self.question_bank.level.value,
            question=self.question,
            is_recording=self.capture.is_recording,
            user_audio_path=self.capture.user_audio_path,
            is_model_ready=engine_status.is_model_ready,
            loading_status=engine_status.loading_status,
            is_processing=engine_status.is_processing,
            transcribed_text=self.transcribed_text,
            is_correct=self.is_correct,
            status_message=self.status_message,
            can_record=self.can_record,
            recording_seconds=audio_stats.duration_seconds if audio_stats.is_recording else 0.0,
            peak_level=audio_stats.peak_level if audio_stats.is_recording else 0.0,
        )

    # ------------------------ commands ------------------------

    def generate_question(self) -> Optional[Question]:
        """Select a new question and clear the previous attempt."""
        try:
            question = self.question_bank.generate_question()
        except ValueError as e:
            logger.warning(f"Could not generate question: {e}")
            self.status_message = str(e)
            self._publish()
            return None

        self._reset_attempt()
        self.state = PracticeState.QUESTION_ACTIVE
        self.status_message = ""
        logger.info(f"New question: {question.english}")
        self._publish()
        return question

    def record(self) -> None:
        """Toggle recording: start a new attempt, or stop and transcribe."""
        if self.capture.is_recording:
            self._stop_recording()
            return

        if self.question is None:
            self.status_message = "Generate a question first"
            self._publish()
            return
        if not self.can_record:
            logger.warning("Record ignored while a transcription is in progress")
            return

        self._reset_attempt()
        try:
            clip_future = self.capture.start_recording()
        except AudioCaptureError as e:
            logger.warning(f"Recording did not start: {e}")
            self.state = PracticeState.QUESTION_ACTIVE
            self.status_message = str(e)
            self._publish()
            return

        self.state = PracticeState.RECORDING
        self.status_message = "Recording..."
        task = asyncio.get_running_loop().create_task(
            self._complete_attempt(self._attempt_id, clip_future)
        )
        self._pending_attempts.add(task)
        task.add_done_callback(self._pending_attempts.discard)
        self._publish()

    def cycle_level(self) -> None:
        """Switch to the next difficulty level."""
        level = self.question_bank.cycle_level()
        self.status_message = f"Level: {level.value}"
        self._publish()

    def play_model_audio(self) -> None:
        """Speak the reference sentence."""
        if self.question is None or self.speaker is None:
            return
        self.speaker.speak(self.question.english, self.speech_rate)

    def play_user_audio(self) -> None:
        """Replay the learner's last clip."""
        path = self.capture.user_audio_path
        if path is None or self.player is None:
            return
        self.player.play(path)

    async def wait_for_attempt(self) -> None:
        """Wait until the pending attempts have finished."""
        if self._pending_attempts:
            await asyncio.gather(*self._pending_attempts, return_exceptions=True)

    def shutdown(self) -> None:
        self._attempt_id += 1
        for task in list(self._pending_attempts):
            task.cancel()
        self.capture.reset_audio()
        if self.player is not None:
            self.player.stop()

    # ------------------------ transitions ------------------------

    def _reset_attempt(self) -> None:
        """Drop the clip, the transcription and the verdict as one step."""
        self._publish_suspended = True
        try:
            self._attempt_id += 1
            self.transcription = None
            self.verdict = Verdict.UNDETERMINED
            self.capture.reset_audio()
            self.engine.reset_transcription()
        finally:
            self._publish_suspended = False

    def _stop_recording(self) -> None:
        self.capture.stop_recording()
        self.state = PracticeState.TRANSCRIBING
        self.status_message = "Transcribing..."
        self._publish()

    async def _complete_attempt(self, attempt_id: int, clip_future: asyncio.Future) -> None:
        await asyncio.wait([clip_future])
        if clip_future.cancelled():
            logger.info(f"Attempt {attempt_id} abandoned before transcription")
            return
        error = clip_future.exception()
        if attempt_id != self._attempt_id:
            logger.info(f"Attempt {attempt_id} abandoned before transcription")
            return
        if error is not None:
            logger.warning(f"Attempt {attempt_id} produced no clip: {error}")
            self.state = PracticeState.QUESTION_ACTIVE
            self.status_message = str(error)
            self._publish()
            return

        clip = clip_future.result()
        if clip.is_empty:
            self.state = PracticeState.QUESTION_ACTIVE
            self.status_message = "No audio was captured, please try again"
            self._publish()
            return

        self.state = PracticeState.TRANSCRIBING
        self._publish()
        result = await self.engine.transcribe_audio(clip)

        if attempt_id != self._attempt_id:
            logger.info(f"Discarding transcription for stale attempt {attempt_id}")
            return
        self._apply_transcription(result)

    def _apply_transcription(self, result: Optional[TranscriptionResult]) -> None:
        if result is None:
            self.state = PracticeState.QUESTION_ACTIVE
            self.status_message = f"Transcription failed: {self.engine.error_message or 'unknown error'}"
        elif not normalize_text(result.text):
            self.state = PracticeState.QUESTION_ACTIVE
            self.status_message = "No speech detected, please try again"
        else:
            self.transcription = result
            # exactly once per attempt
            if self.verdict is Verdict.UNDETERMINED:
                self.verdict = Verdict.from_match(compare_texts(self.question.english, result.text))
                logger.info(f"Verdict for '{self.question.english}' vs '{result.text}': {self.verdict.value}")
            self.state = PracticeState.VERDICTED
            self.status_message = "Correct!" if self.verdict is Verdict.CORRECT else "Not quite, try again"
        self._publish()

    def _on_engine_status(self, status: EngineStatus) -> None:
        self._publish()

    def _publish(self) -> None:
        if self._publish_suspended or self.status_callback is None:
            return
        try:
            self.status_callback(self.snapshot())
        except Exception as e:
            logger.error(f"Error in status callback: {e}", exc_info=True)
