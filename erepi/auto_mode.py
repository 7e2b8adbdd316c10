"""Auto mode: one unattended practice attempt, for checking a setup end to end."""

import asyncio
import logging
import time

from .models.practice import PracticeState

logger = logging.getLogger(__name__)


async def run_auto_mode(app, duration_seconds: int = 5) -> bool:
    """Run a single attempt and print the outcome.

    This mode:
    1. Picks a question and speaks it
    2. Records for the specified duration
    3. Waits for the transcription and the verdict
    4. Reports results

    Args:
        app: Initialized Application
        duration_seconds: How long to record

    Returns:
        True if a verdict was reached
    """
    session = app.session
    logger.info(f"🤖 Starting auto mode: {duration_seconds}s recording")

    question = session.generate_question()
    if question is None:
        print(f"❌ {session.status_message}")
        return False

    print(f"📋 Level: {session.question_bank.level.value}")
    print(f"   Say: {question.english}")
    print(f"        ({question.japanese})")
    print()

    await _play_model_audio(app)

    session.record()
    if not session.is_recording:
        print(f"❌ Cannot proceed: {session.status_message}")
        return False

    print("🔴 Recording in progress...")
    for elapsed in range(1, duration_seconds + 1):
        await asyncio.sleep(1)
        progress_bar = "█" * elapsed + "░" * (duration_seconds - elapsed)
        print(f"   [{progress_bar}] {elapsed:2d}/{duration_seconds}s", end="\r")
    print()

    print("⏹️  Stopping recording...")
    start_time = time.time()
    session.record()
    if not session.engine.is_model_ready:
        print(f"   {session.engine.loading_status or 'Waiting for the speech model...'}")
    await session.wait_for_attempt()

    _report_results(session, time.time() - start_time)
    return session.state is PracticeState.VERDICTED


async def _play_model_audio(app, max_wait: float = 15.0) -> None:
    if app.speaker is None:
        return
    print("🔊 Playing model pronunciation...")
    app.session.play_model_audio()
    await asyncio.sleep(0.5)
    waited = 0.5
    while app.speaker.is_speaking and waited < max_wait:
        await asyncio.sleep(0.1)
        waited += 0.1


def _report_results(session, total_time: float) -> None:
    """Report the outcome of the attempt."""
    print()
    if session.transcription is None:
        print(f"⚠️  No verdict: {session.status_message}")
        logger.info(f"Auto mode finished without verdict: {session.status_message}")
        return

    mark = "✅ Correct" if session.is_correct else "❌ Incorrect"
    print(f"📝 You said: {session.transcribed_text}")
    print(f"   Expected: {session.question.english}")
    print(f"   {mark} (transcribed in {total_time:.1f}s)")
    logger.info(f"Auto mode verdict: {session.verdict.value}, {total_time:.1f}s")
