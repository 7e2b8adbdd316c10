"""Transcription engine owning the speech recognition model lifecycle."""

import asyncio
import time
import logging
from concurrent.futures import ThreadPoolExecutor
from threading import Thread
from typing import List, Optional, Callable

from .base import AbstractTranscriptionBackend, ModelLoadFailed, TranscriptionFailed
from ..models.audio import AudioClip
from ..models.transcription import ModelState, TranscriptionResult, EngineStatus

logger = logging.getLogger(__name__)


class TranscriptionEngine:
    """Loads one recognition model per session and runs one clip at a time.

    The model moves ``UNLOADED -> LOADING -> READY`` at most once. A load
    failure leaves it ``FAILED`` for the rest of the session. The model is
    loaded on a daemon thread so shutdown never waits for a download;
    inference runs on a single worker thread and only after loading has
    finished, so the model is never entered concurrently.
    """

    def __init__(self, backend: AbstractTranscriptionBackend):
        """Initialize transcription engine.

        Args:
            backend: Recognition backend that owns the model instance
        """
        self.backend = backend
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="transcription")
        self.callbacks: List[Callable[[EngineStatus], None]] = []

        self.model_state = ModelState.UNLOADED
        self.loading_status = ""
        self.is_processing = False
        self.transcribed_text = ""
        self.error_message: Optional[str] = None

        self.loader_thread: Optional[Thread] = None
        self._load_task: Optional[asyncio.Task] = None
        self._load_error: Optional[ModelLoadFailed] = None
        self._busy = asyncio.Lock()

        # Statistics
        self.stats = {
            "total_clips_submitted": 0,
            "total_results": 0,
            "total_failures": 0,
            "total_rejected": 0,
            "avg_processing_time": 0.0,
            "load_time": None,
        }

    @property
    def is_model_ready(self) -> bool:
        return self.model_state is ModelState.READY

    @property
    def is_busy(self) -> bool:
        """A transcription is pending (waiting for the model or running)."""
        return self._busy.locked()

    def get_status(self) -> EngineStatus:
        return EngineStatus(
            model_state=self.model_state,
            loading_status=self.loading_status,
            is_processing=self.is_processing,
            error_message=self.error_message,
        )

    def add_status_callback(self, callback: Callable[[EngineStatus], None]) -> None:
        """Add callback to be called whenever the engine status changes.

        Args:
            callback: Function that takes EngineStatus as argument
        """
        self.callbacks.append(callback)
        logger.debug(f"Added status callback: {getattr(callback, '__name__', callback)}")

    def _notify(self) -> None:
        status = self.get_status()
        for callback in self.callbacks:
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Error in status callback: {e}", exc_info=True)

    def _set_loading_status(self, message: str) -> None:
        if self.model_state is not ModelState.LOADING:
            return
        self.loading_status = message
        logger.info(f"Model loading: {message}")
        self._notify()

    def start_loading(self) -> asyncio.Task:
        """Begin loading the model in the background (idempotent)."""
        if self._load_task is None:
            self._load_task = asyncio.get_running_loop().create_task(self._load_model())
        return self._load_task

    async def load_model(self) -> None:
        """Wait until the model is ready.

        Raises:
            ModelLoadFailed: if loading failed now or earlier in the session
        """
        if self.model_state is ModelState.READY:
            return
        if self._load_error is not None:
            raise self._load_error
        # shield: a cancelled waiter must not abort the shared load
        await asyncio.shield(self.start_loading())
        if self._load_error is not None:
            raise self._load_error

    async def _load_model(self) -> None:
        loop = asyncio.get_running_loop()
        backend_name = self.backend.__class__.__name__

        def progress(message: str) -> None:
            try:
                loop.call_soon_threadsafe(self._set_loading_status, message)
            except RuntimeError:
                logger.debug(f"Dropping load progress after shutdown: {message}")

        self.model_state = ModelState.LOADING
        self.loading_status = "Loading speech recognition model..."
        logger.info(f"Loading {backend_name}...")
        self._notify()

        start_time = time.time()
        try:
            await self._run_in_loader_thread(loop, progress)
        except Exception as e:
            if isinstance(e, ModelLoadFailed):
                self._load_error = e
            else:
                self._load_error = ModelLoadFailed(f"{backend_name} failed to load: {e}")
            logger.error(f"❌ {backend_name} failed to load: {e}", exc_info=True)
            self.model_state = ModelState.FAILED
            self.loading_status = f"Model failed to load: {self._load_error}"
            self.error_message = str(self._load_error)
            self._notify()
            return

        self.stats["load_time"] = time.time() - start_time
        self.model_state = ModelState.READY
        self.loading_status = ""
        logger.info(f"✅ {backend_name} ready in {self.stats['load_time']:.1f}s")
        self._notify()

    def _run_in_loader_thread(self, loop: asyncio.AbstractEventLoop,
                              progress: Callable[[str], None]) -> asyncio.Future:
        """Run ``backend.load`` on a daemon thread and return a future for it."""
        future = loop.create_future()

        def settle(error: Optional[BaseException]) -> None:
            if future.done():
                return
            if error is None:
                future.set_result(None)
            else:
                future.set_exception(error)

        def run_load() -> None:
            error = None
            try:
                self.backend.load(progress)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(settle, error)
            except RuntimeError:
                logger.debug("Model load finished after the event loop closed")

        self.loader_thread = Thread(target=run_load, daemon=True)
        self.loader_thread.name = "ModelLoaderThread"
        self.loader_thread.start()
        return future

    async def transcribe_audio(self, clip: AudioClip) -> Optional[TranscriptionResult]:
        """Transcribe one clip, loading the model first if needed.

        Failures never propagate: they are recorded in ``error_message``
        (and ``loading_status`` for load errors) and None is returned.
        A call made while another transcription is pending is rejected.

        Args:
            clip: Finished recording

        Returns:
            TranscriptionResult, or None if no transcription was produced
        """
        if self._busy.locked():
            self.stats["total_rejected"] += 1
            logger.warning(f"Transcription already in flight, rejecting clip {clip.clip_id}")
            return None

        async with self._busy:
            self.stats["total_clips_submitted"] += 1
            self.error_message = None

            try:
                await self.load_model()
            except ModelLoadFailed as e:
                self.stats["total_failures"] += 1
                self.error_message = str(e)
                logger.warning(f"Cannot transcribe clip {clip.clip_id}: {e}")
                self._notify()
                return None

            self.is_processing = True
            self._notify()
            start_time = time.time()
            try:
                text = await asyncio.get_running_loop().run_in_executor(
                    self.executor, self.backend.transcribe, clip
                )
            except Exception as e:
                error = e if isinstance(e, TranscriptionFailed) else TranscriptionFailed(f"Transcription failed: {e}")
                self.stats["total_failures"] += 1
                self.error_message = str(error)
                logger.error(f"Transcription failed for clip {clip.clip_id}: {error}")
                return None
            finally:
                self.is_processing = False
                self._notify()

            processing_time = time.time() - start_time
            self._record_processing_time(processing_time)
            result = TranscriptionResult(
                text=(text or "").strip(),
                processing_time=processing_time,
                service=self.backend.name,
                language=self.backend.language,
                clip_id=clip.clip_id,
            )
            self.transcribed_text = result.text
            logger.info(f"Transcribed clip {clip.clip_id} in {processing_time:.2f}s: '{result.text}'")
            self._notify()
            return result

    def _record_processing_time(self, processing_time: float) -> None:
        self.stats["total_results"] += 1
        total_results = self.stats["total_results"]
        current_avg = self.stats["avg_processing_time"]
        self.stats["avg_processing_time"] = (
            (current_avg * (total_results - 1) + processing_time) / total_results
        )

    def reset_transcription(self) -> None:
        """Clear the last result; the model lifecycle is untouched."""
        self.transcribed_text = ""
        self.error_message = None
        self._notify()

    def cleanup(self) -> None:
        """Clean up engine resources."""
        logger.info("Shutting down transcription engine...")
        if self._load_task is not None and not self._load_task.done():
            # the loader thread is a daemon and is left to finish on its own
            logger.info("Abandoning model load in progress")
            self._load_task.cancel()
        self.executor.shutdown(wait=True, cancel_futures=True)
        try:
            self.backend.cleanup()
        except Exception as e:
            logger.error(f"Error cleaning up {self.backend.__class__.__name__}: {e}")
        logger.info("Transcription engine shutdown completed")
