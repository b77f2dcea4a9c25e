from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from typing import Callable

from .errors import CapabilityUnavailable, VoiceErrorKind, VoiceStateError, classify_error
from .models import (
    ControllerEvent,
    Ended,
    Final,
    Interim,
    RecognitionError,
    SilenceElapsed,
    SpeechEnd,
    Started,
    VoiceSession,
    VoiceState,
)
from .resource import RecognitionArbiter, RecognitionLease
from .timers import ScheduledTimeout

logger = logging.getLogger(__name__)

ResultCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]
StateCallback = Callable[[VoiceState], None]


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class VoiceCaptureController:
    """Start/stop control over spoken input with silence-based auto-stop.

    All recognition events for a session go through one queue and are
    handled by a single consumer task, so state transitions never overlap.
    The transcript is handed to ``on_result`` when the session ends
    (explicit stop, silence, end of speech, backgrounding), never per fragment.
    """

    SPEECH_END_TIMEOUT_MS = 1000
    STOP_COOLDOWN_SECONDS = 0.1
    SETTLE_DELAY_SECONDS = 0.15
    MAX_START_ATTEMPTS = 5
    START_FAILED_MESSAGE = "Failed to start speech recognition. Please try again."

    def __init__(
        self,
        arbiter: RecognitionArbiter,
        *,
        on_result: ResultCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_state_change: StateCallback | None = None,
        continuous: bool = False,
        language: str | None = None,
        silence_timeout_ms: int | None = None,
    ) -> None:
        self.arbiter = arbiter
        self.on_result = on_result
        self.on_error = on_error
        self.on_state_change = on_state_change
        self.continuous = continuous
        self.language = (language or os.getenv("CAREASSIST_VOICE_LANGUAGE") or "en-US").strip()
        if silence_timeout_ms is None:
            silence_timeout_ms = _env_int("CAREASSIST_VOICE_SILENCE_TIMEOUT_MS", 3000)
        self.silence_timeout_ms = max(0, int(silence_timeout_ms))

        self.error: str | None = None
        self._display_text = ""
        self._session: VoiceSession | None = None
        self._lease: RecognitionLease | None = None
        self._queue: asyncio.Queue[ControllerEvent] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._timer = ScheduledTimeout()
        self._cooldown = ScheduledTimeout()
        self._stopping = False
        self._closed = False
        self._session_counter = 0
        self._start_generation = 0

    @property
    def state(self) -> VoiceState:
        return self._session.state if self._session is not None else VoiceState.IDLE

    @property
    def is_listening(self) -> bool:
        return self.state is VoiceState.LISTENING

    @property
    def is_supported(self) -> bool:
        return self.arbiter.is_supported and not self._closed

    @property
    def transcript(self) -> str:
        return self._display_text

    async def start(self) -> None:
        if not self.is_supported:
            unavailable = CapabilityUnavailable()
            self.error = str(unavailable)
            raise unavailable

        # Overlapping starts: the most recent caller wins, older ones return.
        self._start_generation += 1
        generation = self._start_generation
        for _ in range(self.MAX_START_ATTEMPTS):
            if self._session is None and not self._stopping:
                break
            await self.stop()
            await asyncio.sleep(self.SETTLE_DELAY_SECONDS)
            if generation != self._start_generation:
                return
        else:
            logger.warning("Voice capture still shutting down; start ignored")
            return

        self._session_counter += 1
        session = VoiceSession(session_id=self._session_counter)
        self._session = session
        self.error = None
        self._display_text = ""
        self._notify_state(VoiceState.STARTING)

        try:
            lease = await self.arbiter.acquire(self.stop)
        except CapabilityUnavailable as exc:
            self._discard(session)
            self.error = str(exc)
            raise
        if session.closed:
            # Stopped while waiting for the resource.
            lease.release()
            return

        self._lease = lease
        queue: asyncio.Queue[ControllerEvent] = asyncio.Queue()
        self._queue = queue
        loop = asyncio.get_running_loop()

        def emit(event) -> None:
            if session.closed:
                return
            loop.call_soon_threadsafe(self._enqueue, session, event)

        try:
            lease.engine.configure(continuous=self.continuous, interim_results=True, language=self.language)
            lease.engine.start(emit)
        except Exception as exc:
            logger.error("Speech recognition start error: %s", exc)
            self._finish(session, flush=False)
            self._report_error(self.START_FAILED_MESSAGE)
            return

        self._consumer = asyncio.create_task(self._consume(session, queue))

    async def stop(self) -> None:
        session = self._session
        if session is None or self._stopping:
            return
        self._finish(session, flush=True)
        await self._join_consumer()

    def reset_transcript(self) -> None:
        state = self.state
        if state not in {VoiceState.IDLE, VoiceState.LISTENING}:
            raise VoiceStateError(f"Cannot reset transcript while {state.value}.")
        self._display_text = ""
        if self._session is not None:
            self._session.clear()

    async def handle_visibility_change(self, hidden: bool) -> None:
        if hidden and self.is_listening:
            logger.info("Host hidden while listening; stopping voice capture")
            await self.stop()

    async def handle_focus_lost(self) -> None:
        if self.is_listening:
            logger.info("Host lost focus while listening; stopping voice capture")
            await self.stop()

    async def close(self) -> None:
        """Force-release the recognition resource without delivering a result."""
        self._closed = True
        session = self._session
        if session is not None:
            self._finish(session, flush=False)
        await self._join_consumer()

    async def __aenter__(self) -> "VoiceCaptureController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _enqueue(self, session: VoiceSession, event: ControllerEvent) -> None:
        if session.closed or self._session is not session or self._queue is None:
            return
        self._queue.put_nowait(event)

    async def _consume(self, session: VoiceSession, queue: asyncio.Queue[ControllerEvent]) -> None:
        try:
            while not session.closed:
                event = await queue.get()
                if session.closed:
                    break
                try:
                    self._handle(session, event)
                except Exception:
                    logger.exception("Voice capture callback failed while handling %s", type(event).__name__)
        finally:
            if not session.closed:
                self._finish(session, flush=False)

    def _handle(self, session: VoiceSession, event: ControllerEvent) -> None:
        if isinstance(event, Started):
            session.state = VoiceState.LISTENING
            session.touch()
            self.error = None
            self._notify_state(VoiceState.LISTENING)
            self._arm_silence(session)
        elif isinstance(event, Interim):
            session.touch()
            session.interim_text = (event.text or "").strip()
            self._display_text = session.live_display_text
            self._arm_silence(session)
        elif isinstance(event, Final):
            session.touch()
            session.append_final(event.text)
            self._display_text = session.live_display_text
            self._arm_silence(session)
        elif isinstance(event, SpeechEnd):
            session.touch()
            if self.silence_timeout_ms > 0 and session.state is VoiceState.LISTENING:
                self._timer.schedule(
                    self.SPEECH_END_TIMEOUT_MS / 1000.0,
                    lambda: self._enqueue(session, SilenceElapsed("speech_end")),
                )
        elif isinstance(event, SilenceElapsed):
            if session.state is VoiceState.LISTENING:
                logger.info("Auto-stopping voice capture (%s)", event.reason)
                self._finish(session, flush=True)
        elif isinstance(event, RecognitionError):
            self._handle_error(session, event.code)
        elif isinstance(event, Ended):
            self._timer.cancel()
            if not self._stopping:
                self._finish(session, flush=True)

    def _handle_error(self, session: VoiceSession, code: str) -> None:
        self._timer.cancel()
        error = classify_error(code)
        if error.kind is VoiceErrorKind.ABORTED and self._stopping:
            logger.debug("Suppressed aborted error raised by an intentional stop")
            return
        self.error = error.message
        if error.kind is VoiceErrorKind.NO_SPEECH:
            self._finish(session, flush=True)
        else:
            logger.warning("Speech recognition error: %s", error.code)
            self._finish(session, flush=False)
        self._report_error(error.message)

    def _arm_silence(self, session: VoiceSession) -> None:
        if self.silence_timeout_ms <= 0 or session.state is not VoiceState.LISTENING:
            return
        self._timer.schedule(
            self.silence_timeout_ms / 1000.0,
            lambda: self._enqueue(session, SilenceElapsed("silence")),
        )

    def _finish(self, session: VoiceSession, *, flush: bool) -> None:
        if session.closed:
            return
        self._stopping = True
        self._timer.cancel()
        session.state = VoiceState.STOPPING
        try:
            self._notify_state(VoiceState.STOPPING)
            if flush:
                self._deliver(session.take_transcript())
        finally:
            session.closed = True
            session.clear()
            lease, self._lease = self._lease, None
            if lease is not None:
                lease.release()
            if self._session is session:
                self._session = None
                self._queue = None
            self._cooldown.schedule(self.STOP_COOLDOWN_SECONDS, self._clear_stopping)
            self._notify_state(VoiceState.IDLE)

    def _discard(self, session: VoiceSession) -> None:
        session.closed = True
        if self._session is session:
            self._session = None
        self._notify_state(VoiceState.IDLE)

    def _clear_stopping(self) -> None:
        self._stopping = False

    async def _join_consumer(self) -> None:
        task, self._consumer = self._consumer, None
        if task is None or task is asyncio.current_task() or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _deliver(self, text: str) -> None:
        text = (text or "").strip()
        if text and self.on_result is not None:
            self.on_result(text)

    def _report_error(self, message: str) -> None:
        self.error = message
        if self.on_error is not None:
            self.on_error(message)

    def _notify_state(self, state: VoiceState) -> None:
        if self.on_state_change is not None:
            self.on_state_change(state)
