from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

from .errors import CapabilityUnavailable
from .models import RecognitionEvent

logger = logging.getLogger(__name__)

EventSink = Callable[[RecognitionEvent], None]
PreemptHandler = Callable[[], Awaitable[None]]


class RecognitionEngine(Protocol):
    """Platform speech recognizer. Emits events through the sink passed to start()."""

    def configure(self, *, continuous: bool, interim_results: bool, language: str) -> None: ...

    def start(self, emit: EventSink) -> None: ...

    def abort(self) -> None: ...


EngineFactory = Callable[[], RecognitionEngine]


class RecognitionLease:
    def __init__(
        self,
        *,
        arbiter: "RecognitionArbiter",
        engine: RecognitionEngine,
        on_preempt: PreemptHandler,
        lease_id: int,
    ) -> None:
        self._arbiter = arbiter
        self.engine = engine
        self._on_preempt = on_preempt
        self.lease_id = lease_id
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.engine.abort()
        except Exception:
            logger.warning("Recognition engine abort failed for lease %s", self.lease_id, exc_info=True)
        finally:
            self._arbiter._release(self)

    async def preempt(self) -> None:
        try:
            await self._on_preempt()
        finally:
            self.release()

    async def __aenter__(self) -> "RecognitionLease":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


class RecognitionArbiter:
    """Owns the one platform recognition resource shared by every controller.

    A new lease is only handed out after the previous holder has fully
    stopped and released its engine.
    """

    SETTLE_DELAY_SECONDS = 0.15

    def __init__(self, engine_factory: EngineFactory | None = None, *, settle_delay_seconds: float | None = None) -> None:
        self._engine_factory = engine_factory
        self.settle_delay_seconds = (
            self.SETTLE_DELAY_SECONDS if settle_delay_seconds is None else max(0.0, float(settle_delay_seconds))
        )
        self._lock = asyncio.Lock()
        self._lease: RecognitionLease | None = None
        self._next_lease_id = 0
        self.active_instances = 0
        self.peak_active_instances = 0

    @property
    def is_supported(self) -> bool:
        return self._engine_factory is not None

    @property
    def holder(self) -> RecognitionLease | None:
        return self._lease

    async def acquire(self, on_preempt: PreemptHandler) -> RecognitionLease:
        if self._engine_factory is None:
            raise CapabilityUnavailable()
        async with self._lock:
            current = self._lease
            if current is not None and not current.released:
                logger.info("Preempting recognition lease %s", current.lease_id)
                await current.preempt()
                await asyncio.sleep(self.settle_delay_seconds)
            engine = self._engine_factory()
            self._next_lease_id += 1
            lease = RecognitionLease(
                arbiter=self,
                engine=engine,
                on_preempt=on_preempt,
                lease_id=self._next_lease_id,
            )
            self._lease = lease
            self.active_instances += 1
            self.peak_active_instances = max(self.peak_active_instances, self.active_instances)
            return lease

    def _release(self, lease: RecognitionLease) -> None:
        if self._lease is lease:
            self._lease = None
        self.active_instances = max(0, self.active_instances - 1)
