from __future__ import annotations

import asyncio
from typing import Any

from careassist_voice import Ended, RecognitionError


class FakeEngine:
    def __init__(self, factory: "FakeEngineFactory", *, fail_on_start: bool = False) -> None:
        self.factory = factory
        self.fail_on_start = fail_on_start
        self.config: dict[str, Any] = {}
        self.emit_fn = None
        self.started = False
        self.aborted = False

    def configure(self, *, continuous: bool, interim_results: bool, language: str) -> None:
        self.config = {"continuous": continuous, "interim_results": interim_results, "language": language}

    def start(self, emit) -> None:
        if self.fail_on_start:
            raise RuntimeError("recognizer busy")
        self.emit_fn = emit
        self.started = True
        self.factory.live += 1
        self.factory.peak_live = max(self.factory.peak_live, self.factory.live)

    def abort(self) -> None:
        if self.aborted:
            return
        self.aborted = True
        if self.started:
            self.factory.live -= 1
            # Real recognizers report the abort and then end.
            self.emit(RecognitionError("aborted"))
            self.emit(Ended())

    def emit(self, event) -> None:
        if self.emit_fn is not None:
            self.emit_fn(event)


class FakeEngineFactory:
    def __init__(self, *, fail_on_start: bool = False) -> None:
        self.fail_on_start = fail_on_start
        self.engines: list[FakeEngine] = []
        self.live = 0
        self.peak_live = 0

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(self, fail_on_start=self.fail_on_start)
        self.engines.append(engine)
        return engine

    @property
    def current(self) -> FakeEngine:
        return self.engines[-1]


async def settle(seconds: float = 0.01) -> None:
    await asyncio.sleep(seconds)
