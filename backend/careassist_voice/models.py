from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class VoiceState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"


ACTIVE_STATES = {VoiceState.STARTING, VoiceState.LISTENING, VoiceState.STOPPING}


@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class Interim:
    text: str


@dataclass(frozen=True)
class Final:
    text: str


@dataclass(frozen=True)
class SpeechEnd:
    pass


@dataclass(frozen=True)
class RecognitionError:
    code: str


@dataclass(frozen=True)
class Ended:
    pass


@dataclass(frozen=True)
class SilenceElapsed:
    # "silence" or "speech_end"
    reason: str


RecognitionEvent = Union[Started, Interim, Final, SpeechEnd, RecognitionError, Ended]
ControllerEvent = Union[RecognitionEvent, SilenceElapsed]


@dataclass
class VoiceSession:
    session_id: int
    state: VoiceState = VoiceState.STARTING
    final_segments: list[str] = field(default_factory=list)
    interim_text: str = ""
    last_activity: float = field(default_factory=time.monotonic)
    closed: bool = False

    @property
    def accumulated_final_text(self) -> str:
        return " ".join(segment for segment in self.final_segments if segment).strip()

    @property
    def live_display_text(self) -> str:
        accumulated = self.accumulated_final_text
        if accumulated and self.interim_text:
            return f"{accumulated} {self.interim_text}".strip()
        return (accumulated or self.interim_text).strip()

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def append_final(self, text: str) -> None:
        cleaned = (text or "").strip()
        self.interim_text = ""
        if cleaned:
            self.final_segments.append(cleaned)

    def take_transcript(self) -> str:
        """Return the accumulated final text once; later calls return ''."""
        text = self.accumulated_final_text
        self.final_segments.clear()
        self.interim_text = ""
        return text

    def clear(self) -> None:
        self.final_segments.clear()
        self.interim_text = ""
