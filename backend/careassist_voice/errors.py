from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VoiceErrorKind(str, Enum):
    CAPABILITY_UNAVAILABLE = "capability-unavailable"
    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    PERMISSION_DENIED = "not-allowed"
    NETWORK = "network"
    ABORTED = "aborted"
    LANGUAGE_UNSUPPORTED = "language-not-supported"
    SERVICE_DISALLOWED = "service-not-allowed"
    UNKNOWN = "unknown"


_MESSAGES = {
    VoiceErrorKind.CAPABILITY_UNAVAILABLE: "Speech recognition is not supported on this device.",
    VoiceErrorKind.NO_SPEECH: "No speech detected. Try speaking louder or closer to the microphone.",
    VoiceErrorKind.AUDIO_CAPTURE: "No microphone was found. Ensure it is connected.",
    VoiceErrorKind.PERMISSION_DENIED: "Microphone permission was denied. Please allow access.",
    VoiceErrorKind.NETWORK: "Network error occurred. Please check your connection.",
    VoiceErrorKind.ABORTED: "Recording stopped.",
    VoiceErrorKind.LANGUAGE_UNSUPPORTED: "The language is not supported.",
    VoiceErrorKind.SERVICE_DISALLOWED: "Speech recognition service is not allowed.",
}


@dataclass(frozen=True)
class VoiceError:
    kind: VoiceErrorKind
    code: str
    message: str


def classify_error(code: str) -> VoiceError:
    """Map a platform recognition error code to a user-facing error."""
    raw = (code or "").strip().lower()
    try:
        kind = VoiceErrorKind(raw)
    except ValueError:
        kind = VoiceErrorKind.UNKNOWN
    if kind is VoiceErrorKind.UNKNOWN:
        return VoiceError(kind=kind, code=raw, message=f"Speech recognition error: {raw or 'unknown'}")
    return VoiceError(kind=kind, code=raw, message=_MESSAGES[kind])


class VoiceCaptureError(Exception):
    pass


class CapabilityUnavailable(VoiceCaptureError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or _MESSAGES[VoiceErrorKind.CAPABILITY_UNAVAILABLE])


class VoiceStateError(VoiceCaptureError):
    pass
