from .controller import VoiceCaptureController
from .errors import (
    CapabilityUnavailable,
    VoiceCaptureError,
    VoiceError,
    VoiceErrorKind,
    VoiceStateError,
    classify_error,
)
from .models import (
    Ended,
    Final,
    Interim,
    RecognitionError,
    RecognitionEvent,
    SpeechEnd,
    Started,
    VoiceSession,
    VoiceState,
)
from .resource import RecognitionArbiter, RecognitionEngine, RecognitionLease
from .timers import ScheduledTimeout

__all__ = [
    "CapabilityUnavailable",
    "Ended",
    "Final",
    "Interim",
    "RecognitionArbiter",
    "RecognitionEngine",
    "RecognitionError",
    "RecognitionEvent",
    "RecognitionLease",
    "ScheduledTimeout",
    "SpeechEnd",
    "Started",
    "VoiceCaptureController",
    "VoiceCaptureError",
    "VoiceError",
    "VoiceErrorKind",
    "VoiceSession",
    "VoiceState",
    "VoiceStateError",
    "classify_error",
]
