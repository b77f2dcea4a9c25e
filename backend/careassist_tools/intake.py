from __future__ import annotations

import logging
from typing import Protocol

from careassist_voice import RecognitionArbiter, VoiceCaptureController

from .directions import build_directions_url
from .facility_matcher import GeoFacilityMatcher
from .geo import GeoPoint
from .models import FacilityCandidate, FacilitySearchResult
from .symptom_analysis import SymptomAnalysis

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = GeoPoint(latitude=28.6139, longitude=77.2090)
DEFAULT_SPECIALTY = "hospital"
DEMO_DATA_NOTICE = "Could not connect to map service. Showing sample locations."
LOCATION_UNAVAILABLE_NOTICE = "Unable to get your location. Please enable location access."


class SymptomAnalyzer(Protocol):
    async def analyze(self, symptoms: str) -> SymptomAnalysis: ...


class SymptomIntakeOrchestrator:
    """Symptom-checker workflow: typed or spoken symptoms -> analysis -> nearby care."""

    def __init__(
        self,
        *,
        analyzer: SymptomAnalyzer,
        matcher: GeoFacilityMatcher,
        arbiter: RecognitionArbiter | None = None,
        silence_timeout_ms: int = 3000,
    ) -> None:
        self.analyzer = analyzer
        self.matcher = matcher
        self.symptoms = ""
        self.analysis: SymptomAnalysis | None = None
        self.origin: GeoPoint | None = None
        self.last_search: FacilitySearchResult | None = None
        self.notices: list[str] = []
        self.voice = VoiceCaptureController(
            arbiter or RecognitionArbiter(),
            on_result=self.append_transcript,
            on_error=self.notices.append,
            continuous=True,
            silence_timeout_ms=silence_timeout_ms,
        )

    def append_transcript(self, text: str) -> None:
        cleaned = (text or "").strip()
        if not cleaned:
            return
        self.symptoms = f"{self.symptoms} {cleaned}" if self.symptoms else cleaned

    async def toggle_voice(self) -> None:
        if self.voice.is_listening:
            await self.voice.stop()
        else:
            await self.voice.start()

    async def analyze(self) -> SymptomAnalysis:
        self.analysis = await self.analyzer.analyze(self.symptoms)
        return self.analysis

    async def find_care(self, origin: GeoPoint | None = None) -> FacilitySearchResult:
        if origin is None:
            self.notices.append(LOCATION_UNAVAILABLE_NOTICE)
            origin = DEFAULT_ORIGIN
        self.origin = origin
        specialty = self.analysis.doctor_type if self.analysis else DEFAULT_SPECIALTY
        result = await self.matcher.search(origin, specialty)
        if result.is_using_demo_data:
            logger.info("Nearby care is synthetic (%s)", result.error)
            self.notices.append(DEMO_DATA_NOTICE)
        self.last_search = result
        return result

    def directions_to(self, candidate: FacilityCandidate, *, platform: str = "web") -> str:
        return build_directions_url(candidate.location, self.origin, platform=platform)

    async def close(self) -> None:
        await self.voice.close()
