from __future__ import annotations

import asyncio

import httpx

from careassist_tools import GeoFacilityMatcher, GeoPoint, SymptomAnalysis, SymptomIntakeOrchestrator
from careassist_tools.intake import DEFAULT_ORIGIN, DEMO_DATA_NOTICE, LOCATION_UNAVAILABLE_NOTICE
from careassist_voice import Final, RecognitionArbiter, Started, VoiceState
from engine_fakes import FakeEngineFactory, settle


class _StubAnalyzer:
    def __init__(self, doctor_type: str = "Cardiologist") -> None:
        self.doctor_type = doctor_type
        self.calls: list[str] = []

    async def analyze(self, symptoms: str) -> SymptomAnalysis:
        self.calls.append(symptoms)
        return SymptomAnalysis(severity="moderate", doctorType=self.doctor_type, explanation="stub")


def _offline_matcher(monkeypatch) -> GeoFacilityMatcher:
    monkeypatch.setenv("CAREASSIST_DISABLE_EXTERNAL_GEO", "true")
    return GeoFacilityMatcher()


def test_voice_transcript_is_appended_and_forwarded_verbatim(monkeypatch):
    factory = FakeEngineFactory()
    analyzer = _StubAnalyzer()

    async def scenario():
        orchestrator = SymptomIntakeOrchestrator(
            analyzer=analyzer,
            matcher=_offline_matcher(monkeypatch),
            arbiter=RecognitionArbiter(factory, settle_delay_seconds=0.01),
        )
        orchestrator.symptoms = "Chest tightness"
        await orchestrator.toggle_voice()
        factory.current.emit(Started())
        factory.current.emit(Final("when climbing stairs"))
        await settle()
        await orchestrator.toggle_voice()
        analysis = await orchestrator.analyze()
        await orchestrator.close()
        return orchestrator, analysis

    orchestrator, analysis = asyncio.run(scenario())
    assert orchestrator.symptoms == "Chest tightness when climbing stairs"
    assert analyzer.calls == ["Chest tightness when climbing stairs"]
    assert analysis.doctor_type == "Cardiologist"
    assert orchestrator.voice.state is VoiceState.IDLE


def test_find_care_uses_doctor_type_and_flags_demo_data(monkeypatch):
    analyzer = _StubAnalyzer("Cardiologist")

    async def scenario():
        orchestrator = SymptomIntakeOrchestrator(analyzer=analyzer, matcher=_offline_matcher(monkeypatch))
        orchestrator.symptoms = "palpitations"
        await orchestrator.analyze()
        result = await orchestrator.find_care(GeoPoint(latitude=19.0760, longitude=72.8777))
        return orchestrator, result

    orchestrator, result = asyncio.run(scenario())
    assert result.is_using_demo_data is True
    assert "Heart Care Institute" in {c.name for c in result.candidates}
    assert orchestrator.notices == [DEMO_DATA_NOTICE]
    assert orchestrator.origin == GeoPoint(latitude=19.0760, longitude=72.8777)


def test_find_care_without_location_uses_default_origin_and_hospital(monkeypatch):
    monkeypatch.setenv("CAREASSIST_DISABLE_EXTERNAL_GEO", "false")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"elements": [{"type": "node", "id": 1, "lat": 28.6200, "lon": 77.2150, "tags": {"name": "Lotus Hospital", "amenity": "hospital"}}]},
        )

    matcher = GeoFacilityMatcher(transport=httpx.MockTransport(handler))

    async def scenario():
        orchestrator = SymptomIntakeOrchestrator(analyzer=_StubAnalyzer(), matcher=matcher)
        result = await orchestrator.find_care()
        return orchestrator, result

    orchestrator, result = asyncio.run(scenario())
    assert orchestrator.origin == DEFAULT_ORIGIN
    assert orchestrator.notices == [LOCATION_UNAVAILABLE_NOTICE]
    assert [c.name for c in result.candidates] == ["Lotus Hospital"]
    assert len(seen) == 1

    url = orchestrator.directions_to(result.candidates[0])
    assert url == "https://www.openstreetmap.org/directions?from=28.6139,77.209&to=28.62,77.215"
