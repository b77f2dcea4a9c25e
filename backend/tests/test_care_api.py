from __future__ import annotations

from careassist_tools import SymptomAnalysis, SymptomAnalysisError


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_analyze_returns_camel_case_analysis(client, backend_module, monkeypatch):
    async def fake_analyze(symptoms: str) -> SymptomAnalysis:
        assert symptoms == "I feel dizzy and nauseous"
        return SymptomAnalysis(
            severity="mild",
            doctorType="General Physician",
            precautions=["Hydrate"],
            doActions=["Rest"],
            avoidActions=["Driving"],
            explanation="Likely dehydration.",
        )

    monkeypatch.setattr(backend_module.container.analyzer, "analyze", fake_analyze)
    response = client.post("/symptoms/analyze", json={"symptoms": "I feel dizzy and nauseous"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["doctorType"] == "General Physician"
    assert payload["doActions"] == ["Rest"]
    assert payload["severity"] == "mild"


def test_analyze_surfaces_provider_errors(client, backend_module, monkeypatch):
    async def fake_analyze(symptoms: str) -> SymptomAnalysis:
        raise SymptomAnalysisError(429, "Rate limit exceeded. Please try again later.")

    monkeypatch.setattr(backend_module.container.analyzer, "analyze", fake_analyze)
    response = client.post("/symptoms/analyze", json={"symptoms": "cough"})

    assert response.status_code == 429
    assert "rate limit" in response.json()["detail"].lower()


def test_analyze_without_api_key_is_unavailable(client):
    response = client.post("/symptoms/analyze", json={"symptoms": "cough"})
    assert response.status_code == 503


def test_nearby_care_returns_flagged_demo_places(client):
    response = client.post(
        "/care/nearby",
        json={"latitude": 28.6139, "longitude": 77.2090, "specialty": "Cardiologist"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["is_using_demo_data"] is True
    assert payload["error"] == "external_geo_disabled"
    assert payload["notices"] == []
    assert len(payload["places"]) == 5
    assert all(place["is_synthetic"] for place in payload["places"])
    distances = [place["distance_km"] for place in payload["places"]]
    assert distances == sorted(distances)


def test_nearby_care_without_location_uses_default_origin(client):
    response = client.post("/care/nearby", json={})

    assert response.status_code == 200
    payload = response.json()
    assert payload["origin"] == {"latitude": 28.6139, "longitude": 77.209}
    assert payload["notices"]
    assert payload["places"][0]["specialty"] == "hospital"


def test_nearby_care_rejects_out_of_range_coordinates(client):
    response = client.post("/care/nearby", json={"latitude": 123.0, "longitude": 77.2})
    assert response.status_code == 422


def test_directions_follow_the_client_platform(client):
    params = {"dest_lat": 28.62, "dest_lon": 77.215, "origin_lat": 28.6139, "origin_lon": 77.209}

    ios = client.get("/care/directions", params=params, headers={"User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)"})
    android = client.get("/care/directions", params=params, headers={"User-Agent": "Mozilla/5.0 (Linux; Android 14)"})
    web = client.get("/care/directions", params={"dest_lat": 28.62, "dest_lon": 77.215}, headers={"User-Agent": "Mozilla/5.0 (X11; Linux x86_64)"})

    assert ios.json() == {"url": "maps://maps.apple.com/?daddr=28.62,77.215&saddr=28.6139,77.209", "platform": "ios"}
    assert android.json() == {"url": "geo:28.62,77.215?q=28.62,77.215", "platform": "android"}
    assert web.json()["url"] == "https://www.openstreetmap.org/?mlat=28.62&mlon=77.215#map=16/28.62/77.215"


def test_directions_require_complete_origin(client):
    response = client.get("/care/directions", params={"dest_lat": 28.62, "dest_lon": 77.215, "origin_lat": 28.6})
    assert response.status_code == 400
