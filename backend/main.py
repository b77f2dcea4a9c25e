from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from careassist_tools import (
    GeoFacilityMatcher,
    GeoPoint,
    HostedSymptomAnalyzer,
    SymptomAnalysisError,
    build_directions_url,
    detect_platform,
)
from careassist_tools.intake import DEFAULT_ORIGIN, DEFAULT_SPECIALTY, LOCATION_UNAVAILABLE_NOTICE

logger = logging.getLogger("careassist")

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    for candidate in (repo_root / ".env", repo_root / "backend/.env"):
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()
logging.basicConfig(
    level=os.getenv("CAREASSIST_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


class AnalyzeRequest(BaseModel):
    symptoms: str


class NearbyCareRequest(BaseModel):
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    specialty: str | None = None


class CareAssistApp:
    def __init__(self) -> None:
        self.analyzer = HostedSymptomAnalyzer()
        self.matcher = GeoFacilityMatcher()


container = CareAssistApp()
app = FastAPI(title="CareAssist Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/symptoms/analyze")
async def analyze_symptoms(payload: AnalyzeRequest):
    try:
        analysis = await container.analyzer.analyze(payload.symptoms)
    except SymptomAnalysisError as exc:
        logger.warning("Symptom analysis failed (%s): %s", exc.status_code, exc.detail)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return analysis.model_dump(by_alias=True)


@app.post("/care/nearby")
async def nearby_care(payload: NearbyCareRequest):
    notices: list[str] = []
    if payload.latitude is None or payload.longitude is None:
        origin = DEFAULT_ORIGIN
        notices.append(LOCATION_UNAVAILABLE_NOTICE)
    else:
        origin = GeoPoint(latitude=payload.latitude, longitude=payload.longitude)
    specialty = (payload.specialty or "").strip() or DEFAULT_SPECIALTY
    result = await container.matcher.search(origin, specialty)
    body = result.as_payload()
    body["origin"] = origin.as_payload()
    body["notices"] = notices
    return body


@app.get("/care/directions")
def care_directions(
    dest_lat: float = Query(..., ge=-90, le=90),
    dest_lon: float = Query(..., ge=-180, le=180),
    origin_lat: float | None = Query(default=None, ge=-90, le=90),
    origin_lon: float | None = Query(default=None, ge=-180, le=180),
    user_agent: str | None = Header(default=None),
):
    if (origin_lat is None) != (origin_lon is None):
        raise HTTPException(status_code=400, detail="Origin requires both origin_lat and origin_lon.")
    origin = GeoPoint(latitude=origin_lat, longitude=origin_lon) if origin_lat is not None else None
    platform = detect_platform(user_agent)
    url = build_directions_url(GeoPoint(latitude=dest_lat, longitude=dest_lon), origin, platform=platform)
    return {"url": url, "platform": platform}
