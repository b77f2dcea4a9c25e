from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from .geo import GeoPoint, safe_float
from .models import (
    ADDRESS_UNAVAILABLE,
    PROVIDER_FALLBACK,
    PROVIDER_OVERPASS,
    FacilityCandidate,
    FacilitySearchResult,
)
from .specialties import SpecialtyQuery, resolve_specialty, synthetic_names

logger = logging.getLogger(__name__)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
SEARCH_RADIUS_M = 10_000
MAX_RESULTS = 15

_FACILITY_TAGS = (
    ("amenity", "hospital"),
    ("amenity", "clinic"),
    ("amenity", "doctors"),
    ("healthcare", "hospital"),
    ("healthcare", "clinic"),
    ("healthcare", "doctor"),
    ("healthcare", "centre"),
)

_ADDRESS_KEYS = ("addr:housenumber", "addr:street", "addr:city", "addr:postcode")

# Latitude/longitude deltas giving a spread of roughly 1-7 km around the origin.
_SYNTHETIC_OFFSETS = (
    (0.009, 0.004),
    (-0.018, 0.012),
    (0.027, -0.015),
    (-0.036, -0.030),
    (0.052, 0.038),
)
_SYNTHETIC_RATINGS = (4.6, 4.3, 4.8, 4.1, 4.5)
_SYNTHETIC_OPEN = (True, True, False, True, True)


class FacilityQueryError(Exception):
    code = "query_failed"


class QueryFailed(FacilityQueryError):
    code = "query_failed"


class ParseFailed(FacilityQueryError):
    code = "parse_failed"


def build_overpass_query(origin: GeoPoint, radius_m: int = SEARCH_RADIUS_M) -> str:
    around = f"(around:{radius_m},{origin.latitude},{origin.longitude})"
    clauses = []
    for element in ("node", "way"):
        for key, value in _FACILITY_TAGS:
            clauses.append(f'{element}["{key}"="{value}"]{around};')
    body = "\n  ".join(clauses)
    return f"[out:json][timeout:25];\n(\n  {body}\n);\nout center;"


def _format_address(tags: dict[str, Any]) -> str:
    number = str(tags.get("addr:housenumber") or "").strip()
    street = str(tags.get("addr:street") or "").strip()
    first = " ".join(part for part in (number, street) if part)
    parts = [first] + [str(tags.get(key) or "").strip() for key in _ADDRESS_KEYS[2:]]
    address = ", ".join(part for part in parts if part)
    return address or ADDRESS_UNAVAILABLE


def _element_location(element: dict[str, Any]) -> GeoPoint | None:
    lat = safe_float(element.get("lat"))
    lon = safe_float(element.get("lon"))
    if lat is None or lon is None:
        center = element.get("center") if isinstance(element.get("center"), dict) else {}
        lat = safe_float(center.get("lat"))
        lon = safe_float(center.get("lon"))
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=lat, longitude=lon)


def parse_overpass_elements(payload: Any, *, origin: GeoPoint, fallback_specialty: str) -> list[FacilityCandidate]:
    if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
        raise ParseFailed("Overpass payload has no elements list.")

    candidates: list[FacilityCandidate] = []
    for element in payload["elements"]:
        if not isinstance(element, dict):
            continue
        tags = element.get("tags") if isinstance(element.get("tags"), dict) else {}
        name = str(tags.get("name") or "").strip()
        if not name:
            continue
        location = _element_location(element)
        if location is None:
            continue
        specialty_tag = (
            str(tags.get("healthcare:speciality") or "").strip()
            or str(tags.get("healthcare") or "").strip()
            or str(tags.get("amenity") or "").strip()
            or fallback_specialty
        )
        candidates.append(
            FacilityCandidate(
                name=name,
                address=_format_address(tags),
                location=location,
                origin=origin,
                specialty_tag=specialty_tag,
                description=str(tags.get("description") or "").strip(),
            )
        )
    return candidates


def narrow_by_specialty(candidates: list[FacilityCandidate], query: SpecialtyQuery) -> list[FacilityCandidate]:
    """Keep specialty matches when there are any; otherwise keep everything."""
    if not query.raw:
        return candidates
    matched = [
        candidate
        for candidate in candidates
        if query.matches(candidate.specialty_tag, candidate.name, candidate.description)
    ]
    return matched or candidates


def synthesize_candidates(origin: GeoPoint, specialty: str) -> list[FacilityCandidate]:
    query = resolve_specialty(specialty)
    names = synthetic_names(query)
    candidates = [
        FacilityCandidate(
            name=names[idx],
            address=f"Demo Address {idx + 1}, Medical District",
            location=GeoPoint(latitude=origin.latitude + dlat, longitude=origin.longitude + dlon),
            origin=origin,
            specialty_tag=specialty.strip() or "General Medicine",
            rating=_SYNTHETIC_RATINGS[idx],
            is_open=_SYNTHETIC_OPEN[idx],
            is_synthetic=True,
        )
        for idx, (dlat, dlon) in enumerate(_SYNTHETIC_OFFSETS)
    ]
    candidates.sort(key=lambda candidate: candidate.distance_km)
    return candidates


class GeoFacilityMatcher:
    def __init__(
        self,
        *,
        overpass_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.overpass_url = (overpass_url or os.getenv("CAREASSIST_OVERPASS_URL") or DEFAULT_OVERPASS_URL).strip()
        self.disable_external = os.getenv("CAREASSIST_DISABLE_EXTERNAL_GEO", "false").lower() == "true"
        self.timeout = float(os.getenv("CAREASSIST_GEO_TIMEOUT_SECONDS", "30.0"))
        self.radius_m = SEARCH_RADIUS_M
        self._transport = transport

    async def search(self, origin: GeoPoint, specialty: str = "hospital") -> FacilitySearchResult:
        if self.disable_external:
            return self._fallback_result(origin, specialty, reason="external_geo_disabled")

        try:
            payload = await self._query(origin)
            candidates = parse_overpass_elements(payload, origin=origin, fallback_specialty=specialty)
        except (FacilityQueryError, httpx.HTTPError) as exc:
            reason = exc.code if isinstance(exc, FacilityQueryError) else QueryFailed.code
            logger.warning("Nearby facility query failed (%s): %s", reason, exc)
            return self._fallback_result(origin, specialty, reason=reason)

        radius_km = self.radius_m / 1000.0
        in_range = [candidate for candidate in candidates if candidate.distance_km <= radius_km]
        in_range.sort(key=lambda candidate: candidate.distance_km)
        if not in_range:
            return self._fallback_result(origin, specialty, reason="no_live_results")

        narrowed = narrow_by_specialty(in_range, resolve_specialty(specialty))
        return FacilitySearchResult(
            candidates=narrowed[:MAX_RESULTS],
            provider=PROVIDER_OVERPASS,
            is_using_demo_data=False,
            error=None,
        )

    async def _query(self, origin: GeoPoint) -> Any:
        query = build_overpass_query(origin, self.radius_m)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.overpass_url,
                data={"data": query},
                headers={"User-Agent": "careassist-agent/1.0"},
            )
        if not response.is_success:
            raise QueryFailed(f"Overpass responded with HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise ParseFailed("Overpass returned invalid JSON.") from exc

    def _fallback_result(self, origin: GeoPoint, specialty: str, *, reason: str) -> FacilitySearchResult:
        logger.info("Using synthetic facilities near %s (%s)", origin.as_query(), reason)
        return FacilitySearchResult(
            candidates=synthesize_candidates(origin, specialty),
            provider=PROVIDER_FALLBACK,
            is_using_demo_data=True,
            error=reason,
        )
