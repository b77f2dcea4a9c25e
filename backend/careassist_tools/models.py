from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .geo import GeoPoint, format_distance, haversine_km

ADDRESS_UNAVAILABLE = "Address not available"

PROVIDER_OVERPASS = "overpass"
PROVIDER_FALLBACK = "fallback_synthetic"


@dataclass(frozen=True)
class FacilityCandidate:
    name: str
    address: str
    location: GeoPoint
    origin: GeoPoint
    specialty_tag: str
    rating: float | None = None
    is_open: bool | None = None
    is_synthetic: bool = False
    description: str = ""

    @property
    def distance_km(self) -> float:
        # Always derived from the origin of the search that produced this candidate.
        return haversine_km(self.origin, self.location)

    @property
    def distance_label(self) -> str:
        return format_distance(self.distance_km)

    def as_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "distance_km": round(self.distance_km, 3),
            "distance": self.distance_label,
            "specialty": self.specialty_tag,
            "rating": self.rating,
            "is_open": self.is_open,
            "is_synthetic": self.is_synthetic,
        }


@dataclass
class FacilitySearchResult:
    candidates: list[FacilityCandidate] = field(default_factory=list)
    provider: str = PROVIDER_OVERPASS
    is_using_demo_data: bool = False
    error: str | None = None

    def as_payload(self) -> dict[str, Any]:
        return {
            "places": [candidate.as_payload() for candidate in self.candidates],
            "provider": self.provider,
            "is_using_demo_data": self.is_using_demo_data,
            "error": self.error,
        }
