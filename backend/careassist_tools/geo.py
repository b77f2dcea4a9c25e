from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_payload(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def as_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


def safe_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def haversine_km(origin: GeoPoint, target: GeoPoint) -> float:
    dlat = math.radians(target.latitude - origin.latitude)
    dlon = math.radians(target.longitude - origin.longitude)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(origin.latitude))
        * math.cos(math.radians(target.latitude))
        * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a just past 1 near antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(km: float) -> str:
    metres = round(km * 1000)
    if metres < 1000:
        return f"{metres} m"
    return f"{km:.1f} km"
