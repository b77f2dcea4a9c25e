from __future__ import annotations

import re

from .geo import GeoPoint

_IOS_RE = re.compile(r"iPad|iPhone|iPod")
_ANDROID_RE = re.compile(r"Android")


def detect_platform(user_agent: str | None) -> str:
    agent = user_agent or ""
    if _IOS_RE.search(agent):
        return "ios"
    if _ANDROID_RE.search(agent):
        return "android"
    return "web"


def build_directions_url(destination: GeoPoint, origin: GeoPoint | None = None, *, platform: str = "web") -> str:
    """URI that hands turn-by-turn directions to the device's map application."""
    dest = destination.as_query()
    if platform == "ios":
        saddr = origin.as_query() if origin else ""
        return f"maps://maps.apple.com/?daddr={dest}&saddr={saddr}"
    if platform == "android":
        return f"geo:{dest}?q={dest}"
    if origin is not None:
        return f"https://www.openstreetmap.org/directions?from={origin.as_query()}&to={dest}"
    return (
        f"https://www.openstreetmap.org/?mlat={destination.latitude}&mlon={destination.longitude}"
        f"#map=16/{destination.latitude}/{destination.longitude}"
    )
