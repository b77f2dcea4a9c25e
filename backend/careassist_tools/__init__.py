from .directions import build_directions_url, detect_platform
from .facility_matcher import (
    FacilityQueryError,
    GeoFacilityMatcher,
    ParseFailed,
    QueryFailed,
    build_overpass_query,
)
from .geo import GeoPoint, format_distance, haversine_km
from .intake import SymptomIntakeOrchestrator
from .models import FacilityCandidate, FacilitySearchResult
from .specialties import SpecialtyQuery, resolve_specialty
from .symptom_analysis import HostedSymptomAnalyzer, SymptomAnalysis, SymptomAnalysisError

__all__ = [
    "FacilityCandidate",
    "FacilityQueryError",
    "FacilitySearchResult",
    "GeoFacilityMatcher",
    "GeoPoint",
    "HostedSymptomAnalyzer",
    "ParseFailed",
    "QueryFailed",
    "SpecialtyQuery",
    "SymptomAnalysis",
    "SymptomAnalysisError",
    "SymptomIntakeOrchestrator",
    "build_directions_url",
    "build_overpass_query",
    "detect_platform",
    "format_distance",
    "haversine_km",
    "resolve_specialty",
]
