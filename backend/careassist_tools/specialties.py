from __future__ import annotations

import re
from dataclasses import dataclass

_SPECIALTY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "cardiologist": ("cardiology", "heart", "cardiac"),
    "dermatologist": ("dermatology", "skin"),
    "neurologist": ("neurology", "neuro", "brain"),
    "orthopedist": ("orthopaedics", "orthopedics", "orthopedic", "bone", "joint"),
    "pediatrician": ("paediatrics", "pediatrics", "child", "children"),
    "gynecologist": ("gynaecology", "gynecology", "obstetrics", "women", "maternity"),
    "ent specialist": ("otolaryngology", "nose", "throat"),
    "ophthalmologist": ("ophthalmology", "eye", "vision"),
    "psychiatrist": ("psychiatry", "mental health", "psychology"),
    "gastroenterologist": ("gastroenterology", "digestive", "gastro"),
    "pulmonologist": ("pulmonology", "respiratory", "lung", "chest"),
    "urologist": ("urology", "kidney"),
    "endocrinologist": ("endocrinology", "diabetes", "thyroid"),
    "dentist": ("dentistry", "dental", "dentist"),
    "general physician": ("general", "family", "primary care", "physician"),
    "emergency": ("emergency", "trauma", "hospital"),
    "hospital": ("hospital", "medical center", "medical centre"),
}

_ALIASES = {
    "cardiology": "cardiologist",
    "dermatology": "dermatologist",
    "neurology": "neurologist",
    "orthopedic": "orthopedist",
    "orthopaedic": "orthopedist",
    "orthopedic surgeon": "orthopedist",
    "pediatrics": "pediatrician",
    "paediatrician": "pediatrician",
    "gynaecologist": "gynecologist",
    "ent": "ent specialist",
    "psychiatry": "psychiatrist",
    "general practitioner": "general physician",
    "family doctor": "general physician",
    "emergency room": "emergency",
}

_SYNTHETIC_NAMES: dict[str, tuple[str, ...]] = {
    "cardiologist": (
        "Heart Care Institute",
        "City Cardiac Centre",
        "Metro Heart Clinic",
        "Lifeline Cardiology",
        "Pulse Heart Hospital",
    ),
    "dermatologist": (
        "Clear Skin Clinic",
        "City Dermatology Centre",
        "Derma Care Associates",
        "Skin & Hair Institute",
        "Glow Dermatology Clinic",
    ),
    "neurologist": (
        "Neuro Care Centre",
        "City Brain & Spine Clinic",
        "Metro Neurology Institute",
        "NeuroLife Hospital",
        "Mind & Nerve Clinic",
    ),
    "orthopedist": (
        "Bone & Joint Clinic",
        "City Orthopaedic Centre",
        "Spine & Sports Injury Institute",
        "OrthoCare Hospital",
        "Joint Replacement Centre",
    ),
    "pediatrician": (
        "Little Steps Children's Clinic",
        "City Paediatric Centre",
        "Rainbow Children's Hospital",
        "Kids Care Clinic",
        "Family Child Health Centre",
    ),
    "emergency": (
        "City Emergency Hospital",
        "Metro Trauma Centre",
        "Central Emergency Care",
        "24x7 Critical Care Hospital",
        "Rapid Response Medical Centre",
    ),
}

_GENERIC_NAMES = (
    "City Medical Center",
    "Central Hospital",
    "Community Health Clinic",
    "Metro Care Hospital",
    "Family Health Center",
)


def normalize_specialty(text: str | None) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower())


@dataclass(frozen=True)
class SpecialtyQuery:
    raw: str
    category: str | None
    synonyms: frozenset[str]

    @property
    def known(self) -> bool:
        return self.category is not None

    def matches(self, *fields: str | None) -> bool:
        haystack = " ".join(normalize_specialty(value) for value in fields if value)
        if not haystack:
            return False
        if self.raw and self.raw in haystack:
            return True
        return any(term in haystack for term in self.synonyms)


def resolve_specialty(text: str | None) -> SpecialtyQuery:
    raw = normalize_specialty(text)
    category = _ALIASES.get(raw, raw if raw in _SPECIALTY_SYNONYMS else None)
    if category is None and raw:
        for key in _SPECIALTY_SYNONYMS:
            if key in raw:
                category = key
                break
    synonyms = frozenset(_SPECIALTY_SYNONYMS.get(category, ())) if category else frozenset()
    return SpecialtyQuery(raw=raw, category=category, synonyms=synonyms)


def synthetic_names(query: SpecialtyQuery) -> tuple[str, ...]:
    if query.category and query.category in _SYNTHETIC_NAMES:
        return _SYNTHETIC_NAMES[query.category]
    return _GENERIC_NAMES
