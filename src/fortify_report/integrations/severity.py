"""Severity classification: maps provider-native fields onto one taxonomy.

The tables are process-wide constants. The SSC folder GUIDs belong to the
standard "Security Auditor View" filter set and are identical on every SSC
installation that uses it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from fortify_report.models.enums import Confidence, Likelihood


@dataclass(frozen=True)
class SeverityBucket:
    name: str
    color: str
    ordinal: int


CRITICAL = SeverityBucket("Critical", "ed1c24", 1)
HIGH = SeverityBucket("High", "ff7800", 2)
MEDIUM = SeverityBucket("Medium", "f6aa58", 3)
LOW = SeverityBucket("Low", "eec845", 4)
UNKNOWN = SeverityBucket("Unknown", "666666", 0)

SECURITY_AUDITOR_FOLDERS: MappingProxyType[str, SeverityBucket] = MappingProxyType({
    "b968f72f-cc12-03b5-976e-ad4c13920c21": CRITICAL,
    "5b50bb77-071d-08ed-fdba-1213fa90ac5a": HIGH,
    "d5f55910-5f0d-a775-e91f-191d1f5608a4": MEDIUM,
    "bb824e8d-b401-40be-13bd-5d156696a685": LOW,
})

SEVERITY_STRINGS: MappingProxyType[str, SeverityBucket] = MappingProxyType({
    "critical": CRITICAL,
    "high": HIGH,
    "medium": MEDIUM,
    "low": LOW,
})

# Lower bounds are inclusive
LIKELY_THRESHOLD = 0.7
POSSIBLE_THRESHOLD = 0.3
HIGH_CONFIDENCE_THRESHOLD = 4.0
MEDIUM_CONFIDENCE_THRESHOLD = 2.5


def classify_folder_guid(folder_guid: str | None) -> SeverityBucket:
    """Resolve an SSC folder GUID; unknown GUIDs fall into the Unknown bucket."""
    return SECURITY_AUDITOR_FOLDERS.get(folder_guid or "", UNKNOWN)


def classify_severity_string(severity: str | None) -> SeverityBucket:
    """Resolve a FoD ``severityString`` case-insensitively."""
    return SEVERITY_STRINGS.get((severity or "").strip().lower(), UNKNOWN)


def classify_likelihood(value: float | str | None) -> Likelihood:
    score = _to_float(value)
    if score >= LIKELY_THRESHOLD:
        return Likelihood.LIKELY
    if score >= POSSIBLE_THRESHOLD:
        return Likelihood.POSSIBLE
    return Likelihood.UNLIKELY


def classify_confidence(value: float | str | None) -> Confidence:
    score = _to_float(value)
    if score >= HIGH_CONFIDENCE_THRESHOLD:
        return Confidence.HIGH
    if score >= MEDIUM_CONFIDENCE_THRESHOLD:
        return Confidence.MEDIUM
    return Confidence.LOW


def _to_float(value: float | str | None) -> float:
    """Parse a raw score; anything unparseable ranks lowest."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
