"""Results of multi-scale section detection: potential sections and statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from tracematch.geometry import GpsPoint
from tracematch.sections import FrequentSection, _lookup, _point_from_dict, _point_to_dict


@dataclass(kw_only=True)
class PotentialSection:
    """A candidate section seen in only one or two activities, offered as a suggestion."""

    id: str
    sport_type: str
    polyline: list[GpsPoint]
    activity_ids: list[str] = field(default_factory=list)
    visit_count: int = 0
    distance_meters: float = 0.0
    confidence: float = 0.0
    scale: str = ""

    def to_dict(self) -> dict[str, Any]:
        """A camelCase dictionary of this potential section."""
        return {
            "id": self.id,
            "sportType": self.sport_type,
            "polyline": [_point_to_dict(p) for p in self.polyline],
            "activityIds": list(self.activity_ids),
            "visitCount": self.visit_count,
            "distanceMeters": self.distance_meters,
            "confidence": self.confidence,
            "scale": self.scale,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PotentialSection:
        """Build a potential section from a camelCase or snake_case dictionary."""
        return cls(
            id=str(_lookup(data, "id")),
            sport_type=str(_lookup(data, "sportType", "sport_type")),
            polyline=[_point_from_dict(p) for p in _lookup(data, "polyline")],
            activity_ids=[str(a) for a in _lookup(data, "activityIds", "activity_ids")],
            visit_count=int(_lookup(data, "visitCount", "visit_count")),
            distance_meters=float(_lookup(data, "distanceMeters", "distance_meters")),
            confidence=float(_lookup(data, "confidence")),
            scale=str(_lookup(data, "scale")),
        )


@dataclass
class DetectionStats:
    """Counts gathered during section detection."""

    activities_processed: int = 0
    overlaps_found: int = 0
    sections_by_scale: dict[str, int] = field(default_factory=dict)
    potentials_by_scale: dict[str, int] = field(default_factory=dict)


@dataclass
class MultiScaleSectionResult:
    """Confirmed sections, potential sections and detection statistics."""

    sections: list[FrequentSection] = field(default_factory=list)
    potentials: list[PotentialSection] = field(default_factory=list)
    stats: DetectionStats = field(default_factory=DetectionStats)