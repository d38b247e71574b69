"""Section records: frequently travelled sections and each activity's portion of one.

Dictionaries produced by ``to_dict`` use camelCase keys; ``from_dict`` accepts
both the camelCase keys and their snake_case spellings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from tracematch.geometry import GpsPoint

_MISSING = object()


def _lookup(data: Mapping[str, Any], key: str, alias: Optional[str] = None, default: Any = _MISSING) -> Any:
    if key in data:
        return data[key]
    if alias is not None and alias in data:
        return data[alias]
    if default is _MISSING:
        raise KeyError(f"missing field {key!r}")
    return default


def _point_to_dict(point: GpsPoint) -> dict[str, Any]:
    return {
        "latitude": point.latitude,
        "longitude": point.longitude,
        "elevation": point.elevation,
    }


def _point_from_dict(data: Mapping[str, Any]) -> GpsPoint:
    elevation = data.get("elevation")
    return GpsPoint(
        float(data["latitude"]),
        float(data["longitude"]),
        None if elevation is None else float(elevation),
    )


@dataclass(kw_only=True)
class SectionPortion:
    """The part of one activity's full GPS track that covers a section."""

    activity_id: str
    start_index: int
    end_index: int
    distance_meters: float
    direction: str = "same"

    def to_dict(self) -> dict[str, Any]:
        """A camelCase dictionary of this portion."""
        return {
            "activityId": self.activity_id,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "distanceMeters": self.distance_meters,
            "direction": self.direction,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SectionPortion:
        """Build a portion from a camelCase or snake_case dictionary."""
        return cls(
            activity_id=str(_lookup(data, "activityId", "activity_id")),
            start_index=int(_lookup(data, "startIndex", "start_index")),
            end_index=int(_lookup(data, "endIndex", "end_index")),
            distance_meters=float(_lookup(data, "distanceMeters", "distance_meters")),
            direction=str(_lookup(data, "direction")),
        )


@dataclass(kw_only=True)
class FrequentSection:
    """A frequently travelled section with its consensus polyline and metrics."""

    id: str
    sport_type: str
    polyline: list[GpsPoint]
    representative_activity_id: str
    name: Optional[str] = None
    activity_ids: list[str] = field(default_factory=list)
    activity_portions: list[SectionPortion] = field(default_factory=list)
    route_ids: list[str] = field(default_factory=list)
    visit_count: int = 0
    distance_meters: float = 0.0
    activity_traces: dict[str, list[GpsPoint]] = field(default_factory=dict)
    confidence: float = 0.0
    observation_count: int = 0
    average_spread: float = 0.0
    point_density: list[int] = field(default_factory=list)
    scale: Optional[str] = None
    version: int = 1
    is_user_defined: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    stability: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """A camelCase dictionary of this section, suitable for JSON."""
        return {
            "id": self.id,
            "name": self.name,
            "sportType": self.sport_type,
            "polyline": [_point_to_dict(p) for p in self.polyline],
            "representativeActivityId": self.representative_activity_id,
            "activityIds": list(self.activity_ids),
            "activityPortions": [p.to_dict() for p in self.activity_portions],
            "routeIds": list(self.route_ids),
            "visitCount": self.visit_count,
            "distanceMeters": self.distance_meters,
            "activityTraces": {
                activity_id: [_point_to_dict(p) for p in trace]
                for activity_id, trace in self.activity_traces.items()
            },
            "confidence": self.confidence,
            "observationCount": self.observation_count,
            "averageSpread": self.average_spread,
            "pointDensity": list(self.point_density),
            "scale": self.scale,
            "version": self.version,
            "isUserDefined": self.is_user_defined,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "stability": self.stability,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FrequentSection:
        """Build a section from a camelCase or snake_case dictionary.

        Optional fields may be absent; any other missing field raises KeyError.
        """
        traces = _lookup(data, "activityTraces", "activity_traces")
        return cls(
            id=str(_lookup(data, "id")),
            name=_lookup(data, "name", default=None),
            sport_type=str(_lookup(data, "sportType", "sport_type")),
            polyline=[_point_from_dict(p) for p in _lookup(data, "polyline")],
            representative_activity_id=str(
                _lookup(data, "representativeActivityId", "representative_activity_id")
            ),
            activity_ids=[str(a) for a in _lookup(data, "activityIds", "activity_ids")],
            activity_portions=[
                SectionPortion.from_dict(p)
                for p in _lookup(data, "activityPortions", "activity_portions")
            ],
            route_ids=[str(r) for r in _lookup(data, "routeIds", "route_ids")],
            visit_count=int(_lookup(data, "visitCount", "visit_count")),
            distance_meters=float(_lookup(data, "distanceMeters", "distance_meters")),
            activity_traces={
                str(activity_id): [_point_from_dict(p) for p in trace]
                for activity_id, trace in traces.items()
            },
            confidence=float(_lookup(data, "confidence")),
            observation_count=int(_lookup(data, "observationCount", "observation_count")),
            average_spread=float(_lookup(data, "averageSpread", "average_spread")),
            point_density=[int(d) for d in _lookup(data, "pointDensity", "point_density")],
            scale=_lookup(data, "scale", default=None),
            version=int(_lookup(data, "version")),
            is_user_defined=bool(_lookup(data, "isUserDefined", "is_user_defined")),
            created_at=_lookup(data, "createdAt", "created_at", default=None),
            updated_at=_lookup(data, "updatedAt", "updated_at", default=None),
            stability=float(_lookup(data, "stability")),
        )