"""Incremental section detection for a newly added activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from tracematch.config import SectionConfig
from tracematch.evolution import update_section_with_new_traces
from tracematch.geometry import (
    METERS_PER_DEGREE,
    GpsPoint,
    PointIndex,
    bounds_overlap,
    compute_center,
    haversine_distance,
    route_distance,
)
from tracematch.grid import downsample_track
from tracematch.sections import FrequentSection

_DOWNSAMPLE_POINTS = 100
_MATCH_RATIO = 0.6


@dataclass
class FullTrackOverlap:
    """An overlapping stretch of two tracks, with the points from each side."""

    activity_a: str
    activity_b: str
    points_a: list[GpsPoint]
    points_b: list[GpsPoint]
    center: GpsPoint


@dataclass
class IncrementalResult:
    """What incremental detection found for a new activity."""

    matched_section_ids: list[str] = field(default_factory=list)
    updated_sections: list[FrequentSection] = field(default_factory=list)
    new_sections: list[FrequentSection] = field(default_factory=list)


def find_overlap_downsampled(
    activity_a: str,
    track_a: Sequence[GpsPoint],
    activity_b: str,
    track_b: Sequence[GpsPoint],
    config: SectionConfig,
) -> Optional[FullTrackOverlap]:
    """First overlap of at least ``min_section_length`` between the two tracks.

    Both tracks are downsampled to about 100 points. Scanning track A, an overlap
    run ends at the first point farther than the proximity threshold from track B;
    a run that is long enough stops the scan, a shorter one is discarded.
    """
    down_a = downsample_track(track_a, _DOWNSAMPLE_POINTS)
    down_b = downsample_track(track_b, _DOWNSAMPLE_POINTS)
    index_b = PointIndex(down_b)

    threshold_deg = config.proximity_threshold / METERS_PER_DEGREE
    threshold_deg_sq = threshold_deg * threshold_deg

    points_a: list[GpsPoint] = []
    points_b: list[GpsPoint] = []
    length = 0.0
    in_overlap = False
    last_point: Optional[GpsPoint] = None

    for point in down_a:
        hit = index_b.nearest(point.latitude, point.longitude)
        if hit is None:
            continue
        if hit.distance_sq <= threshold_deg_sq:
            points_a.append(point)
            points_b.append(down_b[hit.index])
            if last_point is not None:
                length += haversine_distance(last_point, point)
            in_overlap = True
            last_point = point
        elif in_overlap:
            if length >= config.min_section_length:
                break
            points_a.clear()
            points_b.clear()
            length = 0.0
            in_overlap = False
            last_point = None

    if length >= config.min_section_length and points_a:
        return FullTrackOverlap(
            activity_a=activity_a,
            activity_b=activity_b,
            points_a=points_a,
            points_b=points_b,
            center=compute_center(points_a),
        )
    return None


def matches_section(
    track: Sequence[GpsPoint], section_polyline: Sequence[GpsPoint], config: SectionConfig
) -> bool:
    """Whether the track passes near at least 60% of sampled section points."""
    if not track or not section_polyline:
        return False
    threshold = config.proximity_threshold * 1.5
    samples = section_polyline[:: max(len(section_polyline) // 10, 1)]
    near = sum(
        1
        for section_point in samples
        if any(haversine_distance(section_point, p) <= threshold for p in track)
    )
    return bool(samples) and near / len(samples) >= _MATCH_RATIO


def _new_section(
    activity_id: str, other_id: str, polyline: list[GpsPoint], distance: float, config: SectionConfig
) -> FrequentSection:
    return FrequentSection(
        id=f"sec_new_{activity_id}",
        name=None,
        sport_type="Unknown",
        polyline=polyline,
        representative_activity_id=activity_id,
        activity_ids=[activity_id, other_id],
        activity_portions=[],
        route_ids=[],
        visit_count=2,
        distance_meters=distance,
        activity_traces={},
        confidence=0.5,
        observation_count=2,
        average_spread=config.proximity_threshold / 2.0,
        point_density=[2] * 10,
        scale="incremental",
        version=1,
        is_user_defined=False,
        created_at=None,
        updated_at=None,
        stability=0.3,
    )


def detect_sections_incremental(
    new_activity_id: str,
    new_track: Sequence[GpsPoint],
    existing_sections: Sequence[FrequentSection],
    recent_tracks: Sequence[tuple[str, Sequence[GpsPoint]]],
    config: SectionConfig,
) -> IncrementalResult:
    """Match a new activity against existing sections, or find a new one.

    Matched sections that are not user-defined are refined with the new track.
    Only when nothing matches are ``recent_tracks`` searched for a new section;
    at most one new section is reported.
    """
    result = IncrementalResult()
    downsampled = downsample_track(new_track, _DOWNSAMPLE_POINTS)

    for section in existing_sections:
        if not matches_section(downsampled, section.polyline, config):
            continue
        result.matched_section_ids.append(section.id)
        if section.is_user_defined:
            continue
        update = update_section_with_new_traces(
            section, {new_activity_id: list(new_track)}, config, None
        )
        if update.was_modified:
            result.updated_sections.append(update.section)

    if result.matched_section_ids:
        return result

    for other_id, other_track in recent_tracks:
        if other_id == new_activity_id:
            continue
        other_downsampled = downsample_track(other_track, _DOWNSAMPLE_POINTS)
        if not bounds_overlap(downsampled, other_downsampled, config.proximity_threshold):
            continue
        overlap = find_overlap_downsampled(
            new_activity_id, new_track, other_id, other_track, config
        )
        if overlap is None:
            continue
        polyline = list(overlap.points_a)
        distance = route_distance(polyline)
        if config.min_section_length <= distance <= config.max_section_length:
            result.new_sections.append(
                _new_section(new_activity_id, other_id, polyline, distance, config)
            )
            break

    return result