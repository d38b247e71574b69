"""Section evolution: refining sections with new traces and merging sections.

User-defined sections are never changed automatically. Stable sections move
less when new observations arrive.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from tracematch.config import SectionConfig, compute_initial_stability
from tracematch.consensus import compute_consensus_polyline
from tracematch.geometry import GpsPoint, haversine_distance, route_distance
from tracematch.sections import FrequentSection, SectionPortion

logger = logging.getLogger(__name__)

_NEAR_SAMPLE_RATIO = 0.6


@dataclass
class SectionUpdateResult:
    """The outcome of updating a section with new traces."""

    section: FrequentSection
    was_modified: bool
    new_activities_added: int
    confidence_delta: float
    stability_delta: float


def _unchanged(section: FrequentSection) -> SectionUpdateResult:
    return SectionUpdateResult(
        section=copy.deepcopy(section),
        was_modified=False,
        new_activities_added=0,
        confidence_delta=0.0,
        stability_delta=0.0,
    )


def update_section_with_new_traces(
    section: FrequentSection,
    new_traces: Mapping[str, Sequence[GpsPoint]],
    config: SectionConfig,
    timestamp: Optional[str] = None,
) -> SectionUpdateResult:
    """Refine a section with traces of activities it does not yet include.

    Only traces that pass near the section are used. The new consensus is
    blended with the old polyline, less so the more stable the section is.
    """
    if section.is_user_defined:
        return _unchanged(section)

    existing_ids = set(section.activity_ids)
    relevant = {
        activity_id: list(trace)
        for activity_id, trace in new_traces.items()
        if activity_id not in existing_ids
        and _is_trace_near_section(trace, section.polyline, config)
    }
    if not relevant:
        return _unchanged(section)

    logger.info(
        "[Evolution] Updating section %s with %d new traces", section.id, len(relevant)
    )

    track_map = {aid: list(trace) for aid, trace in section.activity_traces.items()}
    for activity_id, trace in relevant.items():
        extracted = _extract_trace_near_section(
            trace, section.polyline, config.proximity_threshold
        )
        if extracted:
            track_map[activity_id] = extracted

    all_traces = list(track_map.values())
    blend_factor = 1.0 - section.stability * 0.7
    consensus = compute_consensus_polyline(
        section.polyline, all_traces, config.proximity_threshold
    )

    updated = copy.deepcopy(section)
    updated.polyline = blend_polylines(section.polyline, consensus.polyline, blend_factor)
    updated.activity_ids.extend(relevant)
    updated.activity_traces = track_map
    updated.visit_count += len(relevant)
    updated.observation_count = len(all_traces)
    updated.distance_meters = route_distance(updated.polyline)
    updated.confidence = consensus.confidence
    updated.average_spread = consensus.average_spread
    updated.point_density = consensus.point_density
    updated.version += 1
    updated.updated_at = timestamp
    updated.stability = compute_initial_stability(
        updated.observation_count, updated.average_spread, config.proximity_threshold
    )

    for activity_id, trace in relevant.items():
        portion = _portion_for_trace(activity_id, trace)
        if portion is not None:
            updated.activity_portions.append(portion)

    return SectionUpdateResult(
        section=updated,
        was_modified=True,
        new_activities_added=len(relevant),
        confidence_delta=updated.confidence - section.confidence,
        stability_delta=updated.stability - section.stability,
    )


def merge_overlapping_sections(
    sections: Sequence[FrequentSection],
    config: SectionConfig,
    new_id: str,
    timestamp: Optional[str] = None,
) -> Optional[FrequentSection]:
    """Merge sections of one sport into a single section.

    Returns None if there is nothing to merge, if any section is user-defined,
    or if the sport types differ. A single section comes back as a copy.
    """
    if not sections:
        return None
    if len(sections) == 1:
        return copy.deepcopy(sections[0])
    if any(s.is_user_defined for s in sections):
        logger.info("[Evolution] Cannot merge: contains user-defined sections")
        return None

    sport_type = sections[0].sport_type
    if any(s.sport_type != sport_type for s in sections):
        logger.info("[Evolution] Cannot merge: different sport types")
        return None

    logger.info("[Evolution] Merging %d sections into %s", len(sections), new_id)

    activity_ids = sorted({aid for s in sections for aid in s.activity_ids})
    route_ids = sorted({rid for s in sections for rid in s.route_ids})

    traces: dict[str, list[GpsPoint]] = {}
    for section in sections:
        for activity_id, trace in section.activity_traces.items():
            existing = traces.get(activity_id)
            if existing is None or len(trace) > len(existing):
                traces[activity_id] = list(trace)

    reference = sections[0]
    for section in sections[1:]:
        if not reference.distance_meters > section.distance_meters:
            reference = section

    consensus = compute_consensus_polyline(
        reference.polyline, list(traces.values()), config.proximity_threshold
    )

    portions: list[SectionPortion] = []
    seen: set[str] = set()
    for section in sections:
        for portion in section.activity_portions:
            if portion.activity_id not in seen:
                seen.add(portion.activity_id)
                portions.append(copy.deepcopy(portion))

    stability = compute_initial_stability(
        consensus.observation_count, consensus.average_spread, config.proximity_threshold
    )

    return FrequentSection(
        id=new_id,
        name=None,
        sport_type=sport_type,
        polyline=consensus.polyline,
        representative_activity_id=reference.representative_activity_id,
        activity_ids=activity_ids,
        activity_portions=portions,
        route_ids=route_ids,
        visit_count=len(traces),
        distance_meters=route_distance(reference.polyline),
        activity_traces=traces,
        confidence=consensus.confidence,
        observation_count=consensus.observation_count,
        average_spread=consensus.average_spread,
        point_density=consensus.point_density,
        scale=reference.scale,
        version=1,
        is_user_defined=False,
        created_at=timestamp,
        updated_at=None,
        stability=stability,
    )


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def blend_polylines(
    old_polyline: Sequence[GpsPoint], new_polyline: Sequence[GpsPoint], factor: float
) -> list[GpsPoint]:
    """Interpolate between two polylines; 0 gives the old one, 1 the new one.

    Points are matched by their relative position along each polyline; the
    result has as many points as ``new_polyline``.
    """
    if factor >= 1.0:
        return list(new_polyline)
    if factor <= 0.0:
        return list(old_polyline)

    new_span = max(max(len(new_polyline), 1) - 1, 1)
    old_span = max(len(old_polyline), 1) - 1
    last_old = max(len(old_polyline) - 1, 0)

    blended = []
    for i, new_point in enumerate(new_polyline):
        old_idx = min(_round_half_away(i / new_span * old_span), last_old)
        if old_idx < len(old_polyline):
            old_point = old_polyline[old_idx]
            blended.append(
                GpsPoint(
                    old_point.latitude * (1.0 - factor) + new_point.latitude * factor,
                    old_point.longitude * (1.0 - factor) + new_point.longitude * factor,
                )
            )
        else:
            blended.append(new_point)
    return blended


def _is_trace_near_section(
    trace: Sequence[GpsPoint], section_polyline: Sequence[GpsPoint], config: SectionConfig
) -> bool:
    if not trace or not section_polyline:
        return False
    threshold = config.proximity_threshold * 1.5
    samples = section_polyline[:: max(len(section_polyline) // 10, 1)]
    near = sum(
        1
        for section_point in samples
        if any(haversine_distance(section_point, p) <= threshold for p in trace)
    )
    return bool(samples) and near / len(samples) >= _NEAR_SAMPLE_RATIO


def _extract_trace_near_section(
    trace: Sequence[GpsPoint], section_polyline: Sequence[GpsPoint], proximity_threshold: float
) -> list[GpsPoint]:
    threshold = proximity_threshold * 1.2
    return [
        point
        for point in trace
        if any(haversine_distance(point, sp) <= threshold for sp in section_polyline)
    ]


def _portion_for_trace(activity_id: str, trace: Sequence[GpsPoint]) -> Optional[SectionPortion]:
    if not trace:
        return None
    return SectionPortion(
        activity_id=activity_id,
        start_index=0,
        end_index=len(trace),
        distance_meters=route_distance(trace),
        direction="same",
    )