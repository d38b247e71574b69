"""Manual section edits: splitting a section and recomputing its polyline."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, replace
from typing import Optional

from tracematch.config import SectionConfig, compute_initial_stability
from tracematch.consensus import compute_consensus_polyline
from tracematch.geometry import GpsPoint, haversine_distance, route_distance
from tracematch.sections import FrequentSection


@dataclass
class SplitResult:
    """The two sections produced by splitting one."""

    first: FrequentSection
    second: FrequentSection


def _strip_trailing_digits(text: str) -> str:
    end = len(text)
    while end > 0 and text[end - 1].isnumeric():
        end -= 1
    return text[:end]


def _split_part(
    section: FrequentSection, polyline: list[GpsPoint], id_suffix: str, name_suffix: str
) -> FrequentSection:
    base_id = _strip_trailing_digits(section.id)
    return replace(
        copy.deepcopy(section),
        id=f"{base_id}_{id_suffix}",
        name=None if section.name is None else f"{section.name} ({name_suffix})",
        polyline=polyline,
        activity_portions=[],
        distance_meters=route_distance(polyline),
        confidence=section.confidence * 0.9,
        point_density=[],
        version=section.version + 1,
        is_user_defined=True,
        updated_at=None,
    )


def split_section_at_index(section: FrequentSection, split_index: int) -> Optional[SplitResult]:
    """Split a section at a polyline index; None unless ``0 < split_index < len - 1``.

    The split point belongs to both halves. Both halves are marked user-defined and
    their portions and point densities are left empty for recalculation.
    """
    if split_index <= 0 or split_index >= len(section.polyline) - 1:
        return None
    first = list(section.polyline[: split_index + 1])
    second = list(section.polyline[split_index:])
    return SplitResult(
        first=_split_part(section, first, "a", "1"),
        second=_split_part(section, second, "b", "2"),
    )


def split_section_at_point(
    section: FrequentSection, split_point: GpsPoint, max_distance: float
) -> Optional[SplitResult]:
    """Split at the polyline point nearest ``split_point``.

    Returns None if that point is farther than ``max_distance`` meters or is an endpoint.
    """
    best_idx = None
    best_dist = math.inf
    for i, point in enumerate(section.polyline):
        dist = haversine_distance(point, split_point)
        if dist < best_dist:
            best_dist = dist
            best_idx = i

    if best_idx is None or best_dist > max_distance:
        return None
    return split_section_at_index(section, best_idx)


def recalculate_section_polyline(
    section: FrequentSection, config: SectionConfig
) -> FrequentSection:
    """Recompute the consensus polyline from the section's stored traces.

    User-defined sections and sections without traces come back unchanged.
    """
    if not section.activity_traces or section.is_user_defined:
        return copy.deepcopy(section)

    traces = list(section.activity_traces.values())
    consensus = compute_consensus_polyline(traces[0], traces, config.proximity_threshold)
    return replace(
        copy.deepcopy(section),
        polyline=consensus.polyline,
        distance_meters=route_distance(consensus.polyline),
        average_spread=consensus.average_spread,
        point_density=consensus.point_density,
        confidence=compute_initial_stability(
            consensus.observation_count,
            consensus.average_spread,
            config.proximity_threshold,
        ),
        observation_count=consensus.observation_count,
        version=section.version + 1,
        updated_at=None,
    )