"""Locating known sections inside a GPS route."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from tracematch.config import SectionConfig
from tracematch.geometry import GpsPoint, haversine_distance
from tracematch.sections import FrequentSection

_MIN_QUALITY = 0.6


@dataclass
class SectionMatch:
    """Where a section appears in a route; ``end_index`` is exclusive."""

    section_id: str
    start_index: int
    end_index: int
    match_quality: float
    same_direction: bool


def find_sections_in_route(
    route: Sequence[GpsPoint],
    sections: Sequence[FrequentSection],
    config: SectionConfig,
) -> list[SectionMatch]:
    """Every section found in ``route``, ordered by start index."""
    if not route or not sections:
        return []

    threshold = config.proximity_threshold * 1.5
    matches = []
    for section in sections:
        if not section.polyline:
            continue
        span = _find_section_span(route, section.polyline, threshold)
        if span is not None:
            start, end, quality, same_direction = span
            matches.append(SectionMatch(section.id, start, end, quality, same_direction))

    matches.sort(key=lambda m: m.start_index)
    return matches


def _find_section_span(
    route: Sequence[GpsPoint], section: Sequence[GpsPoint], threshold: float
) -> Optional[tuple[int, int, float, bool]]:
    if len(route) < 3 or len(section) < 3:
        return None

    forward = _find_section_span_directed(route, section, threshold)
    backward = _find_section_span_directed(route, section[::-1], threshold)

    if forward is not None and (backward is None or forward[2] >= backward[2]):
        return (*forward, True)
    if backward is not None:
        return (*backward, False)
    return None


def _closest_within(
    route: Sequence[GpsPoint], target: GpsPoint, threshold: float, first: int
) -> Optional[int]:
    best_idx = None
    best_dist = math.inf
    for i in range(first, len(route)):
        dist = haversine_distance(route[i], target)
        if dist < threshold and dist < best_dist:
            best_dist = dist
            best_idx = i
    return best_idx


def _find_section_span_directed(
    route: Sequence[GpsPoint], section: Sequence[GpsPoint], threshold: float
) -> Optional[tuple[int, int, float]]:
    start_idx = _closest_within(route, section[0], threshold, 0)
    if start_idx is None:
        return None

    end_idx = _closest_within(route, section[-1], threshold, start_idx + 1)
    if end_idx is None:
        end_idx = len(route) - 1

    span = route[start_idx : end_idx + 1]
    samples = section[:: max(len(section) // 10, 1)]
    matched = sum(
        1
        for section_point in samples
        if any(haversine_distance(p, section_point) <= threshold for p in span)
    )
    quality = matched / len(samples) if samples else 0.0

    if quality >= _MIN_QUALITY:
        return start_idx, end_idx + 1, quality
    return None