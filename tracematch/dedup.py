"""Hierarchy-preserving removal of duplicate sections."""

from __future__ import annotations

import math
from typing import Sequence

from tracematch.config import SectionConfig
from tracematch.geometry import METERS_PER_DEGREE, GpsPoint, PointIndex
from tracematch.sections import FrequentSection

_CONTAINMENT_LIMIT = 0.9
_LENGTH_RATIO_LIMIT = 0.7


def polyline_containment(
    polyline_a: Sequence[GpsPoint], index_b: PointIndex, proximity_threshold: float
) -> float:
    """Fraction of the points of ``polyline_a`` within ``proximity_threshold`` meters
    of some point of the indexed polyline."""
    if not polyline_a:
        return 0.0

    threshold_deg = proximity_threshold / METERS_PER_DEGREE
    threshold_deg_sq = threshold_deg * threshold_deg

    contained = 0
    for point in polyline_a:
        hit = index_b.nearest(point.latitude, point.longitude)
        if hit is not None and hit.distance_sq <= threshold_deg_sq:
            contained += 1
    return contained / len(polyline_a)


def _length_ratio(shorter: float, longer: float) -> float:
    if longer == 0.0:
        return math.inf if shorter > 0.0 else math.nan
    return shorter / longer


def _same_scale(a: FrequentSection, b: FrequentSection) -> bool:
    if a.scale is None or b.scale is None:
        return True
    return a.scale == b.scale


def remove_overlapping_sections_hierarchical(
    sections: Sequence[FrequentSection], config: SectionConfig
) -> list[FrequentSection]:
    """Drop sections that duplicate a longer one, keeping nested sections of other scales.

    Sections come back ordered by length, longest first. A shorter section is
    dropped only when it lies more than 90% within a longer kept one, is more
    than 70% of its length, and has the same scale (or either has no scale).
    """
    if len(sections) <= 1:
        return list(sections)

    ordered = sorted(sections, key=lambda s: s.distance_meters, reverse=True)
    indexes = [PointIndex(s.polyline) for s in ordered]
    keep = [True] * len(ordered)

    for i, longer in enumerate(ordered):
        if not keep[i]:
            continue
        for j in range(i + 1, len(ordered)):
            if not keep[j]:
                continue
            shorter = ordered[j]
            containment = polyline_containment(
                shorter.polyline, indexes[i], config.proximity_threshold
            )
            ratio = _length_ratio(shorter.distance_meters, longer.distance_meters)
            if (
                containment > _CONTAINMENT_LIMIT
                and ratio > _LENGTH_RATIO_LIMIT
                and _same_scale(longer, shorter)
            ):
                keep[j] = False

    return [section for section, kept in zip(ordered, keep) if kept]