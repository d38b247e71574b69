"""Consensus polyline from several overlapping tracks.

Each reference point is replaced by the inverse-distance weighted centroid of the
nearest point of every track that lies within the proximity threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from tracematch.geometry import METERS_PER_DEGREE, GpsPoint, PointIndex

_EPSILON = 0.000001


@dataclass
class ConsensusResult:
    """A consensus polyline with its confidence metrics."""

    polyline: list[GpsPoint]
    confidence: float
    observation_count: int
    average_spread: float
    point_density: list[int] = field(default_factory=list)


def compute_consensus_polyline(
    reference: Sequence[GpsPoint],
    all_traces: Sequence[Sequence[GpsPoint]],
    proximity_threshold: float,
) -> ConsensusResult:
    """Refine ``reference`` by weighted averaging of nearby points from ``all_traces``."""
    if not reference or not all_traces:
        return ConsensusResult(
            polyline=list(reference),
            confidence=0.0,
            observation_count=0,
            average_spread=0.0,
            point_density=[0] * len(reference),
        )

    indexes = [PointIndex(trace) for trace in all_traces]
    threshold_deg = proximity_threshold / METERS_PER_DEGREE
    threshold_deg_sq = threshold_deg * threshold_deg

    consensus_points: list[GpsPoint] = []
    point_density: list[int] = []
    total_spread = 0.0
    total_observations = 0

    for ref_point in reference:
        weighted_lat = weighted_lng = weighted_elev = 0.0
        total_weight = elev_weight = 0.0
        distances: list[float] = []

        for trace, index in zip(all_traces, indexes):
            hit = index.nearest(ref_point.latitude, ref_point.longitude)
            if hit is None or hit.distance_sq > threshold_deg_sq:
                continue
            trace_point = trace[hit.index]
            dist_meters = math.sqrt(hit.distance_sq) * METERS_PER_DEGREE
            weight = 1.0 / (dist_meters + _EPSILON)

            weighted_lat += trace_point.latitude * weight
            weighted_lng += trace_point.longitude * weight
            total_weight += weight
            distances.append(dist_meters)

            if trace_point.elevation is not None:
                weighted_elev += trace_point.elevation * weight
                elev_weight += weight

        point_density.append(len(distances))

        if total_weight > 0.0:
            elevation = weighted_elev / elev_weight if elev_weight > 0.0 else ref_point.elevation
            consensus_points.append(
                GpsPoint(weighted_lat / total_weight, weighted_lng / total_weight, elevation)
            )
            total_spread += sum(distances) / len(distances)
            total_observations += len(distances)
        else:
            consensus_points.append(ref_point)

    observation_count = len(indexes)
    if total_observations > 0:
        average_spread = total_spread / len(reference)
    else:
        average_spread = proximity_threshold

    obs_factor = min(float(observation_count), 10.0) / 10.0
    spread_factor = 1.0 - min(average_spread / proximity_threshold, 1.0)
    confidence = min(max(obs_factor * 0.5 + spread_factor * 0.5, 0.0), 1.0)

    return ConsensusResult(
        polyline=consensus_points,
        confidence=confidence,
        observation_count=observation_count,
        average_spread=average_spread,
        point_density=point_density,
    )